import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from order_service.shared.logger import JohnWickLogger
from order_service.shared.retry import FixedDelayRetry, RetryPolicy


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthChecker:
    def __init__(
        self,
        logger: JohnWickLogger,
        engine: Optional[AsyncEngine] = None,
        catalog_client: Optional[httpx.AsyncClient] = None,
        kafka_address: Optional[tuple] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 5.0,
    ):
        """
        :param logger: JohnWickLogger instance
        :param engine: engine of the order store
        :param catalog_client: HTTP client bound to the catalog base URL
        :param kafka_address: (host, port) of a broker, None when Kafka is not in use
        :param retry_policy: RetryPolicy instance (default FixedDelayRetry)
        """
        self.logger = logger
        self.engine = engine
        self.catalog_client = catalog_client
        self.kafka_address = kafka_address
        self.retry_policy: RetryPolicy = retry_policy or FixedDelayRetry(max_retries=2, delay=0.5, logger=logger)
        self.timeout = timeout

    async def _run(self, name: str, check) -> Dict[str, Any]:
        try:
            await self.retry_policy.execute(check)
            self.logger.debug(f"{name} healthy")
            return {"status": "healthy", "checked_at": _now()}
        except Exception as e:
            self.logger.warning(f"{name} check failed", extra={"error": str(e)})
            return {"status": "unhealthy", "error": str(e), "checked_at": _now()}

    async def check_postgres(self) -> Dict[str, Any]:
        async def _check():
            if self.engine is None:
                raise ConnectionError("No database engine configured")
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        return await self._run("Postgres", _check)

    async def check_kafka(self) -> Dict[str, Any]:
        async def _check():
            if self.kafka_address is None:
                raise ConnectionError("Kafka transport is not enabled")
            host, port = self.kafka_address
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=self.timeout)
            writer.close()
            await writer.wait_closed()

        return await self._run("Kafka", _check)

    async def check_catalog(self) -> Dict[str, Any]:
        async def _check():
            if self.catalog_client is None:
                raise ConnectionError("No catalog client configured")
            response = await self.catalog_client.get("/", timeout=self.timeout)
            if response.status_code >= 500:
                raise ConnectionError(f"Catalog answered {response.status_code}")

        return await self._run("Catalog", _check)

    async def run_all(self, services: Optional[List[str]] = None) -> Dict[str, Any]:
        """Run all health checks or a subset of services."""
        if services is None:
            services = ["postgres", "catalog"]
            if self.kafka_address is not None:
                services.append("kafka")

        checks = {
            "postgres": self.check_postgres,
            "kafka": self.check_kafka,
            "catalog": self.check_catalog,
        }
        selected = [name for name in services if name in checks]
        check_results = await asyncio.gather(*(checks[name]() for name in selected))
        results: Dict[str, Any] = dict(zip(selected, check_results))

        total = len(results)
        healthy = sum(1 for r in results.values() if r["status"] == "healthy")
        results["summary"] = {"total": total, "healthy": healthy, "unhealthy": total - healthy}
        return results
