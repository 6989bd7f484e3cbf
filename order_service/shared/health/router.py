from functools import lru_cache

from fastapi import APIRouter, Depends

from order_service.config import factory
from order_service.config.db_session import get_engine
from order_service.config.logger import get_logger
from order_service.shared.health.health_check import HealthChecker

health_router = APIRouter(prefix="/health", tags=["health"])


@lru_cache
def get_health_checker() -> HealthChecker:
    settings = factory.get_settings()
    kafka_address = None
    if settings.messaging.transport == "kafka":
        kafka_address = (settings.kafka.get_host(settings.app.env_mode), settings.kafka.port)
    return HealthChecker(
        logger=get_logger("health_service"),
        engine=get_engine(settings.database_url, settings.postgres),
        catalog_client=factory.get_book_client().http_client,
        kafka_address=kafka_address,
    )


@health_router.get("", summary="Check all services")
async def check_all_services(checker: HealthChecker = Depends(get_health_checker)):
    """
    Run health checks for every backing service.
    Returns JSON with each service's health and a summary.
    """
    return await checker.run_all()


@health_router.get("/postgres", summary="Check Postgres")
async def check_postgres(checker: HealthChecker = Depends(get_health_checker)):
    return {"postgres": await checker.check_postgres()}


@health_router.get("/kafka", summary="Check Kafka")
async def check_kafka(checker: HealthChecker = Depends(get_health_checker)):
    return {"kafka": await checker.check_kafka()}


@health_router.get("/catalog", summary="Check the catalog service")
async def check_catalog(checker: HealthChecker = Depends(get_health_checker)):
    return {"catalog": await checker.check_catalog()}
