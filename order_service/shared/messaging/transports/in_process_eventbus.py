import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Set

from order_service.shared.logger import JohnWickLogger
from order_service.shared.metrics import MetricsCollector


class InProcessEventBus:
    """
    Lightweight in-memory event bus for local pub/sub communication.
    Suitable for development, testing, and single-process deployments.
    """

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        logger: Optional[JohnWickLogger] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.subscribers: Dict[str, List[Callable[[Any], Any]]] = {}
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = logger or JohnWickLogger(name="InProcessEventBus")
        self.metrics = metrics or MetricsCollector(self.logger)
        self._tasks: Set[asyncio.Task] = set()

    async def start(self):
        self.logger.info("InProcessEventBus started")

    async def stop(self):
        """Wait for in-flight deliveries, then drop them if they do not finish."""
        if self._tasks:
            _, pending = await asyncio.wait(self._tasks, timeout=5)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self.logger.info("InProcessEventBus stopped")

    async def publish(self, topic: str, payload: dict):
        """
        Publish an event to all subscribers.
        Each subscriber runs in its own task with retries; the caller does not
        wait for delivery.
        """
        self.metrics.increment("published")
        subscribers = self.subscribers.get(topic, [])
        if not subscribers:
            self.logger.debug("No subscribers for event", extra={"topic": topic})
            return

        self.logger.info("Publishing event", extra={"topic": topic, "payload": payload})

        for callback in subscribers:
            task = asyncio.create_task(self._safe_invoke(callback, topic, payload))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def subscribe(self, topic: str, callback: Callable):
        self.subscribers.setdefault(topic, []).append(callback)
        self.logger.info(
            "Subscriber added",
            extra={"topic": topic, "callback": getattr(callback, "__name__", str(callback))},
        )

    async def _safe_invoke(self, callback: Callable, topic: str, payload: dict):
        """
        Invoke a subscriber with retry logic.
        Supports both async and sync callbacks.
        """
        name = getattr(callback, "__name__", str(callback))
        for attempt in range(1, self.max_retries + 1):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
                self.metrics.increment("subscriber_success")
                self.logger.debug("Subscriber executed successfully", extra={"topic": topic, "callback": name})
                return
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.metrics.increment("subscriber_failure")
                self.logger.warning(
                    f"Subscriber failed on attempt {attempt}",
                    extra={"topic": topic, "callback": name, "error": str(exc)},
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * attempt)

        self.logger.error(
            "Subscriber permanently failed after retries",
            extra={"topic": topic, "callback": name, "payload": payload},
        )
        self.metrics.report()
