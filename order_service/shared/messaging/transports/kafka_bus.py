import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from order_service.shared.clients import KafkaClient
from order_service.shared.logger import JohnWickLogger
from order_service.shared.metrics import MetricsCollector
from order_service.shared.retry import FixedDelayRetry, RetryPolicy


class KafkaEventBus:
    """
    EventBus over KafkaClient.

    Publishing awaits the broker acknowledgement. Consumption runs in a single
    background loop: each message is handed to the topic's subscribers in turn,
    a failing subscriber is retried and then parked on the DLQ, and the offset
    is committed only after that. If the consumer itself fails the loop logs it
    and starts consuming again after ``restart_delay`` seconds.
    """

    def __init__(
        self,
        kafka_client: KafkaClient,
        logger: Optional[JohnWickLogger] = None,
        metrics: Optional[MetricsCollector] = None,
        retry_policy: Optional[RetryPolicy] = None,
        restart_delay: float = 1.0,
    ):
        self.kafka_client = kafka_client
        self.logger = logger or JohnWickLogger("KafkaEventBus")
        self.metrics = metrics or self.kafka_client.metrics
        self.retry_policy = retry_policy or FixedDelayRetry(max_retries=3, delay=0.5, logger=self.logger)
        self.restart_delay = restart_delay

        self._subscribers: Dict[str, List[Callable[[dict], Awaitable[None]]]] = {}
        self._consume_task: Optional[asyncio.Task] = None

        self._running = False
        self._start_lock = asyncio.Lock()

    # --- Lifecycle ---
    async def start(self):
        async with self._start_lock:
            if self._running:
                return
            await self.kafka_client.start()
            self._running = True
            self.logger.info("KafkaEventBus started")

    async def stop(self):
        if not self._running:
            return

        if self._consume_task:
            self._consume_task.cancel()
            await asyncio.gather(self._consume_task, return_exceptions=True)
            self._consume_task = None

        await self.kafka_client.stop()
        self._running = False
        self.logger.info("KafkaEventBus stopped")

    # --- Subscribe ---
    async def subscribe(self, topic: str, callback: Callable[[dict], Awaitable[None]]):
        """Register a callback and make sure the consume loop is running."""
        await self.start()

        self._subscribers.setdefault(topic, []).append(callback)
        await self.kafka_client.subscribe_to_topics([topic])
        self.logger.info(
            "Subscription registered",
            extra={"topic": topic, "callback": getattr(callback, "__name__", str(callback))},
        )

        if self._consume_task is None or self._consume_task.done():
            self._consume_task = asyncio.create_task(self._consume_loop())

    # --- Publish ---
    async def publish(self, topic: str, payload: dict, key: Optional[str] = None):
        """Publish a message; retries and DLQ handling live in KafkaClient."""
        await self.start()
        try:
            await self.kafka_client.produce(topic=topic, value=payload, key=key)
            self.metrics.increment("published")
        except Exception as exc:
            self.metrics.increment("failed_publish")
            self.logger.error("Failed to publish", extra={"topic": topic, "error": str(exc)})
            raise

    # --- Consume ---
    async def _consume_loop(self):
        while True:
            self.logger.info("Starting consume loop", extra={"topics": list(self._subscribers)})
            try:
                async for msg_topic, _key, value in self.kafka_client.consume():
                    await self._dispatch(msg_topic, value)
                    await self.kafka_client.commit()
                return
            except asyncio.CancelledError:
                raise
            except Exception:
                self.metrics.increment("consume_restarts")
                self.logger.exception("Consume loop failed, restarting", extra={"delay": self.restart_delay})
            await asyncio.sleep(self.restart_delay)

    async def _dispatch(self, topic: str, value: dict):
        for callback in self._subscribers.get(topic, []):
            try:
                await self.retry_policy.execute(callback, value)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.metrics.increment("failed_consume")
                self.logger.exception("Subscriber failed, sending message to DLQ", extra={"topic": topic, "payload": value})
                await self.kafka_client.send_to_dlq(topic, value, str(exc))
