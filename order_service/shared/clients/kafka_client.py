import asyncio
import json
from typing import AsyncIterator, List, Optional, Tuple

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer

from order_service.shared.errors import EventPublishError
from order_service.shared.logger import JohnWickLogger
from order_service.shared.metrics import KafkaMetrics, MetricsCollector
from order_service.shared.retry import FixedDelayRetry, RetryPolicy


class KafkaClient:
    """Async Kafka client with retries, metrics, JSON values and a DLQ for undeliverable messages."""

    def __init__(
        self,
        bootstrap_servers: str,
        group_id: str = "order-service",
        topics: Optional[List[str]] = None,
        dlq_topic: Optional[str] = None,
        logger: Optional[JohnWickLogger] = None,
        metrics: Optional[MetricsCollector] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.bootstrap_servers = bootstrap_servers
        self.group_id = group_id
        self.topics = list(topics or [])
        self.dlq_topic = dlq_topic
        self.logger = logger or JohnWickLogger("KafkaClient")
        self.metrics = metrics or MetricsCollector(self.logger)
        self.retry_policy: RetryPolicy = retry_policy or FixedDelayRetry(max_retries=3)

        self._producer: Optional[AIOKafkaProducer] = None
        self._consumer: Optional[AIOKafkaConsumer] = None
        self._running = False
        self._start_lock = asyncio.Lock()

    # --- Lifecycle ---
    async def start(self):
        """Start the producer, and the consumer when topics are configured."""
        async with self._start_lock:
            if self._running:
                return

            async def _start_producer():
                # acks="all" so a send only completes once the in-sync replicas have it
                self._producer = AIOKafkaProducer(
                    bootstrap_servers=self.bootstrap_servers,
                    acks="all",
                    enable_idempotence=True,
                )
                await self._producer.start()
                self.logger.info("Kafka Producer started", extra={"bootstrap_servers": self.bootstrap_servers})

            try:
                await self.retry_policy.execute(_start_producer)
                if self.topics:
                    await self.retry_policy.execute(self._start_consumer)
                self._running = True
            except Exception as e:
                self.logger.error("Failed to start KafkaClient", extra={"error": str(e)})
                raise

    async def _start_consumer(self):
        self._consumer = AIOKafkaConsumer(
            *self.topics,
            bootstrap_servers=self.bootstrap_servers,
            group_id=self.group_id,
            auto_offset_reset="earliest",
            # offsets are committed once subscribers have handled a message
            enable_auto_commit=False,
        )
        await self._consumer.start()
        self.logger.info("Kafka Consumer started", extra={"group_id": self.group_id, "topics": self.topics})

    async def stop(self):
        if not self._running:
            return

        if self._consumer:
            await self._consumer.stop()
            self.logger.info("Kafka Consumer stopped")
        if self._producer:
            await self._producer.stop()
            self.logger.info("Kafka Producer stopped")

        self._consumer = None
        self._producer = None
        self._running = False

    # --- Produce ---
    async def produce(self, topic: str, value: dict, key: Optional[str] = None):
        """Publish a JSON message; exhausted retries go to the DLQ and raise EventPublishError."""
        if not self._running:
            await self.start()

        payload_bytes = json.dumps(value).encode("utf-8")
        key_bytes = key.encode("utf-8") if key else None

        async def _produce():
            await self._producer.send_and_wait(topic, payload_bytes, key=key_bytes)
            self.metrics.increment(KafkaMetrics.PRODUCED)
            self.logger.info("Message produced", extra={"topic": topic, "key": key, "value": value})

        try:
            await self.retry_policy.execute(_produce)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.metrics.increment(KafkaMetrics.FAILED_PRODUCE)
            self.logger.error(
                "Failed to produce message",
                extra={"topic": topic, "key": key, "value": value, "error": str(e)},
            )
            await self.send_to_dlq(topic, value, str(e))
            raise EventPublishError(topic, str(e)) from e

    async def send_to_dlq(self, topic: str, value: dict, reason: str):
        if not self.dlq_topic:
            return
        dlq_payload = {"original_topic": topic, "payload": value, "reason": reason}
        try:
            await self._producer.send_and_wait(self.dlq_topic, json.dumps(dlq_payload).encode("utf-8"))
            self.metrics.increment(KafkaMetrics.DLQ)
            self.logger.warning("Sent message to DLQ", extra={"dlq_topic": self.dlq_topic, "topic": topic})
        except Exception as exc:
            self.logger.exception("Failed to send to DLQ", extra={"dlq_topic": self.dlq_topic, "error": str(exc)})

    # --- Consume ---
    async def consume(self) -> AsyncIterator[Tuple[str, Optional[str], dict]]:
        """Async generator yielding messages as (topic, key, value)."""
        if not self._running:
            await self.start()
        if self._consumer is None:
            raise RuntimeError("Kafka consumer not initialized")

        try:
            async for msg in self._consumer:
                key = msg.key.decode() if msg.key else None
                try:
                    value = json.loads(msg.value)
                except (TypeError, ValueError):
                    self.metrics.increment(KafkaMetrics.FAILED_PROCESS)
                    self.logger.warning("Skipping undecodable message", extra={"topic": msg.topic})
                    continue
                self.metrics.increment(KafkaMetrics.PROCESSED)
                self.logger.debug("Consumed message", extra={"topic": msg.topic, "value": value})
                yield msg.topic, key, value
        except asyncio.CancelledError:
            self.logger.info("Kafka consume task cancelled")
            raise

    async def commit(self):
        """Commit the offsets of every message consumed so far."""
        if self._consumer is not None:
            await self._consumer.commit()

    async def subscribe_to_topics(self, topics: List[str]):
        """Add topics to the consumer subscription, creating the consumer if needed."""
        for topic in topics:
            if topic not in self.topics:
                self.topics.append(topic)
        if not self._running:
            await self.start()
        if self._consumer is None:
            await self.retry_policy.execute(self._start_consumer)
        else:
            self._consumer.subscribe(self.topics)
        self.logger.info("Consumer subscribed to topics", extra={"topics": self.topics})
