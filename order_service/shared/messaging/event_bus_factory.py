from order_service.config.logger import get_logger
from order_service.config.settings import Settings
from order_service.shared.clients import KafkaClient
from order_service.shared.messaging.base import EventBus
from order_service.shared.messaging.transports.in_process_eventbus import InProcessEventBus
from order_service.shared.messaging.transports.kafka_bus import KafkaEventBus
from order_service.shared.metrics import MetricsCollector
from order_service.shared.retry import ExponentialBackoffRetry

VALID_TRANSPORTS = {"memory", "kafka"}


def build_event_bus(settings: Settings) -> EventBus:
    """Create the EventBus selected by ``settings.messaging.transport``."""
    transport = settings.messaging.transport.lower()
    if transport not in VALID_TRANSPORTS:
        raise ValueError(f"Invalid transport '{transport}'. Must be one of {', '.join(sorted(VALID_TRANSPORTS))}")

    logger = get_logger("EventBusFactory")
    metrics = MetricsCollector(logger)

    if transport == "kafka":
        kafka_logger = get_logger("KafkaClient")
        bus_logger = get_logger("KafkaEventBus")
        kafka_client = KafkaClient(
            bootstrap_servers=settings.kafka_bootstrap_servers,
            group_id=settings.kafka.group_id,
            dlq_topic=settings.kafka.dlq_topic,
            logger=kafka_logger,
            metrics=metrics,
            retry_policy=ExponentialBackoffRetry(
                max_retries=settings.kafka.max_retries,
                base_delay=settings.kafka.retry_backoff,
                logger=kafka_logger,
            ),
        )
        logger.info("Created KafkaEventBus", extra={"bootstrap_servers": settings.kafka_bootstrap_servers})
        return KafkaEventBus(
            kafka_client=kafka_client,
            logger=bus_logger,
            metrics=metrics,
            retry_policy=ExponentialBackoffRetry(
                max_retries=settings.kafka.max_retries,
                base_delay=settings.kafka.retry_backoff,
                logger=bus_logger,
            ),
        )

    logger.info("Created InProcessEventBus")
    return InProcessEventBus(logger=get_logger("InProcessEventBus"), metrics=metrics)
