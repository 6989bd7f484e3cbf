from order_service.shared.messaging.base import EventBus, EventHandler
from order_service.shared.messaging.transports.in_process_eventbus import InProcessEventBus
from order_service.shared.messaging.transports.kafka_bus import KafkaEventBus

__all__ = ["EventBus", "EventHandler", "InProcessEventBus", "KafkaEventBus"]
