from typing import Optional

from order_service.order.domain.models import Order, OrderAcceptedMessage
from order_service.shared.logger import JohnWickLogger
from order_service.shared.messaging import EventBus


class OrderEventPublisher:
    """Announces accepted orders on the event bus as ``{"orderId": <id>}``."""

    def __init__(self, event_bus: EventBus, topic: str = "order-accepted", logger: Optional[JohnWickLogger] = None):
        self.event_bus = event_bus
        self.topic = topic
        self.logger = logger or JohnWickLogger("OrderEventPublisher")

    async def publish_order_accepted(self, order: Order) -> OrderAcceptedMessage:
        if order.id is None:
            raise ValueError("Cannot announce an order that has not been persisted")
        message = OrderAcceptedMessage(order_id=order.id)
        self.logger.info("Sending data with accepted order", extra={"order_id": order.id, "topic": self.topic})
        await self.event_bus.publish(self.topic, message.to_payload())
        return message
