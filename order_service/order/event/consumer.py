from typing import Optional

from pydantic import ValidationError

from order_service.order.domain.models import OrderDispatchedMessage
from order_service.order.domain.service import OrderService
from order_service.shared.logger import JohnWickLogger
from order_service.shared.messaging import EventBus


class OrderEventConsumer:
    """Feeds ``order-dispatched`` messages from the fulfillment flow into OrderService."""

    def __init__(
        self,
        event_bus: EventBus,
        order_service: OrderService,
        topic: str = "order-dispatched",
        logger: Optional[JohnWickLogger] = None,
    ):
        self.event_bus = event_bus
        self.order_service = order_service
        self.topic = topic
        self.logger = logger or JohnWickLogger("OrderEventConsumer")

    async def register(self):
        await self.event_bus.subscribe(self.topic, self.on_order_dispatched)

    async def on_order_dispatched(self, payload: dict):
        try:
            message = OrderDispatchedMessage.model_validate(payload)
        except ValidationError as exc:
            self.logger.warning("Discarding malformed dispatch message", extra={"payload": payload, "error": str(exc)})
            return
        await self.order_service.dispatch_order(message.order_id)
