import asyncio
from typing import Optional, Sequence

from order_service.book import BookClient
from order_service.order.domain.models import Order, OrderStatus
from order_service.order.domain.repository import OrderRepository
from order_service.order.event.publisher import OrderEventPublisher
from order_service.shared.logger import JohnWickLogger
from order_service.shared.metrics import MetricsCollector, OrderMetrics

# identity recorded on changes made by event consumers rather than by a user
SYSTEM_IDENTITY = "system"


class OrderService:
    """
    Order submission and query workflow.

    A submission is three strictly ordered steps: catalog lookup, a single
    insert, then (for accepted orders only) the hand-off of an
    ``order-accepted`` event. Lookup and persistence failures abort the chain
    and propagate; a failed hand-off is logged and counted but the already
    persisted order is still returned.
    """

    def __init__(
        self,
        book_client: BookClient,
        repository: OrderRepository,
        publisher: OrderEventPublisher,
        logger: Optional[JohnWickLogger] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.book_client = book_client
        self.repository = repository
        self.publisher = publisher
        self.logger = logger or JohnWickLogger("OrderService")
        self.metrics = metrics or MetricsCollector(self.logger)

    async def list_orders(self, identity: str) -> Sequence[Order]:
        return await self.repository.find_by_created_by(identity)

    async def submit_order(self, isbn: str, quantity: int, identity: str) -> Order:
        self.metrics.increment(OrderMetrics.SUBMITTED)
        book = await self.book_client.get_book_by_isbn(isbn)

        if book is not None:
            order = Order.accepted(isbn, book, quantity)
        else:
            order = Order.rejected(isbn, quantity)

        # an insert already issued completes even if the caller goes away
        saved = await asyncio.shield(self.repository.save(order, identity))
        self.logger.info(
            "Order submitted",
            extra={"order_id": saved.id, "isbn": isbn, "status": saved.status.value, "user": identity},
        )

        if saved.status == OrderStatus.ACCEPTED:
            self.metrics.increment(OrderMetrics.ACCEPTED)
            await self._announce_accepted(saved)
        else:
            self.metrics.increment(OrderMetrics.REJECTED)
        return saved

    async def _announce_accepted(self, order: Order):
        try:
            await self.publisher.publish_order_accepted(order)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.metrics.increment(OrderMetrics.PUBLISH_FAILED)
            self.logger.exception(
                "Failed to publish order-accepted event",
                extra={"order_id": order.id, "error": str(exc)},
            )

    async def dispatch_order(self, order_id: int) -> Optional[Order]:
        """
        Mark an accepted order as dispatched.

        Safe to call more than once for the same id: an order that is
        already dispatched is returned unchanged.
        """
        order = await self.repository.find_by_id(order_id)
        if order is None:
            self.logger.warning("Dispatch received for unknown order", extra={"order_id": order_id})
            return None
        if order.status == OrderStatus.DISPATCHED:
            self.logger.info("Order already dispatched", extra={"order_id": order_id})
            return order
        if order.status != OrderStatus.ACCEPTED:
            self.logger.warning(
                "Ignoring dispatch for order that was not accepted",
                extra={"order_id": order_id, "status": order.status.value},
            )
            return None

        dispatched = await self.repository.save(order.dispatched(), SYSTEM_IDENTITY)
        self.metrics.increment(OrderMetrics.DISPATCHED)
        self.logger.info("The order has been dispatched", extra={"order_id": order_id, "version": dispatched.version})
        return dispatched
