import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from order_service.order.domain.models import Order, OrderStatus
from order_service.order.domain.service import SYSTEM_IDENTITY, OrderService
from order_service.order.event.publisher import OrderEventPublisher
from order_service.shared.errors import CatalogUnavailableError, OrderPersistenceError
from order_service.shared.metrics import OrderMetrics


def _persist(order: Order, identity: str) -> Order:
    return order.model_copy(update={"id": 42, "created_by": identity, "last_modified_by": identity, "version": 0})


@pytest.fixture
def repository():
    repo = MagicMock()
    repo.save = AsyncMock(side_effect=_persist)
    repo.find_by_id = AsyncMock(return_value=None)
    repo.find_by_created_by = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def event_bus():
    bus = MagicMock()
    bus.publish = AsyncMock()
    return bus


@pytest.fixture
def service(book_client, repository, event_bus, logger):
    publisher = OrderEventPublisher(event_bus=event_bus, topic="order-accepted", logger=logger)
    return OrderService(book_client=book_client, repository=repository, publisher=publisher, logger=logger)


@pytest.mark.asyncio
async def test_submit_order_accepted_when_book_exists(service, book_client, event_bus, book):
    book_client.get_book_by_isbn.return_value = book

    order = await service.submit_order("1234567893", 1, "bjorn")

    book_client.get_book_by_isbn.assert_awaited_once_with("1234567893")
    assert order.id == 42
    assert order.book_isbn == "1234567893"
    assert order.quantity == 1
    assert order.book_name == "Title - Author"
    assert order.book_price == 9.90
    assert order.status == OrderStatus.ACCEPTED
    assert order.created_by == "bjorn"
    event_bus.publish.assert_awaited_once_with("order-accepted", {"orderId": 42})
    assert service.metrics.get(OrderMetrics.ACCEPTED) == 1


@pytest.mark.asyncio
async def test_submit_order_rejected_when_book_missing(service, book_client, repository, event_bus):
    book_client.get_book_by_isbn.return_value = None

    order = await service.submit_order("1234567894", 3, "bjorn")

    assert order.id == 42
    assert order.book_isbn == "1234567894"
    assert order.quantity == 3
    assert order.status == OrderStatus.REJECTED
    assert order.book_name is None
    assert order.book_price is None
    repository.save.assert_awaited_once()
    event_bus.publish.assert_not_awaited()
    assert service.metrics.get(OrderMetrics.REJECTED) == 1


@pytest.mark.asyncio
async def test_submit_order_saves_with_caller_identity(service, book_client, repository, book):
    book_client.get_book_by_isbn.return_value = book

    await service.submit_order("1234567893", 2, "isabelle")

    saved_order, identity = repository.save.await_args.args
    assert identity == "isabelle"
    assert saved_order.id is None
    assert saved_order.status == OrderStatus.ACCEPTED


@pytest.mark.asyncio
async def test_catalog_failure_is_not_a_rejection(service, book_client, repository, event_bus):
    book_client.get_book_by_isbn.side_effect = CatalogUnavailableError("1234567893", "timeout")

    with pytest.raises(CatalogUnavailableError):
        await service.submit_order("1234567893", 1, "bjorn")

    repository.save.assert_not_awaited()
    event_bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_persistence_failure_publishes_nothing(service, book_client, repository, event_bus, book):
    book_client.get_book_by_isbn.return_value = book
    repository.save.side_effect = OrderPersistenceError("connection reset")

    with pytest.raises(OrderPersistenceError):
        await service.submit_order("1234567893", 1, "bjorn")

    event_bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_publish_failure_still_returns_persisted_order(service, book_client, event_bus, book):
    book_client.get_book_by_isbn.return_value = book
    event_bus.publish.side_effect = ConnectionError("broker down")

    order = await service.submit_order("1234567893", 1, "bjorn")

    assert order.id == 42
    assert order.status == OrderStatus.ACCEPTED
    assert service.metrics.get(OrderMetrics.PUBLISH_FAILED) == 1


@pytest.mark.asyncio
async def test_lookup_completes_before_save_and_save_before_publish(book_client, repository, event_bus, logger, book):
    calls = []

    async def lookup(isbn):
        calls.append("lookup")
        return book

    async def save(order, identity):
        await asyncio.sleep(0)
        calls.append("save")
        return _persist(order, identity)

    async def publish(topic, payload):
        calls.append("publish")

    book_client.get_book_by_isbn.side_effect = lookup
    repository.save.side_effect = save
    event_bus.publish.side_effect = publish
    publisher = OrderEventPublisher(event_bus=event_bus, logger=logger)
    service = OrderService(book_client=book_client, repository=repository, publisher=publisher, logger=logger)

    await service.submit_order("1234567893", 1, "bjorn")

    assert calls == ["lookup", "save", "publish"]


@pytest.mark.asyncio
async def test_list_orders_delegates_to_repository(service, repository):
    existing = [_persist(Order.rejected("1234567894", 1), "bjorn")]
    repository.find_by_created_by.return_value = existing

    orders = await service.list_orders("bjorn")

    repository.find_by_created_by.assert_awaited_once_with("bjorn")
    assert list(orders) == existing


@pytest.mark.asyncio
async def test_dispatch_marks_accepted_order(service, repository, book):
    accepted = _persist(Order.accepted(book.isbn, book, 1), "bjorn")
    repository.find_by_id.return_value = accepted
    repository.save.side_effect = lambda order, identity: order.model_copy(update={"version": 1, "last_modified_by": identity})

    dispatched = await service.dispatch_order(42)

    assert dispatched.status == OrderStatus.DISPATCHED
    assert dispatched.version == 1
    assert dispatched.last_modified_by == SYSTEM_IDENTITY
    assert dispatched.created_by == "bjorn"


@pytest.mark.asyncio
async def test_dispatch_is_idempotent(service, repository, book):
    already = _persist(Order.accepted(book.isbn, book, 1), "bjorn").dispatched()
    repository.find_by_id.return_value = already

    result = await service.dispatch_order(42)

    assert result == already
    repository.save.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatch_ignores_unknown_and_rejected_orders(service, repository):
    assert await service.dispatch_order(999) is None

    repository.find_by_id.return_value = _persist(Order.rejected("1234567894", 1), "bjorn")
    assert await service.dispatch_order(42) is None
    repository.save.assert_not_awaited()
