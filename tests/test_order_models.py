import pytest
from pydantic import ValidationError

from order_service.order.domain.models import Order, OrderAcceptedMessage, OrderDispatchedMessage, OrderStatus


def test_accepted_order_snapshots_book(book):
    order = Order.accepted("1234567893", book, 2)

    assert order.status == OrderStatus.ACCEPTED
    assert order.book_name == "Title - Author"
    assert order.book_price == 9.90
    assert order.id is None
    assert not order.is_persisted


def test_rejected_order_has_no_book_data():
    order = Order.rejected("1234567894", 3)

    assert order.status == OrderStatus.REJECTED
    assert order.book_name is None
    assert order.book_price is None


def test_order_serializes_with_camel_case_keys(book):
    payload = Order.accepted("1234567893", book, 1).model_dump(by_alias=True, mode="json")

    assert payload["bookIsbn"] == "1234567893"
    assert payload["bookName"] == "Title - Author"
    assert payload["status"] == "ACCEPTED"
    assert "createdBy" in payload and "lastModifiedDate" in payload


def test_quantity_must_be_positive():
    with pytest.raises(ValidationError):
        Order.rejected("1234567894", 0)


def test_order_is_immutable(book):
    order = Order.accepted("1234567893", book, 1)

    with pytest.raises(ValidationError):
        order.status = OrderStatus.REJECTED


def test_event_payloads_carry_only_order_id():
    assert OrderAcceptedMessage(order_id=17).to_payload() == {"orderId": 17}
    assert OrderDispatchedMessage.model_validate({"orderId": 17}).order_id == 17


@pytest.mark.parametrize("status", [OrderStatus.ACCEPTED, OrderStatus.DISPATCHED])
def test_accepted_or_dispatched_order_requires_book_details(status):
    with pytest.raises(ValidationError):
        Order(book_isbn="1234567893", quantity=1, status=status)


def test_rejected_order_cannot_carry_book_details():
    with pytest.raises(ValidationError):
        Order(book_isbn="1234567894", quantity=1, status=OrderStatus.REJECTED, book_name="Title - Author", book_price=9.90)


def test_dispatched_copy_keeps_book_details(book):
    order = Order.accepted("1234567893", book, 1).dispatched()

    assert order.status == OrderStatus.DISPATCHED
    assert order.book_name == "Title - Author"
