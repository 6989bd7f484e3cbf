from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from order_service.book.models import Book


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    DISPATCHED = "DISPATCHED"


class Order(BaseModel):
    """
    An order for a quantity of one book.

    ``id``, the audit fields and ``version`` are owned by the repository and
    stay ``None`` until the order is first saved.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: Optional[int] = None
    book_isbn: str
    book_name: Optional[str] = None
    book_price: Optional[float] = None
    quantity: int = Field(gt=0)
    status: OrderStatus
    created_date: Optional[datetime] = None
    last_modified_date: Optional[datetime] = None
    created_by: Optional[str] = None
    last_modified_by: Optional[str] = None
    version: Optional[int] = None

    @model_validator(mode="after")
    def book_details_match_status(self) -> "Order":
        has_book = self.book_name is not None and self.book_price is not None
        if self.status in (OrderStatus.ACCEPTED, OrderStatus.DISPATCHED) and not has_book:
            raise ValueError(f"A {self.status.value} order needs the book name and price.")
        if self.status in (OrderStatus.PENDING, OrderStatus.REJECTED) and (
            self.book_name is not None or self.book_price is not None
        ):
            raise ValueError(f"A {self.status.value} order carries no book details.")
        return self

    @classmethod
    def accepted(cls, isbn: str, book: Book, quantity: int) -> "Order":
        return cls(
            book_isbn=isbn,
            book_name=f"{book.title} - {book.author}",
            book_price=book.price,
            quantity=quantity,
            status=OrderStatus.ACCEPTED,
        )

    @classmethod
    def rejected(cls, isbn: str, quantity: int) -> "Order":
        return cls(book_isbn=isbn, quantity=quantity, status=OrderStatus.REJECTED)

    def dispatched(self) -> "Order":
        return self.model_copy(update={"status": OrderStatus.DISPATCHED})

    @property
    def is_persisted(self) -> bool:
        return self.id is not None


class OrderAcceptedMessage(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    order_id: int

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class OrderDispatchedMessage(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    order_id: int
