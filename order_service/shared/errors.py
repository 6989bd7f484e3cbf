"""Exceptions shared by the order workflow.

Raised by the clients, repository and transports; the API layer maps them
to HTTP responses in ``order_service.main``.
"""

from typing import Optional


class OrderServiceError(Exception):
    """Base class for every failure raised by this service."""


class CatalogUnavailableError(OrderServiceError):
    """The catalog could not be reached or answered with a server error.

    Distinct from "book not found", which is a normal lookup result.
    """

    def __init__(self, isbn: str, reason: str):
        super().__init__(f"Catalog lookup for {isbn} failed: {reason}")
        self.isbn = isbn
        self.reason = reason


class OrderPersistenceError(OrderServiceError):
    """The order store rejected or failed a read or write."""


class OrderNotFoundError(OrderServiceError):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} does not exist")
        self.order_id = order_id


class StaleOrderError(OrderServiceError):
    """Optimistic-lock conflict: the row changed since it was read."""

    def __init__(self, order_id: Optional[int], expected_version: Optional[int]):
        super().__init__(f"Order {order_id} was modified concurrently (expected version {expected_version})")
        self.order_id = order_id
        self.expected_version = expected_version


class EventPublishError(OrderServiceError):
    def __init__(self, topic: str, reason: str):
        super().__init__(f"Could not publish to {topic}: {reason}")
        self.topic = topic
        self.reason = reason
