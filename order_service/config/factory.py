from functools import lru_cache

from order_service.book import BookClient, create_book_client
from order_service.config.db_session import get_sessionmaker
from order_service.config.logger import get_logger
from order_service.config.settings import Settings
from order_service.order.domain.repository import OrderRepository, SqlAlchemyOrderRepository
from order_service.order.domain.service import OrderService
from order_service.order.event.consumer import OrderEventConsumer
from order_service.order.event.publisher import OrderEventPublisher
from order_service.shared.messaging import EventBus
from order_service.shared.messaging.event_bus_factory import build_event_bus


@lru_cache
def get_settings() -> Settings:
    return Settings()


# ----------------------------
# Event bus factory
# ----------------------------
@lru_cache
def get_event_bus() -> EventBus:
    return build_event_bus(get_settings())


# ----------------------------
# Catalog client factory
# ----------------------------
@lru_cache
def get_book_client() -> BookClient:
    return create_book_client(get_settings().catalog, logger=get_logger("BookClient"))


# ----------------------------
# Order repository factory
# ----------------------------
@lru_cache
def get_order_repository() -> OrderRepository:
    settings = get_settings()
    return SqlAlchemyOrderRepository(
        session_factory=get_sessionmaker(settings.database_url, settings.postgres),
        logger=get_logger("OrderRepository"),
    )


@lru_cache
def get_order_publisher() -> OrderEventPublisher:
    return OrderEventPublisher(
        event_bus=get_event_bus(),
        topic=get_settings().messaging.order_accepted_topic,
        logger=get_logger("OrderEventPublisher"),
    )


@lru_cache
def get_order_service() -> OrderService:
    return OrderService(
        book_client=get_book_client(),
        repository=get_order_repository(),
        publisher=get_order_publisher(),
        logger=get_logger("OrderService"),
    )


@lru_cache
def get_order_consumer() -> OrderEventConsumer:
    return OrderEventConsumer(
        event_bus=get_event_bus(),
        order_service=get_order_service(),
        topic=get_settings().messaging.order_dispatched_topic,
        logger=get_logger("OrderEventConsumer"),
    )


def clear_factories():
    """Forget every cached singleton (after shutdown, or between tests)."""
    for factory in (
        get_order_consumer,
        get_order_service,
        get_order_publisher,
        get_order_repository,
        get_book_client,
        get_event_bus,
        get_settings,
    ):
        factory.cache_clear()
