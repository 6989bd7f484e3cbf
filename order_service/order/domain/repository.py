from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from order_service.order.domain.entity import OrderEntity
from order_service.order.domain.models import Order, OrderStatus
from order_service.shared.errors import OrderNotFoundError, OrderPersistenceError, StaleOrderError
from order_service.shared.logger import JohnWickLogger


class OrderRepository(ABC):
    """
    Durable store of orders.

    The repository owns ``id``, the audit timestamps, ``created_by``,
    ``last_modified_by`` and ``version``; callers pass the acting identity
    explicitly and never set those fields themselves.
    """

    @abstractmethod
    async def save(self, order: Order, identity: str) -> Order:
        """Insert a new order (``id is None``) or update an existing one.

        Updates are compare-and-increment on ``version`` and raise
        ``StaleOrderError`` when the stored version differs.
        """

    @abstractmethod
    async def find_by_id(self, order_id: int) -> Optional[Order]:
        ...

    @abstractmethod
    async def find_by_created_by(self, identity: str) -> Sequence[Order]:
        """All orders created by ``identity``, oldest first."""


def _to_domain(entity: OrderEntity) -> Order:
    return Order(
        id=entity.id,
        book_isbn=entity.book_isbn,
        book_name=entity.book_name,
        book_price=entity.book_price,
        quantity=entity.quantity,
        status=OrderStatus(entity.status),
        created_date=entity.created_date,
        last_modified_date=entity.last_modified_date,
        created_by=entity.created_by,
        last_modified_by=entity.last_modified_by,
        version=entity.version,
    )


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], logger: Optional[JohnWickLogger] = None):
        self.session_factory = session_factory
        self.logger = logger or JohnWickLogger("OrderRepository")

    async def save(self, order: Order, identity: str) -> Order:
        now = datetime.now(timezone.utc)
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    if not order.is_persisted:
                        entity = self._new_entity(order, identity, now)
                        session.add(entity)
                    else:
                        entity = await self._load_for_update(session, order)
                        entity.book_name = order.book_name
                        entity.book_price = order.book_price
                        entity.quantity = order.quantity
                        entity.status = order.status.value
                        entity.last_modified_by = identity
                        entity.last_modified_date = now
                saved = _to_domain(entity)
        except StaleDataError as exc:
            raise StaleOrderError(order.id, order.version) from exc
        except SQLAlchemyError as exc:
            self.logger.error("Order persistence failed", extra={"order_id": order.id, "error": str(exc)})
            raise OrderPersistenceError(str(exc)) from exc

        self.logger.debug("Order saved", extra={"order_id": saved.id, "version": saved.version})
        return saved

    @staticmethod
    def _new_entity(order: Order, identity: str, now: datetime) -> OrderEntity:
        return OrderEntity(
            book_isbn=order.book_isbn,
            book_name=order.book_name,
            book_price=order.book_price,
            quantity=order.quantity,
            status=order.status.value,
            created_date=now,
            last_modified_date=now,
            created_by=identity,
            last_modified_by=identity,
        )

    @staticmethod
    async def _load_for_update(session: AsyncSession, order: Order) -> OrderEntity:
        entity = await session.get(OrderEntity, order.id)
        if entity is None:
            raise OrderNotFoundError(order.id)
        if entity.version != order.version:
            raise StaleOrderError(order.id, order.version)
        return entity

    async def find_by_id(self, order_id: int) -> Optional[Order]:
        try:
            async with self.session_factory() as session:
                entity = await session.get(OrderEntity, order_id)
                return _to_domain(entity) if entity is not None else None
        except SQLAlchemyError as exc:
            raise OrderPersistenceError(str(exc)) from exc

    async def find_by_created_by(self, identity: str) -> List[Order]:
        stmt = select(OrderEntity).where(OrderEntity.created_by == identity).order_by(OrderEntity.id)
        try:
            async with self.session_factory() as session:
                result = await session.scalars(stmt)
                return [_to_domain(entity) for entity in result]
        except SQLAlchemyError as exc:
            raise OrderPersistenceError(str(exc)) from exc
