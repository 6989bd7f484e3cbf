import os

# keep test runs from writing a log file into the working tree
os.environ.setdefault("APP_LOG_FILE", "")

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from order_service.book import Book
from order_service.config.db_session import create_engine, init_db
from order_service.order.domain.repository import SqlAlchemyOrderRepository
from order_service.shared.logger import JohnWickLogger


@pytest.fixture
def logger():
    return JohnWickLogger(name="OrderServiceTests", log_file=None)


@pytest.fixture
def book():
    return Book(isbn="1234567893", title="Title", author="Author", price=9.90)


@pytest_asyncio.fixture
async def engine(tmp_path):
    db_engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await init_db(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def repository(engine, logger):
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    return SqlAlchemyOrderRepository(session_factory=session_factory, logger=logger)


@pytest.fixture
def book_client():
    client = MagicMock()
    client.get_book_by_isbn = AsyncMock(return_value=None)
    return client
