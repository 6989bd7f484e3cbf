from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from order_service.config.logger import get_logger
from order_service.config.settings import PostgresSettings

logger = get_logger("DB_Session_Init")

# ----------------------------
# Base declarative class
# ----------------------------
Base = declarative_base()

# ----------------------------
# Global engine & session
# ----------------------------
engine: Optional[AsyncEngine] = None
async_session: Optional[async_sessionmaker[AsyncSession]] = None


# ----------------------------
# Engine factory
# ----------------------------
def create_engine(database_url: str, settings: Optional[PostgresSettings] = None) -> AsyncEngine:
    """Build an async engine; pool sizing applies to server databases only."""
    settings = settings or PostgresSettings()
    kwargs = {"echo": settings.echo}
    if not make_url(database_url).get_backend_name().startswith("sqlite"):
        kwargs.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,
            pool_pre_ping=True,
        )
    return create_async_engine(database_url, **kwargs)


def get_engine(database_url: str, settings: Optional[PostgresSettings] = None) -> AsyncEngine:
    """
    Initialize or return the global SQLAlchemy async engine.
    """
    global engine
    if engine is None:
        engine = create_engine(database_url, settings)
        logger.info("Async engine created", extra={"url": make_url(database_url).render_as_string(hide_password=True)})
    return engine


# ----------------------------
# Async session factory
# ----------------------------
def get_sessionmaker(database_url: str, settings: Optional[PostgresSettings] = None) -> async_sessionmaker[AsyncSession]:
    """
    Return the async SQLAlchemy session factory (singleton).
    """
    global async_session
    if async_session is None:
        async_session = async_sessionmaker(
            bind=get_engine(database_url, settings),
            expire_on_commit=False,
            class_=AsyncSession,
        )
        logger.info("AsyncSession factory created")
    return async_session


# ----------------------------
# Schema management
# ----------------------------
async def init_db(db_engine: AsyncEngine):
    """
    Create the order tables if they do not exist yet.
    """
    # registers OrderEntity on Base.metadata
    from order_service.order.domain import entity  # noqa: F401

    logger.info("Starting database initialization...")
    try:
        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created or already exist")
    except Exception as e:
        logger.exception("Failed to initialize database", extra={"error": str(e)})
        raise


async def drop_db(db_engine: AsyncEngine):
    """
    Drop all tables (useful for tests or reset scripts)
    """
    logger.warning("Dropping all database tables...")
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("All tables dropped successfully")


async def dispose_engine():
    global engine, async_session
    if engine is not None:
        await engine.dispose()
        logger.info("Async engine disposed")
    engine = None
    async_session = None
