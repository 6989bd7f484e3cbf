from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from order_service.config import factory
from order_service.config.db_session import dispose_engine, get_engine, init_db
from order_service.config.logger import get_logger
from order_service.order.web.routes import router as order_router
from order_service.shared.errors import CatalogUnavailableError, OrderPersistenceError
from order_service.shared.health.router import get_health_checker, health_router

logger = get_logger("OrderServiceApp")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    - Creates the order tables.
    - Starts the event bus and registers the order-dispatched consumer.
    - On shutdown stops the bus, closes the catalog client and the engine.
    """
    settings = factory.get_settings()
    logger.info("Starting order service", extra={"env_mode": settings.app.env_mode, "transport": settings.messaging.transport})

    await init_db(get_engine(settings.database_url, settings.postgres))
    event_bus = factory.get_event_bus()
    await event_bus.start()
    await factory.get_order_consumer().register()
    logger.info("Order service started")

    try:
        yield
    finally:
        await event_bus.stop()
        await factory.get_book_client().close()
        await dispose_engine()
        get_health_checker.cache_clear()
        factory.clear_factories()
        logger.info("Order service stopped")


async def catalog_unavailable_handler(request: Request, exc: CatalogUnavailableError):
    logger.warning("Rejecting request, catalog unavailable", extra={"path": request.url.path, "isbn": exc.isbn})
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Catalog service unavailable"})


async def persistence_error_handler(request: Request, exc: OrderPersistenceError):
    logger.error("Rejecting request, order store unavailable", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Order store unavailable"})


def install_error_handlers(app: FastAPI):
    app.add_exception_handler(CatalogUnavailableError, catalog_unavailable_handler)
    app.add_exception_handler(OrderPersistenceError, persistence_error_handler)


def create_app() -> FastAPI:
    app = FastAPI(title="Order Service", lifespan=lifespan)
    install_error_handlers(app)
    app.include_router(order_router)
    app.include_router(health_router)
    return app


app = create_app()


def run():
    import uvicorn

    settings = factory.get_settings()
    uvicorn.run(
        "order_service.main:app",
        host=settings.app.host,
        port=settings.app.port,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    run()
