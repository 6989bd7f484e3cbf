import asyncio
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from order_service.book.models import Book
from order_service.config.settings import CatalogSettings
from order_service.shared.errors import CatalogUnavailableError
from order_service.shared.logger import JohnWickLogger
from order_service.shared.metrics import CatalogMetrics, MetricsCollector
from order_service.shared.retry import ExponentialBackoffRetry, RetryPolicy

BOOKS_ROOT_API = "/books/"


class CatalogServerError(httpx.HTTPStatusError):
    """5xx answer from the catalog."""


# 4xx answers other than 404 fail straight away
RETRYABLE_ERRORS = (httpx.TransportError, CatalogServerError)


class BookClient:
    """
    Async client for the catalog service.

    ``get_book_by_isbn`` answers ``None`` when the catalog has no such book
    (HTTP 404). Timeouts, connection errors, server errors and malformed
    bodies raise ``CatalogUnavailableError`` once the retry policy gives up,
    so an unreachable catalog is never mistaken for a missing book.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        retry_policy: Optional[RetryPolicy] = None,
        logger: Optional[JohnWickLogger] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.http_client = http_client
        self.logger = logger or JohnWickLogger("BookClient")
        self.metrics = metrics or MetricsCollector(self.logger)
        self.retry_policy = retry_policy or ExponentialBackoffRetry(
            max_retries=3,
            base_delay=0.1,
            retry_on=RETRYABLE_ERRORS,
            logger=self.logger,
        )

    async def get_book_by_isbn(self, isbn: str) -> Optional[Book]:
        # the isbn is a single path segment, never a path, query or fragment
        path = f"{BOOKS_ROOT_API}{quote(isbn, safe='')}"

        async def _fetch() -> Optional[Book]:
            response = await self.http_client.get(path)
            if response.status_code == httpx.codes.NOT_FOUND:
                return None
            if response.is_server_error:
                raise CatalogServerError(
                    f"Catalog answered {response.status_code}",
                    request=response.request,
                    response=response,
                )
            response.raise_for_status()
            return Book.model_validate(response.json())

        try:
            book = await self.retry_policy.execute(_fetch)
        except asyncio.CancelledError:
            raise
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            self.metrics.increment(CatalogMetrics.FAILED)
            self.logger.error("Catalog lookup failed", extra={"isbn": isbn, "error": str(exc)})
            raise CatalogUnavailableError(isbn, str(exc)) from exc

        if book is None:
            self.metrics.increment(CatalogMetrics.NOT_FOUND)
            self.logger.info("Book not found in catalog", extra={"isbn": isbn})
        else:
            self.metrics.increment(CatalogMetrics.FOUND)
            self.logger.debug("Book found in catalog", extra={"isbn": isbn, "title": book.title})
        return book

    async def close(self):
        await self.http_client.aclose()


def create_book_client(settings: CatalogSettings, logger: Optional[JohnWickLogger] = None) -> BookClient:
    logger = logger or JohnWickLogger("BookClient")
    http_client = httpx.AsyncClient(base_url=settings.base_url, timeout=settings.timeout)
    retry_policy = ExponentialBackoffRetry(
        max_retries=settings.max_retries,
        base_delay=settings.retry_backoff,
        retry_on=RETRYABLE_ERRORS,
        logger=logger,
    )
    return BookClient(http_client=http_client, retry_policy=retry_policy, logger=logger)
