import asyncio
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from order_service.shared.logger import JohnWickLogger
from order_service.shared.retry.base import RetryPolicy


class ExponentialBackoffRetry(RetryPolicy):
    def __init__(
        self,
        max_retries: int = 5,
        base_delay: float = 0.5,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        logger: Optional[JohnWickLogger] = None,
    ):
        super().__init__(max_retries=max_retries, retry_on=retry_on)
        self.base_delay = base_delay
        self.logger = logger or JohnWickLogger(name="ExponentialBackoffRetry")

    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        for attempt in range(1, self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if not self.is_retryable(exc):
                    raise
                if attempt == self.max_retries:
                    self.logger.error(
                        "Exponential backoff retries exhausted",
                        extra={
                            "function": getattr(func, "__name__", str(func)),
                            "error": str(exc),
                            "attempts": self.max_retries,
                        },
                    )
                    raise
                delay = self.base_delay * (2 ** (attempt - 1))
                self.logger.warning(
                    f"Attempt {attempt} failed, retrying after {delay:.2f}s",
                    extra={"error": str(exc)},
                )
                try:
                    await asyncio.sleep(delay)
                except asyncio.CancelledError:
                    self.logger.info("Retry sleep cancelled")
                    raise
