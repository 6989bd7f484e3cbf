import asyncio
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from order_service.shared.logger import JohnWickLogger
from order_service.shared.retry.base import RetryPolicy


class FixedDelayRetry(RetryPolicy):
    def __init__(
        self,
        max_retries: int = 3,
        delay: float = 1.0,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        logger: Optional[JohnWickLogger] = None,
    ):
        super().__init__(max_retries=max_retries, retry_on=retry_on)
        self.delay = delay
        self.logger = logger or JohnWickLogger(name="FixedDelayRetry")

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
                        "FixedDelay retries exhausted",
                        extra={
                            "function": getattr(func, "__name__", str(func)),
                            "error": str(exc),
                            "attempts": self.max_retries,
                        },
                    )
                    raise
                self.logger.warning(
                    f"Attempt {attempt} failed, retrying in {self.delay:.2f}s",
                    extra={"error": str(exc)},
                )
                await asyncio.sleep(self.delay)
