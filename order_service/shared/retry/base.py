from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Tuple, Type


class RetryPolicy(ABC):
    """
    Base class for retry policies.
    Defines the interface for executing an async function with retries.
    """

    def __init__(self, max_retries: int, retry_on: Tuple[Type[BaseException], ...] = (Exception,)):
        self.max_retries = max(1, max_retries)
        self.retry_on = retry_on

    def is_retryable(self, exc: BaseException) -> bool:
        return isinstance(exc, self.retry_on)

    @abstractmethod
    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Execute the given async function with retries.

        Args:
            func: An async function to execute.
            *args: Positional arguments to pass to the function.
            **kwargs: Keyword arguments to pass to the function.

        Returns:
            The result of the async function if successful.

        Raises:
            The last exception once retries are exhausted, or immediately
            when the exception is not one of ``retry_on``.
        """
        pass
