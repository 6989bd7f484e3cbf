from order_service.shared.retry.base import RetryPolicy
from order_service.shared.retry.exponential_backoff_retry import ExponentialBackoffRetry
from order_service.shared.retry.fixed_delay_retry import FixedDelayRetry

__all__ = ["RetryPolicy", "ExponentialBackoffRetry", "FixedDelayRetry"]
