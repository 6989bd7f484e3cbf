from unittest.mock import AsyncMock

import pytest

from order_service.shared.retry import ExponentialBackoffRetry, FixedDelayRetry


@pytest.mark.asyncio
@pytest.mark.parametrize("policy_cls", [ExponentialBackoffRetry, FixedDelayRetry])
async def test_retries_until_success(policy_cls, logger):
    func = AsyncMock(side_effect=[ConnectionError("1"), ConnectionError("2"), "ok"])
    kwargs = {"base_delay": 0} if policy_cls is ExponentialBackoffRetry else {"delay": 0}
    policy = policy_cls(max_retries=3, logger=logger, **kwargs)

    assert await policy.execute(func) == "ok"
    assert func.await_count == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_last_error(logger):
    func = AsyncMock(side_effect=ConnectionError("down"))
    policy = ExponentialBackoffRetry(max_retries=2, base_delay=0, logger=logger)

    with pytest.raises(ConnectionError):
        await policy.execute(func)
    assert func.await_count == 2


@pytest.mark.asyncio
async def test_non_retryable_error_raises_immediately(logger):
    func = AsyncMock(side_effect=ValueError("bad payload"))
    policy = FixedDelayRetry(max_retries=5, delay=0, retry_on=(ConnectionError,), logger=logger)

    with pytest.raises(ValueError):
        await policy.execute(func)
    assert func.await_count == 1
