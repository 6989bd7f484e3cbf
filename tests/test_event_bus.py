import asyncio

import pytest

from order_service.shared.messaging import InProcessEventBus


@pytest.mark.asyncio
async def test_eventbus_publish_subscribe(logger):
    bus = InProcessEventBus(logger=logger)
    received = []

    async def handler(payload):
        received.append(payload)

    await bus.subscribe("order-accepted", handler)
    await bus.publish("order-accepted", {"orderId": 1})

    await asyncio.sleep(0.1)
    assert received == [{"orderId": 1}]


@pytest.mark.asyncio
async def test_publish_does_not_wait_for_subscribers(logger):
    bus = InProcessEventBus(logger=logger)
    release = asyncio.Event()
    done = []

    async def slow_handler(payload):
        await release.wait()
        done.append(payload)

    await bus.subscribe("order-accepted", slow_handler)
    await asyncio.wait_for(bus.publish("order-accepted", {"orderId": 2}), timeout=1)
    assert done == []

    release.set()
    await bus.stop()
    assert done == [{"orderId": 2}]


@pytest.mark.asyncio
async def test_failing_subscriber_is_retried(logger):
    bus = InProcessEventBus(logger=logger, max_retries=3, retry_delay=0)
    attempts = []

    def flaky(payload):
        attempts.append(payload)
        if len(attempts) < 3:
            raise RuntimeError("not yet")

    await bus.subscribe("order-dispatched", flaky)
    await bus.publish("order-dispatched", {"orderId": 3})
    await bus.stop()

    assert len(attempts) == 3
    assert bus.metrics.get("subscriber_success") == 1


@pytest.mark.asyncio
async def test_publish_without_subscribers_is_a_noop(logger):
    bus = InProcessEventBus(logger=logger)

    await bus.publish("nobody-listens", {"orderId": 4})
    await bus.stop()
