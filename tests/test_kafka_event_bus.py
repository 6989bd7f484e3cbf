import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from order_service.shared.errors import EventPublishError
from order_service.shared.messaging import KafkaEventBus
from order_service.shared.retry import FixedDelayRetry


def make_kafka_client(*batches):
    """Each call to consume() replays the next batch; an exception in a batch is raised there."""
    client = MagicMock()
    client.start = AsyncMock()
    client.stop = AsyncMock()
    client.produce = AsyncMock()
    client.commit = AsyncMock()
    client.send_to_dlq = AsyncMock()
    client.subscribe_to_topics = AsyncMock()
    remaining = list(batches)

    async def consume():
        batch = remaining.pop(0) if remaining else []
        for message in batch:
            if isinstance(message, Exception):
                raise message
            yield message

    client.consume = consume
    return client


def make_bus(client, logger, metrics=None):
    return KafkaEventBus(
        kafka_client=client,
        logger=logger,
        metrics=metrics or MagicMock(),
        retry_policy=FixedDelayRetry(max_retries=3, delay=0, logger=logger),
        restart_delay=0,
    )


@pytest.mark.asyncio
async def test_kafka_event_bus_publish(logger):
    mock_client = make_kafka_client()
    bus = make_bus(mock_client, logger)

    await bus.publish("order-accepted", {"orderId": 1})

    mock_client.start.assert_awaited_once()
    mock_client.produce.assert_awaited_once_with(topic="order-accepted", value={"orderId": 1}, key=None)


@pytest.mark.asyncio
async def test_kafka_event_bus_publish_failure_propagates(logger):
    mock_client = make_kafka_client()
    mock_client.produce.side_effect = EventPublishError("order-accepted", "broker down")
    bus = make_bus(mock_client, logger)

    with pytest.raises(EventPublishError):
        await bus.publish("order-accepted", {"orderId": 1})


@pytest.mark.asyncio
async def test_kafka_event_bus_dispatches_to_topic_subscribers(logger):
    mock_client = make_kafka_client([
        ("order-dispatched", None, {"orderId": 9}),
        ("something-else", None, {"orderId": 10}),
    ])
    bus = make_bus(mock_client, logger)
    received = []

    async def callback(payload):
        received.append(payload)

    await bus.subscribe("order-dispatched", callback)
    mock_client.subscribe_to_topics.assert_awaited_once_with(["order-dispatched"])
    await asyncio.wait_for(bus._consume_task, timeout=1)

    assert received == [{"orderId": 9}]
    assert mock_client.commit.await_count == 2

    await bus.stop()
    mock_client.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_consume_loop_restarts_after_consumer_failure(logger):
    metrics = MagicMock()
    mock_client = make_kafka_client(
        [("order-dispatched", None, {"orderId": 1}), RuntimeError("coordinator lost")],
        [("order-dispatched", None, {"orderId": 2})],
    )
    bus = make_bus(mock_client, logger, metrics)
    received = []

    async def callback(payload):
        received.append(payload)

    await bus.subscribe("order-dispatched", callback)
    await asyncio.wait_for(bus._consume_task, timeout=1)

    assert received == [{"orderId": 1}, {"orderId": 2}]
    metrics.increment.assert_any_call("consume_restarts")
    await bus.stop()


@pytest.mark.asyncio
async def test_failing_subscriber_gets_message_again_before_commit(logger):
    mock_client = make_kafka_client([("order-dispatched", None, {"orderId": 3})])
    bus = make_bus(mock_client, logger)
    callback = AsyncMock(side_effect=[ConnectionError("db down"), None])

    await bus.subscribe("order-dispatched", callback)
    await asyncio.wait_for(bus._consume_task, timeout=1)

    assert callback.await_count == 2
    callback.assert_awaited_with({"orderId": 3})
    mock_client.commit.assert_awaited_once()
    mock_client.send_to_dlq.assert_not_awaited()
    await bus.stop()


@pytest.mark.asyncio
async def test_exhausted_subscriber_parks_message_on_dlq(logger):
    mock_client = make_kafka_client([("order-dispatched", None, {"orderId": 4})])
    bus = make_bus(mock_client, logger)
    callback = AsyncMock(side_effect=ConnectionError("db down"))

    await bus.subscribe("order-dispatched", callback)
    await asyncio.wait_for(bus._consume_task, timeout=1)

    assert callback.await_count == 3
    mock_client.send_to_dlq.assert_awaited_once_with("order-dispatched", {"orderId": 4}, "db down")
    mock_client.commit.assert_awaited_once()
    await bus.stop()
