import asyncio

import pytest

from nats_latency.codec import encode_timestamp
from nats_latency.collector import Collector, SampleStore
from nats_latency.errors import MalformedMessage, SubscribeError


def test_store_is_capped():
    store = SampleStore(2)
    store.append(1)
    store.append(2)
    with pytest.raises(RuntimeError):
        store.append(3)
    assert store.samples == (1, 2)


def test_frozen_store_rejects_appends():
    store = SampleStore(5).freeze()
    with pytest.raises(RuntimeError):
        store.append(1)


@pytest.mark.asyncio
async def test_collects_expected_samples_then_stops(cluster):
    conn = cluster.connect("nats://a:4222")
    c = Collector(conn, "lat.test", 3, clock=lambda: 10_000)
    await c.start()
    for sent in (9_000, 9_500, 9_900, 9_999):
        await conn.publish("lat.test", encode_timestamp(sent) + b"\x00" * 8)

    store = await c.wait()

    assert store.frozen
    assert store.samples == (1000, 500, 100)
    assert not c.failed
    # subscription released once the run boundary is hit
    assert cluster.subs == []


@pytest.mark.asyncio
async def test_short_message_fails_the_run(cluster):
    conn = cluster.connect("nats://a:4222")
    c = Collector(conn, "lat.test", 2)
    await c.start()
    await conn.publish("lat.test", b"abc")
    await asyncio.sleep(0)

    with pytest.raises(MalformedMessage):
        await c.wait()
    assert c.failed


@pytest.mark.asyncio
async def test_subscription_ending_early_is_an_error(cluster):
    conn = cluster.connect("nats://a:4222")
    c = Collector(conn, "lat.test", 5, clock=lambda: 2)
    await c.start()
    await conn.publish("lat.test", encode_timestamp(1))
    await cluster.subs[0].unsubscribe()

    with pytest.raises(SubscribeError):
        await c.wait()


@pytest.mark.asyncio
async def test_subscribe_failure(cluster):
    conn = cluster.connect("nats://a:4222")
    conn.closed = True

    with pytest.raises(SubscribeError):
        await Collector(conn, "lat.test", 1).start()


@pytest.mark.asyncio
async def test_cancel_stops_consumer(cluster):
    conn = cluster.connect("nats://a:4222")
    c = Collector(conn, "lat.test", 10)
    await c.start()
    await c.cancel()
    assert not c.failed
