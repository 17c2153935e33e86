import math

import pytest

from nats_latency.errors import PublishError
from nats_latency.runner import run_latency_test
from nats_latency.stats import summarize


@pytest.mark.asyncio
async def test_end_to_end_single_server(cluster, make_config):
    cfg = make_config(target_rate=1000, test_duration="1s", msg_size=64)
    conn = cluster.connect(cfg.pub_server)

    result = await run_latency_test(cfg, conn, conn)

    assert cfg.num_pubs == 1000
    assert len(result.samples) == 1000
    assert result.pub_elapsed_ns > 0
    assert result.sub_elapsed_ns >= result.pub_elapsed_ns
    assert result.final_delay >= 0

    summary = summarize(result.samples, cfg.msg_size, result.pub_elapsed_ns, result.sub_elapsed_ns)
    for _, ns in summary.percentiles:
        assert math.isfinite(ns) and ns >= 0
    assert summary.min_ns <= summary.median_ns <= summary.max_ns
    assert summary.rate > 0
    # no route traffic when both sides share a server
    assert len(cluster.published) == 1000


@pytest.mark.asyncio
async def test_end_to_end_across_a_route(slow_cluster, make_config):
    cfg = make_config(
        pub_server="nats://a:4222",
        sub_server="nats://b:4222",
        target_rate=500,
        test_duration="200ms",
        msg_size=16,
    )
    pnc = slow_cluster.connect(cfg.pub_server)
    snc = slow_cluster.connect(cfg.sub_server)

    result = await run_latency_test(cfg, pnc, snc)

    # waiting for the route kept every measured message from being dropped
    assert len(result.samples) == cfg.num_pubs == 100


@pytest.mark.asyncio
async def test_first_publish_offset_is_relative_to_start(cluster, make_config):
    cfg = make_config(test_duration="10ms", target_rate=1000)
    ticks = iter(range(1_000, 1_000_000, 10))
    conn = cluster.connect(cfg.pub_server)

    result = await run_latency_test(cfg, conn, conn, clock=lambda: next(ticks))

    assert len(result.samples) == 10
    assert result.first_pub_ns == 1_000
    assert all(ns > 0 for ns in result.samples)


@pytest.mark.asyncio
async def test_publish_failure_aborts_run(cluster, make_config):
    cfg = make_config(test_duration="10ms")
    pnc = cluster.connect(cfg.pub_server)
    snc = cluster.connect(cfg.sub_server)
    pnc.closed = True

    with pytest.raises(PublishError):
        await run_latency_test(cfg, pnc, snc)
