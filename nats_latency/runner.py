# nats_latency/runner.py
"""Run driver: one paced publisher, one collector, one completion handshake.

The collector subscribes and the route is confirmed before timing starts.
Each publish stamps the current wall clock into the payload, and the rate
controller sleeps between publishes. When the last sample is in, the
collector hands the frozen sample store back.
"""
import logging, time
from dataclasses import dataclass

from .client import flush, publish
from .codec import stamp_payload
from .collector import Collector
from .metrics import PUBLISHED
from .rate import RateController
from .route import wait_for_route

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    samples: tuple
    first_pub_ns: int
    pub_elapsed_ns: int
    sub_elapsed_ns: int
    final_delay: float = 0.0


async def run_latency_test(cfg, pnc, snc, clock=time.time_ns):
    """Drive one run over the publish-side ``pnc`` and subscribe-side ``snc``."""
    # random subject so several tests can share a cluster
    subject = pnc.new_inbox()

    collector = Collector(snc, subject, cfg.num_pubs, clock=clock)
    await collector.start()
    try:
        # interest must be registered before publishing from another connection
        await flush(snc)
        await wait_for_route(pnc, snc, cfg.pub_server, cfg.sub_server)

        payload = bytearray(cfg.msg_size)
        controller = RateController(cfg.target_rate)

        pub_start = clock()
        for i in range(cfg.num_pubs):
            now = clock()
            stamp_payload(payload, now)
            await publish(pnc, subject, bytes(payload))
            PUBLISHED.inc()
            await controller.pace(now - pub_start, i + 1)
            if collector.failed:
                break
        pub_elapsed = clock() - pub_start
    except BaseException:
        await collector.cancel()
        raise

    store = await collector.wait()
    sub_elapsed = clock() - pub_start
    log.debug("all %d samples received %.3fs after first publish", len(store), sub_elapsed / 1e9)

    return RunResult(
        samples=store.samples,
        first_pub_ns=pub_start - cfg.started_at_ns,
        pub_elapsed_ns=pub_elapsed,
        sub_elapsed_ns=sub_elapsed,
        final_delay=controller.delay,
    )
