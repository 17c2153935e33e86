# nats_latency/route.py
"""Route readiness probe.

When the publisher and subscriber sit on different cluster members, the
subscriber's interest has to propagate across the route before the first
measured publish, otherwise early messages are dropped and the run never
reaches its expected sample count.
"""
import asyncio, logging, time

from .client import flush, publish, subscribe

log = logging.getLogger(__name__)

PROBE_INTERVAL = 0.010
PROBE_TIMEOUT = 2.0


async def wait_for_route(pnc, snc, publish_server, subscribe_server,
                         interval=PROBE_INTERVAL, timeout=PROBE_TIMEOUT):
    """Publish empty probes on ``pnc`` until one arrives through ``snc``.

    Returns True once a probe was observed and False if ``timeout`` ran out;
    a timeout is only a warning. Transport errors propagate.
    """
    # one server, nothing to propagate
    if publish_server == subscribe_server:
        return True

    routed = 0

    async def on_probe(msg):
        nonlocal routed
        routed += 1

    # fresh inbox so probes never land on the measurement subject
    subject = pnc.new_inbox()
    sub = await subscribe(snc, subject, cb=on_probe)
    try:
        await flush(snc)

        start = time.monotonic()
        while routed == 0:
            if time.monotonic() - start > timeout:
                log.warning("Couldn't receive end-to-end test message.")
                return False
            await publish(pnc, subject, b"")
            await asyncio.sleep(interval)
        log.debug("route to %s ready after %.3fs", subscribe_server, time.monotonic() - start)
        return True
    finally:
        await sub.unsubscribe()
