# nats_latency/client.py
# Thin layer over nats-py. Every transport failure leaves this module as one of
# the latency test errors so the run aborts with a readable diagnostic.
import asyncio, logging, time
import nats.errors
from nats.aio.client import Client as NATS

from .errors import ConnectError, FlushError, PublishError, SubscribeError

log = logging.getLogger(__name__)

TRANSPORT_ERRORS = (nats.errors.Error, OSError, asyncio.TimeoutError)


async def connect(server, options=None, name="server"):
    # no reconnects: a dropped connection ends the run
    opts = dict(options or {}, allow_reconnect=False)
    nc = NATS()
    try:
        await nc.connect(servers=[server], **opts)
    except TRANSPORT_ERRORS as e:
        raise ConnectError(f"Could not connect to {name}: {e}") from e
    return nc


async def flush(nc, timeout=10):
    try:
        await nc.flush(timeout=timeout)
    except TRANSPORT_ERRORS as e:
        raise FlushError(f"Flush failed: {e}") from e


async def measure_rtt(nc):
    """Round trip to the server in microseconds, measured with a flush."""
    t0 = time.perf_counter()
    await flush(nc)
    t1 = time.perf_counter()
    return int((t1 - t0) * 1_000_000)


async def publish(nc, subject, payload):
    try:
        await nc.publish(subject, payload)
    except TRANSPORT_ERRORS as e:
        raise PublishError(f"Publish to {subject} failed: {e}") from e


async def subscribe(nc, subject, cb=None):
    try:
        return await nc.subscribe(subject, cb=cb)
    except TRANSPORT_ERRORS as e:
        raise SubscribeError(f"Couldn't subscribe to {subject}: {e}") from e


async def close(nc):
    # the report is already printed when this runs
    try:
        await nc.close()
    except TRANSPORT_ERRORS as e:
        log.warning("error closing connection: %s", e)
