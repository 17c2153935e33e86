# nats_latency/collector.py
# Receives the measurement subject on the subscribe-side connection and turns
# every message into one latency sample (receive wall clock - embedded send
# time, both in nanoseconds).
import asyncio, logging, time

from .client import subscribe
from .codec import decode_timestamp
from .errors import SubscribeError
from .metrics import LATENCY, RECEIVED

log = logging.getLogger(__name__)


class SampleStore:
    """Append-only latency samples, capped at the expected run length."""

    def __init__(self, capacity):
        self.capacity = capacity
        self._samples = []
        self._frozen = False

    def append(self, ns):
        if self._frozen:
            raise RuntimeError("sample store is frozen")
        if len(self._samples) >= self.capacity:
            raise RuntimeError(f"sample store is full ({self.capacity} samples)")
        self._samples.append(ns)

    def freeze(self):
        self._frozen = True
        return self

    @property
    def frozen(self):
        return self._frozen

    @property
    def samples(self):
        return tuple(self._samples)

    def __len__(self):
        return len(self._samples)

    def __iter__(self):
        return iter(self._samples)


class Collector:
    """Background consumer for one run.

    ``start()`` subscribes before any measured publish happens; the consuming
    task doubles as the completion signal and resolves to the frozen
    ``SampleStore`` once ``expected`` samples were taken. Anything arriving
    after that is not collected.
    """

    def __init__(self, nc, subject, expected, clock=time.time_ns):
        self.nc = nc
        self.subject = subject
        self.expected = expected
        self.clock = clock
        self.store = SampleStore(expected)
        self._sub = None
        self._task = None

    async def start(self):
        self._sub = await subscribe(self.nc, self.subject)
        self._task = asyncio.create_task(self._consume())
        return self

    async def _consume(self):
        received = 0
        async for msg in self._sub.messages:
            receive_time = self.clock()
            latency = receive_time - decode_timestamp(msg.data)
            self.store.append(latency)
            LATENCY.observe(latency / 1e9)
            RECEIVED.inc()
            received += 1
            if received >= self.expected:
                break
        else:
            raise SubscribeError(
                f"subscription on {self.subject} ended after {received} of {self.expected} messages"
            )
        await self._sub.unsubscribe()
        log.debug("collected %d samples on %s", received, self.subject)
        return self.store.freeze()

    @property
    def failed(self):
        t = self._task
        return t is not None and t.done() and not t.cancelled() and t.exception() is not None

    async def cancel(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def wait(self):
        """Block until every expected sample is in, then hand over the store."""
        return await self._task
