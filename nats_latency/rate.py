# nats_latency/rate.py
# Closed-loop pacing of the publisher. After every publish the delay is nudged
# by 5% towards whatever brings the observed rate back to the target.
import asyncio

from .metrics import PUBLISH_DELAY

NS_PER_SEC = 1_000_000_000


def rps(count, elapsed_ns):
    """Messages per second, truncated. Returns None if no time has elapsed."""
    if elapsed_ns <= 0:
        return None
    return int(count / (elapsed_ns / NS_PER_SEC))


def adjust_delay(delay, elapsed_ns, sent, target_rate):
    current = rps(sent, elapsed_ns)
    if current is None:
        # rate not measurable yet
        return delay
    step = delay / 20.0
    if current < target_rate:
        delay = max(0.0, delay - step)
    elif current > target_rate:
        delay += step
    return delay


class RateController:
    def __init__(self, target_rate):
        if target_rate <= 0:
            raise ValueError("target_rate must be > 0")
        self.target_rate = target_rate
        self.delay = 1.0 / target_rate

    def adjust(self, elapsed_ns, sent):
        self.delay = adjust_delay(self.delay, elapsed_ns, sent, self.target_rate)
        PUBLISH_DELAY.set(self.delay)
        return self.delay

    async def pace(self, elapsed_ns, sent):
        delay = self.adjust(elapsed_ns, sent)
        if delay > 0:
            await asyncio.sleep(delay)
        return delay
