import asyncio
import uuid
from dataclasses import dataclass

import nats.errors
import pytest

from nats_latency.config import RunConfig


@dataclass
class Msg:
    subject: str
    data: bytes


class FakeSubscription:
    def __init__(self, cluster, conn, subject, cb):
        self.cluster = cluster
        self.conn = conn
        self.subject = subject
        self.cb = cb
        self.created_at = asyncio.get_running_loop().time()
        self.queue = asyncio.Queue()
        self.active = True

    @property
    def messages(self):
        return self._iter()

    async def _iter(self):
        while True:
            msg = await self.queue.get()
            if msg is None:
                return
            yield msg

    def deliver(self, msg):
        if self.cb is not None:
            asyncio.get_running_loop().create_task(self.cb(msg))
        else:
            self.queue.put_nowait(msg)

    async def unsubscribe(self):
        self.active = False
        self.cluster.subs.remove(self)
        self.queue.put_nowait(None)


class FakeCluster:
    """In-memory stand-in for one or more NATS servers.

    Interest registered on one server becomes visible to publishers on another
    server only ``route_delay`` seconds later; ``None`` means never.
    """

    def __init__(self, route_delay=0.0):
        self.route_delay = route_delay
        self.subs = []
        self.published = []

    def connect(self, server):
        return FakeConnection(self, server)

    def route(self, conn, subject, data):
        now = asyncio.get_running_loop().time()
        msg = Msg(subject, bytes(data))
        for sub in list(self.subs):
            if sub.subject != subject:
                continue
            if sub.conn.server != conn.server:
                if self.route_delay is None or now - sub.created_at < self.route_delay:
                    continue
            sub.deliver(msg)


class FakeConnection:
    def __init__(self, cluster, server):
        self.cluster = cluster
        self.server = server
        self.closed = False
        self.flushes = 0

    def new_inbox(self):
        return f"_INBOX.{uuid.uuid4().hex}"

    async def publish(self, subject, payload=b""):
        if self.closed:
            raise nats.errors.ConnectionClosedError
        self.cluster.published.append((self.server, subject))
        self.cluster.route(self, subject, payload)

    async def subscribe(self, subject, cb=None):
        if self.closed:
            raise nats.errors.ConnectionClosedError
        sub = FakeSubscription(self.cluster, self, subject, cb)
        self.cluster.subs.append(sub)
        return sub

    async def flush(self, timeout=10):
        if self.closed:
            raise nats.errors.ConnectionClosedError
        self.flushes += 1
        await asyncio.sleep(0)

    async def close(self):
        self.closed = True


def _make_config(**overrides):
    settings = {
        "pub_server": "nats://localhost:4222",
        "sub_server": "nats://localhost:4222",
        "msg_size": 64,
        "target_rate": 1000,
        "test_duration": "1s",
    }
    settings.update(overrides)
    return RunConfig.from_settings(settings)


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def slow_cluster():
    # interest crosses the route 50ms after subscribing
    return FakeCluster(route_delay=0.05)


@pytest.fixture
def broken_cluster():
    return FakeCluster(route_delay=None)


@pytest.fixture
def make_config():
    return _make_config
