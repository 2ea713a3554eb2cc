"""Shared pytest fixtures."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from clipbridge.app import App
from clipbridge.config import Config
from clipbridge.core.core import Core
from clipbridge.core.modules.broadcast.models import ServerEvent
from clipbridge.core.store import MemorySessionStore
from clipbridge.web.server import create_fastapi_app


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class YieldingStore(MemorySessionStore):
    """Memory store that gives up control on every read and write and records their order."""

    def __init__(self, clock, read_delay: float = 0) -> None:
        super().__init__(clock=clock)
        self.read_delay = read_delay
        self.log: list[tuple[str, str]] = []

    async def get(self, code):
        self.log.append(("get", code))
        await asyncio.sleep(self.read_delay)
        return await super().get(code)

    async def put(self, session, ttl_seconds):
        await asyncio.sleep(0)
        self.log.append(("put", session.code))
        await super().put(session, ttl_seconds)


def drain_events(connection) -> list[ServerEvent]:
    """Pop every queued event of a connection."""
    events = []
    while True:
        try:
            events.append(connection.outbox.get_nowait())
        except asyncio.QueueEmpty:
            return events


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config():
    """Configuration backed by the in-process store."""
    return Config(redis_url="memory://", host="127.0.0.1", port=3012, debug=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemorySessionStore(clock=clock)


@pytest.fixture
def core(config, store):
    return Core(config, store)


@pytest.fixture
def services(core):
    return core.services


@pytest.fixture
def drain():
    """Function that empties a connection's outbox and returns the events."""
    return drain_events


@pytest.fixture
def client(config, store):
    """HTTP/WebSocket test client with the application lifespan running."""
    app = App(config, store)
    with TestClient(create_fastapi_app(app, config)) as test_client:
        yield test_client


@pytest.fixture
def yielding_store(clock):
    """Store whose reads and writes suspend, so concurrent tasks interleave."""
    return YieldingStore(clock)
