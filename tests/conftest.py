"""Shared test fixtures for atomsync."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
import pytest_asyncio

from atomsync.config import RelayConfig
from atomsync.observability.collector import RelayCollector
from atomsync.observability.log import EventLog
from atomsync.relay.registry import AtomRegistry
from atomsync.relay.server import RelayServer
from atomsync.relay.session import Session

_EOF = object()


class FakeTransport:
    """In-memory stand-in for a WebSocket connection.

    Frames fed with ``feed()`` are yielded by async iteration; frames the
    session sends are collected in ``sent``.
    """

    def __init__(self, peer: tuple[str, int] = ("127.0.0.1", 50000)) -> None:
        self.remote_address = peer
        self.sent: list[str] = []
        self.closed = False
        self._inbound: asyncio.Queue[Any] = asyncio.Queue()

    def feed(self, frame: str | bytes) -> None:
        self._inbound.put_nowait(frame)

    def feed_json(self, doc: dict[str, Any]) -> None:
        self.feed(json.dumps(doc))

    def disconnect(self) -> None:
        self._inbound.put_nowait(_EOF)

    def __aiter__(self) -> FakeTransport:
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._inbound.get()
        if item is _EOF:
            raise StopAsyncIteration
        return item

    async def send(self, message: str) -> None:
        # Text frames go out as UTF-8, as on a real connection.
        message.encode("utf-8")
        self.sent.append(message)

    async def close(self) -> None:
        self.closed = True
        self.disconnect()

    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(frame) for frame in self.sent]


def drain_outbox(session: Session) -> list[dict[str, Any]]:
    """Pop every queued frame off a session that is not running."""
    frames = []
    while not session._outbox.empty():
        frames.append(json.loads(session._outbox.get_nowait()))
    return frames


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll *predicate* on the event loop until it holds or *timeout* expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            msg = "condition not met before timeout"
            raise AssertionError(msg)
        await asyncio.sleep(0.005)


async def recv_json(connection: Any, timeout: float = 2.0) -> dict[str, Any]:
    """Receive and decode one frame from a websockets client connection."""
    return json.loads(await asyncio.wait_for(connection.recv(), timeout))


async def assert_silent(connection: Any, wait: float = 0.1) -> None:
    """Assert that no frame arrives on *connection* within *wait* seconds."""
    with pytest.raises(TimeoutError):
        await asyncio.wait_for(connection.recv(), wait)


@pytest.fixture
def registry() -> AtomRegistry:
    return AtomRegistry()


@pytest.fixture
def collector() -> RelayCollector:
    return RelayCollector(EventLog())


@pytest_asyncio.fixture
async def relay() -> AsyncIterator[RelayServer]:
    """A running relay on an ephemeral loopback port."""
    server = RelayServer(RelayConfig(port=0, ping_interval=None, ping_timeout=None))
    await server.start()
    try:
        yield server
    finally:
        await server.close()
