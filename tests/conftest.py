"""Shared test fixtures for iwgui."""

from __future__ import annotations

import asyncio

import pytest
from websockets.exceptions import ConnectionClosed

from iwgui.observability.collector import SessionCollector
from iwgui.observability.log import EventLog

_EOF = object()


class FakeChannel:
    """In-memory stand-in for one websocket connection.

    ``feed()`` queues an inbound message; ``sent`` records outbound ones.
    Closing ends iteration and makes further sends fail the way a closed
    websocket does.
    """

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False
        self._incoming: asyncio.Queue[object] = asyncio.Queue()
        self._gone = asyncio.Event()

    def feed(self, message: str) -> None:
        self._incoming.put_nowait(message)

    def hang_up(self) -> None:
        """Simulate the peer closing the socket."""
        self._gone.set()
        self._incoming.put_nowait(_EOF)

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionClosed(None, None)
        self.sent.append(message)

    async def close(self) -> None:
        self.closed = True
        self._gone.set()
        self._incoming.put_nowait(_EOF)

    async def wait_closed(self) -> None:
        await self._gone.wait()

    def __aiter__(self) -> FakeChannel:
        return self

    async def __anext__(self) -> str:
        item = await self._incoming.get()
        if item is _EOF:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


@pytest.fixture
def log() -> EventLog:
    return EventLog()


@pytest.fixture
def collector(log: EventLog) -> SessionCollector:
    """A quiet collector backed by the ``log`` fixture."""
    return SessionCollector(log, verbose=False)


@pytest.fixture
def channels() -> tuple[FakeChannel, FakeChannel]:
    """A (download, upload) pair of fake channels."""
    return FakeChannel(), FakeChannel()


@pytest.fixture
def make_channel() -> type[FakeChannel]:
    """The FakeChannel class, for tests that need more than one pair."""
    return FakeChannel
