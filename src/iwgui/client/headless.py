"""Headless client — the browser side of a session, in Python.

Opens the two channels of a session over websockets, feeds deltas from the
download channel into a ``Reconciler`` and sends the events its elements
emit on the upload channel.  Used for integration tests and scripted
interaction with a running host.

Usage::

    async with HeadlessClient("ws://127.0.0.1:9001") as client:
        await client.wait_until(lambda c: c.document.find("button"))
        client.document.find("button")[0].click()

"""

from __future__ import annotations

import asyncio
import sys
import uuid
from collections.abc import Callable

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from iwgui._errors import MessageError, ProtocolError
from iwgui.client.dom import Element
from iwgui.client.reconciler import Reconciler
from iwgui.gui.events import Event
from iwgui.sync.protocol import Welcome, decode_delta, encode_event_message, encode_welcome


class HeadlessClient:
    """One simulated browser tab.

    Args:
        url: Websocket URL of the listener.
        session_id: uuid to announce; a fresh one is generated if omitted.

    """

    def __init__(self, url: str, session_id: str | None = None) -> None:
        self.url = url
        self.session_id = session_id if session_id is not None else str(uuid.uuid4())
        self.document = Element("body")
        self.reconciler = Reconciler(self.document, self._emit)
        self.deltas_received = 0
        self.error: Exception | None = None
        self._outbox: asyncio.Queue[Event] = asyncio.Queue()
        self._updated = asyncio.Event()
        self._download: ClientConnection | None = None
        self._upload: ClientConnection | None = None
        self._tasks: list[asyncio.Task[None]] = []

    async def connect(self) -> None:
        """Open both channels and start the reader and writer tasks."""
        download = self._download = await connect(self.url)
        await download.send(encode_welcome(Welcome("ToBrowser", self.session_id)))
        upload = self._upload = await connect(self.url)
        await upload.send(encode_welcome(Welcome("ToServer", self.session_id)))
        self._tasks = [
            asyncio.create_task(self._read_deltas(download)),
            asyncio.create_task(self._write_events(upload)),
        ]

    async def close(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        for channel in (self._download, self._upload):
            if channel is not None:
                await channel.close()

    async def __aenter__(self) -> HeadlessClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        """True once the download channel has ended."""
        return bool(self._tasks) and self._tasks[0].done()

    # ----- waiting -----

    async def wait_for_update(self, timeout: float = 2.0) -> None:
        """Wait until the next delta has been applied."""
        self._updated.clear()
        await asyncio.wait_for(self._updated.wait(), timeout)

    async def wait_until(
        self,
        predicate: Callable[[HeadlessClient], object],
        timeout: float = 2.0,
    ) -> None:
        """Wait until ``predicate(self)`` is truthy, re-checking after each delta."""
        async with asyncio.timeout(timeout):
            while not predicate(self):
                self._updated.clear()
                await self._updated.wait()

    # ----- channel tasks -----

    def _emit(self, event: Event) -> None:
        self._outbox.put_nowait(event)

    async def _read_deltas(self, download: ClientConnection) -> None:
        try:
            async for raw in download:
                try:
                    delta = decode_delta(raw)
                except MessageError as exc:
                    print(f"  Dropped delta: {exc}", file=sys.stderr)
                    continue
                self.reconciler.apply(delta)
                self.deltas_received += 1
                self._updated.set()
        except ConnectionClosed:
            pass
        except ProtocolError as exc:
            self.error = exc
            print(f"  Session {self.session_id} ended: {exc}", file=sys.stderr)
            await download.close()
        finally:
            self._updated.set()

    async def _write_events(self, upload: ClientConnection) -> None:
        while True:
            event = await self._outbox.get()
            try:
                await upload.send(encode_event_message(event))
            except ConnectionClosed:
                return
