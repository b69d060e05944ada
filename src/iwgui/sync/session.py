"""Session — one browser tab's state and render loop.

A session owns the committed tree (what the browser is known to display),
the event router with its bound-control table, and an inbox of interaction
events read off the upload channel.  Each iteration of the loop:

1. drains the inbox into the router,
2. runs the host's build function against a fresh ``Frame``,
3. diffs the frame against the committed tree,
4. sends the delta on the download channel (skipped when empty),
5. commits and sleeps ``tick_interval``.

The loop and the upload reader run as two tasks on one event loop, so the
session state has a single owner and needs no locking.  Closing either
channel ends the session and discards its state.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

from websockets.exceptions import ConnectionClosed

from iwgui._errors import IwguiError, MessageError
from iwgui.config import IwguiConfig
from iwgui.gui.builder import Frame
from iwgui.gui.differ import CommittedTree, Delta, apply_delta, diff_frames, validate_delta
from iwgui.gui.events import Event
from iwgui.gui.router import EventRouter
from iwgui.observability.collector import SessionCollector
from iwgui.observability.profiler import FrameProfiler
from iwgui.sync.protocol import encode_delta, parse_message

if TYPE_CHECKING:
    from iwgui._types import SessionID

type BuildFn = Callable[[Frame], Awaitable[Any] | Any]


class Channel(Protocol):
    """One direction of a session: a websocket connection or a test fake."""

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    async def wait_closed(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


class Session:
    """A paired download/upload channel and everything rendered over it.

    Args:
        session_id: The uuid both channels announced in their Welcome.
        download: Channel carrying deltas to the browser.
        upload: Channel carrying interaction events from the browser.
        config: Server configuration (tick interval, event policy, inbox cap).
        collector: Where lifecycle, frame and event records go.

    """

    __slots__ = (
        "_closed",
        "_collector",
        "_config",
        "_download",
        "_frames",
        "_inbox",
        "_profiler",
        "_router",
        "_tree",
        "_upload",
        "session_id",
    )

    def __init__(
        self,
        session_id: SessionID,
        download: Channel,
        upload: Channel,
        *,
        config: IwguiConfig | None = None,
        collector: SessionCollector | None = None,
    ) -> None:
        self.session_id = session_id
        self._download = download
        self._upload = upload
        self._config = config if config is not None else IwguiConfig()
        self._collector = collector if collector is not None else SessionCollector(verbose=False)
        self._router = EventRouter(self._config.event_policy)
        self._profiler = FrameProfiler(self._collector, session_id)
        self._tree: CommittedTree | None = None
        self._inbox: deque[Event] = deque()
        self._frames = 0
        self._closed = False

    # ----- state -----

    @property
    def tree(self) -> CommittedTree | None:
        """The tree the browser is known to hold, or None before the first send."""
        return self._tree

    @property
    def router(self) -> EventRouter:
        return self._router

    @property
    def frames(self) -> int:
        """Number of non-empty frames shown so far."""
        return self._frames

    @property
    def inbox_size(self) -> int:
        return len(self._inbox)

    @property
    def closed(self) -> bool:
        return self._closed

    # ----- upload side -----

    def deliver(self, event: Event) -> bool:
        """Queue an inbound event for the next frame.

        Returns False (and records a drop) when the inbox is full.
        """
        if len(self._inbox) >= self._config.max_inbox:
            self._collector.record_drop(
                f"inbox full ({self._config.max_inbox} events)",
                session_id=self.session_id,
                direction="ToServer",
            )
            return False
        self._inbox.append(event)
        return True

    async def receive_events(self) -> None:
        """Read the upload channel into the inbox until it closes.

        Malformed messages are dropped and the session continues.
        """
        try:
            async for raw in self._upload:
                try:
                    message = parse_message(raw)
                except MessageError as exc:
                    self._collector.record_drop(
                        str(exc), session_id=self.session_id, direction="ToServer"
                    )
                    continue
                if not isinstance(message, Event):
                    self._collector.record_drop(
                        "Welcome after handshake",
                        session_id=self.session_id,
                        direction="ToServer",
                    )
                    continue
                self.deliver(message)
        except ConnectionClosed:
            pass

    # ----- render loop -----

    def frame(self) -> Frame:
        """Apply queued events and start a new builder pass."""
        self._profiler.begin()
        while self._inbox:
            event = self._inbox.popleft()
            outcome = self._router.apply(event)
            self._collector.record_event(self.session_id, event.handle, event.kind.tag, outcome)
        self._router.begin_frame()
        self._profiler.start("build")
        return Frame(self._router)

    async def show(self, frame: Frame) -> Delta:
        """Diff ``frame`` against the committed tree and send the changes.

        An empty frame (``root()`` never called) leaves the display, the
        control table and any pending presses untouched.

        Raises:
            ProtocolError: If the frame references a handle it never defined.
            ConnectionClosed: If the download channel is gone.

        """
        self._profiler.stop("build")
        if frame.is_empty:
            self._router.cancel_frame()
            return Delta()

        self._profiler.start("diff")
        delta = diff_frames(self._tree, frame)
        validate_delta(self._tree, delta)
        self._profiler.stop("diff")

        sent = False
        if not delta.is_empty:
            self._profiler.start("send")
            await self._download.send(encode_delta(delta))
            self._profiler.stop("send")
            sent = True

        self._tree = apply_delta(self._tree, delta)
        self._frames += 1
        self._profiler.finish(delta, nodes=len(frame.nodes), sent=sent)
        return delta

    async def run(self, build: BuildFn) -> str:
        """Run the render loop until a channel closes or an error ends it.

        Returns the reason the session ended.
        """
        self._collector.record_open(self.session_id)
        reader = asyncio.create_task(self.receive_events())
        # Unchanged frames send nothing, so an idle download is watched directly
        downlink = asyncio.create_task(self._download.wait_closed())
        reason = "closed"
        try:
            while not self._closed:
                if reader.done() or downlink.done():
                    break
                frame = self.frame()
                result = build(frame)
                if inspect.isawaitable(result):
                    await result
                await self.show(frame)
                await asyncio.sleep(self._config.tick_interval)
        except ConnectionClosed:
            pass
        except IwguiError as exc:
            reason = f"{type(exc).__name__}: {exc}"
        except Exception as exc:
            reason = f"build error: {type(exc).__name__}: {exc}"
        finally:
            reader.cancel()
            downlink.cancel()
            await asyncio.gather(reader, downlink, return_exceptions=True)
            await self.close(reason=reason)
        return reason

    async def close(self, *, reason: str = "closed") -> None:
        """Close both channels and discard state.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._inbox.clear()
        self._tree = None
        for channel in (self._download, self._upload):
            try:
                await channel.close()
            except ConnectionClosed:
                pass
        self._collector.record_close(self.session_id, reason=reason, frames=self._frames)
