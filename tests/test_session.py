"""Tests for iwgui.sync.session — per-session state and render loop."""

from __future__ import annotations

import asyncio
import json

import pytest

from iwgui._errors import ProtocolError
from iwgui._types import Handle
from iwgui.config import IwguiConfig
from iwgui.gui import nodes
from iwgui.gui.builder import Frame
from iwgui.gui.events import ButtonPressed, CheckboxChecked, Event
from iwgui.gui.refs import Ref
from iwgui.observability.events import (
    EventRouted,
    FrameRendered,
    MessageDropped,
    SessionClosed,
    SessionOpened,
)
from iwgui.sync.protocol import Welcome, encode_event_message, encode_welcome
from iwgui.sync.session import Session

_FAST = IwguiConfig(tick_interval=0.01)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session(channels, collector, config: IwguiConfig = _FAST) -> Session:
    download, upload = channels
    return Session("sid", download, upload, config=config, collector=collector)


def _button_frame(session: Session, text: str = "Go") -> tuple[Frame, bool]:
    frame = session.frame()
    pressed = frame.root().stacklayout().button().text(text).finish()
    return frame, pressed


def _only_child(session: Session) -> Handle:
    (handle,) = session.tree.nodes[session.tree.root].child_handles()
    return handle


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestShow:
    """Session.show — diff, send and commit."""

    @pytest.mark.asyncio
    async def test_first_frame_sends_everything(self, channels, collector) -> None:
        session = _session(channels, collector)
        frame, _ = _button_frame(session)
        delta = await session.show(frame)

        download, _ = channels
        (message,) = download.sent
        wire = json.loads(message)
        assert wire["root"] == frame.root_handle
        assert len(wire["added"]) == 2
        assert session.tree.root == frame.root_handle
        assert dict(session.tree.nodes) == dict(frame.nodes)
        assert delta.root == frame.root_handle

    @pytest.mark.asyncio
    async def test_unchanged_frame_not_sent(self, channels, collector, log) -> None:
        session = _session(channels, collector)
        await session.show(_button_frame(session)[0])
        await session.show(_button_frame(session)[0])

        download, _ = channels
        assert len(download.sent) == 1
        frames = log.query(event_type=FrameRendered)
        assert [f.sent for f in frames] == [False, True]
        assert session.frames == 2

    @pytest.mark.asyncio
    async def test_empty_frame_leaves_display_alone(self, channels, collector) -> None:
        session = _session(channels, collector)
        await session.show(_button_frame(session)[0])
        committed = session.tree

        delta = await session.show(session.frame())
        assert delta.is_empty
        assert session.tree is committed
        assert len(channels[0].sent) == 1

    @pytest.mark.asyncio
    async def test_empty_first_frame_sends_nothing(self, channels, collector) -> None:
        session = _session(channels, collector)
        await session.show(session.frame())
        assert channels[0].sent == []
        assert session.tree is None

    @pytest.mark.asyncio
    async def test_only_changes_sent(self, channels, collector) -> None:
        session = _session(channels, collector)
        text = Ref("a")

        def frame() -> Frame:
            f = session.frame()
            f.root().stacklayout().label(text.value)
            return f

        await session.show(frame())
        text.value = "b"
        await session.show(frame())
        wire = json.loads(channels[0].sent[-1])
        assert wire["added"] == {}
        assert wire["removed"] == []
        assert list(wire["updated"].values()) == [{"Label": {"text": "b"}}]
        assert "root" not in wire


class TestEvents:
    """Inbox draining and event routing."""

    @pytest.mark.asyncio
    async def test_press_seen_in_next_frame_only(self, channels, collector) -> None:
        session = _session(channels, collector)
        await session.show(_button_frame(session)[0])
        session.deliver(Event(_only_child(session), ButtonPressed()))

        frame, pressed = _button_frame(session)
        assert pressed is True
        await session.show(frame)
        frame, pressed = _button_frame(session)
        assert pressed is False

    @pytest.mark.asyncio
    async def test_press_survives_empty_frame(self, channels, collector) -> None:
        session = _session(channels, collector)
        await session.show(_button_frame(session)[0])
        session.deliver(Event(_only_child(session), ButtonPressed()))

        await session.show(session.frame())
        frame, pressed = _button_frame(session)
        assert pressed is True

    @pytest.mark.asyncio
    async def test_checkbox_round_trip(self, channels, collector) -> None:
        session = _session(channels, collector)
        x = Ref(False)

        def frame() -> Frame:
            f = session.frame()
            f.root().stacklayout().checkbox(x).finish()
            return f

        await session.show(frame())
        session.deliver(Event(_only_child(session), CheckboxChecked(True)))
        next_frame = frame()
        assert x.value is True
        await session.show(next_frame)
        wire = json.loads(channels[0].sent[-1])
        assert list(wire["updated"].values()) == [{"Checkbox": {"checked": True, "text": None}}]

    @pytest.mark.asyncio
    async def test_routing_recorded(self, channels, collector, log) -> None:
        session = _session(channels, collector)
        session.deliver(Event(Handle("P.nowhere"), ButtonPressed()))
        session.frame()
        (routed,) = log.query(event_type=EventRouted)
        assert routed.outcome == "stale"
        assert routed.kind == "ButtonPressed"
        assert routed.session_id == "sid"

    def test_inbox_bounded(self, channels, collector, log) -> None:
        session = _session(channels, collector, IwguiConfig(max_inbox=2))
        event = Event(Handle("P.b"), ButtonPressed())
        assert session.deliver(event)
        assert session.deliver(event)
        assert not session.deliver(event)
        assert session.inbox_size == 2
        assert len(log.query(event_type=MessageDropped)) == 1

    @pytest.mark.asyncio
    async def test_receive_events(self, channels, collector, log) -> None:
        session = _session(channels, collector)
        _, upload = channels
        upload.feed("garbage")
        upload.feed(encode_welcome(Welcome("ToServer", "sid")))
        upload.feed(encode_event_message(Event(Handle("P.b"), ButtonPressed())))
        upload.hang_up()

        await asyncio.wait_for(session.receive_events(), 1.0)
        assert session.inbox_size == 1
        reasons = [d.reason for d in log.query(event_type=MessageDropped)]
        assert len(reasons) == 2
        assert "Welcome after handshake" in reasons


class TestRun:
    """Session.run — the render loop."""

    @pytest.mark.asyncio
    async def test_loop_ends_when_upload_closes(self, channels, collector, log) -> None:
        session = _session(channels, collector)
        download, upload = channels
        built: list[int] = []

        def build(frame: Frame) -> None:
            built.append(len(built))
            frame.root().stacklayout().label(f"frame {len(built)}")
            if len(built) == 3:
                upload.hang_up()

        reason = await asyncio.wait_for(session.run(build), 2.0)
        assert reason == "closed"
        assert len(built) >= 3
        assert session.closed
        assert download.closed and upload.closed
        assert session.tree is None
        assert len(log.query(event_type=SessionOpened)) == 1
        (closed,) = log.query(event_type=SessionClosed)
        assert closed.frames == len(built)

    @pytest.mark.asyncio
    async def test_async_build(self, channels, collector) -> None:
        session = _session(channels, collector)
        _, upload = channels

        async def build(frame: Frame) -> None:
            await asyncio.sleep(0)
            frame.root().stacklayout().header("async")
            upload.hang_up()

        await asyncio.wait_for(session.run(build), 2.0)
        assert "async" in channels[0].sent[0]

    @pytest.mark.asyncio
    async def test_build_error_ends_only_session(self, channels, collector, log) -> None:
        session = _session(channels, collector)

        def build(frame: Frame) -> None:
            raise ValueError("boom")

        reason = await asyncio.wait_for(session.run(build), 2.0)
        assert "boom" in reason
        assert channels[0].closed and channels[1].closed
        (closed,) = log.query(event_type=SessionClosed)
        assert "ValueError" in closed.reason

    @pytest.mark.asyncio
    async def test_collision_ends_session(self, channels, collector) -> None:
        session = _session(channels, collector)
        ref = Ref(False)

        def build(frame: Frame) -> None:
            stack = frame.root().stacklayout()
            stack.checkbox(ref).finish()
            stack.checkbox(ref).finish()

        reason = await asyncio.wait_for(session.run(build), 2.0)
        assert reason.startswith("HandleCollisionError")

    @pytest.mark.asyncio
    async def test_download_gone_ends_session(self, channels, collector) -> None:
        session = _session(channels, collector)
        download, _ = channels
        download.closed = True

        def build(frame: Frame) -> None:
            frame.root().stacklayout().label("x")

        reason = await asyncio.wait_for(session.run(build), 2.0)
        assert reason == "closed"
        assert session.closed

    @pytest.mark.asyncio
    async def test_idle_download_hang_up_ends_session(self, channels, collector, log) -> None:
        session = _session(channels, collector)
        download, upload = channels

        def build(frame: Frame) -> None:
            frame.root().stacklayout().label("static")

        task = asyncio.create_task(session.run(build))
        async with asyncio.timeout(2.0):
            while not download.sent:
                await asyncio.sleep(0.01)
        # Let a few unchanged frames go by without sending
        await asyncio.sleep(0.05)
        download.hang_up()

        reason = await asyncio.wait_for(task, 2.0)
        assert reason == "closed"
        assert session.closed
        assert upload.closed
        assert len(download.sent) == 1
        (closed,) = log.query(event_type=SessionClosed)
        assert closed.frames >= 1

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, channels, collector, log) -> None:
        session = _session(channels, collector)
        await session.close()
        await session.close(reason="again")
        assert len(log.query(event_type=SessionClosed)) == 1


class TestProtocolErrors:
    """Protocol violations raised by show()."""

    @pytest.mark.asyncio
    async def test_show_propagates_protocol_error(self, channels, collector) -> None:
        session = _session(channels, collector)
        frame = session.frame()
        frame.root().stacklayout()
        frame.finish()
        # Point the root at a child that was never emitted
        frame._nodes[frame.root_handle] = nodes.StackLayout((Handle("P.missing"),))
        with pytest.raises(ProtocolError):
            await session.show(frame)
