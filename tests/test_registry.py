"""Tests for iwgui.sync.registry — channel pairing and session tracking."""

from __future__ import annotations

import pytest

from iwgui._errors import ProtocolError
from iwgui.sync.protocol import Welcome
from iwgui.sync.registry import PendingHalf, SessionRegistry
from iwgui.sync.session import Session


class TestPendingHalf:
    """Verify PendingHalf dataclass."""

    def test_frozen(self, make_channel) -> None:
        half = PendingHalf("ToBrowser", make_channel())
        with pytest.raises(AttributeError):
            half.direction = "ToServer"  # type: ignore[misc]

    def test_equality_ignores_channel(self, make_channel) -> None:
        assert PendingHalf("ToBrowser", make_channel()) == PendingHalf("ToBrowser", make_channel())


class TestPairing:
    """SessionRegistry.offer — pairing by uuid."""

    def test_first_half_waits(self, make_channel) -> None:
        registry = SessionRegistry()
        assert registry.offer(Welcome("ToBrowser", "a"), make_channel()) is None
        assert registry.pending_count == 1

    @pytest.mark.parametrize("first", ["ToBrowser", "ToServer"])
    def test_pair_returned_download_first(self, make_channel, first: str) -> None:
        registry = SessionRegistry()
        download, upload = make_channel(), make_channel()
        by_direction = {"ToBrowser": download, "ToServer": upload}
        second = "ToServer" if first == "ToBrowser" else "ToBrowser"

        registry.offer(Welcome(first, "a"), by_direction[first])
        pair = registry.offer(Welcome(second, "a"), by_direction[second])
        assert pair == (download, upload)
        assert registry.pending_count == 0

    def test_different_uuids_do_not_pair(self, make_channel) -> None:
        registry = SessionRegistry()
        registry.offer(Welcome("ToBrowser", "a"), make_channel())
        assert registry.offer(Welcome("ToServer", "b"), make_channel()) is None
        assert registry.pending_count == 2

    def test_duplicate_direction_rejected(self, make_channel) -> None:
        registry = SessionRegistry()
        registry.offer(Welcome("ToBrowser", "a"), make_channel())
        with pytest.raises(ProtocolError, match="already has"):
            registry.offer(Welcome("ToBrowser", "a"), make_channel())

    def test_running_session_rejects_new_channels(self, make_channel) -> None:
        registry = SessionRegistry()
        registry.register(Session("a", make_channel(), make_channel()))
        with pytest.raises(ProtocolError, match="already running"):
            registry.offer(Welcome("ToBrowser", "a"), make_channel())


class TestWithdraw:
    """SessionRegistry.withdraw — pending halves that went away."""

    def test_withdraw_own_half(self, make_channel) -> None:
        registry = SessionRegistry()
        channel = make_channel()
        registry.offer(Welcome("ToBrowser", "a"), channel)
        assert registry.withdraw("a", channel) is True
        assert registry.pending_count == 0

    def test_withdraw_other_channel_is_noop(self, make_channel) -> None:
        registry = SessionRegistry()
        registry.offer(Welcome("ToBrowser", "a"), make_channel())
        assert registry.withdraw("a", make_channel()) is False
        assert registry.pending_count == 1


class TestSessions:
    """register / unregister / get."""

    def test_register_and_get(self, make_channel) -> None:
        registry = SessionRegistry()
        session = Session("a", make_channel(), make_channel())
        registry.register(session)
        assert registry.get("a") is session
        assert registry.session_count == 1
        assert registry.sessions() == (session,)

    def test_unregister(self, make_channel) -> None:
        registry = SessionRegistry()
        session = Session("a", make_channel(), make_channel())
        registry.register(session)
        registry.unregister(session)
        assert registry.get("a") is None
        assert registry.session_count == 0

    def test_unregister_stale_session_keeps_newer(self, make_channel) -> None:
        registry = SessionRegistry()
        old = Session("a", make_channel(), make_channel())
        new = Session("a", make_channel(), make_channel())
        registry.register(old)
        registry.register(new)
        registry.unregister(old)
        assert registry.get("a") is new
