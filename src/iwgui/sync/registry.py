"""Session registry — pairs the two channels of a tab and tracks live sessions.

A browser tab opens two websockets (download and upload), each announcing
the same uuid in its Welcome.  Whichever arrives first waits here as a
pending half; the second completes the pair and the server starts a
``Session`` for it.

Thread-safe: both maps are protected by a lock, so the stats endpoint and
tests can read counts from any thread.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from iwgui._errors import ProtocolError

if TYPE_CHECKING:
    from iwgui._types import Direction, SessionID
    from iwgui.sync.protocol import Welcome
    from iwgui.sync.session import Channel, Session


@dataclass(frozen=True, slots=True)
class PendingHalf:
    """A channel that completed its handshake and awaits its partner.

    Attributes:
        direction: Which half this channel is.
        channel: The connection itself.

    """

    direction: Direction
    channel: Channel = field(compare=False, hash=False)


class SessionRegistry:
    """Pairs channels by uuid and indexes running sessions."""

    def __init__(self) -> None:
        self._pending: dict[SessionID, PendingHalf] = {}
        self._sessions: dict[SessionID, Session] = {}
        self._lock = threading.Lock()

    @property
    def pending_count(self) -> int:
        """Channels waiting for their partner."""
        with self._lock:
            return len(self._pending)

    @property
    def session_count(self) -> int:
        """Sessions currently running."""
        with self._lock:
            return len(self._sessions)

    def offer(self, welcome: Welcome, channel: Channel) -> tuple[Channel, Channel] | None:
        """Offer a freshly handshaken channel for pairing.

        Returns:
            ``(download, upload)`` when this channel completes a pair,
            otherwise None (the channel is now pending).

        Raises:
            ProtocolError: If the uuid already has a pending channel in the
                same direction, or already belongs to a running session.

        """
        with self._lock:
            if welcome.uuid in self._sessions:
                msg = f"Session {welcome.uuid} is already running"
                raise ProtocolError(msg)
            other = self._pending.get(welcome.uuid)
            if other is None:
                self._pending[welcome.uuid] = PendingHalf(welcome.direction, channel)
                return None
            if other.direction == welcome.direction:
                msg = f"Session {welcome.uuid} already has a {welcome.direction} channel"
                raise ProtocolError(msg)
            del self._pending[welcome.uuid]

        if welcome.direction == "ToBrowser":
            return channel, other.channel
        return other.channel, channel

    def withdraw(self, session_id: SessionID, channel: Channel) -> bool:
        """Forget a pending half whose connection went away before pairing."""
        with self._lock:
            half = self._pending.get(session_id)
            if half is None or half.channel is not channel:
                return False
            del self._pending[session_id]
            return True

    def register(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def unregister(self, session: Session) -> None:
        with self._lock:
            if self._sessions.get(session.session_id) is session:
                del self._sessions[session.session_id]

    def get(self, session_id: SessionID) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def sessions(self) -> tuple[Session, ...]:
        """Snapshot of running sessions (no lock held on return)."""
        with self._lock:
            return tuple(self._sessions.values())
