"""Session collector — records session, frame and event-routing activity.

Provides explicit methods for each event kind so the sync layer never
constructs event objects itself.  Recoverable problems (dropped messages,
sessions ending on an error) are also echoed as one line on stderr.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

import sys

from iwgui.observability.events import (
    EventRouted,
    FrameRendered,
    MessageDropped,
    SessionClosed,
    SessionOpened,
    now_ns,
)
from iwgui.observability.log import EventLog


class SessionCollector:
    """Unified event collector for all sessions of one server.

    Args:
        log: The EventLog to store events in.
        verbose: Echo warnings (dropped messages, abnormal session ends)
            to stderr.

    """

    __slots__ = ("_log", "_verbose")

    def __init__(self, log: EventLog | None = None, *, verbose: bool = True) -> None:
        self._log = log if log is not None else EventLog()
        self._verbose = verbose

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Session lifecycle -----

    def record_open(self, session_id: str) -> None:
        """Record that both channels of a session are paired."""
        self._log.append(SessionOpened(session_id=session_id, timestamp_ns=now_ns()))

    def record_close(self, session_id: str, *, reason: str = "closed", frames: int = 0) -> None:
        """Record that a session ended and its state was discarded."""
        self._log.append(
            SessionClosed(
                session_id=session_id,
                reason=reason,
                frames=frames,
                timestamp_ns=now_ns(),
            )
        )
        if self._verbose and reason != "closed":
            print(f"  Session {session_id} ended: {reason}", file=sys.stderr)

    # ----- Render loop -----

    def record_frame(self, frame: FrameRendered) -> None:
        """Record a finished render-loop iteration (built by FrameProfiler)."""
        self._log.append(frame)

    # ----- Upload channel -----

    def record_event(self, session_id: str, handle: str, kind: str, outcome: str) -> None:
        """Record what the event router did with an inbound event."""
        self._log.append(
            EventRouted(
                session_id=session_id,
                handle=handle,
                kind=kind,
                outcome=outcome,  # type: ignore[arg-type]
                timestamp_ns=now_ns(),
            )
        )

    def record_drop(self, reason: str, *, session_id: str = "", direction: str = "") -> None:
        """Record a rejected inbound message."""
        self._log.append(
            MessageDropped(
                session_id=session_id,
                direction=direction,
                reason=reason,
                timestamp_ns=now_ns(),
            )
        )
        if self._verbose:
            where = f" [{session_id}]" if session_id else ""
            print(f"  Dropped message{where}: {reason}", file=sys.stderr)
