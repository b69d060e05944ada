"""Unified event model for session observability.

Defines event types for the session lifecycle, the render loop and the
upload channel.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Session lifecycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionOpened:
    """Both channels of a session completed the handshake.

    Attributes:
        session_id: Session identifier shared by both channels.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class SessionClosed:
    """A session ended and its state was discarded.

    Attributes:
        session_id: Session identifier.
        reason: Why the session ended (channel closed, protocol error, ...).
        frames: Number of frames rendered during the session's lifetime.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    reason: str
    frames: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Render loop events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FrameRendered:
    """One render-loop iteration completed.

    Attributes:
        session_id: Session identifier.
        nodes: Number of nodes in the built frame.
        added: Number of nodes added by the delta.
        updated: Number of nodes updated by the delta.
        removed: Number of handles removed by the delta.
        sent: False when the delta was empty and nothing was transmitted.
        build_ms: Time spent in the host's build function.
        diff_ms: Time spent diffing against the committed tree.
        send_ms: Time spent encoding and writing the delta.
        total_ms: Wall time of the whole iteration.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    nodes: int
    added: int
    updated: int
    removed: int
    sent: bool
    build_ms: float
    diff_ms: float
    send_ms: float
    total_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Upload channel events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EventRouted:
    """An interaction event was applied or discarded by the event router.

    Attributes:
        session_id: Session identifier.
        handle: Target widget handle.
        kind: Event kind tag (``ButtonPressed``, ``CheckboxChecked``, ...).
        outcome: ``applied``, ``stale`` (no live widget) or ``mismatch``
            (widget of a different kind).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    handle: str
    kind: str
    outcome: Literal["applied", "stale", "mismatch"]
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class MessageDropped:
    """An inbound message was rejected and the session continued.

    Attributes:
        session_id: Session identifier, empty before the handshake.
        direction: Channel the message arrived on, if known.
        reason: Human-readable reason.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    direction: str
    reason: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type SessionEvent = (
    SessionOpened
    | SessionClosed
    | FrameRendered
    | EventRouted
    | MessageDropped
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
