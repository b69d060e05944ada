"""Session observability — one event model for the whole render pipeline.

Aggregates events from:
- **Registry/server**: session pairing and teardown
- **Render loop**: per-frame build/diff/send timing and delta sizes
- **Upload channel**: routed and dropped interaction messages

All events are frozen dataclasses with nanosecond timestamps.

Quick Start:
    >>> from iwgui.observability import SessionCollector, EventLog
    >>> log = EventLog()
    >>> collector = SessionCollector(log)
    >>> # Pass collector to SessionServer; query log or /__iwgui/stats

"""

from iwgui.observability.collector import SessionCollector
from iwgui.observability.events import (
    EventRouted,
    FrameRendered,
    MessageDropped,
    SessionClosed,
    SessionEvent,
    SessionOpened,
    now_ns,
)
from iwgui.observability.log import EventLog
from iwgui.observability.profiler import FrameProfiler, compute_aggregate_stats

__all__ = [
    "EventLog",
    "EventRouted",
    "FrameProfiler",
    "FrameRendered",
    "MessageDropped",
    "SessionClosed",
    "SessionCollector",
    "SessionEvent",
    "SessionOpened",
    "compute_aggregate_stats",
    "now_ns",
]
