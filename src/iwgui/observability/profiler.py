"""Frame profiler — measures per-stage latency of one render-loop iteration.

Records build, diff and send timing for each frame and hands a
``FrameRendered`` event to the collector.

Thread Safety:
    One profiler per session, used only from that session's loop task.
    Aggregate queries are protected by the underlying ``EventLog`` lock.

"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from iwgui.observability.events import FrameRendered, now_ns

if TYPE_CHECKING:
    from iwgui.gui.differ import Delta
    from iwgui.observability.collector import SessionCollector
    from iwgui.observability.log import EventLog

_STAGES = ("build", "diff", "send")


@dataclass(slots=True)
class _Timer:
    """Accumulates timing for a named stage."""

    name: str
    _start: float = 0.0
    elapsed_ms: float = 0.0

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        if self._start > 0:
            self.elapsed_ms = (time.perf_counter() - self._start) * 1000
            self._start = 0.0


class FrameProfiler:
    """Records per-stage timing for a single session's frames.

    Usage::

        profiler = FrameProfiler(collector, session_id)

        profiler.begin()
        profiler.start("build")
        # ... build ...
        profiler.stop("build")
        profiler.start("diff")
        # ... diff ...
        profiler.stop("diff")
        profiler.finish(delta, nodes=len(frame.nodes), sent=True)

    """

    __slots__ = ("_collector", "_session_id", "_t0", "_timers")

    def __init__(self, collector: SessionCollector, session_id: str) -> None:
        self._collector = collector
        self._session_id = session_id
        self._t0 = 0.0
        self._timers = {name: _Timer(name=name) for name in _STAGES}

    def begin(self) -> None:
        """Start profiling a new frame."""
        self._t0 = time.perf_counter()
        for timer in self._timers.values():
            timer.elapsed_ms = 0.0

    def start(self, stage: str) -> None:
        self._timers[stage].start()

    def stop(self, stage: str) -> None:
        self._timers[stage].stop()

    def finish(self, delta: Delta, *, nodes: int, sent: bool) -> FrameRendered:
        """Finish profiling and record the ``FrameRendered`` event.

        Returns the event for testing / inspection.

        """
        total_ms = (time.perf_counter() - self._t0) * 1000 if self._t0 > 0 else 0.0
        event = FrameRendered(
            session_id=self._session_id,
            nodes=nodes,
            added=len(delta.added),
            updated=len(delta.updated),
            removed=len(delta.removed),
            sent=sent,
            build_ms=self._timers["build"].elapsed_ms,
            diff_ms=self._timers["diff"].elapsed_ms,
            send_ms=self._timers["send"].elapsed_ms,
            total_ms=total_ms,
            timestamp_ns=now_ns(),
        )
        self._collector.record_frame(event)
        return event


def compute_aggregate_stats(
    log: EventLog,
    *,
    limit: int = 100,
) -> dict:
    """Compute aggregate latency statistics from recent ``FrameRendered`` events.

    Returns a dict with p50, p95, p99, per-stage averages and the share of
    frames that produced no traffic.

    """
    frames = log.query(event_type=FrameRendered, limit=limit)
    if not frames:
        return {"count": 0}

    totals = sorted(f.total_ms for f in frames)
    count = len(totals)

    def percentile(data: list[float], pct: float) -> float:
        idx = int(len(data) * pct / 100)
        return data[min(idx, len(data) - 1)]

    return {
        "count": count,
        "sent": sum(1 for f in frames if f.sent),
        "total_ms": {
            "p50": round(percentile(totals, 50), 1),
            "p95": round(percentile(totals, 95), 1),
            "p99": round(percentile(totals, 99), 1),
            "min": round(totals[0], 1),
            "max": round(totals[-1], 1),
        },
        "avg_by_stage_ms": {
            "build": round(sum(f.build_ms for f in frames) / count, 1),
            "diff": round(sum(f.diff_ms for f in frames) / count, 1),
            "send": round(sum(f.send_ms for f in frames) / count, 1),
        },
    }
