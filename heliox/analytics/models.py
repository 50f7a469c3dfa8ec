"""
Latency Models - Probe samples, targets and view state
======================================================

Plain data definitions shared by every analytics component. Instances are
frozen so a snapshot handed to the engine can be shared across threads
and calls without copying.

Key Concepts
------------
    Sample:
        One bucketed probe measurement for a target. ``rtt_ms`` is None
        when the round trip failed or no data was recorded. ``sent`` and
        ``lost`` are probe counters for the bucket (0 when not tracked).
        Values are normalized on construction: bad counters become 0,
        a non-finite or negative RTT becomes None.

    Target:
        A named probe destination and its samples. ``precomputed_stats``
        is the summary attached by the collector over the full series;
        it is informational and never used for windowed views.

    TimeRange:
        Absolute bounds in epoch seconds. A None bound is unbounded on
        that side.

    ZoomSelection:
        Percent-based selection of the loaded timeline, [0, 100].

    ViewState:
        Host-owned active tags and zoom, threaded explicitly across calls.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Iterable, Optional, Tuple


def coerce_count(value: Any) -> int:
    """Non-negative integer counter, 0 when missing or malformed."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return count if count >= 0 else 0


def coerce_rtt(value: Any) -> Optional[float]:
    """Finite non-negative RTT in ms, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        rtt = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(rtt) or rtt < 0:
        return None
    return rtt


@dataclass(frozen=True)
class Sample:
    """Single probe bucket for one target."""
    timestamp: int  # Unix timestamp (seconds)
    rtt_ms: Optional[float] = None
    sent: int = 0
    lost: int = 0

    def __post_init__(self):
        # Normalized however the sample was built
        object.__setattr__(self, "rtt_ms", coerce_rtt(self.rtt_ms))
        object.__setattr__(self, "sent", coerce_count(self.sent))
        object.__setattr__(self, "lost", coerce_count(self.lost))

    def to_dict(self) -> dict:
        return {
            "ts": self.timestamp,
            "rtt_ms": self.rtt_ms,
            "sent": self.sent,
            "lost": self.lost,
        }


@dataclass(frozen=True)
class TargetSummary:
    """Full-series summary supplied by the collector."""
    avg: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    count: int = 0
    loss: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
            "count": self.count,
            "loss": self.loss,
        }


@dataclass(frozen=True)
class Target:
    """A probe destination with its samples."""
    tag: str
    points: Tuple[Sample, ...] = ()
    precomputed_stats: Optional[TargetSummary] = None


@dataclass(frozen=True)
class TimeRange:
    """Absolute time window in seconds; None bounds are open."""
    start: Optional[float] = None
    end: Optional[float] = None

    def contains(self, ts: float) -> bool:
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts > self.end:
            return False
        return True

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class ZoomSelection:
    """Zoom window as percentages of the full loaded span."""
    start_pct: float = 0.0
    end_pct: float = 100.0

    @property
    def is_full(self) -> bool:
        return self.start_pct <= 0.0 and self.end_pct >= 100.0

    def to_dict(self) -> dict:
        return {"start": self.start_pct, "end": self.end_pct}


FULL_ZOOM = ZoomSelection()


def in_range(ts: float, time_range: Optional[TimeRange]) -> bool:
    """True when ``ts`` lies inside ``time_range`` (None means unrestricted)."""
    return time_range is None or time_range.contains(ts)


@dataclass(frozen=True)
class ViewState:
    """
    Dashboard filter state owned by the host.

    All transitions return a new ViewState; nothing is shared between
    callers.

    Example:
        >>> state = ViewState.for_targets(targets)
        >>> state = state.with_tag("cn-telecom", False)
        >>> state = state.with_zoom(25, 75)
        >>> snapshot = analyze_latency(targets, state.active_tags, state.zoom)
    """
    active_tags: FrozenSet[str] = field(default_factory=frozenset)
    zoom: ZoomSelection = FULL_ZOOM

    @classmethod
    def for_targets(cls, targets: Iterable[Target]) -> "ViewState":
        """Initial state for a first load: every target active, full zoom."""
        return cls(active_tags=frozenset(t.tag for t in targets), zoom=FULL_ZOOM)

    def with_tag(self, tag: str, enabled: bool) -> "ViewState":
        if enabled:
            return replace(self, active_tags=self.active_tags | {tag})
        return replace(self, active_tags=self.active_tags - {tag})

    def with_zoom(self, start_pct: float, end_pct: float) -> "ViewState":
        return replace(self, zoom=ZoomSelection(start_pct, end_pct))

    def on_data_loaded(self, targets: Iterable[Target]) -> "ViewState":
        """
        State after a fresh data load.

        Zoom resets to the full range. Active tags are kept as chosen by
        the user; if none have been chosen yet every loaded target becomes
        active.
        """
        if not self.active_tags:
            return ViewState.for_targets(targets)
        return replace(self, zoom=FULL_ZOOM)
