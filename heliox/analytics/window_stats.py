"""
Window Stats - RTT and loss statistics over a time window
=========================================================

Computes per-target statistics restricted to an absolute time window and
recombines them into one "all active targets" summary.

Per Target
----------
    avg        mean of non-null rtt_ms in the window (None if none)
    min/max    extremes of non-null rtt_ms (None if none)
    count      number of non-null rtt_ms samples
    sent/lost  counters summed over every in-window sample, whether or
               not it carries an RTT
    loss_rate  100 * lost / sent (None when sent == 0)

Merged
------
    avg        count-weighted: sum(avg_i * count_i) / sum(count_i)
    min/max    min of mins / max of maxes
    loss_rate  from summed counters, never an average of percentages

Every call recomputes from the raw samples. The zoom window moves
continuously while panning, so there is no cache to go stale.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .models import Sample, Target, TimeRange, in_range

logger = logging.getLogger("Analytics.WindowStats")


@dataclass(frozen=True)
class WindowStats:
    """RTT/loss statistics for one target or a merged set."""
    tag: Optional[str] = None
    count: int = 0
    avg: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    sent_total: int = 0
    lost_total: int = 0
    loss_rate: Optional[float] = None

    @property
    def has_data(self) -> bool:
        return self.count > 0

    def to_dict(self) -> dict:
        return {
            "tag": self.tag,
            "count": self.count,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
            "sent": self.sent_total,
            "lost": self.lost_total,
            "loss_rate": self.loss_rate,
        }


def empty_stats(tag: Optional[str] = None) -> WindowStats:
    return WindowStats(tag=tag)


def _loss_rate(sent: int, lost: int) -> Optional[float]:
    return (lost / sent) * 100 if sent > 0 else None


def compute_target_stats(
    points: Iterable[Sample],
    time_range: Optional[TimeRange] = None,
    tag: Optional[str] = None,
) -> WindowStats:
    """
    Compute statistics for one target's samples inside a window.

    Args:
        points: The target's samples (any order)
        time_range: Window bounds (None = whole series)
        tag: Target tag to carry into the result

    Returns:
        WindowStats with None avg/min/max when the window has no RTT
    """
    rtt_sum = 0.0
    count = 0
    rtt_min: Optional[float] = None
    rtt_max: Optional[float] = None
    sent = 0
    lost = 0

    for p in points:
        if not in_range(p.timestamp, time_range):
            continue

        if p.rtt_ms is not None:
            rtt_sum += p.rtt_ms
            count += 1
            if rtt_min is None or p.rtt_ms < rtt_min:
                rtt_min = p.rtt_ms
            if rtt_max is None or p.rtt_ms > rtt_max:
                rtt_max = p.rtt_ms

        sent += p.sent
        lost += p.lost

    return WindowStats(
        tag=tag,
        count=count,
        avg=rtt_sum / count if count else None,
        min=rtt_min,
        max=rtt_max,
        sent_total=sent,
        lost_total=lost,
        loss_rate=_loss_rate(sent, lost),
    )


def merge_stats(stats: Iterable[WindowStats], tag: Optional[str] = None) -> WindowStats:
    """
    Merge per-target statistics into one summary.

    Args:
        stats: Per-target WindowStats
        tag: Tag for the merged result (usually None)

    Returns:
        Merged WindowStats
    """
    weighted_sum = 0.0
    total_count = 0
    merged_min: Optional[float] = None
    merged_max: Optional[float] = None
    sent = 0
    lost = 0

    for s in stats:
        if s.count and s.avg is not None:
            weighted_sum += s.avg * s.count
            total_count += s.count
        if s.min is not None and (merged_min is None or s.min < merged_min):
            merged_min = s.min
        if s.max is not None and (merged_max is None or s.max > merged_max):
            merged_max = s.max
        sent += s.sent_total
        lost += s.lost_total

    return WindowStats(
        tag=tag,
        count=total_count,
        avg=weighted_sum / total_count if total_count else None,
        min=merged_min,
        max=merged_max,
        sent_total=sent,
        lost_total=lost,
        loss_rate=_loss_rate(sent, lost),
    )


def compute_window_stats(
    targets: Iterable[Target],
    time_range: Optional[TimeRange] = None,
) -> Tuple[List[WindowStats], WindowStats]:
    """
    Per-target and merged statistics for a list of targets.

    Returns:
        Tuple of (per_target list, merged WindowStats)
    """
    per_target: List[WindowStats] = [
        compute_target_stats(t.points, time_range, tag=t.tag) for t in targets
    ]
    merged = merge_stats(per_target)
    return per_target, merged
