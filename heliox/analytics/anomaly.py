"""
Anomaly Detection - Loss intervals and anomalous duration
=========================================================

Finds contiguous stretches of the merged loss series where packet loss
meets or exceeds a threshold, and estimates how long the network spent
in that state.

Intervals
---------
    A point is anomalous when its loss is not None and >= threshold.
    Walking the series in ascending order:

        below -> above   opens an interval at the current timestamp
        above -> below   closes it at the previous point's timestamp
        end of series    closes an open interval at the last timestamp

    None points break an interval. Zero-width intervals (a single
    anomalous point) are dropped since they have no extent to draw.

Duration
--------
    Each anomalous bucket is treated as lasting until the next recorded
    bucket. The trailing bucket has no successor, so it is assumed to
    last one granularity step:

        duration += max(0, next_ts - ts)        if a next point exists
        duration += granularity * 60            otherwise

    Points outside the requested range are skipped, but the successor
    used for the step is always the next point of the full series.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import Config
from .loss_series import LossPoint
from .models import TimeRange, in_range

logger = logging.getLogger("Analytics.Anomaly")

LossInterval = Tuple[int, int]


@dataclass(frozen=True)
class AnomalyReport:
    """Loss intervals plus total anomalous minutes."""
    intervals: Tuple[LossInterval, ...] = field(default_factory=tuple)
    minutes: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "intervals": [list(i) for i in self.intervals],
            "minutes": round(self.minutes, 4) if self.minutes is not None else None,
        }


def is_anomalous(point: LossPoint, threshold: float) -> bool:
    return point.loss_pct is not None and point.loss_pct >= threshold


def _sorted(series: Iterable[LossPoint]) -> List[LossPoint]:
    return sorted(series, key=lambda p: p.timestamp)


def _step_seconds(granularity: Optional[float]) -> float:
    if granularity is None or granularity <= 0:
        granularity = Config.LATENCY.DEFAULT_GRANULARITY_MINUTES
    return granularity * 60


def detect_loss_intervals(
    series: Sequence[LossPoint],
    threshold: float,
    time_range: Optional[TimeRange] = None,
) -> List[LossInterval]:
    """
    Detect contiguous anomalous intervals.

    Args:
        series: Merged loss series (any order)
        threshold: Loss percentage at or above which a point is anomalous
        time_range: Only walk points inside this range (None = all)

    Returns:
        Ordered, non-overlapping (start_ts, end_ts) pairs with end > start
    """
    points = [p for p in _sorted(series) if in_range(p.timestamp, time_range)]

    intervals: List[LossInterval] = []
    start: Optional[int] = None
    prev_ts: Optional[int] = None

    for point in points:
        over = is_anomalous(point, threshold)
        if over and start is None:
            start = point.timestamp
        elif not over and start is not None:
            if prev_ts > start:
                intervals.append((start, prev_ts))
            start = None
        prev_ts = point.timestamp

    if start is not None and prev_ts > start:
        intervals.append((start, prev_ts))

    return intervals


def compute_anomaly_minutes(
    series: Sequence[LossPoint],
    threshold: float,
    time_range: Optional[TimeRange] = None,
    granularity: Optional[float] = None,
) -> Optional[float]:
    """
    Total anomalous time inside a range, in minutes.

    Args:
        series: Merged loss series (any order)
        threshold: Loss percentage threshold
        time_range: Restrict which points count (None = all)
        granularity: Bucket width in minutes for the trailing point

    Returns:
        Minutes of anomalous loss, or None for an empty series
    """
    points = _sorted(series)
    if not points:
        return None

    default_step = _step_seconds(granularity)
    total_seconds = 0.0

    for i, point in enumerate(points):
        if not in_range(point.timestamp, time_range):
            continue
        if not is_anomalous(point, threshold):
            continue

        if i + 1 < len(points):
            delta = points[i + 1].timestamp - point.timestamp
        else:
            delta = default_step
        total_seconds += max(0, delta)

    return total_seconds / 60


def detect_anomalies(
    series: Sequence[LossPoint],
    threshold: float,
    time_range: Optional[TimeRange] = None,
    granularity: Optional[float] = None,
) -> AnomalyReport:
    """Run interval detection and duration estimation in one call."""
    intervals = detect_loss_intervals(series, threshold, time_range)
    minutes = compute_anomaly_minutes(series, threshold, time_range, granularity)

    if intervals:
        logger.debug(
            f"{len(intervals)} loss intervals >= {threshold}% "
            f"({minutes:.1f} min anomalous)"
        )

    return AnomalyReport(intervals=tuple(intervals), minutes=minutes)
