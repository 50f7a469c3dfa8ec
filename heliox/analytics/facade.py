"""
Latency Analytics Facade - One snapshot per filter/zoom change
==============================================================

Single entry point for the dashboard's latency panel. Given the loaded
targets, the active tag set, a zoom selection and a loss threshold it
produces one immutable LatencySnapshot:

    1. filter targets to the active tags
    2. full range of the filtered samples  -> zoom.compute_full_range
    3. absolute window for the zoom        -> zoom.map_zoom_to_range
    4. merged loss series                  -> loss_series.build_loss_series
    5. loss intervals + anomalous minutes  -> anomaly.detect_anomalies
    6. per-target and merged statistics    -> window_stats.compute_window_stats

The call is a pure function of its arguments. Active tags and zoom are
owned by the host (see models.ViewState) and passed in on every call.

Usage
-----
    from heliox.analytics import analyze_latency, parse_latency_payload, ViewState

    payload = parse_latency_payload(response_json)
    state = ViewState.for_targets(payload.targets).with_zoom(40, 60)
    snapshot = analyze_latency(
        payload.targets,
        state.active_tags,
        state.zoom,
        granularity=payload.granularity,
    )
    snapshot.merged.avg, snapshot.anomaly_minutes, snapshot.loss_intervals
"""

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Optional, Sequence, Tuple

from .anomaly import LossInterval, detect_anomalies
from .config import Config
from .loss_series import LossPoint, build_loss_series
from .models import FULL_ZOOM, Target, TimeRange, ZoomSelection
from .window_stats import WindowStats, compute_window_stats, empty_stats
from .zoom import FullRange, compute_full_range, map_zoom_to_range

logger = logging.getLogger("Analytics.Facade")


@dataclass(frozen=True)
class LatencySnapshot:
    """Everything the latency panel renders for one state."""
    per_target: Tuple[WindowStats, ...] = field(default_factory=tuple)
    merged: WindowStats = field(default_factory=empty_stats)
    anomaly_minutes: Optional[float] = None
    loss_intervals: Tuple[LossInterval, ...] = field(default_factory=tuple)

    # Context for the rendering layer
    loss_series: Tuple[LossPoint, ...] = field(default_factory=tuple)
    time_range: Optional[TimeRange] = None
    full_range: Optional[FullRange] = None
    threshold: float = 0.0
    granularity: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "per_target": [s.to_dict() for s in self.per_target],
            "merged": self.merged.to_dict(),
            "anomaly_minutes": self.anomaly_minutes,
            "loss_intervals": [list(i) for i in self.loss_intervals],
            "loss_series": [p.to_dict() for p in self.loss_series],
            "time_range": self.time_range.to_dict() if self.time_range else None,
            "full_range": list(self.full_range) if self.full_range else None,
            "threshold": self.threshold,
            "granularity": self.granularity,
        }


def filter_active(
    targets: Sequence[Target],
    active_tags: AbstractSet[str],
) -> Tuple[Target, ...]:
    """Targets whose tag is active, in their original order."""
    return tuple(t for t in targets if t.tag in active_tags)


def analyze_latency(
    targets: Sequence[Target],
    active_tags: AbstractSet[str],
    zoom: ZoomSelection = FULL_ZOOM,
    threshold: Optional[float] = None,
    granularity: Optional[int] = None,
) -> LatencySnapshot:
    """
    Compute the latency/loss snapshot for the current view.

    Args:
        targets: All loaded targets (never mutated)
        active_tags: Tags currently included
        zoom: Percent zoom selection over the active targets' span
        threshold: Loss percentage for anomalies
            (default Config.LATENCY.LOSS_THRESHOLD_PERCENT)
        granularity: Bucket width in minutes of the loaded data

    Returns:
        LatencySnapshot; empty inputs yield null stats and no intervals
    """
    if threshold is None:
        threshold = Config.LATENCY.LOSS_THRESHOLD_PERCENT

    active = filter_active(targets, active_tags)

    full_range = compute_full_range(active)
    time_range = map_zoom_to_range(full_range, zoom)

    loss_series = build_loss_series(active)
    anomalies = detect_anomalies(loss_series, threshold, time_range, granularity)

    per_target, merged = compute_window_stats(active, time_range)

    logger.debug(
        f"Analyzed {len(active)}/{len(targets)} targets, "
        f"window={time_range}, anomaly_minutes={anomalies.minutes}"
    )

    return LatencySnapshot(
        per_target=tuple(per_target),
        merged=merged,
        anomaly_minutes=anomalies.minutes,
        loss_intervals=anomalies.intervals,
        loss_series=tuple(loss_series),
        time_range=time_range,
        full_range=full_range,
        threshold=threshold,
        granularity=granularity,
    )
