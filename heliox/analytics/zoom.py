"""
Zoom Mapping - Percent selection to absolute time range
=======================================================

The chart reports its zoom window as percentages of the plotted span.
Statistics need absolute bounds, so the selection is projected onto the
span of every timestamp of the currently plotted (active) targets:

    span  = max_ts - min_ts
    start = min_ts + span * start_pct / 100
    end   = min_ts + span * end_pct / 100

With fewer than two distinct timestamps the span is zero and mapping is
undefined; callers get None and compute over the whole series.

The full range depends on which targets are active, so it is derived on
every call rather than stored.
"""

import logging
from typing import Iterable, Optional, Tuple

from .config import Config
from .models import Target, TimeRange, ZoomSelection

logger = logging.getLogger("Analytics.Zoom")

FullRange = Tuple[int, int]


def compute_full_range(targets: Iterable[Target]) -> Optional[FullRange]:
    """
    Min/max timestamp over all samples of the given targets.

    Returns:
        (min_ts, max_ts), or None when there are no samples
    """
    min_ts: Optional[int] = None
    max_ts: Optional[int] = None

    for target in targets:
        for p in target.points:
            if min_ts is None or p.timestamp < min_ts:
                min_ts = p.timestamp
            if max_ts is None or p.timestamp > max_ts:
                max_ts = p.timestamp

    if min_ts is None or max_ts is None:
        return None
    return (min_ts, max_ts)


def _clamp_percent(value: float) -> float:
    low = Config.ZOOM.MIN_PERCENT
    high = Config.ZOOM.MAX_PERCENT
    return max(low, min(high, value))


def map_zoom_to_range(
    full_range: Optional[FullRange],
    zoom: ZoomSelection,
) -> Optional[TimeRange]:
    """
    Convert a percent zoom selection into absolute bounds.

    Args:
        full_range: (min_ts, max_ts) of the plotted data, or None
        zoom: Percent selection

    Returns:
        TimeRange, or None for "no restriction" when the span is empty
    """
    if full_range is None:
        return None

    min_ts, max_ts = full_range
    span = max_ts - min_ts
    if span <= 0:
        return None

    start_pct = _clamp_percent(zoom.start_pct)
    end_pct = _clamp_percent(zoom.end_pct)
    if start_pct > end_pct:
        logger.debug(f"Reversed zoom selection {start_pct}..{end_pct}, swapping")
        start_pct, end_pct = end_pct, start_pct

    start = min_ts + (span * start_pct) / 100
    end = min_ts + (span * end_pct) / 100
    return TimeRange(start=start, end=end)
