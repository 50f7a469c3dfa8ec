"""
Bucketing - Granularity choice and probe-record aggregation
===========================================================

Raw probe records are aggregated into fixed-width buckets before they
reach the analytics engine. The bucket width (granularity, in minutes)
is chosen from the queried span so a chart holds roughly
Config.LATENCY.TARGET_POINTS points.

Granularity Steps
-----------------
    raw = ceil(span_minutes / target_points), at least 1
    granularity = smallest step >= raw, from

        1, 2, 3, 5, 10, 15, 30, 60, 120, 180, 240, 360, 720, 1440

    Spans beyond the last step use ``raw`` directly.

    Examples (target_points = 1440):
        24 hours  ->  1 min   (1440 points)
        3 days    ->  3 min   (1440 points)
        7 days    -> 10 min   (1008 points)
        30 days   -> 30 min   (1440 points)

Bucket Aggregation
------------------
    bucket_ts = (ts // bucket_seconds) * bucket_seconds
    rtt_ms    = mean of non-null RTTs in the bucket, None if none
    sent/lost = sums, null counters count as 0

The full-series summary that travels with each target as ``stats`` is
built the same way the collector reports it: zeros rather than nulls
when there is no RTT data.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .config import Config
from .models import Sample, Target, TargetSummary, coerce_count, coerce_rtt

logger = logging.getLogger("Analytics.Bucketing")

# Time constants
MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR

GRANULARITY_STEPS = (1, 2, 3, 5, 10, 15, 30, 60, 120, 180, 240, 360, 720, 1440)


@dataclass(frozen=True)
class ProbeRecord:
    """One raw probe result as stored by the collector."""
    timestamp: int
    rtt_ms: Optional[float] = None
    sent: Optional[int] = None
    lost: Optional[int] = None


@dataclass
class _BucketAccumulator:
    rtt_sum: float = 0.0
    rtt_count: int = 0
    sent: int = 0
    lost: int = 0

    def add(self, record: ProbeRecord):
        rtt = coerce_rtt(record.rtt_ms)
        if rtt is not None:
            self.rtt_sum += rtt
            self.rtt_count += 1
        self.sent += coerce_count(record.sent)
        self.lost += coerce_count(record.lost)

    def to_sample(self, bucket_ts: int) -> Sample:
        rtt = self.rtt_sum / self.rtt_count if self.rtt_count else None
        return Sample(timestamp=bucket_ts, rtt_ms=rtt, sent=self.sent, lost=self.lost)


def choose_granularity(
    duration_seconds: float,
    target_points: Optional[int] = None,
) -> int:
    """
    Pick a bucket width in minutes for a queried span.

    Args:
        duration_seconds: Length of the queried span
        target_points: Desired points per chart
            (default Config.LATENCY.TARGET_POINTS)

    Returns:
        Granularity in minutes (>= 1)
    """
    if target_points is None or target_points <= 0:
        target_points = Config.LATENCY.TARGET_POINTS

    minutes = math.ceil(duration_seconds / MINUTE)
    if minutes <= 0:
        return 1

    raw = max(1, math.ceil(minutes / target_points))

    for step in GRANULARITY_STEPS:
        if raw <= step:
            return step

    return raw


def compute_time_bucket(timestamp: float, bucket_seconds: int) -> int:
    """
    Compute bucket start timestamp for a given time.

    Args:
        timestamp: Unix timestamp (seconds, may be float)
        bucket_seconds: Bucket width in seconds

    Returns:
        Bucket start timestamp (aligned to bucket boundary)
    """
    ts = int(timestamp)
    return (ts // bucket_seconds) * bucket_seconds


def bucket_samples(
    records: Iterable[ProbeRecord],
    granularity_minutes: int,
) -> Tuple[Sample, ...]:
    """
    Aggregate raw probe records into granularity-wide samples.

    Args:
        records: Raw records for one target (any order)
        granularity_minutes: Bucket width in minutes

    Returns:
        Samples ascending by bucket timestamp
    """
    if granularity_minutes <= 0:
        logger.warning(f"Invalid granularity {granularity_minutes}, using 1 minute")
        granularity_minutes = 1
    bucket_seconds = granularity_minutes * MINUTE

    buckets: Dict[int, _BucketAccumulator] = {}
    for record in records:
        bucket_ts = compute_time_bucket(record.timestamp, bucket_seconds)
        if bucket_ts not in buckets:
            buckets[bucket_ts] = _BucketAccumulator()
        buckets[bucket_ts].add(record)

    return tuple(buckets[ts].to_sample(ts) for ts in sorted(buckets))


def summarize_samples(samples: Iterable[Sample]) -> TargetSummary:
    """
    Full-series summary in the collector's reporting convention.

    avg/min/max/loss are 0 when there is nothing to summarize.
    """
    rtts: List[float] = []
    sent = 0
    lost = 0
    for s in samples:
        if s.rtt_ms is not None:
            rtts.append(s.rtt_ms)
        sent += s.sent
        lost += s.lost

    return TargetSummary(
        avg=sum(rtts) / len(rtts) if rtts else 0.0,
        min=min(rtts) if rtts else 0.0,
        max=max(rtts) if rtts else 0.0,
        count=len(rtts),
        loss=(lost / sent) * 100 if sent > 0 else 0.0,
    )


def build_target(
    tag: str,
    records: Iterable[ProbeRecord],
    granularity_minutes: int,
) -> Target:
    """Bucket one target's raw records and attach its summary."""
    points = bucket_samples(records, granularity_minutes)
    return Target(tag=tag, points=points, precomputed_stats=summarize_samples(points))
