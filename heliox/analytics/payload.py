"""
Latency Payload - Collector JSON to analytics models
====================================================

Parses the collector's /api/latency response into frozen models.

Expected Shape
--------------
    {
        "granularity": 5,
        "start": "2024-01-01 00:00:00",
        "end": "2024-01-02 00:00:00",
        "targets": [
            {
                "tag": "cn-telecom",
                "points": [
                    {"ts": 1704067200, "rtt_ms": 32.5, "sent": 20, "lost": 0},
                    {"ts": 1704067500, "rtt_ms": null, "sent": 20, "lost": 20}
                ],
                "stats": {"avg": 32.5, "min": 30.1, "max": 41.0}
            }
        ]
    }

Leniency
--------
Sample values come from an upstream process and are parsed leniently:

    - missing/malformed sent or lost     -> 0
    - rtt_ms not a finite number >= 0     -> None
    - sample without a usable timestamp  -> dropped
    - target without a tag               -> dropped
    - duplicate tag                      -> first occurrence wins

Only a structurally wrong document (not an object, ``targets`` not a
list) raises AnalyticsError.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import AnalyticsError, ErrorCode
from .models import Sample, Target, TargetSummary, coerce_count

logger = logging.getLogger("Analytics.Payload")


@dataclass(frozen=True)
class LatencyPayload:
    """Parsed collector response."""
    granularity: Optional[int] = None
    targets: Tuple[Target, ...] = field(default_factory=tuple)
    start: Optional[str] = None
    end: Optional[str] = None

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(t.tag for t in self.targets)


def _as_optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(result) or math.isinf(result) else result


def _as_timestamp(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        ts = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(ts) or math.isinf(ts):
        return None
    return int(ts)


def parse_sample(raw: Any) -> Optional[Sample]:
    """
    Parse one point dict.

    Returns:
        Sample, or None when the point has no usable timestamp
    """
    if not isinstance(raw, dict):
        return None

    ts = _as_timestamp(raw.get("ts", raw.get("timestamp")))
    if ts is None:
        return None

    return Sample(
        timestamp=ts,
        rtt_ms=raw.get("rtt_ms"),
        sent=raw.get("sent"),
        lost=raw.get("lost"),
    )


def parse_summary(raw: Any) -> Optional[TargetSummary]:
    if not isinstance(raw, dict):
        return None
    return TargetSummary(
        avg=_as_optional_float(raw.get("avg")),
        min=_as_optional_float(raw.get("min")),
        max=_as_optional_float(raw.get("max")),
        count=coerce_count(raw.get("count")),
        loss=_as_optional_float(raw.get("loss")),
    )


def parse_target(raw: Any) -> Optional[Target]:
    """
    Parse one target dict.

    Returns:
        Target, or None when the entry has no tag
    """
    if not isinstance(raw, dict):
        logger.warning(f"Skipping target entry of type {type(raw).__name__}")
        return None

    tag = raw.get("tag")
    if tag is None or str(tag) == "":
        logger.warning("Skipping target without tag")
        return None

    raw_points = raw.get("points") or []
    if not isinstance(raw_points, list):
        logger.warning(f"Target {tag}: points is not a list, treating as empty")
        raw_points = []

    points = []
    dropped = 0
    for raw_point in raw_points:
        sample = parse_sample(raw_point)
        if sample is None:
            dropped += 1
            continue
        points.append(sample)

    if dropped:
        logger.debug(f"Target {tag}: dropped {dropped} points without timestamp")

    return Target(
        tag=str(tag),
        points=tuple(points),
        precomputed_stats=parse_summary(raw.get("stats")),
    )


def parse_latency_payload(payload: Union[Dict[str, Any], str, bytes]) -> LatencyPayload:
    """
    Parse a collector latency response.

    Args:
        payload: Decoded JSON object, or the raw JSON text

    Returns:
        LatencyPayload

    Raises:
        AnalyticsError: If the document is not an object or targets is not a list
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise AnalyticsError(
                ErrorCode.INVALID_PAYLOAD,
                f"Latency payload is not valid JSON: {e}",
            )

    if not isinstance(payload, dict):
        raise AnalyticsError(
            ErrorCode.INVALID_PAYLOAD,
            "Latency payload must be a JSON object",
        )

    raw_targets = payload.get("targets")
    if raw_targets is None:
        raw_targets = []
    if not isinstance(raw_targets, list):
        raise AnalyticsError(
            ErrorCode.INVALID_PAYLOAD,
            "'targets' must be a list",
            details={"parameter": "targets"},
        )

    granularity = coerce_count(payload.get("granularity")) or None

    targets: List[Target] = []
    seen = set()
    for raw_target in raw_targets:
        target = parse_target(raw_target)
        if target is None:
            continue
        if target.tag in seen:
            logger.warning(f"Duplicate target tag {target.tag}, keeping first")
            continue
        seen.add(target.tag)
        targets.append(target)

    start = payload.get("start")
    end = payload.get("end")

    return LatencyPayload(
        granularity=granularity,
        targets=tuple(targets),
        start=str(start) if start is not None else None,
        end=str(end) if end is not None else None,
    )
