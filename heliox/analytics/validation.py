"""
Request Validation for the Latency API
======================================

Checks the parameters that travel next to the collector payload in an
analyze request (active tags, zoom, threshold) and the query params of
the granularity endpoint. Each helper returns a clean value or raises
ValidationError, which the endpoint turns into an error envelope:

    try:
        zoom = validate_zoom(body.get("zoom"))
    except ValidationError as e:
        return e.to_response()

Helpers
-------
    validate_positive_int     integer with bounds (query strings accepted)
    validate_positive_float   finite float with bounds
    validate_percent          zoom percentage within Config.ZOOM
    validate_threshold        loss threshold, 0..100
    validate_granularity      bucket width in minutes, optional
    validate_zoom             {"start": pct, "end": pct}
    validate_tags             list of target tags
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Union

from .config import Config
from .errors import ErrorCode, api_error
from .models import FULL_ZOOM, ZoomSelection

Number = Union[int, float]


@dataclass
class ValidationError(Exception):
    """A request parameter that could not be accepted."""

    parameter: str
    message: str
    value: Any = None

    def to_response(self) -> Dict[str, Any]:
        return api_error(
            ErrorCode.INVALID_PARAMETER,
            self.message,
            details={
                "parameter": self.parameter,
                "value": None if self.value is None else str(self.value),
            },
        )

    def __str__(self) -> str:
        return f"{self.parameter}: {self.message}"


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _coerce_number(
    value: Any,
    name: str,
    cast: Callable[[Any], Number],
    kind: str,
    min_value: Optional[Number],
    max_value: Optional[Number],
) -> Number:
    # bool is an int subclass; reject it before casting
    if isinstance(value, bool):
        raise ValidationError(name, f"expected {kind}, got {value!r}", value)
    try:
        number = cast(value)
    except (TypeError, ValueError):
        raise ValidationError(name, f"expected {kind}, got {value!r}", value)

    if isinstance(number, float) and not math.isfinite(number):
        raise ValidationError(name, f"expected a finite {kind}, got {value!r}", value)
    if min_value is not None and number < min_value:
        raise ValidationError(name, f"{number} is below the minimum of {min_value}", value)
    if max_value is not None and number > max_value:
        raise ValidationError(name, f"{number} is above the maximum of {max_value}", value)
    return number


def validate_positive_int(
    value: Any,
    name: str,
    default: Optional[int] = None,
    min_value: int = 1,
    max_value: Optional[int] = None,
) -> int:
    """
    Integer parameter, e.g. ``?minutes=10080``.

    Args:
        value: Raw value (query strings are accepted)
        name: Parameter name reported in errors
        default: Returned when the value is absent; absent without a
            default is an error
        min_value: Inclusive lower bound
        max_value: Inclusive upper bound, if any

    Raises:
        ValidationError: Absent without default, not an integer, or out of bounds
    """
    if _is_blank(value):
        if default is None:
            raise ValidationError(name, "is required", value)
        return default
    return _coerce_number(value, name, int, "an integer", min_value, max_value)


def validate_positive_float(
    value: Any,
    name: str,
    default: Optional[float] = None,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
) -> float:
    """Float counterpart of validate_positive_int; NaN and inf are rejected."""
    if _is_blank(value):
        if default is None:
            raise ValidationError(name, "is required", value)
        return default
    return _coerce_number(value, name, float, "a number", min_value, max_value)


def validate_percent(value: Any, name: str, default: float) -> float:
    return validate_positive_float(
        value,
        name,
        default=default,
        min_value=Config.ZOOM.MIN_PERCENT,
        max_value=Config.ZOOM.MAX_PERCENT,
    )


def validate_threshold(value: Any, default: Optional[float] = None) -> float:
    """
    Loss percentage at or above which a bucket counts as anomalous.

    Falls back to ``default``, then to Config.LATENCY.LOSS_THRESHOLD_PERCENT.
    """
    if default is None:
        default = Config.LATENCY.LOSS_THRESHOLD_PERCENT
    return validate_positive_float(value, "threshold", default=default, max_value=100.0)


def validate_granularity(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Bucket width in minutes (at most one year); None when absent and no default."""
    if _is_blank(value) and default is None:
        return None
    return validate_positive_int(
        value,
        "granularity",
        default=default,
        max_value=365 * 1440,
    )


def validate_zoom(value: Any) -> ZoomSelection:
    """
    Zoom selection posted by the dashboard.

    A missing zoom, or a missing start/end, means that edge of the full
    range. Unlike the engine, which clamps and swaps, the API rejects a
    selection whose start lies after its end.
    """
    if _is_blank(value):
        return FULL_ZOOM
    if not isinstance(value, dict):
        raise ValidationError("zoom", "expected an object with 'start' and 'end'", value)

    start = validate_percent(value.get("start"), "zoom.start", default=0.0)
    end = validate_percent(value.get("end"), "zoom.end", default=100.0)
    if start > end:
        raise ValidationError("zoom", f"start {start} is after end {end}", value)

    return ZoomSelection(start_pct=start, end_pct=end)


def validate_tags(value: Any, known_tags: Iterable[str]) -> FrozenSet[str]:
    """
    Active tag list.

    None activates every known tag; an empty list activates none. Tags
    that match no loaded target are kept and simply select nothing.
    """
    if value is None:
        return frozenset(known_tags)

    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        raise ValidationError("active_tags", "expected a list of target tags", value)

    bad = [tag for tag in value if not isinstance(tag, str)]
    if bad:
        raise ValidationError(
            "active_tags",
            f"tags must be strings, got {type(bad[0]).__name__}",
            value,
        )

    return frozenset(value)
