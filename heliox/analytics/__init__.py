"""
Latency Analytics Module for Heliox
===================================

Computes the latency/loss panel of the telemetry dashboard from per-target
probe samples: merged loss series, anomaly intervals, and RTT/loss
statistics restricted to the user's zoom window.

Architecture Overview
---------------------
The engine is a pure, synchronous computation over an in-memory snapshot.
Nothing is cached and no input is mutated, so it is safe to call on every
filter toggle or zoom frame. Active tags and zoom are host-owned state
passed in explicitly (see ViewState).

Components
----------
    models:
        Sample, Target, TimeRange, ZoomSelection and ViewState.

    loss_series:
        Merges probe counters of the active targets into one loss
        percentage per timestamp.

    anomaly:
        Loss intervals at or above a threshold and anomalous minutes
        inside a time range.

    window_stats:
        Per-target RTT/loss statistics in a window, merged with a
        count-weighted average.

    zoom:
        Maps a percent zoom selection onto the plotted time span.

    facade:
        analyze_latency() - one immutable snapshot per view state.

    payload:
        Lenient parsing of the collector's latency JSON.

    bucketing:
        Granularity choice and raw probe-record aggregation.

Usage Example
-------------
    from heliox.analytics import analyze_latency, parse_latency_payload, ViewState

    payload = parse_latency_payload(collector_json)
    state = ViewState.for_targets(payload.targets)
    snapshot = analyze_latency(
        payload.targets, state.active_tags, state.zoom,
        granularity=payload.granularity,
    )

See Also
--------
    - heliox/web/latency_api.py: REST endpoint implementation
"""

from .models import (
    Sample,
    Target,
    TargetSummary,
    TimeRange,
    ZoomSelection,
    ViewState,
    FULL_ZOOM,
)
from .loss_series import (
    LossPoint,
    build_loss_series,
)
from .anomaly import (
    AnomalyReport,
    is_anomalous,
    detect_loss_intervals,
    compute_anomaly_minutes,
    detect_anomalies,
)
from .window_stats import (
    WindowStats,
    empty_stats,
    compute_target_stats,
    merge_stats,
    compute_window_stats,
)
from .zoom import (
    compute_full_range,
    map_zoom_to_range,
)
from .facade import (
    LatencySnapshot,
    analyze_latency,
    filter_active,
)
from .payload import (
    LatencyPayload,
    parse_sample,
    parse_target,
    parse_latency_payload,
)
from .bucketing import (
    GRANULARITY_STEPS,
    ProbeRecord,
    choose_granularity,
    compute_time_bucket,
    bucket_samples,
    summarize_samples,
    build_target,
)
from .errors import (
    ErrorCode,
    AnalyticsError,
    api_success,
    api_error,
    api_error_from_exception,
    invalid_param,
)
from .config import Config, reload_config, load_config_file
from .validation import (
    ValidationError,
    validate_positive_int,
    validate_positive_float,
    validate_percent,
    validate_threshold,
    validate_granularity,
    validate_zoom,
    validate_tags,
)

__all__ = [
    # Models
    "Sample",
    "Target",
    "TargetSummary",
    "TimeRange",
    "ZoomSelection",
    "ViewState",
    "FULL_ZOOM",
    # Loss series
    "LossPoint",
    "build_loss_series",
    # Anomaly
    "AnomalyReport",
    "is_anomalous",
    "detect_loss_intervals",
    "compute_anomaly_minutes",
    "detect_anomalies",
    # Window stats
    "WindowStats",
    "empty_stats",
    "compute_target_stats",
    "merge_stats",
    "compute_window_stats",
    # Zoom
    "compute_full_range",
    "map_zoom_to_range",
    # Facade
    "LatencySnapshot",
    "analyze_latency",
    "filter_active",
    # Payload
    "LatencyPayload",
    "parse_sample",
    "parse_target",
    "parse_latency_payload",
    # Bucketing
    "GRANULARITY_STEPS",
    "ProbeRecord",
    "choose_granularity",
    "compute_time_bucket",
    "bucket_samples",
    "summarize_samples",
    "build_target",
    # Errors
    "ErrorCode",
    "AnalyticsError",
    "api_success",
    "api_error",
    "api_error_from_exception",
    "invalid_param",
    # Config
    "Config",
    "reload_config",
    "load_config_file",
    # Validation
    "ValidationError",
    "validate_positive_int",
    "validate_positive_float",
    "validate_percent",
    "validate_threshold",
    "validate_granularity",
    "validate_zoom",
    "validate_tags",
]
