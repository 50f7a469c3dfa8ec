from __future__ import annotations

import pytest

from heliox.analytics.anomaly import (
    compute_anomaly_minutes,
    detect_anomalies,
    detect_loss_intervals,
    is_anomalous,
)
from heliox.analytics.config import reload_config
from heliox.analytics.loss_series import LossPoint
from heliox.analytics.models import TimeRange


def series(*rows):
    return [LossPoint(ts, loss) for ts, loss in rows]


def test_is_anomalous_includes_threshold() -> None:
    assert is_anomalous(LossPoint(0, 1.0), 1.0)
    assert not is_anomalous(LossPoint(0, 0.99), 1.0)
    assert not is_anomalous(LossPoint(0, None), 0.0)


def test_interval_closes_at_previous_point() -> None:
    s = series((0, 0.0), (60, 5.0), (120, 5.0), (180, 0.0))
    assert detect_loss_intervals(s, 1.0) == [(60, 120)]
    assert compute_anomaly_minutes(s, 1.0, granularity=1) == pytest.approx(2.0)


def test_open_interval_closes_at_last_sample() -> None:
    s = series((0, 0.0), (60, 5.0), (120, 5.0))
    assert detect_loss_intervals(s, 1.0) == [(60, 120)]
    # 60s to the next bucket, plus one 5-minute bucket for the trailing sample
    assert compute_anomaly_minutes(s, 1.0, granularity=5) == pytest.approx(6.0)


def test_single_anomalous_bucket_has_no_drawable_interval() -> None:
    s = series((0, 0.0), (60, 100.0), (120, 0.0))
    assert detect_loss_intervals(s, 1.0) == []
    assert compute_anomaly_minutes(s, 1.0, granularity=1) == pytest.approx(1.0)


def test_null_points_break_intervals() -> None:
    s = series((0, 5.0), (60, None), (120, 5.0), (180, 5.0))
    assert detect_loss_intervals(s, 1.0) == [(120, 180)]
    assert compute_anomaly_minutes(s, 1.0, granularity=1) == pytest.approx(3.0)


def test_multiple_intervals_are_ordered() -> None:
    s = series((0, 9.0), (60, 9.0), (120, 0.0), (180, 2.0), (240, 3.0), (300, 0.0))
    assert detect_loss_intervals(s, 1.0) == [(0, 60), (180, 240)]


def test_unsorted_input_is_sorted_internally() -> None:
    s = series((180, 0.0), (60, 5.0), (0, 0.0), (120, 5.0))
    assert detect_loss_intervals(s, 1.0) == [(60, 120)]
    assert compute_anomaly_minutes(s, 1.0, granularity=1) == pytest.approx(2.0)


def test_range_restricts_walked_points() -> None:
    s = series((0, 5.0), (60, 5.0), (120, 0.0), (180, 5.0), (240, 5.0))
    window = TimeRange(100, 300)
    assert detect_loss_intervals(s, 1.0, window) == [(180, 240)]
    assert compute_anomaly_minutes(s, 1.0, window, granularity=1) == pytest.approx(2.0)
    assert compute_anomaly_minutes(s, 1.0, granularity=1) == pytest.approx(4.0)


def test_step_uses_successor_outside_range() -> None:
    s = series((0, 5.0), (60, 5.0), (180, 0.0))
    window = TimeRange(0, 60)
    assert compute_anomaly_minutes(s, 1.0, window, granularity=1) == pytest.approx(3.0)


def test_full_range_matches_unrestricted() -> None:
    s = series((0, 5.0), (60, 0.0), (90, 7.5), (150, None), (200, 4.0), (260, 4.0))
    unrestricted = compute_anomaly_minutes(s, 1.0, granularity=2)
    full = compute_anomaly_minutes(s, 1.0, TimeRange(0, 260), granularity=2)
    assert unrestricted == full


def test_empty_series() -> None:
    assert compute_anomaly_minutes([], 1.0) is None
    assert detect_loss_intervals([], 1.0) == []
    report = detect_anomalies([], 1.0)
    assert report.minutes is None
    assert report.intervals == ()


def test_missing_granularity_falls_back_to_config(monkeypatch) -> None:
    s = series((0, 0.0), (60, 5.0))
    assert compute_anomaly_minutes(s, 1.0) == pytest.approx(1.0)
    assert compute_anomaly_minutes(s, 1.0, granularity=0) == pytest.approx(1.0)

    monkeypatch.setenv("ANALYTICS_LATENCY_DEFAULT_GRANULARITY_MINUTES", "5")
    reload_config()
    assert compute_anomaly_minutes(s, 1.0) == pytest.approx(5.0)


def test_report_to_dict() -> None:
    s = series((0, 5.0), (60, 5.0), (120, 0.0))
    report = detect_anomalies(s, 1.0, granularity=1)
    assert report.to_dict() == {"intervals": [[0, 60]], "minutes": 2.0}
