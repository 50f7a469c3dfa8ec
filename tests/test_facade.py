from __future__ import annotations

import json

import pytest

from heliox.analytics.facade import analyze_latency, filter_active
from heliox.analytics.loss_series import LossPoint
from heliox.analytics.models import FULL_ZOOM, Sample, Target, TimeRange, ViewState, ZoomSelection


@pytest.fixture
def targets(make_target):
    a = make_target("a", [
        (0, 10.0, 10, 0),
        (60, None, 10, 10),
        (120, 12.0, 10, 0),
        (180, 14.0, 10, 5),
    ])
    b = make_target("b", [
        (0, 30.0, 20, 0),
        (60, 32.0, 20, 0),
        (120, 34.0, 20, 2),
        (240, 36.0, 20, 0),
    ])
    return [a, b]


def test_spec_example_single_target(make_target) -> None:
    t = make_target("a", [(0, 10.0, 10, 0), (60, None, 10, 10), (120, 12.0, 10, 0)])
    snapshot = analyze_latency([t], {"a"}, threshold=1.0, granularity=1)
    assert list(snapshot.loss_series) == [LossPoint(0, 0.0), LossPoint(60, 100.0), LossPoint(120, 0.0)]
    assert snapshot.anomaly_minutes == pytest.approx(1.0)
    assert snapshot.merged.avg == pytest.approx(11.0)


def test_full_view(targets) -> None:
    snapshot = analyze_latency(targets, {"a", "b"}, threshold=1.0, granularity=1)
    assert [s.tag for s in snapshot.per_target] == ["a", "b"]
    assert snapshot.full_range == (0, 240)
    assert snapshot.time_range == TimeRange(0, 240)
    # merged loss: 0 -> 0%, 60 -> 10/30, 120 -> 2/30, 180 -> 5/10, 240 -> 0%
    assert snapshot.loss_intervals == ((60, 180),)
    assert snapshot.anomaly_minutes == pytest.approx(3.0)
    assert snapshot.merged.count == 7
    assert snapshot.merged.min == 10.0
    assert snapshot.merged.max == 36.0
    assert snapshot.merged.loss_rate == pytest.approx(100 * 17 / 120)


def test_inactive_targets_are_excluded(targets) -> None:
    snapshot = analyze_latency(targets, {"b"}, threshold=1.0, granularity=1)
    assert [s.tag for s in snapshot.per_target] == ["b"]
    assert snapshot.merged.avg == pytest.approx(33.0)
    assert snapshot.loss_intervals == ()
    assert snapshot.anomaly_minutes == pytest.approx(2.0)


def test_zoom_window_restricts_stats(targets) -> None:
    snapshot = analyze_latency(targets, {"a", "b"}, ZoomSelection(50, 100), threshold=1.0, granularity=1)
    assert snapshot.time_range == TimeRange(120, 240)
    a_stats, b_stats = snapshot.per_target
    assert a_stats.count == 2
    assert a_stats.avg == pytest.approx(13.0)
    assert b_stats.count == 2
    assert snapshot.loss_intervals == ((120, 180),)


def test_full_range_follows_active_targets(targets) -> None:
    snapshot = analyze_latency(targets, {"a"}, ZoomSelection(50, 100))
    assert snapshot.full_range == (0, 180)
    assert snapshot.time_range == TimeRange(90, 180)


def test_zero_zoom_is_single_point_window(targets) -> None:
    snapshot = analyze_latency(targets, {"a", "b"}, ZoomSelection(0, 0))
    assert snapshot.time_range.start == snapshot.time_range.end == 0
    assert snapshot.merged.count == 2
    assert snapshot.merged.avg == pytest.approx(20.0)


def test_loss_rate_is_additive_over_disjoint_subsets(targets) -> None:
    both = analyze_latency(targets, {"a", "b"})
    only_a = analyze_latency(targets, {"a"})
    only_b = analyze_latency(targets, {"b"})
    sent = only_a.merged.sent_total + only_b.merged.sent_total
    lost = only_a.merged.lost_total + only_b.merged.lost_total
    assert both.merged.loss_rate == pytest.approx(100 * lost / sent)
    assert both.merged.loss_rate != pytest.approx(
        (only_a.merged.loss_rate + only_b.merged.loss_rate) / 2
    )


def test_idempotent(targets) -> None:
    first = analyze_latency(targets, {"a", "b"}, ZoomSelection(10, 90), threshold=2.0, granularity=5)
    second = analyze_latency(targets, {"a", "b"}, ZoomSelection(10, 90), threshold=2.0, granularity=5)
    assert first == second
    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)


def test_empty_inputs() -> None:
    snapshot = analyze_latency([], set())
    assert snapshot.per_target == ()
    assert snapshot.merged.avg is None
    assert snapshot.merged.loss_rate is None
    assert snapshot.anomaly_minutes is None
    assert snapshot.loss_intervals == ()
    assert snapshot.time_range is None


def test_no_active_tags(targets) -> None:
    snapshot = analyze_latency(targets, frozenset())
    assert snapshot.per_target == ()
    assert snapshot.merged.count == 0
    assert snapshot.anomaly_minutes is None


def test_default_threshold_from_config(targets) -> None:
    snapshot = analyze_latency(targets, {"a", "b"})
    assert snapshot.threshold == 1.0


def test_filter_active_keeps_order(targets) -> None:
    assert [t.tag for t in filter_active(targets, {"b", "a"})] == ["a", "b"]


def test_view_state_drives_facade(targets) -> None:
    state = ViewState.for_targets(targets).with_tag("a", False).with_zoom(0, 50)
    snapshot = analyze_latency(targets, state.active_tags, state.zoom)
    assert snapshot.full_range == (0, 240)
    assert snapshot.time_range == TimeRange(0, 120)
    assert snapshot.merged.count == 3
    assert state.on_data_loaded(targets).zoom == FULL_ZOOM


def test_to_dict_shape(targets) -> None:
    data = analyze_latency(targets, {"a"}, granularity=1).to_dict()
    assert set(data) == {
        "per_target", "merged", "anomaly_minutes", "loss_intervals",
        "loss_series", "time_range", "full_range", "threshold", "granularity",
    }
    assert data["per_target"][0]["tag"] == "a"
    assert data["loss_series"][1] == {"ts": 60, "loss": 100.0}
    assert data["full_range"] == [0, 180]


def test_missing_counters_count_as_zero() -> None:
    target = Target("a", (Sample(0, 10.0, None, None), Sample(60, 12.0, 10, 1)))
    snapshot = analyze_latency([target], {"a"})

    assert list(snapshot.loss_series) == [LossPoint(0, None), LossPoint(60, 10.0)]
    assert snapshot.merged.count == 2
    assert snapshot.merged.avg == pytest.approx(11.0)
    assert snapshot.merged.sent_total == 10
    assert snapshot.merged.loss_rate == pytest.approx(10.0)
    assert snapshot.anomaly_minutes == pytest.approx(1.0)


def test_non_finite_rtt_is_ignored() -> None:
    target = Target("a", (
        Sample(0, float("nan"), 1, 0),
        Sample(60, 12.0, 1, 0),
        Sample(120, float("inf"), 1, 0),
    ))
    stats = analyze_latency([target], {"a"}).merged

    assert stats.count == 1
    assert stats.avg == 12.0
    assert stats.min == 12.0
    assert stats.max == 12.0
    assert stats.sent_total == 3
