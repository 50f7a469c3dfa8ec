from __future__ import annotations

import pytest

from heliox.analytics.loss_series import LossPoint, build_loss_series


def test_single_target_loss_percentages(make_target) -> None:
    target = make_target("a", [(0, 10.0, 10, 0), (60, None, 10, 10), (120, 12.0, 10, 0)])
    series = build_loss_series([target])
    assert series == [
        LossPoint(0, 0.0),
        LossPoint(60, 100.0),
        LossPoint(120, 0.0),
    ]


def test_counters_are_summed_before_dividing(make_target) -> None:
    a = make_target("a", [(0, 5.0, 10, 1)])
    b = make_target("b", [(0, 7.0, 30, 0)])
    series = build_loss_series([a, b])
    assert len(series) == 1
    assert series[0].loss_pct == pytest.approx(2.5)


def test_zero_sent_is_none_not_zero(make_target) -> None:
    target = make_target("a", [(0, 10.0, 0, 0), (60, 11.0, 5, 0)])
    series = build_loss_series([target])
    assert series[0].loss_pct is None
    assert series[1].loss_pct == 0.0


def test_timestamp_reported_by_one_target_only(make_target) -> None:
    a = make_target("a", [(0, 1.0, 10, 0), (60, 1.0, 10, 5)])
    b = make_target("b", [(0, 1.0, 10, 0)])
    series = build_loss_series([a, b])
    assert [p.timestamp for p in series] == [0, 60]
    assert series[1].loss_pct == pytest.approx(50.0)


def test_unsorted_and_duplicate_timestamps(make_target) -> None:
    target = make_target("a", [(120, 1.0, 10, 0), (0, 1.0, 4, 1), (0, 1.0, 6, 1), (60, 1.0, 10, 0)])
    series = build_loss_series([target])
    assert [p.timestamp for p in series] == [0, 60, 120]
    assert series[0].loss_pct == pytest.approx(20.0)


def test_no_targets() -> None:
    assert build_loss_series([]) == []


def test_inputs_are_not_mutated(make_target) -> None:
    target = make_target("a", [(60, 1.0, 10, 1), (0, 1.0, 10, 0)])
    before = target.points
    build_loss_series([target])
    assert target.points is before
    assert [p.timestamp for p in target.points] == [60, 0]
