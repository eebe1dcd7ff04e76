"""Tests for bucket metrics."""

import pytest

from conchshell.report.metrics import CountMetric, TallyMetric, TimingMetric


def test_count_metric():
    metric = CountMetric()
    metric.add()
    metric.add("ignored")
    metric.finalize()
    assert metric.count == 2
    assert metric.to_dict() == 2


def test_tally_metric():
    metric = TallyMetric()
    for health in ["PASS", "FAIL", "PASS", "UNKNOWN"]:
        metric.add(health)
    assert metric.count == 4
    assert metric.sorted_items() == [("FAIL", 1), ("PASS", 2), ("UNKNOWN", 1)]
    assert metric.to_dict() == {"PASS": 2, "FAIL": 1, "UNKNOWN": 1}


def test_timing_metric_statistics():
    metric = TimingMetric()
    for seconds in [100, 300, 200, 1000]:
        metric.add(seconds)
    metric.finalize()
    assert metric.finalized
    assert metric.count == 4
    assert metric.mean == pytest.approx(400.0)
    assert metric.median == pytest.approx(250.0)
    assert metric.to_dict() == {"count": 4, "mean": 400.0, "median": 250.0}


def test_timing_metric_zero_samples():
    metric = TimingMetric()
    metric.finalize()
    assert metric.count == 0
    assert metric.mean == 0.0
    assert metric.median == 0.0


def test_timing_metric_read_before_finalize():
    metric = TimingMetric()
    metric.add(5)
    with pytest.raises(RuntimeError, match="before finalize"):
        _ = metric.mean
    with pytest.raises(RuntimeError):
        _ = metric.median


def test_timing_metric_add_after_finalize():
    metric = TimingMetric()
    metric.finalize()
    with pytest.raises(RuntimeError, match="finalized"):
        metric.add(10)
