"""Tests for the hierarchical aggregator and report tree."""

import pytest

from conchshell.report.aggregate import (
    DEFAULTS,
    Aggregator,
    Classification,
    Defaults,
    aggregate,
)
from conchshell.report.metrics import TallyMetric, TimingMetric
from conchshell.report.tree import Report


def by_keys(record):
    return Classification(
        datacenter=record.get("dc", ""),
        datacenter_id=record.get("dc_id", ""),
        rack=record.get("rack", ""),
        category=record.get("cat", ""),
        value=record.get("value"),
    )


def test_basic_two_level_counts():
    records = [
        {"dc": "AZ1", "rack": "R1", "cat": "CPU"},
        {"dc": "AZ1", "rack": "R1", "cat": "CPU"},
        {"dc": "AZ1", "rack": "R2", "cat": "RAM"},
    ]
    report = aggregate(records, by_keys)

    assert report.to_dict() == {
        "AZ1": {
            "datacenter": "AZ1",
            "id": "",
            "summary": {"CPU": 2, "RAM": 1},
            "racks": {
                "R1": {"rack": {}, "summary": {"CPU": 2}},
                "R2": {"rack": {}, "summary": {"RAM": 1}},
            },
        }
    }


def test_empty_rack_lands_in_unknown_bucket():
    report = aggregate([{"dc": "AZ1", "rack": "", "cat": "CPU"}], by_keys)
    racks = report["AZ1"].racks
    assert list(racks) == ["UNKNOWN"]
    assert "" not in racks
    assert racks["UNKNOWN"].summary["CPU"].count == 1


def test_all_blank_keys_use_defaults():
    report = aggregate([{}], by_keys)
    dc = report["UNKNOWN"]
    assert list(dc.racks) == ["UNKNOWN"]
    assert dc.summary["UNKNOWN"].count == 1


def test_custom_defaults():
    defaults = Defaults(datacenter="nowhere", rack="floor", category="misc")
    report = aggregate([{}], by_keys, defaults)
    assert report["nowhere"].racks["floor"].summary["misc"].count == 1


def test_rack_none_skips_rack_tier():
    report = aggregate(
        [{"dc": "AZ1", "cat": "CPU"}],
        lambda r: Classification(datacenter=r["dc"], rack=None, category=r["cat"]),
    )
    assert report["AZ1"].racks == {}
    assert "racks" not in report["AZ1"].to_dict()
    assert report["AZ1"].summary["CPU"].count == 1


def test_datacenter_filter_matches_id_exactly():
    records = [
        {"dc": "AZ1", "dc_id": "dc-1", "rack": "R1", "cat": "CPU"},
        {"dc": "AZ2", "dc_id": "dc-2", "rack": "R1", "cat": "CPU"},
        {"dc": "AZ3", "dc_id": "dc-10", "rack": "R1", "cat": "CPU"},
    ]
    report = aggregate(records, by_keys, datacenter="dc-1")
    assert list(report.datacenters) == ["AZ1"]
    assert report["AZ1"].id == "dc-1"


def test_datacenter_filter_with_no_match_yields_empty_report():
    report = aggregate(
        [{"dc": "AZ1", "dc_id": "dc-1", "cat": "CPU"}], by_keys, datacenter="dc-9"
    )
    assert len(report) == 0
    assert report.to_dict() == {}


def test_classifier_returning_none_drops_record():
    records = [{"dc": "AZ1", "cat": "CPU"}, {"skip": True}]
    report = aggregate(records, lambda r: None if r.get("skip") else by_keys(r))
    assert report["AZ1"].summary_total() == 1
    assert "UNKNOWN" not in report


def test_summary_total_equals_sum_of_racks():
    records = [
        {"dc": "AZ1", "rack": rack, "cat": cat}
        for rack, cat in [
            ("R1", "CPU"),
            ("R2", "CPU"),
            ("R2", "RAM"),
            ("", "DISK"),
            ("R3", ""),
        ]
    ]
    report = aggregate(records, by_keys)
    dc = report["AZ1"]
    assert dc.summary_total() == len(records)
    assert dc.summary_total() == sum(r.summary_total() for r in dc.racks.values())


def test_sorted_iteration_is_lexicographic():
    records = [
        {"dc": "b-dc", "rack": "R2", "cat": "RAM"},
        {"dc": "a-dc", "rack": "R9", "cat": "NET"},
        {"dc": "b-dc", "rack": "R10", "cat": "CPU"},
        {"dc": "a-dc", "rack": "R1", "cat": "CPU"},
    ]
    report = aggregate(records, by_keys)
    assert [name for name, _ in report.sorted_datacenters()] == ["a-dc", "b-dc"]
    assert [name for name, _ in report["b-dc"].sorted_racks()] == ["R10", "R2"]
    assert [cat for cat, _ in report["b-dc"].sorted_summary()] == ["CPU", "RAM"]
    # Serialization keeps first-seen order
    assert list(report.to_dict()) == ["b-dc", "a-dc"]


def test_tally_metric_factory():
    records = [
        {"dc": "AZ1", "rack": "R1", "cat": "Shrimp", "value": "PASS"},
        {"dc": "AZ1", "rack": "R1", "cat": "Shrimp", "value": "FAIL"},
        {"dc": "AZ1", "rack": "R2", "cat": "Shrimp", "value": "PASS"},
    ]
    report = aggregate(records, by_keys, metric_factory=TallyMetric)
    assert report["AZ1"].to_dict()["summary"] == {"Shrimp": {"PASS": 2, "FAIL": 1}}
    assert report["AZ1"].racks["R2"].to_dict()["summary"] == {"Shrimp": {"PASS": 1}}


def test_timing_metrics_are_finalized_once():
    records = [
        {"dc": "AZ1", "rack": "R1", "cat": "RAM", "value": 100},
        {"dc": "AZ1", "rack": "R1", "cat": "RAM", "value": 300},
    ]
    report = aggregate(records, by_keys, metric_factory=TimingMetric)
    assert report.finalized
    metric = report["AZ1"].summary["RAM"]
    assert metric.mean == 200.0
    assert report["AZ1"].racks["R1"].summary["RAM"].median == 200.0


def test_finalized_report_is_read_only():
    report = aggregate(
        [{"dc": "AZ1", "rack": "R1", "cat": "CPU", "value": 5}],
        by_keys,
        metric_factory=TimingMetric,
    )
    with pytest.raises(RuntimeError):
        report.datacenter("AZ2")
    with pytest.raises(RuntimeError):
        report["AZ1"].rack("R2")
    with pytest.raises(RuntimeError):
        report["AZ1"].metric("RAM")
    with pytest.raises(RuntimeError):
        report["AZ1"].summary["CPU"].add(1.0)
    # Existing buckets can still be looked up
    assert report.datacenter("AZ1") is report["AZ1"]


def test_finalize_is_idempotent():
    report = Report(TimingMetric)
    report.datacenter("AZ1").metric("CPU").add(10)
    report.finalize()
    report.finalize()
    assert report["AZ1"].summary["CPU"].mean == 10.0


def test_breakdown_metrics():
    report = Report()
    dc = report.datacenter("AZ1", "dc-1")
    dc.breakdown_metric("vendors", "Dell", "RAM").add()
    dc.breakdown_metric("vendors", "Dell", "CPU").add()
    dc.breakdown_metric("vendors", "Acme", "RAM").add()
    dc.breakdown_metric("vendors", "Dell", "RAM").add()
    report.finalize()

    counts = [
        (vendor, [(t, m.count) for t, m in types])
        for vendor, types in dc.sorted_breakdown("vendors")
    ]
    assert counts == [
        ("Acme", [("RAM", 1)]),
        ("Dell", [("CPU", 1), ("RAM", 2)]),
    ]
    assert dc.sorted_breakdown("components") == []
    assert dc.to_dict()["vendors"] == {"Dell": {"RAM": 2, "CPU": 1}, "Acme": {"RAM": 1}}


def test_ingest_errors_abort_the_run():
    class Exploding(Aggregator):
        def ingest(self, dc, rack, keys, record):
            raise KeyError("Device 'SN404' not found")

    with pytest.raises(KeyError):
        Exploding(by_keys).run([{"dc": "AZ1"}])


def test_rack_info_stored_on_first_sight():
    records = [
        Classification(datacenter="AZ1", rack="R1", rack_info={"id": "r-1"}),
        Classification(datacenter="AZ1", rack="R1", rack_info={"id": "other"}),
    ]
    report = aggregate(records, lambda c: c)
    rack = report["AZ1"].racks["R1"]
    assert rack.id == "r-1"
    assert rack.to_dict() == {"rack": {"id": "r-1"}, "summary": {"UNKNOWN": 2}}


def test_default_constants():
    assert DEFAULTS == Defaults("UNKNOWN", "UNKNOWN", "UNKNOWN")
