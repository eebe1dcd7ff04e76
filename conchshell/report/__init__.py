"""Report builders for conchshell.

Every report is produced by one pass of the hierarchical aggregator in
:mod:`conchshell.report.aggregate` over records fetched from an inventory.
"""

from conchshell.report.aggregate import (
    DEFAULTS,
    Aggregator,
    Classification,
    Defaults,
    aggregate,
)
from conchshell.report.failure import build_failure_report, render_failure_report
from conchshell.report.health import build_health_summary, render_health_summary
from conchshell.report.metrics import CountMetric, TallyMetric, TimingMetric
from conchshell.report.remediation import (
    build_remediation_report,
    load_batch_report,
    render_remediation_csv,
    render_remediation_report,
)
from conchshell.report.tree import DatacenterBucket, RackBucket, Report

__all__ = [
    "Aggregator",
    "Classification",
    "CountMetric",
    "DEFAULTS",
    "DatacenterBucket",
    "Defaults",
    "RackBucket",
    "Report",
    "TallyMetric",
    "TimingMetric",
    "aggregate",
    "build_failure_report",
    "build_health_summary",
    "build_remediation_report",
    "load_batch_report",
    "render_failure_report",
    "render_health_summary",
    "render_remediation_csv",
    "render_remediation_report",
]
