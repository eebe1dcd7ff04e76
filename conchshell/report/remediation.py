"""Hardware remediation timing report.

Consumes the output of the batch job that scans validation history: for every
device serial, and every failure type seen on it, the first failing and the
first passing validation afterwards. The time between the two is how long the
hardware took to remediate.

Samples are bucketed per datacenter into three tiers:

- ``summary``: failure type -> timing
- ``components``: failure type -> component name -> timing (types in the
  denylist are not broken out)
- ``vendors``: vendor -> failure type -> timing

Rendering supports indented text and CSV (two tables: by vendor and by
component).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import pandas as pd

from conchshell.config import REPORT_CONFIG, ReportConfig
from conchshell.logging import get_logger
from conchshell.model.inventory import Device, ValidationResult, parse_timestamp
from conchshell.report.aggregate import Aggregator, Classification
from conchshell.report.metrics import TimingMetric
from conchshell.report.normalize import (
    canonical_component_name,
    location_datacenter_id,
    normalize_category,
    normalize_key,
    pretty_component_name,
)
from conchshell.report.tree import DatacenterBucket, RackBucket, Report
from conchshell.utils.formatting import format_duration, format_duration_hms

logger = get_logger(__name__)

COMPONENTS_TIER = "components"
VENDORS_TIER = "vendors"

VENDOR_CSV_COLUMNS = ["Datacenter", "Vendor", "Type", "Count", "Mean", "Median"]
COMPONENT_CSV_COLUMNS = ["Datacenter", "Type", "Component", "Count", "Mean", "Median"]


def _safe_timestamp(value: Any) -> Optional[datetime]:
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparseable timestamp: {value!r}")
        return None


@dataclass(frozen=True)
class FailureEvent:
    """One validation result observed on a device at a point in time."""

    device_id: str = ""
    created: Optional[datetime] = None
    result: ValidationResult = field(default_factory=ValidationResult)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> FailureEvent:
        data = data or {}
        return cls(
            device_id=str(data.get("device_id") or ""),
            created=_safe_timestamp(data.get("created")),
            result=ValidationResult.from_dict(data.get("validation_result")),
        )


@dataclass(frozen=True)
class ComponentFailure:
    """First failure of a component and the first pass that followed it."""

    first_fail: FailureEvent
    first_pass: FailureEvent

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ComponentFailure:
        return cls(
            first_fail=FailureEvent.from_dict(data.get("first_fail")),
            first_pass=FailureEvent.from_dict(data.get("first_pass")),
        )

    @property
    def remediation_seconds(self) -> Optional[float]:
        """Seconds from first failure to first pass, or None if either is unknown."""
        if self.first_fail.created is None or self.first_pass.created is None:
            return None
        return (self.first_pass.created - self.first_fail.created).total_seconds()


BatchReport = Dict[str, Dict[str, ComponentFailure]]


def parse_batch_report(data: Mapping[str, Any]) -> BatchReport:
    """Parse a decoded batch report mapping.

    Raises:
        ValueError: If the document is not ``serial -> failure type -> entry``.
    """
    if not isinstance(data, Mapping):
        raise ValueError("Batch report must be a mapping of device serial to failures")
    parsed: BatchReport = {}
    for serial, failures in data.items():
        if not isinstance(failures, Mapping):
            raise ValueError(f"Batch report entry for '{serial}' must be a mapping")
        entries: Dict[str, ComponentFailure] = {}
        for failure_type, entry in failures.items():
            if not isinstance(entry, Mapping):
                raise ValueError(
                    f"Batch report entry '{serial}/{failure_type}' must be a mapping"
                )
            entries[str(failure_type)] = ComponentFailure.from_dict(entry)
        parsed[str(serial)] = entries
    return parsed


def load_batch_report(path: Union[str, Path]) -> BatchReport:
    """Load and parse a batch report JSON file (``~`` is expanded).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or has the wrong shape.
    """
    resolved = Path(path).expanduser()
    if not resolved.is_file():
        raise FileNotFoundError(f"Batch report not found: {resolved}")
    try:
        with open(resolved, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in batch report: {e}") from e
    report = parse_batch_report(data)
    logger.info(f"Loaded batch report with {len(report)} devices from {resolved}")
    return report


@dataclass(frozen=True)
class RemediationRecord:
    """One component failure joined with the device and vendor it belongs to."""

    device: Device
    vendor: str
    failure: ComponentFailure


class RemediationAggregator(Aggregator):
    """Collects remediation durations per failure type, component and vendor."""

    def __init__(
        self,
        *,
        datacenter: Optional[str] = None,
        remediation_minimum: Optional[float] = None,
        config: ReportConfig = REPORT_CONFIG,
    ) -> None:
        super().__init__(self._classify, datacenter=datacenter, metric_factory=TimingMetric)
        self.config = config
        self.remediation_minimum = (
            config.remediation_minimum
            if remediation_minimum is None
            else remediation_minimum
        )

    def _classify(self, record: RemediationRecord) -> Optional[Classification]:
        seconds = record.failure.remediation_seconds
        if seconds is None:
            return None
        if seconds < self.remediation_minimum:
            return None
        location = record.device.location
        return Classification(
            datacenter=location.datacenter.name,
            datacenter_id=location_datacenter_id(location, self.config),
            rack=None,
            category=normalize_category(
                record.failure.first_pass.result.component_type, self.config
            ),
            value=seconds,
        )

    def ingest(
        self,
        dc: DatacenterBucket,
        rack: Optional[RackBucket],
        keys: Classification,
        record: RemediationRecord,
    ) -> None:
        seconds = keys.value
        dc.metric(keys.category).add(seconds)
        dc.breakdown_metric(VENDORS_TIER, record.vendor, keys.category).add(seconds)
        if not self.config.is_denylisted(keys.category):
            component = canonical_component_name(
                record.failure.first_pass.result.component_name, self.config
            )
            dc.breakdown_metric(COMPONENTS_TIER, keys.category, component).add(seconds)


def iter_remediation_records(
    api: Any, batch: BatchReport, datacenter: Optional[str] = None
) -> Iterator[RemediationRecord]:
    """Join batch entries with device and vendor data from ``api``.

    Devices outside ``datacenter`` (matched on id, like the report filter) and
    devices without a hardware product are skipped before their product is
    looked up. Lookup failures for the remaining devices propagate.
    """
    for serial, failures in batch.items():
        device = api.get_device(serial)
        if (
            datacenter is not None
            and location_datacenter_id(device.location) != datacenter
        ):
            continue
        if not device.hardware_product:
            logger.debug(f"Skipping device {serial}: no hardware product")
            continue
        product = api.get_hardware_product(device.hardware_product)
        vendor = normalize_key(product.vendor, REPORT_CONFIG.unknown)
        for failure in failures.values():
            yield RemediationRecord(device, vendor, failure)


def build_remediation_report(
    api: Any,
    batch: BatchReport,
    *,
    datacenter: Optional[str] = None,
    remediation_minimum: Optional[float] = None,
) -> Report:
    """Build the remediation timing report.

    Args:
        api: Inventory handle providing ``get_device`` and ``get_hardware_product``.
        batch: Parsed batch report.
        datacenter: Only include devices in the datacenter with this id.
        remediation_minimum: Ignore remediations shorter than this many
            seconds (defaults to ``REPORT_CONFIG.remediation_minimum``).

    Returns:
        Finalized report with timing metrics.
    """
    aggregator = RemediationAggregator(
        datacenter=datacenter, remediation_minimum=remediation_minimum
    )
    return aggregator.run(iter_remediation_records(api, batch, datacenter))


def render_remediation_report(
    report: Report,
    *,
    include_vendors: bool = False,
    include_components: bool = False,
) -> str:
    """Render the remediation report as indented text."""
    lines: List[str] = []

    def timing(indent: str, metric: TimingMetric) -> None:
        lines.append(f"{indent}Mean   : {format_duration(metric.mean)}")
        lines.append(f"{indent}Median : {format_duration(metric.median)}")

    for name, dc in report.sorted_datacenters():
        lines.append(f"{name}:")

        if include_vendors:
            lines.append("  By Vendor:")
            for vendor, types in dc.sorted_breakdown(VENDORS_TIER):
                lines.append(f"    {vendor}:")
                for failure_type, metric in types:
                    lines.append(f"      {failure_type}: ({metric.count})")
                    timing("        ", metric)
                lines.append("")

        lines.append("  By Component Type:")
        components = dict(dc.sorted_breakdown(COMPONENTS_TIER))
        for failure_type, metric in dc.sorted_summary():
            lines.append("")
            lines.append(f"    {failure_type}: ({metric.count})")
            timing("      ", metric)

            if not include_components or REPORT_CONFIG.is_denylisted(failure_type):
                continue
            lines.append("")
            lines.append("      By Component:")
            for component, sub_metric in components.get(failure_type, []):
                pretty = pretty_component_name(component, failure_type)
                lines.append(f"        {pretty}: ({sub_metric.count})")
                timing("          ", sub_metric)

        lines.append("")
    return "\n".join(lines)


def remediation_tables(report: Report) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Return the by-vendor and by-component tables, sorted like the text output."""
    vendor_rows = []
    component_rows = []
    for name, dc in report.sorted_datacenters():
        for vendor, types in dc.sorted_breakdown(VENDORS_TIER):
            for failure_type, metric in types:
                vendor_rows.append(
                    [
                        name,
                        vendor,
                        failure_type,
                        metric.count,
                        format_duration_hms(metric.mean),
                        format_duration_hms(metric.median),
                    ]
                )
        for failure_type, components in dc.sorted_breakdown(COMPONENTS_TIER):
            for component, metric in components:
                component_rows.append(
                    [
                        name,
                        failure_type,
                        pretty_component_name(component, failure_type),
                        metric.count,
                        format_duration_hms(metric.mean),
                        format_duration_hms(metric.median),
                    ]
                )
    return (
        pd.DataFrame(vendor_rows, columns=VENDOR_CSV_COLUMNS),
        pd.DataFrame(component_rows, columns=COMPONENT_CSV_COLUMNS),
    )


def render_remediation_csv(report: Report) -> str:
    """Render both tables as CSV, separated by a blank line."""
    vendors, components = remediation_tables(report)
    return (
        vendors.to_csv(index=False, lineterminator="\n")
        + "\n"
        + components.to_csv(index=False, lineterminator="\n")
    )
