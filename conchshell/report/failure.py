"""Validation failure report.

Counts failing validations per component type for each datacenter, and lists
the failing devices in each rack with their failures grouped by type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from conchshell.config import REPORT_CONFIG
from conchshell.logging import get_logger
from conchshell.model.inventory import Device, ValidationResult
from conchshell.report.aggregate import Aggregator, Classification
from conchshell.report.normalize import location_datacenter_id, normalize_category
from conchshell.report.tree import DatacenterBucket, RackBucket, Report

logger = get_logger(__name__)


@dataclass
class FailedDevice:
    """A failing device as listed under its rack.

    Attributes:
        device: The filled-in device.
        failed_validations: Component type -> failing validation results.
    """

    device: Device
    failed_validations: Dict[str, List[ValidationResult]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = self.device.to_dict()
        data.pop("validations", None)
        data["failed_validations"] = {
            t: [v.to_dict() for v in results]
            for t, results in self.failed_validations.items()
        }
        return data


def classify_failed_device(device: Device) -> Classification:
    location = device.location
    return Classification(
        datacenter=location.datacenter.name,
        datacenter_id=location_datacenter_id(location),
        rack=location.rack.name,
        rack_info=location.rack.to_dict(),
    )


class FailureAggregator(Aggregator):
    """Lists each device under its rack and counts its failing validations."""

    def __init__(self, *, datacenter: Optional[str] = None) -> None:
        super().__init__(
            classify_failed_device,
            datacenter=datacenter,
            rack_entries_key="failed_devices",
        )

    def ingest(
        self,
        dc: DatacenterBucket,
        rack: Optional[RackBucket],
        keys: Classification,
        record: Device,
    ) -> None:
        entry = FailedDevice(record)
        for result in record.failed_validations(REPORT_CONFIG.failing_status):
            component_type = normalize_category(result.component_type)
            entry.failed_validations.setdefault(component_type, []).append(result)
            dc.metric(component_type).add()
        if rack is not None:
            rack.add_entry(entry)


def build_failure_report(
    api: Any, workspace_id: str, *, datacenter: Optional[str] = None
) -> Report:
    """Build the failure report for the failing devices of a workspace.

    Args:
        api: Inventory handle providing ``get_workspace_devices`` and
            ``fill_in_device``.
        workspace_id: Workspace to report on.
        datacenter: Only include devices in the datacenter with this id.

    Returns:
        Finalized report; datacenter summaries count failures per component
        type and racks carry ``failed_devices`` entries.
    """
    devices = api.get_workspace_devices(workspace_id, health=REPORT_CONFIG.failing_status)
    logger.info(f"Building failure report for {len(devices)} failing devices")
    return FailureAggregator(datacenter=datacenter).run(
        api.fill_in_device(d) for d in devices
    )


def render_failure_report(
    report: Report, *, breakout: bool = False, uuids: bool = False
) -> str:
    """Render the failure report as indented text, sorted at every level.

    Devices within a rack keep ingestion order.
    """
    lines: List[str] = []
    for name, dc in report.sorted_datacenters():
        lines.append(f"{name} - {dc.id}" if uuids else name)
        lines.append("  Summary:")
        types = [t for t, _ in dc.sorted_summary()]
        for component_type, metric in dc.sorted_summary():
            lines.append(f"    {component_type:>8}: {metric.count}")

        if not breakout:
            lines.append("")
            continue

        lines.append("")
        lines.append("  Racks:")
        for rack_name, rack in dc.sorted_racks():
            lines.append(f"    {rack_name} - {rack.id}:" if uuids else f"    {rack_name}:")
            for entry in rack.entries:
                device = entry.device
                if uuids:
                    lines.append(f"      {device.id} - {device.system_uuid}:")
                else:
                    lines.append(f"      {device.id}:")
                for component_type in types:
                    results = entry.failed_validations.get(component_type)
                    if not results:
                        continue
                    lines.append(f"        {component_type}:")
                    for result in results:
                        lines.append(f"          {result.component_name} : {result.log}")
                    lines.append("")
            lines.append("")
        lines.append("")
    return "\n".join(lines)
