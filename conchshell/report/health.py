"""Health summary report: device health per hardware type, per datacenter and rack."""

from __future__ import annotations

from typing import Any, List, Optional

from conchshell.config import REPORT_CONFIG
from conchshell.logging import get_logger
from conchshell.model.inventory import Device
from conchshell.report.aggregate import Aggregator, Classification
from conchshell.report.metrics import TallyMetric
from conchshell.report.normalize import location_datacenter_id, normalize_key
from conchshell.report.tree import Report

logger = get_logger(__name__)


def classify_device_health(device: Device, platform_name: bool = False) -> Classification:
    """Classify a filled-in device by location and target hardware type.

    Args:
        device: Device with its location resolved.
        platform_name: Label hardware by platform name instead of common alias.
    """
    location = device.location
    product = location.target_hardware_product
    return Classification(
        datacenter=location.datacenter.name,
        datacenter_id=location_datacenter_id(location),
        rack=location.rack.name,
        rack_info=location.rack.to_dict(),
        category=product.name if platform_name else product.alias,
        value=normalize_key(device.health, REPORT_CONFIG.unknown),
    )


def build_health_summary(
    api: Any,
    workspace_id: str,
    *,
    platform_name: bool = False,
    datacenter: Optional[str] = None,
) -> Report:
    """Build the health summary for every device in a workspace.

    Each device is filled in through ``api`` before it is classified; a failed
    lookup aborts the report.

    Args:
        api: Inventory handle providing ``get_workspace_devices`` and
            ``fill_in_device``.
        workspace_id: Workspace to report on.
        platform_name: Label hardware by platform name instead of alias.
        datacenter: Only include devices in the datacenter with this id.

    Returns:
        Finalized report whose summaries map hardware type to health tallies.
    """
    devices = api.get_workspace_devices(workspace_id)
    logger.info(f"Building health summary for {len(devices)} devices")

    aggregator = Aggregator(
        lambda d: classify_device_health(d, platform_name),
        datacenter=datacenter,
        metric_factory=TallyMetric,
    )
    return aggregator.run(api.fill_in_device(d) for d in devices)


def _tally_lines(summary: List, indent: str) -> List[str]:
    lines: List[str] = []
    for hwtype, tally in summary:
        lines.append(f"{indent}{hwtype}:")
        for health, count in tally.sorted_items():
            lines.append(f"{indent}  {health:>8}: {count}")
        lines.append("")
    return lines


def render_health_summary(
    report: Report, *, breakout: bool = False, uuids: bool = False
) -> str:
    """Render the health summary as indented text, sorted at every level."""
    lines: List[str] = []
    for name, dc in report.sorted_datacenters():
        lines.append(f"{name} - {dc.id}" if uuids else name)
        lines.append("  Summary:")
        lines.extend(_tally_lines(dc.sorted_summary(), "    "))

        if not breakout:
            lines.append("")
            continue

        lines.append("  Racks:")
        for rack_name, rack in dc.sorted_racks():
            lines.append(f"    {rack_name} - {rack.id}:" if uuids else f"    {rack_name}:")
            lines.extend(_tally_lines(rack.sorted_summary(), "      "))
            lines.append("")
    return "\n".join(lines)
