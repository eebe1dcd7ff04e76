"""Classification normalizers.

Pure functions that turn raw classification values from the inventory into
bucket keys. Every report builder goes through these so that the same
upstream value always lands in the same bucket.
"""

from __future__ import annotations

from typing import Any, Optional

from conchshell.config import REPORT_CONFIG, ReportConfig

# Human-readable names for validation component names
_PRETTY_COMPONENT_NAMES = {
    "bios_firmware_version": "BIOS Firmware Revision",
    "sas_hdd_num": "Number of SAS HDDs",
    "sas_ssd_num": "Number of SAS SSDs",
    "usb_hdd_num": "Number of USB HDDs",
    "links_up": "Number of Active Links",
    "nics_num": "Number of Network Interfaces",
    "num_peer_switch_ports": "Number of Peer Switch Ports",
    "num_switch_peers": "Number of Switch Peers",
    "switch_peer": "Switch Peer",
    "dimm_count": "DIMM Count",
    "ram_total": "Total RAM Size",
}


def normalize_key(value: Any, default: str) -> str:
    """Return ``value`` as a bucket key, or ``default`` when it is blank."""
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def normalize_category(value: Any, config: Optional[ReportConfig] = None) -> str:
    """Map a component type or category to its bucket key.

    Blank values and upstream "undetermined" markers become the unknown key.

    Examples:
        "CPU" -> "CPU"; "" -> "UNKNOWN"; "Undetermined" -> "UNKNOWN".
    """
    cfg = config or REPORT_CONFIG
    text = "" if value is None else str(value).strip()
    if text in cfg.undetermined_markers:
        return cfg.unknown
    return text


def canonical_component_name(value: Any, config: Optional[ReportConfig] = None) -> str:
    """Map a component name to its bucket key.

    Applies :func:`normalize_category`, then folds every name ending in the
    peer suffix (``eth0_peer``, ``eth1_peer``...) into one peer component.

    Examples:
        "eth3_peer" -> "switch_peer"; "dimm_count" -> "dimm_count".
    """
    cfg = config or REPORT_CONFIG
    name = normalize_category(value, cfg)
    if name != cfg.unknown and name.endswith(cfg.peer_suffix):
        return cfg.peer_component
    return name


def pretty_component_name(name: str, category: str) -> str:
    """Return the display label for a component name within a category.

    ``product_name`` under BIOS means the firmware was flashed wrong. Names
    without a known label fall back to the category itself.
    """
    if name == "product_name":
        if category == "BIOS":
            return "Firmware Programming Issue"
        return "Product Name"
    return _PRETTY_COMPONENT_NAMES.get(name, category)


def location_datacenter_id(
    location: Any, config: Optional[ReportConfig] = None
) -> str:
    """Return the datacenter id a device location filters on.

    A datacenter without a name counts as unassigned, and unassigned
    locations share the null UUID.
    """
    cfg = config or REPORT_CONFIG
    datacenter = location.datacenter
    return (datacenter.id if datacenter.name else "") or cfg.null_uuid
