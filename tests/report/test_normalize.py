"""Tests for classification normalizers."""

import pytest

from conchshell.config import ReportConfig
from conchshell.model.inventory import Datacenter, DeviceLocation
from conchshell.report.normalize import (
    canonical_component_name,
    location_datacenter_id,
    normalize_category,
    normalize_key,
    pretty_component_name,
)


def test_normalize_key():
    assert normalize_key("R1", "UNKNOWN") == "R1"
    assert normalize_key("  R1 ", "UNKNOWN") == "R1"
    assert normalize_key("", "UNKNOWN") == "UNKNOWN"
    assert normalize_key("   ", "UNKNOWN") == "UNKNOWN"
    assert normalize_key(None, "UNKNOWN") == "UNKNOWN"
    assert normalize_key(42, "UNKNOWN") == "42"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("CPU", "CPU"),
        ("", "UNKNOWN"),
        (None, "UNKNOWN"),
        ("Undetermined", "UNKNOWN"),
        ("undetermined", "undetermined"),
    ],
)
def test_normalize_category(raw, expected):
    assert normalize_category(raw) == expected


def test_normalize_category_custom_config():
    config = ReportConfig(unknown="?", undetermined_markers=("", "n/a"))
    assert normalize_category("n/a", config) == "?"
    assert normalize_category("Undetermined", config) == "Undetermined"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("eth0_peer", "switch_peer"),
        ("eth3_peer", "switch_peer"),
        ("dimm_count", "dimm_count"),
        ("peer_count", "peer_count"),
        ("Undetermined", "UNKNOWN"),
        ("", "UNKNOWN"),
    ],
)
def test_canonical_component_name(raw, expected):
    assert canonical_component_name(raw) == expected


def test_canonical_component_name_is_idempotent():
    once = canonical_component_name("eth1_peer")
    assert canonical_component_name(once) == once


def test_pretty_component_name():
    assert pretty_component_name("product_name", "BIOS") == "Firmware Programming Issue"
    assert pretty_component_name("product_name", "SYSTEM") == "Product Name"
    assert pretty_component_name("switch_peer", "NET") == "Switch Peer"
    assert pretty_component_name("dimm_count", "RAM") == "DIMM Count"
    assert pretty_component_name("mystery", "RAM") == "RAM"


def test_location_datacenter_id():
    named = DeviceLocation(datacenter=Datacenter(id="dc-1", name="AZ1"))
    assert location_datacenter_id(named) == "dc-1"
    nameless = DeviceLocation(datacenter=Datacenter(id="dc-1", name=""))
    assert location_datacenter_id(nameless) == ReportConfig().null_uuid
    custom = ReportConfig(null_uuid="none")
    assert location_datacenter_id(DeviceLocation(), custom) == "none"
