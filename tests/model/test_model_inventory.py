"""Tests for the inventory record dataclasses."""

from datetime import datetime, timezone

import pytest

from conchshell.model.inventory import (
    Device,
    DeviceLocation,
    HardwareProduct,
    Relay,
    Room,
    User,
    ValidationResult,
    Workspace,
    WorkspaceRack,
    parse_timestamp,
)

# parse_timestamp


def test_parse_timestamp_iso_with_z_suffix():
    ts = parse_timestamp("2017-10-01T02:00:00Z")
    assert ts == datetime(2017, 10, 1, 2, 0, tzinfo=timezone.utc)


def test_parse_timestamp_naive_string_is_utc():
    ts = parse_timestamp("2017-10-01T02:00:00")
    assert ts is not None and ts.tzinfo == timezone.utc


def test_parse_timestamp_keeps_offset():
    ts = parse_timestamp("2017-10-01T02:00:00+02:00")
    assert ts == datetime(2017, 10, 1, 0, 0, tzinfo=timezone.utc)


def test_parse_timestamp_epoch_seconds():
    assert parse_timestamp(0) is None
    assert parse_timestamp(86400) == datetime(1970, 1, 2, tzinfo=timezone.utc)


def test_parse_timestamp_datetime_passthrough():
    naive = datetime(2020, 5, 1, 12, 0)
    assert parse_timestamp(naive) == naive.replace(tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "0001-01-01T00:00:00Z"])
def test_parse_timestamp_unset_values(value):
    assert parse_timestamp(value) is None


def test_parse_timestamp_invalid_string():
    with pytest.raises(ValueError):
        parse_timestamp("last tuesday")


@pytest.mark.parametrize(
    "text, expected",
    [
        (
            "2017-10-01T01:00:00.5Z",
            datetime(2017, 10, 1, 1, 0, 0, 500000, timezone.utc),
        ),
        (
            "2017-10-01T01:00:00.123456789Z",
            datetime(2017, 10, 1, 1, 0, 0, 123456, timezone.utc),
        ),
        (
            "2017-10-01 01:00:00.12345+00",
            datetime(2017, 10, 1, 1, 0, 0, 123450, timezone.utc),
        ),
        (
            "2017-10-01 01:00:00.12345+0000",
            datetime(2017, 10, 1, 1, 0, 0, 123450, timezone.utc),
        ),
    ],
)
def test_parse_timestamp_database_forms(text, expected):
    assert parse_timestamp(text) == expected


# Device


def test_device_from_dict_uses_serial_when_id_missing():
    device = Device.from_dict({"health": "PASS"}, serial="SN9")
    assert device.id == "SN9"
    assert device.health == "PASS"
    assert device.location == DeviceLocation()


def test_device_from_dict_requires_id():
    with pytest.raises(ValueError, match="missing an 'id'"):
        Device.from_dict({"health": "PASS"})


def test_device_from_dict_rejects_bad_validations():
    with pytest.raises(ValueError, match="'validations' must be a list"):
        Device.from_dict({"id": "SN1", "validations": {"status": "fail"}})


def test_device_from_dict_rejects_bad_settings():
    with pytest.raises(ValueError, match="'settings' must be a mapping"):
        Device.from_dict({"id": "SN1", "settings": ["a"]})


def test_device_flags():
    device = Device(
        id="SN1",
        deactivated="2018-01-01T00:00:00Z",
        validated="2017-12-01T00:00:00Z",
        graduated="2017-12-02T00:00:00Z",
    )
    assert device.flags == "Xvg"
    assert Device(id="SN2").flags == ""
    assert Device(id="SN3", validated="0001-01-01T00:00:00Z").flags == ""


def test_device_flags_ignore_unparseable_timestamps():
    device = Device(id="SN1", validated="garbage", graduated="2017-12-02T00:00:00Z")
    assert device.flags == "g"
    assert Device(id="SN2", deactivated="not a date").flags == ""


def test_device_failed_validations():
    device = Device.from_dict(
        {
            "id": "SN1",
            "validations": [
                {"component_type": "CPU", "status": "fail"},
                {"component_type": "RAM", "status": "pass"},
                {"component_type": "NET", "status": "error"},
            ],
        }
    )
    assert [v.component_type for v in device.failed_validations()] == ["CPU"]
    assert [v.component_type for v in device.failed_validations("error")] == ["NET"]


def test_device_dict_forms():
    device = Device.from_dict(
        {
            "id": "SN1",
            "asset_tag": "A1",
            "health": "PASS",
            "validated": "2017-12-01T00:00:00Z",
            "validations": [{"component_type": "CPU", "status": "pass"}],
        }
    )
    minimal = device.to_minimal_dict()
    assert minimal == {
        "id": "SN1",
        "asset_tag": "A1",
        "created": None,
        "last_seen": None,
        "health": "PASS",
        "flags": "v",
    }
    full = device.to_dict()
    assert full["validations"][0]["component_type"] == "CPU"
    assert full["location"]["rack"] == {"id": "", "name": "", "role": "", "unit": 0}


# Location and products


def test_location_with_unresolved_target_product():
    location = DeviceLocation.from_dict({"target_hardware_product": "hp-1"})
    assert location.target_hardware_product == HardwareProduct(id="hp-1")


def test_location_with_inline_target_product():
    location = DeviceLocation.from_dict(
        {
            "datacenter": {"id": "dc-1", "name": "AZ1"},
            "rack": {"id": "r-1", "name": "R1", "role": "compute", "unit": "7"},
            "target_hardware_product": {"id": "hp-1", "alias": "Shrimp"},
        }
    )
    assert location.datacenter.name == "AZ1"
    assert location.rack.unit == 7
    assert location.target_hardware_product.alias == "Shrimp"


def test_validation_result_none_fields_become_empty():
    result = ValidationResult.from_dict({"component_type": None, "metric": 12})
    assert result.component_type == ""
    assert result.metric == 12


# Relays and workspaces


def test_relay_round_trip_fields():
    relay = Relay.from_dict(
        {"id": "r1", "alias": "edge", "ssh_port": "2222", "devices": ["A", 7]}
    )
    assert relay.ssh_port == 2222
    assert relay.devices == ("A", "7")
    assert relay.active is True
    assert relay.to_dict()["num_devices"] == 2


def test_relay_requires_id():
    with pytest.raises(ValueError):
        Relay.from_dict({"alias": "edge"})


def test_workspace_from_dict():
    ws = Workspace.from_dict({"id": "ws", "name": "W", "devices": ["a", "b"]})
    assert ws.devices == ("a", "b")
    assert ws.relays == ()
    assert ws.to_dict()["parent_id"] is None


def test_workspace_rejects_non_list_devices():
    with pytest.raises(ValueError, match="'devices' must be a list"):
        Workspace.from_dict({"id": "ws", "devices": "a,b"})


def test_workspace_rejects_non_list_racks():
    with pytest.raises(ValueError, match="'racks' must be a list"):
        Workspace.from_dict({"id": "ws", "racks": {"id": "r1"}})


# Racks, rooms and users


def test_workspace_rack_slots_sorted_top_down():
    rack = WorkspaceRack.from_dict(
        {
            "id": "r1",
            "name": "A01",
            "size": 42,
            "slots": {
                1: {"name": "2U-compute", "occupant": "SN1"},
                "10": {"name": "1U-switch", "vendor": "Arista"},
            },
        }
    )
    assert [s.rack_unit for s in rack.slots] == [10, 1]
    assert rack.slots[1].occupant == "SN1"
    assert rack.slots[0].to_dict()["occupant"] is None
    assert "slots" not in rack.to_dict(include_slots=False)


def test_workspace_rack_rejects_bad_slot_key():
    with pytest.raises(ValueError, match="not a rack unit"):
        WorkspaceRack.from_dict({"id": "r1", "slots": {"top": {}}})


def test_workspace_rack_requires_id():
    with pytest.raises(ValueError, match="missing an 'id'"):
        WorkspaceRack.from_dict({"name": "A01"})


def test_workspace_with_rooms_and_users():
    ws = Workspace.from_dict(
        {
            "id": "ws",
            "rooms": [{"id": "room-1", "az": "us-east-1a", "vendor_name": "R1"}],
            "users": [{"name": "alice", "email": "a@example.com", "role": "admin"}],
        }
    )
    assert ws.rooms == (Room(id="room-1", az="us-east-1a", vendor_name="R1"),)
    assert ws.users[0].to_dict() == User("alice", "a@example.com", "admin").to_dict()
