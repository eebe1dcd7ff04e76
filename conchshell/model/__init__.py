"""Typed inventory records."""

from conchshell.model.inventory import (
    Datacenter,
    Device,
    DeviceLocation,
    HardwareProduct,
    Rack,
    RackSlot,
    Relay,
    Room,
    User,
    ValidationResult,
    Workspace,
    WorkspaceRack,
    parse_timestamp,
)

__all__ = [
    "Datacenter",
    "Device",
    "DeviceLocation",
    "HardwareProduct",
    "Rack",
    "RackSlot",
    "Relay",
    "Room",
    "User",
    "ValidationResult",
    "Workspace",
    "WorkspaceRack",
    "parse_timestamp",
]
