"""Inventory records: datacenters, racks, hardware products, devices and relays.

These dataclasses mirror the objects served by the Conch inventory API. Each
one can be built from a plain mapping (as loaded from a YAML or JSON snapshot)
and turned back into a JSON-serializable dictionary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

_FRACTION = re.compile(r"\.(\d+)")
_HOUR_OFFSET = re.compile(r"(:\d\d(?:\.\d+)?)([+-]\d\d)$")


def _str(value: Any) -> str:
    """Return ``value`` as a string, mapping ``None`` to the empty string."""
    if value is None:
        return ""
    return str(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an API timestamp into an aware ``datetime``.

    Accepts ISO-8601 strings (a trailing ``Z`` is treated as UTC), epoch
    seconds, and ``datetime`` objects (which YAML produces for unquoted
    timestamps). Empty values and the zero time (year 1) yield ``None``.

    Raises:
        ValueError: If a non-empty string is not a valid timestamp.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if value == 0:
            return None
        ts = datetime.fromtimestamp(float(value), tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        # Postgres emits "+00" offsets and up to nanosecond fractions.
        text = _HOUR_OFFSET.sub(r"\1\2:00", text)
        text = _FRACTION.sub(
            lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1
        )
        ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    if ts.year <= 1:
        return None
    return ts


def _is_set(value: Any) -> bool:
    """Return True when ``value`` holds a real timestamp; garbage counts as unset."""
    try:
        return parse_timestamp(value) is not None
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class Datacenter:
    """Datacenter (availability zone) a device lives in."""

    id: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Datacenter:
        data = data or {}
        return cls(id=_str(data.get("id")), name=_str(data.get("name")))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class Rack:
    """Rack a device is installed in, with the rack unit it occupies."""

    id: str = ""
    name: str = ""
    role: str = ""
    unit: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Rack:
        data = data or {}
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            role=_str(data.get("role")),
            unit=int(data.get("unit") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "role": self.role, "unit": self.unit}


@dataclass(frozen=True)
class HardwareProduct:
    """A hardware product.

    Attributes:
        id: Product identifier.
        name: Platform name (e.g. ``Joyent-Compute-Platform-3301``).
        alias: Common name (e.g. ``Mantis Shrimp MkIII``).
        vendor: Manufacturer name.
    """

    id: str = ""
    name: str = ""
    alias: str = ""
    vendor: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> HardwareProduct:
        data = data or {}
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            alias=_str(data.get("alias")),
            vendor=_str(data.get("vendor")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "alias": self.alias,
            "vendor": self.vendor,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation run against one device component."""

    component_type: str = ""
    component_name: str = ""
    component_id: str = ""
    status: str = ""
    log: str = ""
    metric: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> ValidationResult:
        data = data or {}
        return cls(
            component_type=_str(data.get("component_type")),
            component_name=_str(data.get("component_name")),
            component_id=_str(data.get("component_id")),
            status=_str(data.get("status")),
            log=_str(data.get("log")),
            metric=data.get("metric"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component_type": self.component_type,
            "component_name": self.component_name,
            "component_id": self.component_id,
            "status": self.status,
            "log": self.log,
            "metric": self.metric,
        }


@dataclass(frozen=True)
class DeviceLocation:
    """Where a device is installed and what it is supposed to be."""

    datacenter: Datacenter = field(default_factory=Datacenter)
    rack: Rack = field(default_factory=Rack)
    target_hardware_product: HardwareProduct = field(default_factory=HardwareProduct)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> DeviceLocation:
        data = data or {}
        target = data.get("target_hardware_product")
        if not isinstance(target, Mapping):
            # Unresolved reference; the inventory fills it in
            target = {"id": target}
        return cls(
            datacenter=Datacenter.from_dict(data.get("datacenter")),
            rack=Rack.from_dict(data.get("rack")),
            target_hardware_product=HardwareProduct.from_dict(target),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "datacenter": self.datacenter.to_dict(),
            "rack": self.rack.to_dict(),
            "target_hardware_product": self.target_hardware_product.to_dict(),
        }


@dataclass
class Device:
    """A physical device, keyed by its serial number (``id``).

    Timestamps are kept as the strings the API returned; use
    :func:`parse_timestamp` to interpret them.
    """

    id: str
    asset_tag: str = ""
    health: str = ""
    state: str = ""
    role: str = ""
    system_uuid: str = ""
    hardware_product: str = ""
    created: Any = None
    last_seen: Any = None
    updated: Any = None
    validated: Any = None
    graduated: Any = None
    deactivated: Any = None
    location: DeviceLocation = field(default_factory=DeviceLocation)
    validations: List[ValidationResult] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], serial: str = "") -> Device:
        """Build a device from a mapping.

        Args:
            data: Device mapping.
            serial: Serial to use when the mapping carries no ``id``.

        Raises:
            ValueError: If the device has no id or its validations are not a list.
        """
        device_id = _str(data.get("id")) or serial
        if not device_id:
            raise ValueError("Device entry is missing an 'id'")
        validations = data.get("validations") or []
        if not isinstance(validations, list):
            raise ValueError(f"Device '{device_id}': 'validations' must be a list")
        settings = data.get("settings") or {}
        if not isinstance(settings, Mapping):
            raise ValueError(f"Device '{device_id}': 'settings' must be a mapping")
        return cls(
            id=device_id,
            asset_tag=_str(data.get("asset_tag")),
            health=_str(data.get("health")),
            state=_str(data.get("state")),
            role=_str(data.get("role")),
            system_uuid=_str(data.get("system_uuid")),
            hardware_product=_str(data.get("hardware_product")),
            created=data.get("created"),
            last_seen=data.get("last_seen"),
            updated=data.get("updated"),
            validated=data.get("validated"),
            graduated=data.get("graduated"),
            deactivated=data.get("deactivated"),
            location=DeviceLocation.from_dict(data.get("location")),
            validations=[ValidationResult.from_dict(v) for v in validations],
            settings=dict(settings),
        )

    @property
    def flags(self) -> str:
        """Lifecycle flags: ``X`` deactivated, ``v`` validated, ``g`` graduated."""
        flags = ""
        if _is_set(self.deactivated):
            flags += "X"
        if _is_set(self.validated):
            flags += "v"
        if _is_set(self.graduated):
            flags += "g"
        return flags

    def failed_validations(self, failing_status: str = "fail") -> List[ValidationResult]:
        """Return the validations whose status marks a failure."""
        return [v for v in self.validations if v.status == failing_status]

    def to_minimal_dict(self) -> Dict[str, Any]:
        """Return the short form used in device listings."""
        return {
            "id": self.id,
            "asset_tag": self.asset_tag,
            "created": self.created,
            "last_seen": self.last_seen,
            "health": self.health,
            "flags": self.flags,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "asset_tag": self.asset_tag,
            "health": self.health,
            "state": self.state,
            "role": self.role,
            "system_uuid": self.system_uuid,
            "hardware_product": self.hardware_product,
            "created": self.created,
            "last_seen": self.last_seen,
            "updated": self.updated,
            "validated": self.validated,
            "graduated": self.graduated,
            "deactivated": self.deactivated,
            "location": self.location.to_dict(),
            "validations": [v.to_dict() for v in self.validations],
        }


@dataclass(frozen=True)
class Relay:
    """A relay that reports on the devices attached to it."""

    id: str
    alias: str = ""
    ipaddr: str = ""
    ssh_port: int = 0
    version: str = ""
    created: Any = None
    updated: Any = None
    active: bool = True
    devices: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Relay:
        relay_id = _str(data.get("id"))
        if not relay_id:
            raise ValueError("Relay entry is missing an 'id'")
        return cls(
            id=relay_id,
            alias=_str(data.get("alias")),
            ipaddr=_str(data.get("ipaddr")),
            ssh_port=int(data.get("ssh_port") or 0),
            version=_str(data.get("version")),
            created=data.get("created"),
            updated=data.get("updated"),
            active=bool(data.get("active", True)),
            devices=tuple(_str(d) for d in data.get("devices") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "alias": self.alias,
            "ipaddr": self.ipaddr,
            "ssh_port": self.ssh_port,
            "version": self.version,
            "created": self.created,
            "updated": self.updated,
            "num_devices": len(self.devices),
        }


@dataclass(frozen=True)
class RackSlot:
    """One rack unit of a rack layout and the device occupying it, if any.

    Attributes:
        rack_unit: Rack unit the slot starts at.
        name: Platform name of the hardware planned for the slot.
        alias: Common name of that hardware.
        vendor: Vendor of that hardware.
        occupant: Serial of the device in the slot, or empty.
    """

    rack_unit: int
    name: str = ""
    alias: str = ""
    vendor: str = ""
    occupant: str = ""

    @classmethod
    def from_dict(cls, rack_unit: int, data: Optional[Mapping[str, Any]]) -> RackSlot:
        data = data or {}
        return cls(
            rack_unit=rack_unit,
            name=_str(data.get("name")),
            alias=_str(data.get("alias")),
            vendor=_str(data.get("vendor")),
            occupant=_str(data.get("occupant")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rack_unit": self.rack_unit,
            "name": self.name,
            "alias": self.alias,
            "vendor": self.vendor,
            "occupant": self.occupant or None,
        }


@dataclass(frozen=True)
class WorkspaceRack:
    """A rack visible in a workspace, with its slot layout."""

    id: str
    name: str = ""
    role: str = ""
    size: int = 0
    datacenter: str = ""
    slots: tuple[RackSlot, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkspaceRack:
        """Build a rack from a mapping whose ``slots`` map rack unit to slot.

        Raises:
            ValueError: If the rack has no id or its slots are malformed.
        """
        rack_id = _str(data.get("id"))
        if not rack_id:
            raise ValueError("Rack entry is missing an 'id'")
        slots = data.get("slots") or {}
        if not isinstance(slots, Mapping):
            raise ValueError(f"Rack '{rack_id}': 'slots' must map rack unit to slot")
        parsed = []
        for unit, slot in slots.items():
            try:
                rack_unit = int(unit)
            except (TypeError, ValueError):
                raise ValueError(
                    f"Rack '{rack_id}': slot key {unit!r} is not a rack unit"
                ) from None
            parsed.append(RackSlot.from_dict(rack_unit, slot))
        return cls(
            id=rack_id,
            name=_str(data.get("name")),
            role=_str(data.get("role")),
            size=int(data.get("size") or 0),
            datacenter=_str(data.get("datacenter")),
            slots=tuple(sorted(parsed, key=lambda s: s.rack_unit, reverse=True)),
        )

    def to_dict(self, include_slots: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "size": self.size,
            "datacenter": self.datacenter,
        }
        if include_slots:
            data["slots"] = [s.to_dict() for s in self.slots]
        return data


@dataclass(frozen=True)
class Room:
    """A datacenter room."""

    id: str
    az: str = ""
    alias: str = ""
    vendor_name: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Room:
        room_id = _str(data.get("id"))
        if not room_id:
            raise ValueError("Room entry is missing an 'id'")
        return cls(
            id=room_id,
            az=_str(data.get("az")),
            alias=_str(data.get("alias")),
            vendor_name=_str(data.get("vendor_name")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "az": self.az,
            "alias": self.alias,
            "vendor_name": self.vendor_name,
        }


@dataclass(frozen=True)
class User:
    """A workspace member and the role they hold there."""

    name: str
    email: str = ""
    role: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        return cls(
            name=_str(data.get("name")),
            email=_str(data.get("email")),
            role=_str(data.get("role")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "email": self.email, "role": self.role}


def _list_section(data: Mapping[str, Any], key: str, owner: str) -> List[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"{owner}: '{key}' must be a list")
    return value


@dataclass(frozen=True)
class Workspace:
    """A named view over a set of devices, relays, racks, rooms and users."""

    id: str
    name: str = ""
    role: str = ""
    description: str = ""
    parent_id: str = ""
    devices: tuple[str, ...] = ()
    relays: tuple[Relay, ...] = ()
    racks: tuple[WorkspaceRack, ...] = ()
    rooms: tuple[Room, ...] = ()
    users: tuple[User, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Workspace:
        workspace_id = _str(data.get("id"))
        if not workspace_id:
            raise ValueError("Workspace entry is missing an 'id'")
        owner = f"Workspace '{workspace_id}'"
        return cls(
            id=workspace_id,
            name=_str(data.get("name")),
            role=_str(data.get("role")),
            description=_str(data.get("description")),
            parent_id=_str(data.get("parent_id")),
            devices=tuple(_str(d) for d in _list_section(data, "devices", owner)),
            relays=tuple(
                Relay.from_dict(r) for r in _list_section(data, "relays", owner)
            ),
            racks=tuple(
                WorkspaceRack.from_dict(r) for r in _list_section(data, "racks", owner)
            ),
            rooms=tuple(Room.from_dict(r) for r in _list_section(data, "rooms", owner)),
            users=tuple(User.from_dict(u) for u in _list_section(data, "users", owner)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "description": self.description,
            "parent_id": self.parent_id or None,
        }
