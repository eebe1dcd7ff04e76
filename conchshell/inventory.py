"""Inventory snapshot access.

``Inventory`` answers the lookups the shell commands and report builders
need (workspaces, devices, hardware products, relays, settings). It is built
from a YAML or JSON snapshot and handed to each report builder explicitly.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from conchshell.logging import get_logger
from conchshell.model.inventory import (
    Device,
    DeviceLocation,
    HardwareProduct,
    Relay,
    Room,
    User,
    Workspace,
    WorkspaceRack,
)
from conchshell.utils.yaml_utils import normalize_yaml_dict_keys

logger = get_logger(__name__)

DEFAULT_INVENTORY_PATH = Path("~/.conch.yaml")


class Inventory:
    """Read-only view over an inventory snapshot.

    Lookups that miss raise ``KeyError``. Nothing is retried or defaulted here;
    callers decide whether a miss aborts their work.
    """

    def __init__(
        self,
        devices: Optional[Mapping[str, Device]] = None,
        hardware_products: Optional[Mapping[str, HardwareProduct]] = None,
        workspaces: Optional[List[Workspace]] = None,
        user_settings: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._devices: Dict[str, Device] = dict(devices or {})
        self._hardware_products: Dict[str, HardwareProduct] = dict(
            hardware_products or {}
        )
        self._workspaces: Dict[str, Workspace] = {
            ws.id: ws for ws in (workspaces or [])
        }
        self._user_settings: Dict[str, Any] = dict(user_settings or {})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Inventory:
        """Build an inventory from a parsed snapshot mapping.

        Raises:
            ValueError: If a section has the wrong shape.
        """
        products_section = data.get("hardware_products") or {}
        devices_section = data.get("devices") or {}
        workspaces_section = data.get("workspaces") or []
        settings_section = data.get("user_settings") or {}

        if not isinstance(products_section, Mapping):
            raise ValueError("'hardware_products' must be a mapping")
        if not isinstance(devices_section, Mapping):
            raise ValueError("'devices' must be a mapping of serial to device")
        if not isinstance(workspaces_section, list):
            raise ValueError("'workspaces' must be a list")
        if not isinstance(settings_section, Mapping):
            raise ValueError("'user_settings' must be a mapping")

        products: Dict[str, HardwareProduct] = {}
        for product_id, entry in normalize_yaml_dict_keys(dict(products_section)).items():
            if not isinstance(entry, Mapping):
                raise ValueError(f"Hardware product '{product_id}' must be a mapping")
            products[product_id] = HardwareProduct.from_dict({"id": product_id, **entry})

        devices: Dict[str, Device] = {}
        for serial, entry in normalize_yaml_dict_keys(dict(devices_section)).items():
            if not isinstance(entry, Mapping):
                raise ValueError(f"Device '{serial}' must be a mapping")
            device = Device.from_dict(entry, serial=serial)
            devices[device.id] = device

        workspaces = []
        for entry in workspaces_section:
            if not isinstance(entry, Mapping):
                raise ValueError("Each workspace entry must be a mapping")
            workspaces.append(Workspace.from_dict(entry))

        return cls(
            devices=devices,
            hardware_products=products,
            workspaces=workspaces,
            user_settings=settings_section,
        )

    # Workspaces

    def get_workspaces(self) -> List[Workspace]:
        return list(self._workspaces.values())

    def get_workspace(self, workspace_id: str) -> Workspace:
        try:
            return self._workspaces[workspace_id]
        except KeyError:
            raise KeyError(f"Workspace '{workspace_id}' not found") from None

    def get_sub_workspaces(self, workspace_id: str) -> List[Workspace]:
        self.get_workspace(workspace_id)
        return [ws for ws in self._workspaces.values() if ws.parent_id == workspace_id]

    def get_workspace_devices(
        self, workspace_id: str, health: Optional[str] = None
    ) -> List[Device]:
        """Return the devices assigned to a workspace.

        Args:
            workspace_id: Workspace identifier.
            health: Optional health filter, matched case-insensitively.

        Returns:
            Devices in workspace order. Serials the snapshot does not describe
            are returned as bare devices so that ``fill_in_device`` reports them.
        """
        workspace = self.get_workspace(workspace_id)
        devices = []
        for serial in workspace.devices:
            device = self._devices.get(serial, Device(id=serial))
            if health and device.health.lower() != health.lower():
                continue
            devices.append(device)
        logger.debug(
            f"Workspace {workspace_id}: {len(devices)} devices"
            + (f" with health '{health}'" if health else "")
        )
        return devices

    def get_workspace_relays(
        self, workspace_id: str, active_only: bool = False
    ) -> List[Relay]:
        relays = list(self.get_workspace(workspace_id).relays)
        if active_only:
            relays = [r for r in relays if r.active]
        return relays

    def get_relay_devices(self, workspace_id: str, relay_id: str) -> List[Device]:
        """Return the devices last seen through a relay, in relay order.

        Raises:
            KeyError: If the workspace or the relay within it is unknown.
        """
        for relay in self.get_workspace(workspace_id).relays:
            if relay.id == relay_id:
                return [self._devices.get(s, Device(id=s)) for s in relay.devices]
        raise KeyError(f"Relay '{relay_id}' not found in workspace '{workspace_id}'")

    def get_workspace_racks(self, workspace_id: str) -> List[WorkspaceRack]:
        return list(self.get_workspace(workspace_id).racks)

    def get_workspace_rack(self, workspace_id: str, rack_id: str) -> WorkspaceRack:
        for rack in self.get_workspace(workspace_id).racks:
            if rack.id == rack_id:
                return rack
        raise KeyError(f"Rack '{rack_id}' not found in workspace '{workspace_id}'")

    def get_workspace_rooms(self, workspace_id: str) -> List[Room]:
        return list(self.get_workspace(workspace_id).rooms)

    def get_workspace_users(self, workspace_id: str) -> List[User]:
        return list(self.get_workspace(workspace_id).users)

    # Devices

    def get_device(self, serial: str) -> Device:
        try:
            return self._devices[serial]
        except KeyError:
            raise KeyError(f"Device '{serial}' not found") from None

    def fill_in_device(self, device: Device) -> Device:
        """Return the full record for ``device`` with its target product resolved.

        Raises:
            KeyError: If the device is not in the inventory.
        """
        full = self.get_device(device.id)
        target = full.location.target_hardware_product
        if target.id and not (target.name or target.alias):
            product = self._hardware_products.get(target.id)
            if product is not None:
                full = replace(
                    full, location=replace(full.location, target_hardware_product=product)
                )
        return full

    def get_device_location(self, serial: str) -> DeviceLocation:
        return self.get_device(serial).location

    def get_device_settings(self, serial: str) -> Dict[str, Any]:
        return dict(self.get_device(serial).settings)

    def get_device_setting(self, serial: str, key: str) -> Any:
        settings = self.get_device(serial).settings
        if key not in settings:
            raise KeyError(f"Setting '{key}' not found for device '{serial}'")
        return settings[key]

    # Hardware and settings

    def get_hardware_product(self, product_id: str) -> HardwareProduct:
        try:
            return self._hardware_products[product_id]
        except KeyError:
            raise KeyError(f"Hardware product '{product_id}' not found") from None

    def get_user_settings(self) -> Dict[str, Any]:
        return dict(self._user_settings)

    def get_user_setting(self, key: str) -> Any:
        try:
            return self._user_settings[key]
        except KeyError:
            raise KeyError(f"Setting '{key}' not found") from None


def load_inventory(path: Union[str, Path] = DEFAULT_INVENTORY_PATH) -> Inventory:
    """Load an inventory snapshot from a YAML or JSON file.

    Args:
        path: Snapshot path; ``~`` is expanded.

    Returns:
        Inventory built from the file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file does not hold a valid snapshot.
    """
    resolved = Path(path).expanduser()
    if not resolved.is_file():
        raise FileNotFoundError(f"Inventory file not found: {resolved}")

    logger.debug(f"Loading inventory from {resolved}")
    try:
        data = yaml.safe_load(resolved.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid inventory file {resolved}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("The inventory file must map to a dictionary at top-level.")

    inventory = Inventory.from_dict(data)
    logger.info(
        f"Loaded inventory: {len(data.get('devices') or {})} devices, "
        f"{len(inventory.get_workspaces())} workspaces"
    )
    return inventory
