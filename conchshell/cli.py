"""Command-line interface for conchshell."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from time import perf_counter
from typing import Any, Callable, Dict, List, Optional

from conchshell.inventory import DEFAULT_INVENTORY_PATH, Inventory, load_inventory
from conchshell.logging import get_logger, set_global_log_level
from conchshell.model.inventory import Device, parse_timestamp
from conchshell.report.failure import build_failure_report, render_failure_report
from conchshell.report.health import build_health_summary, render_health_summary
from conchshell.report.remediation import (
    build_remediation_report,
    load_batch_report,
    render_remediation_csv,
    render_remediation_report,
)
from conchshell.utils.formatting import format_duration, format_table

logger = get_logger(__name__)

# Matches the API's human-facing timestamps, e.g. "Mon Jan  2 15:04:05 UTC 2006"
_TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %Z %Y"


def _emit_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _format_timestamp(value: Any) -> str:
    """Return a display timestamp, or an empty string for unset/unparseable values."""
    try:
        ts = parse_timestamp(value)
    except (TypeError, ValueError):
        return str(value)
    if ts is None:
        return ""
    return ts.strftime(_TIMESTAMP_FORMAT)


def _print_table(headers: List[str], rows: List[List[Any]]) -> None:
    table = format_table(headers, rows)
    print(table if table else "No results")


def _non_negative_seconds(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid seconds: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {text}")
    return value


# Inventory queries


def _cmd_workspaces(inventory: Inventory, args: argparse.Namespace) -> None:
    workspaces = inventory.get_workspaces()
    if args.json:
        _emit_json([ws.to_dict() for ws in workspaces])
        return
    _print_table(
        ["Role", "Id", "Name", "Description"],
        [[ws.role, ws.id, ws.name, ws.description] for ws in workspaces],
    )


def _cmd_workspace(inventory: Inventory, args: argparse.Namespace) -> None:
    workspace = inventory.get_workspace(args.workspace)
    children = inventory.get_sub_workspaces(args.workspace)
    if args.json:
        data = workspace.to_dict()
        data["sub_workspaces"] = [ws.to_dict() for ws in children]
        _emit_json(data)
        return
    print(f"Id:          {workspace.id}")
    print(f"Name:        {workspace.name}")
    print(f"Role:        {workspace.role}")
    print(f"Description: {workspace.description}")
    print(f"Devices:     {len(workspace.devices)}")
    if children:
        print("\nSub-workspaces:")
        _print_table(
            ["Role", "Id", "Name", "Description"],
            [[ws.role, ws.id, ws.name, ws.description] for ws in children],
        )


def _display_devices(
    inventory: Inventory, devices: List[Device], args: argparse.Namespace
) -> None:
    if args.json:
        if args.full:
            _emit_json([inventory.fill_in_device(d).to_dict() for d in devices])
        else:
            _emit_json([d.to_minimal_dict() for d in devices])
        return
    _print_table(
        ["ID", "Asset Tag", "Created", "Last Seen", "Health", "Flags"],
        [
            [
                d.id,
                d.asset_tag,
                _format_timestamp(d.created),
                _format_timestamp(d.last_seen),
                d.health,
                d.flags,
            ]
            for d in devices
        ],
    )


def _cmd_devices(inventory: Inventory, args: argparse.Namespace) -> None:
    devices = inventory.get_workspace_devices(args.workspace, health=args.health)
    _display_devices(inventory, devices, args)


def _cmd_relays(inventory: Inventory, args: argparse.Namespace) -> None:
    relays = inventory.get_workspace_relays(args.workspace, active_only=args.active_only)
    if args.json:
        _emit_json([r.to_dict() for r in relays])
        return
    _print_table(
        [
            "ID",
            "Alias",
            "Created",
            "IP Addr",
            "SSH Port",
            "Updated",
            "Version",
            "Number of Devices",
        ],
        [
            [
                r.id,
                r.alias,
                _format_timestamp(r.created),
                r.ipaddr,
                r.ssh_port,
                _format_timestamp(r.updated),
                r.version,
                len(r.devices),
            ]
            for r in relays
        ],
    )


def _cmd_relay_devices(inventory: Inventory, args: argparse.Namespace) -> None:
    devices = inventory.get_relay_devices(args.workspace, args.relay)
    _display_devices(inventory, devices, args)


def _cmd_racks(inventory: Inventory, args: argparse.Namespace) -> None:
    racks = inventory.get_workspace_racks(args.workspace)
    if args.json:
        _emit_json([r.to_dict(include_slots=False) for r in racks])
        return
    _print_table(
        ["ID", "Name", "Role", "Size", "Datacenter"],
        [[r.id, r.name, r.role, r.size, r.datacenter] for r in racks],
    )


def _cmd_rack(inventory: Inventory, args: argparse.Namespace) -> None:
    rack = inventory.get_workspace_rack(args.workspace, args.rack)
    if args.json:
        _emit_json(rack.to_dict(include_slots=args.slots))
        return
    print(f"ID:         {rack.id}")
    print(f"Name:       {rack.name}")
    print(f"Role:       {rack.role}")
    print(f"Size:       {rack.size}")
    print(f"Datacenter: {rack.datacenter}")
    if not args.slots:
        return

    # Occupants outside the workspace have no known health
    health = {d.id: d.health for d in inventory.get_workspace_devices(args.workspace)}
    print()
    _print_table(
        ["RU", "Occupied", "Name", "Alias", "Vendor", "Occupied By", "Health"],
        [
            [
                s.rack_unit,
                "X" if s.occupant else "",
                s.name,
                s.alias,
                s.vendor,
                s.occupant,
                health.get(s.occupant, ""),
            ]
            for s in rack.slots
        ],
    )


def _cmd_rooms(inventory: Inventory, args: argparse.Namespace) -> None:
    rooms = inventory.get_workspace_rooms(args.workspace)
    if args.json:
        _emit_json([r.to_dict() for r in rooms])
        return
    _print_table(
        ["ID", "AZ", "Alias", "Vendor Name"],
        [[r.id, r.az, r.alias, r.vendor_name] for r in rooms],
    )


def _cmd_users(inventory: Inventory, args: argparse.Namespace) -> None:
    users = inventory.get_workspace_users(args.workspace)
    if args.json:
        _emit_json([u.to_dict() for u in users])
        return
    _print_table(
        ["Name", "Email", "Role"], [[u.name, u.email, u.role] for u in users]
    )


def _cmd_device(inventory: Inventory, args: argparse.Namespace) -> None:
    device = inventory.fill_in_device(inventory.get_device(args.serial))
    if args.json:
        _emit_json(device.to_dict())
        return
    product = device.location.target_hardware_product
    print(f"Device:    {device.id}")
    print(f"Asset Tag: {device.asset_tag}")
    print(f"Health:    {device.health}")
    print(f"State:     {device.state}")
    print(f"Role:      {device.role}")
    print(f"Product:   {product.alias or product.name or device.hardware_product}")
    print(f"Created:   {_format_timestamp(device.created)}")
    print(f"Last Seen: {_format_timestamp(device.last_seen)}")
    print(f"Flags:     {device.flags}")


def _cmd_location(inventory: Inventory, args: argparse.Namespace) -> None:
    location = inventory.get_device_location(args.serial)
    if args.json:
        _emit_json(location.to_dict())
        return
    print(f"Location for device {args.serial}:")
    print("  Datacenter:")
    print(f"    Id:   {location.datacenter.id}")
    print(f"    Name: {location.datacenter.name}")
    print("  Rack:")
    print(f"    Id:   {location.rack.id}")
    print(f"    Name: {location.rack.name}")
    print(f"    Role: {location.rack.role}")
    print(f"    Unit: {location.rack.unit}")


def _print_settings(settings: Dict[str, Any], keys_only: bool, as_json: bool) -> None:
    keys = sorted(settings)
    if as_json:
        _emit_json(keys if keys_only else settings)
        return
    if not keys:
        print("No settings found")
        return
    for key in keys:
        print(key if keys_only else f"{key} : {settings[key]}")


def _cmd_device_settings(inventory: Inventory, args: argparse.Namespace) -> None:
    settings = inventory.get_device_settings(args.serial)
    _print_settings(settings, args.keys_only, args.json)


def _cmd_device_setting(inventory: Inventory, args: argparse.Namespace) -> None:
    value = inventory.get_device_setting(args.serial, args.key)
    if args.json:
        _emit_json({args.key: value})
        return
    print(value)


def _cmd_settings(inventory: Inventory, args: argparse.Namespace) -> None:
    _print_settings(inventory.get_user_settings(), args.keys_only, args.json)


def _cmd_setting(inventory: Inventory, args: argparse.Namespace) -> None:
    value = inventory.get_user_setting(args.key)
    if args.json:
        _emit_json(value)
        return
    print(value)


# Reports


def _cmd_health_summary(inventory: Inventory, args: argparse.Namespace) -> None:
    report = build_health_summary(
        inventory,
        args.workspace,
        platform_name=args.platform_name,
        datacenter=args.datacenter,
    )
    if args.json:
        _emit_json(report.to_dict())
        return
    print(render_health_summary(report, breakout=args.breakout, uuids=args.uuids))


def _cmd_report_failure(inventory: Inventory, args: argparse.Namespace) -> None:
    report = build_failure_report(inventory, args.workspace, datacenter=args.datacenter)
    if args.json:
        _emit_json(report.to_dict())
        return
    print(render_failure_report(report, breakout=args.breakout, uuids=args.uuids))


def _cmd_hardware_failure(inventory: Inventory, args: argparse.Namespace) -> None:
    batch = load_batch_report(args.batch_report)
    report = build_remediation_report(
        inventory,
        batch,
        datacenter=args.datacenter,
        remediation_minimum=args.remediation_minimum,
    )
    if args.csv:
        sys.stdout.write(render_remediation_csv(report))
        return
    if args.json:
        _emit_json(report.to_dict())
        return
    print(
        render_remediation_report(
            report,
            include_vendors=args.full or args.include_vendors,
            include_components=args.full or args.include_components,
        )
    )


Handler = Callable[[Inventory, argparse.Namespace], None]

_COMMANDS: Dict[str, Handler] = {
    "workspaces": _cmd_workspaces,
    "workspace": _cmd_workspace,
    "devices": _cmd_devices,
    "relays": _cmd_relays,
    "relay-devices": _cmd_relay_devices,
    "racks": _cmd_racks,
    "rack": _cmd_rack,
    "rooms": _cmd_rooms,
    "users": _cmd_users,
    "device": _cmd_device,
    "location": _cmd_location,
    "device-settings": _cmd_device_settings,
    "device-setting": _cmd_device_setting,
    "settings": _cmd_settings,
    "setting": _cmd_setting,
    "health-summary": _cmd_health_summary,
    "report-failure": _cmd_report_failure,
    "hardware-failure": _cmd_hardware_failure,
}


def _add_report_options(p: argparse.ArgumentParser, uuids: bool = True) -> None:
    p.add_argument(
        "--datacenter",
        default=None,
        metavar="UUID",
        help="Limit the output to the datacenter with this id",
    )
    if uuids:
        p.add_argument(
            "--breakout",
            action="store_true",
            help="Break results out by rack as well as datacenter (ignored with --json)",
        )
        p.add_argument(
            "--uuids", action="store_true", help="Show UUIDs where appropriate"
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conch",
        description="Query a Conch inventory and build hardware reports.",
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Only log warnings and errors"
    )
    parser.add_argument(
        "--inventory",
        "-i",
        type=Path,
        default=DEFAULT_INVENTORY_PATH,
        help=f"Inventory snapshot (YAML or JSON, default: {DEFAULT_INVENTORY_PATH})",
    )
    parser.add_argument(
        "--json", action="store_true", help="Output results as JSON"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        title="Available commands",
        metavar="{" + ",".join(_COMMANDS) + "}",
        help="Available commands",
    )

    subparsers.add_parser("workspaces", help="List workspaces and their ids")

    ws_parser = subparsers.add_parser("workspace", help="Show one workspace")
    ws_parser.add_argument("workspace", help="Workspace id")

    devices_parser = subparsers.add_parser(
        "devices", help="List the devices in a workspace"
    )
    devices_parser.add_argument("workspace", help="Workspace id")
    devices_parser.add_argument(
        "--health", default=None, help="Only list devices with this health"
    )
    devices_parser.add_argument(
        "--full",
        action="store_true",
        help="With --json, output full device records instead of the short form",
    )

    relays_parser = subparsers.add_parser(
        "relays", help="List the relays in a workspace"
    )
    relays_parser.add_argument("workspace", help="Workspace id")
    relays_parser.add_argument(
        "--active-only", action="store_true", help="Only list active relays"
    )

    relay_devices_parser = subparsers.add_parser(
        "relay-devices", help="List the devices last seen through a relay"
    )
    relay_devices_parser.add_argument("workspace", help="Workspace id")
    relay_devices_parser.add_argument("relay", help="Relay id")
    relay_devices_parser.add_argument(
        "--full",
        action="store_true",
        help="With --json, output full device records instead of the short form",
    )

    for name, help_text in (
        ("racks", "List the racks in a workspace"),
        ("rooms", "List the datacenter rooms in a workspace"),
        ("users", "List the users of a workspace and their roles"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("workspace", help="Workspace id")

    rack_parser = subparsers.add_parser("rack", help="Show one rack in a workspace")
    rack_parser.add_argument("workspace", help="Workspace id")
    rack_parser.add_argument("rack", help="Rack id")
    rack_parser.add_argument(
        "--slots", action="store_true", help="Show the rack layout and its occupants"
    )

    for name, help_text in (
        ("device", "Show one device"),
        ("location", "Show where a device is installed"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("serial", help="Device serial")

    device_settings_parser = subparsers.add_parser(
        "device-settings", help="Show the settings of a device"
    )
    device_settings_parser.add_argument("serial", help="Device serial")
    settings_parser = subparsers.add_parser(
        "settings", help="Show the settings of the current user"
    )
    for p in (device_settings_parser, settings_parser):
        p.add_argument(
            "--keys-only", action="store_true", help="Only show setting names"
        )

    device_setting_parser = subparsers.add_parser(
        "device-setting", help="Show one setting of a device"
    )
    device_setting_parser.add_argument("serial", help="Device serial")
    device_setting_parser.add_argument("key", help="Setting name")
    setting_parser = subparsers.add_parser(
        "setting", help="Show one setting of the current user"
    )
    setting_parser.add_argument("key", help="Setting name")

    health_parser = subparsers.add_parser(
        "health-summary", help="Summarize device health by hardware type"
    )
    health_parser.add_argument("workspace", help="Workspace id")
    health_parser.add_argument(
        "--platform-name",
        action="store_true",
        help="Label hardware by platform name instead of common name",
    )
    _add_report_options(health_parser)

    failure_parser = subparsers.add_parser(
        "report-failure", help="Report failing validations by component type"
    )
    failure_parser.add_argument("workspace", help="Workspace id")
    _add_report_options(failure_parser)

    hw_parser = subparsers.add_parser(
        "hardware-failure", help="Report hardware remediation times"
    )
    hw_parser.add_argument(
        "--batch-report",
        type=Path,
        required=True,
        help="Batch job output file (JSON)",
    )
    hw_parser.add_argument(
        "--include-components",
        action="store_true",
        help="Break failures out by component name as well as type",
    )
    hw_parser.add_argument(
        "--include-vendors", action="store_true", help="Include vendor breakdown"
    )
    hw_parser.add_argument(
        "--full",
        action="store_true",
        help="Include all breakdowns (implies --include-components and --include-vendors)",
    )
    hw_parser.add_argument(
        "--csv",
        action="store_true",
        help="Output CSV tables (implies --full, overrides --json)",
    )
    hw_parser.add_argument(
        "--remediation-minimum",
        type=_non_negative_seconds,
        default=None,
        metavar="SECONDS",
        help="Ignore remediations shorter than this (default: 90)",
    )
    _add_report_options(hw_parser, uuids=False)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``conch`` command.

    Args:
        argv: Optional list of command-line arguments. If ``None``, ``sys.argv``
            is used.
    """
    parser = _build_parser()

    effective_args = sys.argv[1:] if argv is None else argv

    # If no arguments are provided, show help and exit cleanly
    if not effective_args:
        parser.print_help()
        raise SystemExit(0)

    args = parser.parse_args(effective_args)

    if args.verbose:
        set_global_log_level(logging.DEBUG)
        logger.debug("Debug logging enabled")
    elif args.quiet:
        set_global_log_level(logging.WARNING)
    else:
        set_global_log_level(logging.INFO)

    _start_time = perf_counter()
    try:
        inventory = load_inventory(args.inventory)
        _COMMANDS[args.command](inventory, args)
    except FileNotFoundError as e:
        logger.error(str(e))
        print(f"❌ ERROR: {e}")
        sys.exit(1)
    except KeyError as e:
        message = e.args[0] if e.args else str(e)
        logger.error(f"Lookup failed: {message}")
        print(f"❌ ERROR: {message}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Command '{args.command}' failed: {type(e).__name__}: {e}")
        print(f"❌ ERROR: {type(e).__name__}: {e}")
        sys.exit(1)

    logger.debug(
        f"Command '{args.command}' completed in {format_duration(perf_counter() - _start_time)}"
    )


if __name__ == "__main__":
    main()
