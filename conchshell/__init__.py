"""conchshell: command-line client and reports for a Conch hardware inventory.

Primary API:
    load_inventory() - Load an inventory snapshot
    Inventory - Lookups over workspaces, devices, hardware products and relays
    build_health_summary() - Device health per hardware type
    build_failure_report() - Failing validations per component type
    build_remediation_report() - Hardware remediation timing
    aggregate() - Generic datacenter/rack/category aggregation

Example:
    from conchshell import load_inventory, build_health_summary
    from conchshell.report import render_health_summary

    inventory = load_inventory("~/.conch.yaml")
    report = build_health_summary(inventory, "ws-1")
    print(render_health_summary(report, breakout=True))
"""

from __future__ import annotations

from conchshell import cli, logging
from conchshell._version import __version__
from conchshell.config import REPORT_CONFIG, ReportConfig
from conchshell.inventory import Inventory, load_inventory
from conchshell.model.inventory import Device, HardwareProduct, Workspace
from conchshell.report.aggregate import Classification, Defaults, aggregate
from conchshell.report.failure import build_failure_report
from conchshell.report.health import build_health_summary
from conchshell.report.remediation import build_remediation_report, load_batch_report
from conchshell.report.tree import Report

__all__ = [
    # Version
    "__version__",
    # Inventory
    "Inventory",
    "load_inventory",
    "Device",
    "HardwareProduct",
    "Workspace",
    # Reports
    "Report",
    "Classification",
    "Defaults",
    "aggregate",
    "build_health_summary",
    "build_failure_report",
    "build_remediation_report",
    "load_batch_report",
    # Configuration
    "REPORT_CONFIG",
    "ReportConfig",
    # Utilities
    "cli",
    "logging",
]
