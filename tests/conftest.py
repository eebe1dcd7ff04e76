"""Global pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from conchshell.inventory import Inventory, load_inventory
from conchshell.report.remediation import BatchReport, load_batch_report

SAMPLE_DATA = Path(__file__).parent / "sample_data"


@pytest.fixture
def inventory_path() -> Path:
    return SAMPLE_DATA / "inventory.yaml"


@pytest.fixture
def batch_report_path() -> Path:
    return SAMPLE_DATA / "batch_report.json"


@pytest.fixture
def inventory(inventory_path: Path) -> Inventory:
    return load_inventory(inventory_path)


@pytest.fixture
def batch_report(batch_report_path: Path) -> BatchReport:
    return load_batch_report(batch_report_path)
