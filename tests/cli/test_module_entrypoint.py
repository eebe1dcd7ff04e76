"""Tests for running conchshell as a module (`python -m conchshell`)."""

from __future__ import annotations

import runpy
from unittest.mock import patch

import pytest


def test_module_help_exits_zero() -> None:
    """Running with --help should exit cleanly with code 0."""
    with patch("sys.argv", ["conch", "--help"]):
        with pytest.raises(SystemExit) as exc_info:
            runpy.run_module("conchshell", run_name="__main__")
    assert exc_info.value.code == 0


def test_module_subcommand_help_exits_zero() -> None:
    with patch("sys.argv", ["conch", "hardware-failure", "--help"]):
        with pytest.raises(SystemExit) as exc_info:
            runpy.run_module("conchshell", run_name="__main__")
    assert exc_info.value.code == 0


def test_module_unknown_command_exits_two() -> None:
    with patch("sys.argv", ["conch", "frobnicate"]):
        with pytest.raises(SystemExit) as exc_info:
            runpy.run_module("conchshell", run_name="__main__")
    assert exc_info.value.code == 2
