"""Utility helpers used across conchshell.

Small, self-contained utilities that do not depend on project internals.
"""

from conchshell.utils.formatting import format_duration, format_table
from conchshell.utils.yaml_utils import normalize_yaml_dict_keys

__all__ = [
    "format_duration",
    "format_table",
    "normalize_yaml_dict_keys",
]
