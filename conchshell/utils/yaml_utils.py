"""Utilities for handling YAML parsing quirks."""

from typing import Any, Dict, TypeVar

V = TypeVar("V")


def normalize_yaml_dict_keys(data: Dict[Any, V]) -> Dict[str, V]:
    """Normalize dictionary keys from YAML parsing to plain strings.

    Inventory snapshots are keyed by serials and product ids. YAML turns
    numeric-looking serials (``12345``) into ints and YAML 1.1 words such as
    ``yes``/``no`` into booleans; both must stay usable as string keys.

    Args:
        data: Dictionary that may contain non-string keys from YAML parsing.

    Returns:
        Dictionary with all keys converted to strings.

    Examples:
        >>> normalize_yaml_dict_keys({12345: "a", True: "b", "c": "d"})
        {'12345': 'a', 'True': 'b', 'c': 'd'}
    """
    normalized = {}
    for key, value in data.items():
        normalized[str(key)] = value
    return normalized
