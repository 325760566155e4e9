"""
Type aliases for JSON value trees.

This module provides type aliases used throughout the tree package:
- JsonValue: any value a JSON document can hold
- JsonObject: a JSON object (the only valid document root)
- Path: tuple of keys representing a nested property path
"""

from __future__ import annotations

import typing as _typing

if _typing.TYPE_CHECKING:
    # Recursive types for type checking
    JsonValue: _typing.TypeAlias = (
        "dict[str, JsonValue] | list[JsonValue] | str | int | float | bool | None"
    )
    JsonObject: _typing.TypeAlias = "dict[str, JsonValue]"
else:
    # Runtime-safe fallback (mypy uses TYPE_CHECKING branch)
    JsonValue: _typing.TypeAlias = object
    JsonObject: _typing.TypeAlias = dict

# Path alias for nested key paths
# Example: ("fields", "format", "unit") represents fields.format.unit
Path: _typing.TypeAlias = tuple[str, ...]


def format_path(path: Path) -> str:
    """Render a key path as a dotted string (e.g. ``fields.format.unit``)."""
    return ".".join(path)
