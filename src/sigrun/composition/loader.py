"""
Scoped JSON file reading and writing.

Every file access opens, operates, and closes within a ``with`` block, so
handles are released on error paths too.
"""

from __future__ import annotations

import json as _json
import pathlib as _pathlib
import typing as _typing

import sigrun.constants as constants
import sigrun.errors as errors
import sigrun.tree as tree


def load_json(path: _pathlib.Path) -> _typing.Any:
    """
    Parse a JSON file.

    Args:
        path: File to read.

    Returns:
        The parsed value (any JSON kind).

    Raises:
        FileFormatError: If the file cannot be read or is not valid JSON.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            return _json.load(f)
    except PermissionError as e:
        raise errors.FileFormatError(path, f"permission denied: {e}") from e
    except _json.JSONDecodeError as e:
        raise errors.FileFormatError(path, f"invalid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise errors.FileFormatError(path, f"invalid UTF-8: {e}") from e
    except OSError as e:
        raise errors.FileFormatError(path, f"cannot read file: {e}") from e


def load_json_object(path: _pathlib.Path) -> tree.JsonObject:
    """
    Parse a JSON file whose root must be an object.

    Raises:
        FileFormatError: If unreadable, malformed, or the root is not an object.
    """
    data = load_json(path)
    if not isinstance(data, dict):
        raise errors.FileFormatError(
            path,
            f"document must be a JSON object, got {tree.kind_of(data)}",
        )
    return data


def dump_json(
    path: _pathlib.Path,
    data: _typing.Any,
    *,
    indent: int = constants.DEFAULT_JSON_INDENT,
) -> _pathlib.Path:
    """
    Write a value as indented JSON, creating parent directories as needed.

    Returns:
        The path written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        _json.dump(data, f, indent=indent, ensure_ascii=False)
        f.write("\n")
    return path
