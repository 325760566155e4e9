"""
Primitive operations on JSON value trees.

Trees are plain Python containers as produced by ``json.load``: dicts for
objects, lists for arrays, and str/int/float/bool/None for scalars. Nothing
here mutates its inputs.
"""

from __future__ import annotations

import copy as _copy
import typing as _typing

import sigrun.tree._types as _types

# JSON kind names, as used in error messages and generated schemas
OBJECT = "object"
ARRAY = "array"
STRING = "string"
INTEGER = "integer"
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"


def kind_of(value: _typing.Any) -> str:
    """
    Return the JSON kind name of a value.

    bool is checked before int because ``bool`` subclasses ``int`` in Python
    but is a distinct kind in JSON.

    Raises:
        TypeError: If the value is not representable in JSON.
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return INTEGER
    if isinstance(value, float):
        return NUMBER
    if isinstance(value, str):
        return STRING
    if isinstance(value, dict):
        return OBJECT
    if isinstance(value, list):
        return ARRAY
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def is_object(value: _typing.Any) -> bool:
    """Check whether a value is a JSON object."""
    return isinstance(value, dict)


def is_array(value: _typing.Any) -> bool:
    """Check whether a value is a JSON array."""
    return isinstance(value, list)


def deep_clone(value: _types.JsonValue) -> _types.JsonValue:
    """Return an independent copy of a tree."""
    return _copy.deepcopy(value)


def deep_equal(left: _types.JsonValue, right: _types.JsonValue) -> bool:
    """
    Deep structural equality of two trees.

    Differs from ``==`` in two ways that matter for configuration files:
    booleans never equal numbers (``True`` vs ``1``), and object key order
    is ignored while array order is not. ``1`` and ``1.0`` compare equal,
    matching JSON's single number type.

    Args:
        left: First tree.
        right: Second tree.

    Returns:
        True if both trees hold the same data.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right

    if isinstance(left, dict):
        if not isinstance(right, dict) or left.keys() != right.keys():
            return False
        return all(deep_equal(left[key], right[key]) for key in left)

    if isinstance(left, list):
        if not isinstance(right, list) or len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right, strict=True))

    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right

    if type(left) is not type(right):
        return False

    return bool(left == right)


def iter_paths(
    tree: _types.JsonObject,
    prefix: _types.Path = (),
) -> _typing.Iterator[_types.Path]:
    """
    Yield the key path of every property, descending into nested objects.

    Arrays are leaves: their items are not addressed by path.
    """
    for key, value in tree.items():
        path = (*prefix, key)
        yield path
        if isinstance(value, dict):
            yield from iter_paths(value, path)
