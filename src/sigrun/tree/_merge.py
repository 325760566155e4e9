"""
Deep merge of a child tree onto a base tree.

Merge rules, applied per key across the union of both objects:
- Explicit null in child: key removed from the result
- Key only in base: kept as-is
- Key only in child: added
- Both objects: merged recursively
- Both arrays: concatenated (base items first, then child items)
- Anything else (scalars, mismatched kinds): child replaces base

The merge is not commutative, and arrays make chains order-sensitive, so
profile chains are always folded base first, child last.
"""

from __future__ import annotations

import typing as _typing

import sigrun.tree._types as _types
import sigrun.tree._values as _values


def merge(
    base: _types.JsonObject,
    child: _types.JsonObject,
) -> _types.JsonObject:
    """
    Deep merge ``child`` onto ``base``.

    Neither input is modified; the result shares no containers with them.

    Args:
        base: The object to merge onto.
        child: The object whose values take precedence.

    Returns:
        A new merged object.

    Raises:
        TypeError: If either root is not an object.
    """
    if not isinstance(base, dict) or not isinstance(child, dict):
        raise TypeError(
            "merge requires objects at the root, got "
            f"{type(base).__name__} and {type(child).__name__}"
        )

    result = _typing.cast(_types.JsonObject, _values.deep_clone(base))
    _merge_into(result, child)
    return result


def merge_chain(*layers: _types.JsonObject) -> _types.JsonObject:
    """
    Fold layers lowest precedence first.

    ``merge_chain(a, b, c)`` is ``merge(merge(a, b), c)``. With no layers the
    result is an empty object.
    """
    result: _types.JsonObject = {}
    for layer in layers:
        result = merge(result, layer)
    return result


def _merge_into(target: _types.JsonObject, child: _types.JsonObject) -> None:
    """Merge child properties into target, modifying target in place."""
    for key, child_value in child.items():
        # Explicit null in child = remove from result
        if child_value is None:
            target.pop(key, None)
            continue

        if key not in target:
            target[key] = _values.deep_clone(child_value)
            continue

        target_value = target[key]

        if isinstance(target_value, dict) and isinstance(child_value, dict):
            _merge_into(target_value, child_value)
            continue

        if isinstance(target_value, list) and isinstance(child_value, list):
            target[key] = [*target_value, *_values.deep_clone(child_value)]
            continue

        target[key] = _values.deep_clone(child_value)
