"""
Sparse patches: the inverse of merge.

A patch holds only what differs between an edited tree and its base:
- Value equals base: omitted (inherited)
- Value differs from base: included (override)
- Key only in edited: included (new)
- Key only in base: explicit null (deletion on re-merge)
- Objects: diffed recursively, empty sub-patches omitted
- Arrays: compared whole, replaced whole when different

Arrays are the one place where merge and diff disagree. Merge concatenates,
but a diff cannot tell which items of a concatenated array came from the
base, so a changed array is captured as a full replacement. Re-merging such a
patch appends the replacement to the base array instead of reproducing it.
"""

from __future__ import annotations

import sigrun.constants as constants
import sigrun.tree._types as _types
import sigrun.tree._values as _values


def create_patch(
    base: _types.JsonObject,
    edited: _types.JsonObject,
) -> _types.JsonObject:
    """
    Create a sparse patch that turns ``base`` into ``edited`` when merged.

    Args:
        base: The resolved base document.
        edited: The edited document.

    Returns:
        A new object with only overridden, added, and deleted properties.

    Raises:
        TypeError: If either root is not an object.
    """
    if not isinstance(base, dict) or not isinstance(edited, dict):
        raise TypeError(
            "create_patch requires objects at the root, got "
            f"{type(base).__name__} and {type(edited).__name__}"
        )

    patch: _types.JsonObject = {}

    # Union of keys, base order first then keys new in edited
    keys = list(base) + [key for key in edited if key not in base]

    for key in keys:
        in_base = key in base
        in_edited = key in edited

        if in_base and not in_edited:
            patch[key] = None
            continue

        if in_edited and not in_base:
            patch[key] = _values.deep_clone(edited[key])
            continue

        base_value = base[key]
        edited_value = edited[key]

        if isinstance(base_value, dict) and isinstance(edited_value, dict):
            child_patch = create_patch(base_value, edited_value)
            if child_patch:
                patch[key] = child_patch
            continue

        if not _values.deep_equal(base_value, edited_value):
            patch[key] = _values.deep_clone(edited_value)

    return patch


def create_child_profile(
    base: _types.JsonObject,
    edited: _types.JsonObject,
    extends_name: str,
) -> _types.JsonObject:
    """
    Create a patch ready to be saved as a child profile.

    The ``$extends`` key is placed first so the saved file reads naturally.

    Args:
        base: The resolved base profile.
        edited: The edited document.
        extends_name: Name of the base profile (without ``.json``).

    Returns:
        ``{"$extends": extends_name, **patch}``.

    Raises:
        ValueError: If extends_name is empty.
    """
    if not extends_name or not extends_name.strip():
        raise ValueError("extends_name must be a non-empty profile name")

    patch = create_patch(base, edited)
    return {constants.EXTENDS_KEY: extends_name, **patch}
