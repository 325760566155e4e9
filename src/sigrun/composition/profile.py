"""
Type definitions for configuration profiles.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import pathlib as _pathlib

import sigrun.composition.loader as loader
import sigrun.constants as constants
import sigrun.errors as errors
import sigrun.tree as tree


@_dataclasses.dataclass(frozen=True)
class Profile:
    """
    A named configuration file, optionally extending a parent profile.

    The body never contains the ``$extends`` or ``$schema`` directives; they
    are lifted out when the file is parsed.
    """

    name: str
    """Profile name relative to the base directory, without extension."""

    path: _pathlib.Path
    """Absolute path of the profile file."""

    body: tree.JsonObject
    """Raw configuration data."""

    extends: str | None = None
    """Parent profile reference as written in the file, if any."""


def parse_profile(name: str, path: _pathlib.Path) -> Profile:
    """
    Load a profile file and lift its directives out of the body.

    Args:
        name: Profile name used in chains and error messages.
        path: File to load.

    Returns:
        The parsed Profile.

    Raises:
        FileFormatError: If the file is unreadable or not a JSON object.
        InvalidDirectiveError: If ``$extends`` is not a non-empty string.
    """
    data = loader.load_json_object(path)
    return profile_from_tree(name, path, data)


def profile_from_tree(
    name: str,
    path: _pathlib.Path,
    data: tree.JsonObject,
) -> Profile:
    """Build a Profile from an already-parsed object (the input is not modified)."""
    body = {key: value for key, value in data.items() if key not in constants.DIRECTIVE_KEYS}

    extends: str | None = None
    if constants.EXTENDS_KEY in data:
        raw = data[constants.EXTENDS_KEY]
        if not isinstance(raw, str) or not raw.strip():
            found = "empty string" if isinstance(raw, str) else tree.kind_of(raw)
            raise errors.InvalidDirectiveError(constants.EXTENDS_KEY, found, path=path)
        extends = raw.strip()

    return Profile(name=name, path=path, body=body, extends=extends)
