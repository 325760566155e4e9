"""
Path resolution inside a trusted base directory.

The base directory is the trust boundary for every directive. References are
resolved and checked here, before any file is opened.
"""

from __future__ import annotations

import pathlib as _pathlib

import sigrun.constants as constants
import sigrun.errors as errors


def ensure_suffix(name: str, suffix: str = constants.JSON_SUFFIX) -> str:
    """Append ``suffix`` unless ``name`` already ends with it (case-insensitive)."""
    return name if name.lower().endswith(suffix.lower()) else f"{name}{suffix}"


def strip_suffix(name: str, suffix: str = constants.JSON_SUFFIX) -> str:
    """Remove a trailing ``suffix`` if present (case-insensitive)."""
    return name[: -len(suffix)] if name.lower().endswith(suffix.lower()) else name


def is_within(path: _pathlib.Path, root: _pathlib.Path) -> bool:
    """Check whether ``path`` is ``root`` or lies beneath it, after resolving both."""
    return path.resolve().is_relative_to(root.resolve())


def resolve_within(
    root: _pathlib.Path,
    reference: str,
    *,
    relative_to: _pathlib.Path | None = None,
    suffix: str | None = constants.JSON_SUFFIX,
) -> _pathlib.Path:
    """
    Resolve a directive reference to an absolute path inside ``root``.

    Args:
        root: The base directory; the result must stay inside it.
        reference: Relative reference as written in the file (e.g.
            ``"_fragments/header"`` or ``"../base"``).
        relative_to: Directory the reference is relative to. Defaults to root.
        suffix: Extension appended when missing. None leaves the name alone.

    Returns:
        The resolved absolute path. The file is not required to exist.

    Raises:
        PathEscapeError: If the reference resolves outside root. Absolute
            references always escape.
    """
    root_resolved = root.resolve()
    name = ensure_suffix(reference, suffix) if suffix else reference

    if _pathlib.PurePath(name).is_absolute():
        raise errors.PathEscapeError(reference, _pathlib.Path(name), root_resolved)

    start = relative_to if relative_to is not None else root_resolved
    resolved = (start / name).resolve()

    if not resolved.is_relative_to(root_resolved):
        raise errors.PathEscapeError(reference, resolved, root_resolved)

    return resolved


def relative_name(
    path: _pathlib.Path,
    root: _pathlib.Path,
    suffix: str = constants.JSON_SUFFIX,
) -> str:
    """
    Name of a file relative to ``root`` without extension, using ``/`` separators.

    ``<root>/wip/child.json`` becomes ``"wip/child"``.
    """
    relative = path.resolve().relative_to(root.resolve())
    return strip_suffix(relative.as_posix(), suffix)
