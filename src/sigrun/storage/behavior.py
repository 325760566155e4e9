"""
Behavior policies for the three document categories.

The category is chosen when a document is opened and never changes for
that document:

- SETTINGS: user-edited configuration. A missing file is written with
  defaults and the read fails so the user reviews it first. Schema drift
  is fixed on disk and reported as an error.
- STATE: program-managed data. Missing files are created silently and
  drift is fixed silently.
- OUTPUT: write-only results. No schema, no validation, no read path.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum


class MissingFile(_enum.Enum):
    """What reading a missing file does."""

    WRITE_DEFAULTS_AND_FAIL = "write_defaults_and_fail"
    WRITE_DEFAULTS = "write_defaults"
    NOT_READABLE = "not_readable"


@_dataclasses.dataclass(frozen=True)
class BehaviorPolicy:
    """Rules a document follows for its whole lifetime."""

    readable: bool
    """Whether ``read()`` is allowed at all."""

    on_missing: MissingFile
    """Reaction to reading a file that does not exist."""

    sanitize: bool
    """Whether reads sanitize against the descriptor."""

    drift_is_fatal: bool
    """Whether sanitization changes raise instead of being fixed silently."""

    validate: bool
    """Whether reads and writes validate against the descriptor."""

    inject_schema: bool
    """Whether written files get a ``$schema`` reference."""


class Behavior(_enum.Enum):
    """Document category."""

    SETTINGS = "settings"
    STATE = "state"
    OUTPUT = "output"

    @property
    def policy(self) -> BehaviorPolicy:
        """The policy for this category."""
        return _POLICIES[self]


_POLICIES: dict[Behavior, BehaviorPolicy] = {
    Behavior.SETTINGS: BehaviorPolicy(
        readable=True,
        on_missing=MissingFile.WRITE_DEFAULTS_AND_FAIL,
        sanitize=True,
        drift_is_fatal=True,
        validate=True,
        inject_schema=True,
    ),
    Behavior.STATE: BehaviorPolicy(
        readable=True,
        on_missing=MissingFile.WRITE_DEFAULTS,
        sanitize=True,
        drift_is_fatal=False,
        validate=True,
        inject_schema=True,
    ),
    Behavior.OUTPUT: BehaviorPolicy(
        readable=False,
        on_missing=MissingFile.NOT_READABLE,
        sanitize=False,
        drift_is_fatal=False,
        validate=False,
        inject_schema=False,
    ),
}
