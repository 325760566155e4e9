"""
Error types for Sigrun.

Every error carries a ``kind`` so callers can branch on the failure class
without importing each concrete type:

    try:
        data = document.read()
    except errors.SigrunError as e:
        match e.kind:
            case errors.ErrorKind.SANITIZATION_DRIFT:
                show_review_dialog(e.added, e.removed, e.migrations)
            case _:
                raise

Each error also exposes a ``details`` dict with the same structured data
(paths, chains, property lists) for logging and serialization.
"""

from __future__ import annotations

import enum as _enum
import pathlib as _pathlib
import typing as _typing


class ErrorKind(_enum.Enum):
    """Failure classes surfaced at the engine boundary."""

    MISSING_REQUIRED_FILE = "missing_required_file"
    COMPOSITION_CYCLE = "composition_cycle"
    PATH_ESCAPE = "path_escape"
    MISSING_INCLUDE_TARGET = "missing_include_target"
    PROFILE_NOT_FOUND = "profile_not_found"
    INVALID_DIRECTIVE = "invalid_directive"
    INVALID_ARGUMENT = "invalid_argument"
    SCHEMA_VALIDATION = "schema_validation"
    SANITIZATION_DRIFT = "sanitization_drift"
    FILE_FORMAT = "file_format"
    READ_NOT_ALLOWED = "read_not_allowed"
    CRASH = "crash"


class SigrunError(Exception):
    """Base class for all Sigrun errors."""

    kind: _typing.ClassVar[ErrorKind]

    def __init__(
        self,
        message: str,
        *,
        path: _pathlib.Path | None = None,
        details: dict[str, _typing.Any] | None = None,
    ) -> None:
        self.path = path
        self.details: dict[str, _typing.Any] = dict(details or {})
        if path is not None:
            self.details.setdefault("path", str(path))
        super().__init__(message)


# =============================================================================
# Intentional crash
# =============================================================================


class CrashProgramError(SigrunError):
    """
    Explicit hard-failure pathway for states the caller cannot recover from.

    Wraps a message or another exception with structured details so the host
    can report the crash precisely.
    """

    kind = ErrorKind.CRASH

    _PREFIX = "The program was intentionally crashed because"

    def __init__(
        self,
        reason: str | BaseException,
        details: dict[str, _typing.Any] | None = None,
    ) -> None:
        if isinstance(reason, BaseException):
            message = f"{self._PREFIX} an unrecoverable error occurred:\n\n{reason}"
            merged = {"error_type": type(reason).__name__, **(details or {})}
            if isinstance(reason, SigrunError):
                merged = {**reason.details, **merged, "error_kind": reason.kind.value}
        else:
            text = reason.strip()
            message = f"{self._PREFIX} {text[:1].lower()}{text[1:]}" if text else self._PREFIX
            merged = dict(details or {})
        super().__init__(message, details=merged)


# =============================================================================
# File-level errors
# =============================================================================


class FileFormatError(SigrunError):
    """A file could not be read or does not contain the expected JSON shape."""

    kind = ErrorKind.FILE_FORMAT

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        super().__init__(f"Error in JSON file {path}: {message}", path=path)


class MissingRequiredFileError(CrashProgramError):
    """
    A settings file was missing. A default was written for review.

    Raised through the crash pathway, under its own kind.
    """

    kind = ErrorKind.MISSING_REQUIRED_FILE

    def __init__(self, path: _pathlib.Path) -> None:
        super().__init__(
            f"File {path} did not exist. A default file was created, "
            "please review it and try again.",
            {"path": str(path)},
        )
        self.path = path


class ReadNotAllowedError(SigrunError):
    """Attempted to read a write-only (output) document."""

    kind = ErrorKind.READ_NOT_ALLOWED

    def __init__(self, path: _pathlib.Path) -> None:
        super().__init__(f"Cannot read output-only file {path}", path=path)


class InvalidArgumentError(SigrunError, ValueError):
    """A call received a malformed argument (empty name, escaping path, ...)."""

    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, *, argument: str | None = None) -> None:
        details = {"argument": argument} if argument is not None else None
        super().__init__(message, details=details)


# =============================================================================
# Composition errors ($extends / $include)
# =============================================================================


class CompositionError(SigrunError):
    """Base class for profile inheritance and fragment inclusion failures."""


class CompositionCycleError(CompositionError):
    """An $extends chain or $include chain revisits an entry on the stack."""

    kind = ErrorKind.COMPOSITION_CYCLE

    def __init__(
        self,
        chain: list[str],
        *,
        path: _pathlib.Path | None = None,
        directive: str = "$extends",
    ) -> None:
        self.chain = list(chain)
        self.directive = directive
        what = "inheritance" if directive == "$extends" else "fragment include"
        super().__init__(
            f"Circular {what} detected:\n"
            f"  {' → '.join(self.chain)}\n\n"
            f"Profile {what}s must form a tree, not a cycle.",
            path=path,
            details={"chain": self.chain, "directive": directive},
        )


class PathEscapeError(CompositionError):
    """A directive or subdirectory resolves outside the base directory."""

    kind = ErrorKind.PATH_ESCAPE

    def __init__(
        self,
        reference: str,
        resolved: _pathlib.Path,
        root: _pathlib.Path,
    ) -> None:
        self.reference = reference
        self.resolved = resolved
        self.root = root
        super().__init__(
            f"Path '{reference}' would escape base directory.\n"
            f"  Resolved to: {resolved}\n"
            f"  Base directory: {root}",
            path=resolved,
            details={"reference": reference, "root": str(root)},
        )


class MissingIncludeTargetError(CompositionError):
    """An $include references a fragment file that does not exist."""

    kind = ErrorKind.MISSING_INCLUDE_TARGET

    def __init__(self, reference: str, expected: _pathlib.Path) -> None:
        self.reference = reference
        super().__init__(
            "Fragment file not found.\n"
            f"  Expected: {expected}\n"
            "  Hint: Ensure the fragment file exists and the path in '$include' is correct.\n"
            "        Fragment paths are relative to the base directory.",
            path=expected,
            details={"reference": reference},
        )


class ProfileNotFoundError(CompositionError):
    """A profile (or the base named by $extends) does not exist."""

    kind = ErrorKind.PROFILE_NOT_FOUND

    def __init__(
        self,
        name: str,
        expected: _pathlib.Path,
        *,
        child: _pathlib.Path | None = None,
    ) -> None:
        self.name = name
        self.child = child
        if child is None:
            message = f"Profile '{name}' was not found.\n  Expected: {expected}"
        else:
            message = (
                f"Profile '{child.name}' extends '{name}', but base profile was not found.\n"
                f"  Expected: {expected}\n"
                "  Hint: Ensure the base profile exists and the name is spelled correctly "
                "(case-sensitive)."
            )
        details: dict[str, _typing.Any] = {"name": name}
        if child is not None:
            details["child"] = str(child)
        super().__init__(message, path=expected, details=details)


class InvalidDirectiveError(CompositionError, ValueError):
    """A $extends or $include value is not a non-empty string."""

    kind = ErrorKind.INVALID_DIRECTIVE

    def __init__(
        self,
        directive: str,
        found: str,
        *,
        path: _pathlib.Path | None = None,
    ) -> None:
        self.directive = directive
        where = f" in '{path.name}'" if path is not None else ""
        super().__init__(
            f"Invalid '{directive}' value{where}.\n"
            "  Expected: a non-empty string\n"
            f"  Found: {found}",
            path=path,
            details={"directive": directive, "found": found},
        )


# =============================================================================
# Schema errors
# =============================================================================


class SchemaValidationError(SigrunError):
    """A document violates its schema (kind, enum, or required constraints)."""

    kind = ErrorKind.SCHEMA_VALIDATION

    def __init__(self, path: _pathlib.Path | None, violations: list[str]) -> None:
        self.violations = list(violations)
        count = len(self.violations)
        where = f" at {path}" if path is not None else ""
        lines = [
            f"JSON validation failed{where} with {count} error{'s' if count != 1 else ''}:"
        ]
        lines.extend(f"  {i}. {violation}" for i, violation in enumerate(self.violations, 1))
        super().__init__("\n".join(lines), path=path, details={"violations": self.violations})


class SanitizationDriftError(SigrunError):
    """Sanitizing a settings file added, removed, or migrated properties."""

    kind = ErrorKind.SANITIZATION_DRIFT

    def __init__(
        self,
        path: _pathlib.Path,
        added: list[str],
        removed: list[str],
        migrations: list[str],
    ) -> None:
        self.added = list(added)
        self.removed = list(removed)
        self.migrations = list(migrations)
        super().__init__(
            self._format(path),
            path=path,
            details={
                "added": self.added,
                "removed": self.removed,
                "migrations": self.migrations,
            },
        )

    def _format(self, path: _pathlib.Path) -> str:
        message = f"JSON file {path} has been updated."
        if self.added:
            message += "\nAdded properties:\n\t-" + "\n\t-".join(self.added)
        if self.removed:
            message += "\nRemoved properties:\n\t-" + "\n\t-".join(self.removed)
        if self.migrations:
            message += "\nApplied migrations:\n\t-" + "\n\t-".join(self.migrations)
        message += "\nPlease review the settings before running again."
        return message

