"""
Directory managers for settings, state and output files.

Layout under an application root:

    <root>/<app>/
    ├── settings/   # SETTINGS documents, profiles, fragments, schemas
    ├── state/      # STATE documents and CSV tables
    └── output/     # OUTPUT documents, optionally dated or in run folders

Directories are created on first use.
"""

from __future__ import annotations

import datetime as _datetime
import fnmatch as _fnmatch
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic

import sigrun.composition.paths as paths
import sigrun.constants as constants
import sigrun.errors as errors
import sigrun.schema.descriptor as descriptor_mod
import sigrun.storage.behavior as behavior_mod
import sigrun.storage.csv_store as csv_store
import sigrun.storage.document as document_mod

_logger = _logging.getLogger(__name__)


def timestamp(now: _datetime.datetime | None = None) -> str:
    """Format a time the way dated file and directory names use it."""
    return (now or _datetime.datetime.now()).strftime(constants.TIMESTAMP_FORMAT)


class BaseManager:
    """A directory holding documents of one category."""

    default_name: _typing.ClassVar[str] = ""

    def __init__(self, parent: _pathlib.Path, name: str | None = None) -> None:
        self.name = name or self.default_name
        self.directory = parent / self.name
        self.directory.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.directory)!r})"

    def json_path(self, filename: str | None = None) -> _pathlib.Path:
        """Path of a JSON file in this directory (``.json`` added if missing)."""
        return self.directory / paths.ensure_suffix(filename or self.name)

    def dated_json_path(
        self,
        filename: str | None = None,
        now: _datetime.datetime | None = None,
    ) -> _pathlib.Path:
        """Path of ``<name>_<timestamp>.json`` in this directory."""
        name = paths.strip_suffix(filename or self.name)
        return self.directory / f"{name}_{timestamp(now)}{constants.JSON_SUFFIX}"

    def csv_path(self, filename: str | None = None) -> _pathlib.Path:
        """Path of a CSV file in this directory (``.csv`` added if missing)."""
        return self.directory / paths.ensure_suffix(filename or self.name, constants.CSV_SUFFIX)

    def dated_csv_path(
        self,
        filename: str | None = None,
        now: _datetime.datetime | None = None,
    ) -> _pathlib.Path:
        """Path of ``<name>_<timestamp>.csv`` in this directory."""
        name = paths.strip_suffix(filename or self.name, constants.CSV_SUFFIX)
        return self.directory / f"{name}_{timestamp(now)}{constants.CSV_SUFFIX}"

    def _checked_subdirectory(self, subdirectory: str) -> str:
        if not subdirectory or not subdirectory.strip():
            raise errors.InvalidArgumentError(
                "Subdirectory name must not be empty",
                argument="subdirectory",
            )
        candidate = self.directory / subdirectory
        if _pathlib.PurePath(subdirectory).is_absolute() or not paths.is_within(
            candidate, self.directory
        ):
            raise errors.InvalidArgumentError(
                f"Subdirectory path '{subdirectory}' would escape base directory.",
                argument="subdirectory",
            )
        if candidate.resolve() == self.directory.resolve():
            raise errors.InvalidArgumentError(
                f"Subdirectory path '{subdirectory}' names the base directory itself.",
                argument="subdirectory",
            )
        return subdirectory


# =============================================================================
# Settings
# =============================================================================


class SettingsManager(BaseManager):
    """Settings documents; composition and schemas live in this directory."""

    default_name = constants.SETTINGS_DIR_NAME

    def json(
        self,
        filename: str | None = None,
        descriptor: descriptor_mod.SchemaDescriptor | None = None,
        **kwargs: _typing.Any,
    ) -> document_mod.ComposableDocument:
        """
        Open a settings document.

        Args:
            filename: File name (defaults to the manager's name).
            descriptor: Shape of the document.
            **kwargs: Passed to ComposableDocument (defaults, migrations).
        """
        return document_mod.ComposableDocument(
            self.json_path(filename),
            self.directory,
            behavior_mod.Behavior.SETTINGS,
            descriptor=descriptor,
            **kwargs,
        )

    def subdir(
        self,
        subdirectory: str,
        *,
        recursive: bool = False,
        exclude_patterns: _typing.Sequence[str] | None = None,
    ) -> SettingsSubDir:
        """
        Navigate to a subdirectory (``"profiles"`` or ``"profiles/production"``).

        Raises:
            InvalidArgumentError: If the name is empty or escapes this directory.
        """
        subdirectory = self._checked_subdirectory(subdirectory)
        return SettingsSubDir(
            self.directory,
            subdirectory,
            recursive=recursive,
            exclude_patterns=exclude_patterns,
        )


class SettingsSubDir(SettingsManager):
    """Settings subdirectory with optional recursive profile discovery."""

    def __init__(
        self,
        parent: _pathlib.Path,
        name: str,
        *,
        recursive: bool = False,
        exclude_patterns: _typing.Sequence[str] | None = None,
    ) -> None:
        super().__init__(parent, name)
        self.recursive = recursive
        self.exclude_patterns = tuple(
            exclude_patterns if exclude_patterns is not None else constants.DEFAULT_EXCLUDE_PATTERNS
        )

    def list_json_files(self) -> list[str]:
        """
        List JSON files in this directory, relative to it (``"electrical/panel.json"``).

        See :func:`list_json_files`.
        """
        return list_json_files(
            self.directory,
            recursive=self.recursive,
            exclude_patterns=self.exclude_patterns,
        )


def list_json_files(
    directory: _pathlib.Path,
    *,
    recursive: bool = False,
    exclude_patterns: _typing.Sequence[str] | None = None,
) -> list[str]:
    """
    List profile files under ``directory`` without creating anything.

    Schema files (``schema.json``, ``*schema.json``, ``*schema-*``) and
    paths with a segment matching an exclusion glob (default ``_*``, e.g.
    ``_fragments``) are skipped. Nested directories are searched only when
    ``recursive`` is set.

    Returns:
        Sorted POSIX paths relative to ``directory``.
    """
    if not directory.is_dir():
        return []
    if exclude_patterns is None:
        exclude_patterns = constants.DEFAULT_EXCLUDE_PATTERNS

    pattern = f"*{constants.JSON_SUFFIX}"
    found = directory.rglob(pattern) if recursive else directory.glob(pattern)

    result = []
    for path in sorted(found):
        if not path.is_file():
            continue
        relative = path.relative_to(directory)
        if _is_schema_file(relative.name) or _is_excluded(relative, exclude_patterns):
            continue
        result.append(relative.as_posix())
    return result


def _is_schema_file(name: str) -> bool:
    return name.endswith(constants.SCHEMA_FILE) or "schema-" in name


def _is_excluded(relative: _pathlib.PurePath, patterns: _typing.Sequence[str]) -> bool:
    return any(
        _fnmatch.fnmatch(segment, pattern) for segment in relative.parts for pattern in patterns
    )


# =============================================================================
# State
# =============================================================================


class StateManager(BaseManager):
    """Program-managed state documents and CSV tables."""

    default_name = constants.STATE_DIR_NAME

    def json(
        self,
        filename: str | None = None,
        descriptor: descriptor_mod.SchemaDescriptor | None = None,
        **kwargs: _typing.Any,
    ) -> document_mod.ComposableDocument:
        """Open a state document (created with defaults when missing)."""
        return document_mod.ComposableDocument(
            self.json_path(filename),
            self.directory,
            behavior_mod.Behavior.STATE,
            descriptor=descriptor,
            **kwargs,
        )

    def csv(
        self,
        filename: str | None = None,
        row_model: type[_pydantic.BaseModel] | None = None,
    ) -> csv_store.CsvStore:
        """Open a keyed-row CSV table."""
        return csv_store.CsvStore(self.csv_path(filename), row_model)


# =============================================================================
# Output
# =============================================================================


class OutputManager(BaseManager):
    """Write-only output files."""

    default_name = constants.OUTPUT_DIR_NAME

    def json(self, filename: str) -> document_mod.ComposableDocument:
        """Open an output document."""
        return self._document(self.json_path(filename))

    def json_dated(
        self,
        filename: str,
        now: _datetime.datetime | None = None,
    ) -> document_mod.ComposableDocument:
        """Open ``<filename>_<YYYY-MM-DD_HH-MM-SS>.json``."""
        return self._document(self.dated_json_path(filename, now))

    def csv(self, filename: str) -> csv_store.CsvStore:
        return csv_store.CsvStore(self.csv_path(filename))

    def csv_dated(
        self,
        filename: str,
        now: _datetime.datetime | None = None,
    ) -> csv_store.CsvStore:
        return csv_store.CsvStore(self.dated_csv_path(filename, now))

    def subdir(self, subdirectory: str) -> OutputManager:
        """
        Navigate to a subdirectory (``"reports/2024"``).

        Raises:
            InvalidArgumentError: If the name is empty or escapes this directory.
        """
        return OutputManager(self.directory, self._checked_subdirectory(subdirectory))

    def timestamped_subdir(
        self,
        prefix: str | None = None,
        now: _datetime.datetime | None = None,
    ) -> OutputManager:
        """Create a subdirectory for one run: ``<prefix>_<timestamp>`` or ``<timestamp>``."""
        stamp = timestamp(now)
        name = f"{prefix.strip()}_{stamp}" if prefix and prefix.strip() else stamp
        _logger.debug("Creating run directory %s in %s", name, self.directory)
        return self.subdir(name)

    def _document(self, path: _pathlib.Path) -> document_mod.ComposableDocument:
        return document_mod.ComposableDocument(path, self.directory, behavior_mod.Behavior.OUTPUT)


# =============================================================================
# Application root
# =============================================================================


class Storage:
    """
    Entry point for an application's storage root.

    Example:
        >>> storage = Storage(pathlib.Path.home() / ".local/share", "myapp")
        >>> storage.settings().json("profile", descriptor).read()
    """

    def __init__(self, root: _pathlib.Path, app_name: str) -> None:
        if not app_name or not app_name.strip():
            raise errors.InvalidArgumentError(
                "Application name must not be empty",
                argument="app_name",
            )
        self.root = root
        self.app_name = app_name.strip()
        self.directory = root / self.app_name

    def settings(self) -> SettingsManager:
        return SettingsManager(self.directory)

    def state(self) -> StateManager:
        return StateManager(self.directory)

    def output(self) -> OutputManager:
        return OutputManager(self.directory)

    def settings_dir(self) -> _pathlib.Path:
        return self.settings().directory

    def state_dir(self) -> _pathlib.Path:
        return self.state().directory

    def output_dir(self) -> _pathlib.Path:
        return self.output().directory
