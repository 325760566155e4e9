"""
Composable JSON documents.

A ComposableDocument is the read/write front door for one JSON file. It
ties together composition (``$extends`` / ``$include``), the schema
descriptor and the behavior policy of its category:

    doc = ComposableDocument(
        settings_dir / "profile.json",
        settings_dir,
        Behavior.SETTINGS,
        descriptor=describe_model(Profile),
    )
    data = doc.read()

Every read goes back to disk; nothing is cached between calls.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import datetime as _datetime
import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import sigrun.composition.includes as includes
import sigrun.composition.loader as loader
import sigrun.composition.profile as profile_mod
import sigrun.composition.resolver as resolver
import sigrun.constants as constants
import sigrun.errors as errors
import sigrun.schema.descriptor as descriptor_mod
import sigrun.schema.generator as generator
import sigrun.schema.migrations as migrations_mod
import sigrun.schema.providers as providers
import sigrun.schema.sanitizer as sanitizer
import sigrun.schema.validator as validator
import sigrun.storage.behavior as behavior_mod
import sigrun.tree as tree

_logger = _logging.getLogger(__name__)

_T = _typing.TypeVar("_T")


@_dataclasses.dataclass(frozen=True)
class ReadResult(_typing.Generic[_T]):
    """Value-or-error outcome of a read, for callers that prefer not to catch."""

    value: _T | None = None
    error: errors.SigrunError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> _T:
        """Return the value, or raise the captured error."""
        if self.error is not None:
            raise self.error
        return _typing.cast(_T, self.value)


class ComposableDocument:
    """
    One JSON file governed by a behavior policy.

    Composition is resolved inside ``schema_directory``, which is also where
    schema files are written and the trust boundary for directives.
    """

    def __init__(
        self,
        path: _pathlib.Path,
        schema_directory: _pathlib.Path,
        behavior: behavior_mod.Behavior,
        *,
        descriptor: descriptor_mod.SchemaDescriptor | None = None,
        defaults: tree.JsonObject | None = None,
        migrations: _typing.Sequence[migrations_mod.Migration] = migrations_mod.DEFAULT_MIGRATIONS,
    ) -> None:
        """
        Initialize the document.

        Args:
            path: The JSON file.
            schema_directory: Root for composition and schema files.
            behavior: Category of the document.
            descriptor: Shape of the document. Without one, nothing is
                validated or sanitized and no schema is written.
            defaults: Content for missing files. Defaults to the
                descriptor's defaults (or an empty object).
            migrations: Migration rules run before sanitizing.

        Raises:
            InvalidArgumentError: If the path does not name a ``.json`` file.
        """
        if path.suffix.lower() != constants.JSON_SUFFIX or not path.stem:
            raise errors.InvalidArgumentError(
                f"Document path must name a .json file: {path}",
                argument="path",
            )
        self.path = path
        self.schema_directory = schema_directory
        self.behavior = behavior
        self.policy = behavior.policy
        self.descriptor = descriptor
        self.migrations = tuple(migrations)
        self._defaults = defaults
        self._cache = providers.ProviderCache()
        self._validator = (
            validator.Validator(descriptor, self._cache) if descriptor is not None else None
        )
        self._schemas_written = False

    def __repr__(self) -> str:
        return f"ComposableDocument({str(self.path)!r}, {self.behavior.name})"

    # =========================================================================
    # Reading
    # =========================================================================

    def read(self) -> tree.JsonObject:
        """
        Read the document, resolving composition and applying the policy.

        Returns:
            The effective document, without ``$schema`` or ``$extends``.

        Raises:
            ReadNotAllowedError: For output documents.
            MissingRequiredFileError: For a missing settings file (after
                writing defaults).
            SanitizationDriftError: For a settings file that needed fixing
                (after writing the fixed version).
            SchemaValidationError: If the document violates the schema.
            CompositionError: If ``$extends`` / ``$include`` cannot resolve.
            FileFormatError: If the file is unreadable or malformed.
        """
        if not self.policy.readable:
            raise errors.ReadNotAllowedError(self.path)

        if not self.path.is_file():
            return self._handle_missing()

        raw = loader.load_json_object(self.path)
        has_extends = constants.EXTENDS_KEY in raw
        composed = has_extends or includes.contains_include_directives(raw)
        self._ensure_schema_reference(raw, has_extends)

        if composed:
            document = self._resolver(maintain_bases=True).resolve_tree(raw, self.path)
        else:
            document = {k: v for k, v in raw.items() if k not in constants.DIRECTIVE_KEYS}

        if self.descriptor is not None and self.policy.sanitize:
            document = self._sanitize(document, composed)

        self._validate(document)
        return document

    def try_read(self) -> ReadResult[tree.JsonObject]:
        """Like :meth:`read`, but return failures instead of raising them."""
        try:
            return ReadResult(value=self.read())
        except errors.SigrunError as e:
            return ReadResult(error=e)

    def is_cache_valid(
        self,
        max_age_minutes: float,
        content_validator: _typing.Callable[[tree.JsonObject], bool] | None = None,
    ) -> bool:
        """
        Check whether the file is recent enough (and acceptable) to reuse.

        Args:
            max_age_minutes: Maximum age of the file's last modification.
            content_validator: Optional predicate run on the read document.

        Returns:
            False if the file is missing, too old, or rejected by the
            predicate.
        """
        if not self.path.is_file():
            return False
        modified = _datetime.datetime.fromtimestamp(self.path.stat().st_mtime)
        age = _datetime.datetime.now() - modified
        if age > _datetime.timedelta(minutes=max_age_minutes):
            return False
        if content_validator is not None:
            return bool(content_validator(self.read()))
        return True

    # =========================================================================
    # Writing
    # =========================================================================

    def write(self, data: _typing.Any) -> _pathlib.Path:
        """
        Write the document.

        Output documents are written as-is. Settings and state documents are
        validated first and get a ``$schema`` reference.

        Returns:
            The path written.

        Raises:
            SchemaValidationError: If the data violates the schema.
        """
        if not self.policy.validate:
            return loader.dump_json(self.path, data)

        if not isinstance(data, dict):
            raise errors.InvalidArgumentError(
                f"{self.behavior.value} documents must be JSON objects, got {tree.kind_of(data)}",
                argument="data",
            )
        has_extends = constants.EXTENDS_KEY in data
        if has_extends:
            # A child profile is only complete once merged onto its base
            self._validate(self._resolver().resolve_tree(data, self.path))
        else:
            self._validate({k: v for k, v in data.items() if k != constants.SCHEMA_KEY})
        return self._dump(data, has_extends=has_extends)

    def save_edits(self, edited: tree.JsonObject, extends: str) -> _pathlib.Path:
        """
        Save an edited document as a minimal child of ``extends``.

        The edited document is validated in full; only its difference from
        the resolved base is written.

        Returns:
            The path written.
        """
        if not self.policy.validate:
            raise errors.InvalidArgumentError(
                "Output documents cannot be saved as child profiles",
                argument="behavior",
            )
        self._validate(edited)
        child = self._resolver().child_profile(self.path, extends, edited)
        _logger.debug("Saving %s as child of %s", self.path, extends)
        return self._dump(child, has_extends=True)

    # =========================================================================
    # Internals
    # =========================================================================

    def defaults(self) -> tree.JsonObject:
        """Content written for a missing file."""
        if self._defaults is not None:
            return tree.deep_clone(self._defaults)
        if self.descriptor is not None:
            return self.descriptor.defaults()
        return {}

    def _resolver(self, *, maintain_bases: bool = False) -> resolver.ProfileResolver:
        includable = (
            self.descriptor.includable_paths() if self.descriptor is not None else None
        )
        hook: resolver.BaseHook | None = None
        settings = self.behavior is behavior_mod.Behavior.SETTINGS
        if maintain_bases and settings and self.descriptor is not None:
            hook = self._maintain_base
        return resolver.ProfileResolver(
            self.schema_directory,
            includable_paths=includable,
            base_hook=hook,
        )

    def _handle_missing(self) -> tree.JsonObject:
        defaults = self.defaults()
        self._dump(defaults, has_extends=False)
        if self.policy.on_missing is behavior_mod.MissingFile.WRITE_DEFAULTS_AND_FAIL:
            raise errors.MissingRequiredFileError(self.path)
        _logger.debug("Created %s with defaults", self.path)
        return defaults

    def _sanitize(self, document: tree.JsonObject, composed: bool) -> tree.JsonObject:
        assert self.descriptor is not None
        sanitized, report = sanitizer.sanitize(document, self.descriptor, self.migrations)
        if report.is_empty:
            return sanitized

        if composed:
            # The composition is the source of truth; nothing to rewrite
            _logger.warning(
                "Resolved document %s differs from its schema (added=%s, removed=%s, "
                "migrations=%s); using the sanitized result",
                self.path,
                report.added,
                report.removed,
                report.migrations,
            )
            return sanitized

        self._dump(sanitized, has_extends=False)
        if self.policy.drift_is_fatal:
            raise errors.SanitizationDriftError(
                self.path, report.added, report.removed, report.migrations
            )
        _logger.warning(
            "Updated %s to match its schema (added=%s, removed=%s, migrations=%s)",
            self.path,
            report.added,
            report.removed,
            report.migrations,
        )
        return sanitized

    def _maintain_base(
        self,
        base: profile_mod.Profile,
        resolved: tree.JsonObject,
    ) -> tree.JsonObject:
        """
        Keep a settings base profile on disk in step with the schema.

        Intermediate bases get their ``$schema`` reference. A root base that
        drifted is sanitized and rewritten, and the sanitized version is what
        the chain merges onto.
        """
        assert self.descriptor is not None
        raw = loader.load_json_object(base.path)
        if base.extends is not None:
            self._ensure_schema_reference(raw, True, base.path)
            return resolved

        sanitized, report = sanitizer.sanitize(resolved, self.descriptor, self.migrations)
        if report.is_empty:
            self._ensure_schema_reference(raw, False, base.path)
            return resolved

        self._dump(sanitized, has_extends=False, path=base.path)
        _logger.warning(
            "Updated base profile %s to match its schema (added=%s, removed=%s, migrations=%s)",
            base.path,
            report.added,
            report.removed,
            report.migrations,
        )
        return sanitized

    def _validate(self, document: tree.JsonObject) -> None:
        if self._validator is None or not self.policy.validate:
            return
        violations = self._validator.validate(document)
        if violations:
            raise errors.SchemaValidationError(self.path, [str(v) for v in violations])

    def _schema_reference(self, has_extends: bool, path: _pathlib.Path | None = None) -> str:
        name = constants.EXTENDS_SCHEMA_FILE if has_extends else constants.SCHEMA_FILE
        target = self.schema_directory.resolve() / name
        relative = _os.path.relpath(target, (path or self.path).parent.resolve())
        return _pathlib.PurePath(relative).as_posix()

    def _write_schemas(self) -> None:
        if self._schemas_written or self.descriptor is None:
            return
        generator.write_schema_files(self.descriptor, self.schema_directory, cache=self._cache)
        self._schemas_written = True

    def _ensure_schema_reference(
        self,
        raw: tree.JsonObject,
        has_extends: bool,
        path: _pathlib.Path | None = None,
    ) -> None:
        if self.descriptor is None or not self.policy.inject_schema:
            return
        self._write_schemas()
        if raw.get(constants.SCHEMA_KEY) != self._schema_reference(has_extends, path):
            self._dump(raw, has_extends=has_extends, path=path)

    def _dump(
        self,
        data: _typing.Any,
        *,
        has_extends: bool,
        path: _pathlib.Path | None = None,
    ) -> _pathlib.Path:
        path = path or self.path
        if self.descriptor is None or not self.policy.inject_schema:
            return loader.dump_json(path, data)
        self._write_schemas()
        body = {k: v for k, v in data.items() if k != constants.SCHEMA_KEY}
        return loader.dump_json(
            path,
            {constants.SCHEMA_KEY: self._schema_reference(has_extends, path), **body},
        )
