"""
Document sanitization against a schema descriptor.

Sanitizing brings a persisted document in line with the current schema:

1. Registered migrations run first and are recorded
2. Known properties that are missing get their default (``added``)
3. Unknown properties are removed (``removed``)

Nested objects and object items of arrays are sanitized recursively.
Include directives inside include-capable arrays are left alone, and the
``$schema`` / ``$extends`` directives are never treated as unknown at the
document root.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import typing as _typing

import sigrun.composition.includes as includes
import sigrun.constants as constants
import sigrun.schema.descriptor as descriptor
import sigrun.schema.migrations as migrations_mod
import sigrun.tree as tree


@_dataclasses.dataclass
class SanitizationReport:
    """What sanitization changed. Paths are dotted, array items use ``[i]``."""

    added: list[str] = _dataclasses.field(default_factory=list)
    removed: list[str] = _dataclasses.field(default_factory=list)
    migrations: list[str] = _dataclasses.field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when the document already matched the schema."""
        return not (self.added or self.removed or self.migrations)

    def __bool__(self) -> bool:
        return not self.is_empty


def sanitize(
    document: tree.JsonObject,
    schema: descriptor.SchemaDescriptor,
    migrations: _typing.Sequence[migrations_mod.Migration] = migrations_mod.DEFAULT_MIGRATIONS,
) -> tuple[tree.JsonObject, SanitizationReport]:
    """
    Sanitize a document against a descriptor.

    Args:
        document: The document to sanitize (not modified).
        schema: Descriptor of the expected shape.
        migrations: Migration rules to run before sanitizing.

    Returns:
        Tuple of (sanitized document, report).

    Example:
        >>> schema = SchemaBuilder().field("x", "integer").field("y", "integer", default=0).build()
        >>> sanitize({"x": 1, "z": 2}, schema)
        ({'x': 1, 'y': 0}, SanitizationReport(added=['y'], removed=['z'], migrations=[]))
    """
    report = SanitizationReport()
    result = tree.deep_clone(document)
    _sanitize_object(result, schema, "", tuple(migrations), report, root=True)
    return result, report


def _sanitize_object(
    obj: tree.JsonObject,
    schema: descriptor.SchemaDescriptor,
    path: str,
    migrations: tuple[migrations_mod.Migration, ...],
    report: SanitizationReport,
    *,
    root: bool = False,
) -> None:
    for migration in migrations:
        report.migrations.extend(migration.apply(obj, schema, path))

    for field in schema:
        field_path = migrations_mod.join_path(path, field.name)
        if field.name not in obj:
            obj[field.name] = field.default_value()
            report.added.append(field_path)
            continue

        value = obj[field.name]
        if field.fields is not None and isinstance(value, dict):
            _sanitize_object(value, field.fields, field_path, migrations, report)
        elif field.item_fields is not None and isinstance(value, list):
            for i, item in enumerate(value):
                if field.includable and includes.is_include_directive(item):
                    continue
                if isinstance(item, dict):
                    _sanitize_object(
                        item, field.item_fields, f"{field_path}[{i}]", migrations, report
                    )

    for key in list(obj):
        if key in schema:
            continue
        if root and key in constants.DIRECTIVE_KEYS:
            continue
        del obj[key]
        report.removed.append(migrations_mod.join_path(path, key))
