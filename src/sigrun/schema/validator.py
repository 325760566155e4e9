"""
Document validation against a schema descriptor.

Validation reports, never fixes:
- a value of the wrong kind
- null on a non-nullable field
- a string outside its provider's allowed values
- a missing required field

Unknown properties are not violations here; sanitization removes them.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import typing as _typing

import sigrun.composition.includes as includes
import sigrun.constants as constants
import sigrun.schema.descriptor as descriptor
import sigrun.schema.migrations as migrations_mod
import sigrun.schema.providers as providers
import sigrun.tree as tree


@_dataclasses.dataclass(frozen=True)
class Violation:
    """One schema violation."""

    path: str
    """Dotted location of the offending value."""

    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class Validator:
    """
    Validates documents against one descriptor.

    Owns the ProviderCache for that descriptor, so providers are queried at
    most once for as long as the validator lives.
    """

    def __init__(
        self,
        schema: descriptor.SchemaDescriptor,
        cache: providers.ProviderCache | None = None,
    ) -> None:
        self.schema = schema
        self.cache = cache if cache is not None else providers.ProviderCache()

    def validate(self, document: tree.JsonObject) -> list[Violation]:
        """
        Check a document and return every violation found (empty if valid).
        """
        violations: list[Violation] = []
        self._check_object(document, self.schema, "", violations)
        return violations

    def _check_object(
        self,
        obj: tree.JsonObject,
        schema: descriptor.SchemaDescriptor,
        path: str,
        violations: list[Violation],
    ) -> None:
        for field in schema:
            field_path = migrations_mod.join_path(path, field.name)
            if field.name not in obj:
                if field.required:
                    violations.append(Violation(field_path, "required property is missing"))
                continue
            self._check_value(obj[field.name], field, obj, field_path, violations)

    def _check_value(
        self,
        value: _typing.Any,
        field: descriptor.FieldDescriptor,
        siblings: tree.JsonObject,
        path: str,
        violations: list[Violation],
    ) -> None:
        if value is None:
            if not field.nullable:
                violations.append(Violation(path, "null is not allowed"))
            return

        if not field.kind.accepts(value):
            violations.append(
                Violation(path, f"expected {field.kind.value}, got {tree.kind_of(value)}")
            )
            return

        if field.kind is descriptor.FieldKind.STRING:
            allowed = self.cache.resolve(field.options, siblings)
            if allowed is not None and value not in allowed:
                violations.append(
                    Violation(path, f"'{value}' is not one of the allowed values: {allowed}")
                )
        elif field.kind is descriptor.FieldKind.OBJECT and field.fields is not None:
            self._check_object(value, field.fields, path, violations)
        elif field.kind is descriptor.FieldKind.ARRAY:
            self._check_items(value, field, path, violations)

    def _check_items(
        self,
        items: list[_typing.Any],
        field: descriptor.FieldDescriptor,
        path: str,
        violations: list[Violation],
    ) -> None:
        for i, item in enumerate(items):
            item_path = f"{path}[{i}]"
            if field.includable and includes.is_include_directive(item):
                reference = item[constants.INCLUDE_KEY]
                if not isinstance(reference, str) or len(item) != 1:
                    violations.append(
                        Violation(item_path, "include directive must be {\"$include\": string}")
                    )
                continue
            if field.items is None:
                continue
            if not field.items.accepts(item):
                violations.append(
                    Violation(
                        item_path,
                        f"expected {field.items.value}, got {tree.kind_of(item)}",
                    )
                )
                continue
            if field.item_fields is not None:
                self._check_object(item, field.item_fields, item_path, violations)
            elif field.items is descriptor.FieldKind.STRING:
                allowed = self.cache.resolve(field.options, None)
                if allowed is not None and item not in allowed:
                    violations.append(
                        Violation(
                            item_path,
                            f"'{item}' is not one of the allowed values: {allowed}",
                        )
                    )


def validate(
    document: tree.JsonObject,
    schema: descriptor.SchemaDescriptor,
) -> list[Violation]:
    """Validate with a fresh Validator (and therefore a fresh provider cache)."""
    return Validator(schema).validate(document)
