"""
Declarative schema descriptors.

A SchemaDescriptor is pure data: an ordered mapping from property name to
FieldDescriptor. It is built once per document shape, either by hand with
SchemaBuilder or from a pydantic model with ``describe_model``, and then
inspected by the sanitizer, the validator and the JSON Schema generator.

Example:
    >>> descriptor = (
    ...     SchemaBuilder()
    ...     .field("color", FieldKind.STRING, default="red")
    ...     .field("tags", FieldKind.ARRAY, items=FieldKind.STRING, includable=True)
    ...     .build()
    ... )
    >>> descriptor.defaults()
    {'color': 'red', 'tags': []}
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import typing as _typing

import sigrun.errors as errors
import sigrun.schema.providers as providers
import sigrun.tree as tree


class FieldKind(str, _enum.Enum):
    """JSON kind of a field. Values match ``tree.kind_of`` names."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ANY = "any"

    def accepts(self, value: _typing.Any) -> bool:
        """Check whether a non-null value has this kind."""
        if self is FieldKind.ANY:
            return True
        actual = tree.kind_of(value)
        if self is FieldKind.NUMBER:
            return actual in (FieldKind.NUMBER.value, FieldKind.INTEGER.value)
        return actual == self.value


_ZERO_VALUES: dict[FieldKind, _typing.Any] = {
    FieldKind.ARRAY: [],
    FieldKind.STRING: "",
    FieldKind.INTEGER: 0,
    FieldKind.NUMBER: 0,
    FieldKind.BOOLEAN: False,
    FieldKind.ANY: None,
}


class _Missing:
    """Sentinel for "no default declared" (None is a legitimate default)."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: _typing.Any = _Missing()


@_dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    """Describes one property of a document."""

    name: str
    """Property name as it appears in JSON."""

    kind: FieldKind
    """Expected JSON kind of the value."""

    nullable: bool = False
    """Whether an explicit null is allowed."""

    required: bool = True
    """Whether the property must be present (drives the ``required`` list)."""

    default: _typing.Any = MISSING
    """Value inserted by sanitization when the property is absent."""

    includable: bool = False
    """Array items may be ``{"$include": ...}`` directives."""

    options: providers.OptionsSpec | None = None
    """Allowed-value source for string fields (provider or discriminated)."""

    fields: SchemaDescriptor | None = None
    """Nested descriptor for object fields."""

    items: FieldKind | None = None
    """Item kind for array fields."""

    item_fields: SchemaDescriptor | None = None
    """Descriptor for object items of array fields."""

    description: str | None = None
    """Human-readable description, copied into generated schemas."""

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def default_value(self) -> _typing.Any:
        """
        Value to insert when the property is missing.

        An explicit default wins. Otherwise nested objects get their own
        defaults, nullable fields get null and everything else gets the zero
        value of its kind.
        """
        if self.has_default:
            return tree.deep_clone(self.default)
        if self.kind is FieldKind.OBJECT:
            return self.fields.defaults() if self.fields is not None else {}
        if self.nullable:
            return None
        return tree.deep_clone(_ZERO_VALUES[self.kind])


@_dataclasses.dataclass(frozen=True)
class SchemaDescriptor:
    """Ordered collection of field descriptors for one object shape."""

    fields: tuple[FieldDescriptor, ...] = ()
    title: str | None = None

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise errors.InvalidArgumentError(
                f"Duplicate field names in schema: {', '.join(duplicates)}",
                argument="fields",
            )

    def __iter__(self) -> _typing.Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self.fields)

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get(self, name: str) -> FieldDescriptor | None:
        """Look up a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def defaults(self) -> tree.JsonObject:
        """Build a document holding the default value of every field."""
        return {f.name: f.default_value() for f in self.fields}

    def includable_paths(self, prefix: tree.Path = ()) -> frozenset[tree.Path]:
        """
        Key paths of every include-capable array, including nested ones.

        Array levels do not add to the path, matching how the include
        expander addresses arrays inside array items.
        """
        found: set[tree.Path] = set()
        for f in self.fields:
            path = (*prefix, f.name)
            if f.kind is FieldKind.ARRAY and f.includable:
                found.add(path)
            if f.fields is not None:
                found.update(f.fields.includable_paths(path))
            if f.item_fields is not None:
                found.update(f.item_fields.includable_paths(path))
        return frozenset(found)


class SchemaBuilder:
    """
    Fluent registration of fields into a SchemaDescriptor.

    Fields keep their registration order, which is also the order defaults
    are inserted in and properties appear in generated schemas.
    """

    def __init__(self, title: str | None = None) -> None:
        self._title = title
        self._fields: list[FieldDescriptor] = []

    def field(
        self,
        name: str,
        kind: FieldKind | str,
        *,
        nullable: bool = False,
        required: bool = True,
        default: _typing.Any = MISSING,
        includable: bool = False,
        options: providers.OptionsSpec | _typing.Iterable[str] | None = None,
        fields: SchemaDescriptor | None = None,
        items: FieldKind | str | SchemaDescriptor | None = None,
        description: str | None = None,
    ) -> SchemaBuilder:
        """
        Register a field.

        Args:
            name: Property name.
            kind: JSON kind (FieldKind or its string value).
            nullable: Allow explicit null.
            required: Listed as required in generated schemas.
            default: Value inserted when missing.
            includable: Array items may be include directives.
            options: Allowed values: a provider, a Discriminated selector,
                or a plain iterable of strings.
            fields: Nested descriptor for object fields.
            items: Item kind for arrays, or a descriptor for object items.
            description: Free text copied into generated schemas.

        Returns:
            The builder, for chaining.

        Raises:
            InvalidArgumentError: If the combination of arguments is invalid.
        """
        if not name:
            raise errors.InvalidArgumentError("Field name must not be empty", argument="name")

        kind = FieldKind(kind)
        item_kind: FieldKind | None = None
        item_fields: SchemaDescriptor | None = None
        if isinstance(items, SchemaDescriptor):
            item_kind = FieldKind.OBJECT
            item_fields = items
        elif items is not None:
            item_kind = FieldKind(items)

        if includable and kind is not FieldKind.ARRAY:
            raise errors.InvalidArgumentError(
                f"Field '{name}' is includable but not an array",
                argument="includable",
            )
        if item_kind is not None and kind is not FieldKind.ARRAY:
            raise errors.InvalidArgumentError(
                f"Field '{name}' declares items but is not an array",
                argument="items",
            )
        if fields is not None and kind is not FieldKind.OBJECT:
            raise errors.InvalidArgumentError(
                f"Field '{name}' declares nested fields but is not an object",
                argument="fields",
            )

        if options is not None and not isinstance(
            options, (providers.OptionsProvider, providers.Discriminated)
        ):
            options = providers.StaticOptions(options)

        self._fields.append(
            FieldDescriptor(
                name=name,
                kind=kind,
                nullable=nullable,
                required=required,
                default=default,
                includable=includable,
                options=options,
                fields=fields,
                items=item_kind,
                item_fields=item_fields,
                description=description,
            )
        )
        return self

    def build(self) -> SchemaDescriptor:
        """Freeze the registered fields into a descriptor."""
        return SchemaDescriptor(fields=tuple(self._fields), title=self._title)
