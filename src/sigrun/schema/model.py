"""
Schema descriptors derived from pydantic models.

Field metadata that JSON Schema cannot express is attached with
``typing.Annotated`` markers:

    class FieldSpec(pydantic.BaseModel):
        spec_type: Annotated[str, Options(["length", "mass"])] = "length"
        unit: Annotated[str, Options(Discriminated(by="spec_type", providers=UNITS))] = "mm"

    class Profile(pydantic.BaseModel):
        name: str
        fields: Annotated[list[FieldSpec], Includable()] = []

    descriptor = describe_model(Profile)

The model is inspected once; descriptors are cached per model class.
"""

from __future__ import annotations

import collections.abc as _collections_abc
import dataclasses as _dataclasses
import enum as _enum
import functools as _functools
import types as _types
import typing as _typing

import pydantic as _pydantic

import sigrun.schema.descriptor as descriptor
import sigrun.schema.providers as providers

# =============================================================================
# Markers
# =============================================================================


@_dataclasses.dataclass(frozen=True)
class Includable:
    """Marks an array field whose items may be ``$include`` directives."""


@_dataclasses.dataclass(frozen=True, eq=False)
class Options:
    """Attaches an allowed-value source to a string (or string array) field."""

    source: providers.OptionsSpec | _typing.Iterable[str]


# =============================================================================
# Model inspection
# =============================================================================


@_dataclasses.dataclass
class _Shape:
    kind: descriptor.FieldKind
    nullable: bool = False
    fields: descriptor.SchemaDescriptor | None = None
    items: descriptor.FieldKind | descriptor.SchemaDescriptor | None = None
    options: list[str] | None = None


@_functools.cache
def describe_model(model: type[_pydantic.BaseModel]) -> descriptor.SchemaDescriptor:
    """
    Build (once) the descriptor of a pydantic model.

    Property names use the field alias when one is set. Fields without a
    default are required; defaults are stored in their JSON form.

    Args:
        model: A pydantic model class.

    Returns:
        The cached SchemaDescriptor for the model.
    """
    builder = descriptor.SchemaBuilder(title=model.__name__)

    for name, info in model.model_fields.items():
        shape = _shape_of(info.annotation)
        includable = any(isinstance(m, Includable) for m in info.metadata)
        options: _typing.Any = next(
            (m.source for m in info.metadata if isinstance(m, Options)),
            shape.options,
        )

        default: _typing.Any = descriptor.MISSING
        if not info.is_required():
            default = _json_default(info)

        builder.field(
            info.alias or name,
            shape.kind,
            nullable=shape.nullable,
            required=info.is_required(),
            default=default,
            includable=includable,
            options=options,
            fields=shape.fields,
            items=shape.items,
            description=info.description,
        )

    return builder.build()


def _json_default(info: _typing.Any) -> _typing.Any:
    value = info.get_default(call_default_factory=True)
    if value is None:
        return None
    return _pydantic.TypeAdapter(info.annotation).dump_python(value, mode="json")


def _shape_of(annotation: _typing.Any) -> _Shape:
    origin = _typing.get_origin(annotation)
    args = _typing.get_args(annotation)

    if origin is _typing.Annotated:
        return _shape_of(args[0])

    if origin is _typing.Union or origin is _types.UnionType:
        members = [a for a in args if a is not type(None)]
        nullable = len(members) != len(args)
        shape = _shape_of(members[0]) if len(members) == 1 else _Shape(descriptor.FieldKind.ANY)
        shape.nullable = shape.nullable or nullable
        return shape

    if origin is _typing.Literal:
        if all(isinstance(a, str) for a in args):
            return _Shape(descriptor.FieldKind.STRING, options=list(args))
        return _Shape(descriptor.FieldKind.ANY)

    if origin in (list, tuple, set, frozenset) or origin in (
        _collections_abc.Sequence,
        _collections_abc.MutableSequence,
        _collections_abc.Set,
    ):
        if not args:
            return _Shape(descriptor.FieldKind.ARRAY)
        item = _shape_of(args[0])
        if item.kind is descriptor.FieldKind.OBJECT and item.fields is not None:
            return _Shape(descriptor.FieldKind.ARRAY, items=item.fields)
        return _Shape(descriptor.FieldKind.ARRAY, items=item.kind)

    if origin in (dict, _collections_abc.Mapping, _collections_abc.MutableMapping):
        return _Shape(descriptor.FieldKind.OBJECT)

    if isinstance(annotation, type):
        return _class_shape(annotation)

    return _Shape(descriptor.FieldKind.ANY)


def _class_shape(cls: type) -> _Shape:
    if issubclass(cls, _pydantic.BaseModel):
        return _Shape(descriptor.FieldKind.OBJECT, fields=describe_model(cls))
    if issubclass(cls, _enum.Enum):
        values = [member.value for member in cls]
        if all(isinstance(v, str) for v in values):
            return _Shape(descriptor.FieldKind.STRING, options=values)
        return _Shape(descriptor.FieldKind.ANY)
    # bool before int: bool subclasses int
    if issubclass(cls, bool):
        return _Shape(descriptor.FieldKind.BOOLEAN)
    if issubclass(cls, int):
        return _Shape(descriptor.FieldKind.INTEGER)
    if issubclass(cls, float):
        return _Shape(descriptor.FieldKind.NUMBER)
    if issubclass(cls, str):
        return _Shape(descriptor.FieldKind.STRING)
    if issubclass(cls, (list, tuple, set, frozenset)):
        return _Shape(descriptor.FieldKind.ARRAY)
    if issubclass(cls, dict):
        return _Shape(descriptor.FieldKind.OBJECT)
    return _Shape(descriptor.FieldKind.ANY)
