"""
JSON Schema generation for editors and documentation.

Three schema files are produced per settings directory:
- ``schema.json``: the full schema, all required properties enforced
- ``schema-extends.json``: the same schema with only ``$extends`` required,
  for child profiles that override a few properties
- ``schema-fragment.json``: ``{"Items": [...]}`` files for ``$include``

Include-capable arrays accept either a regular item or an include
directive, expressed as a ``oneOf`` on the items.
"""

from __future__ import annotations

import copy as _copy
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import sigrun.composition.loader as loader
import sigrun.constants as constants
import sigrun.errors as errors
import sigrun.schema.descriptor as descriptor
import sigrun.schema.providers as providers
import sigrun.tree as tree

_logger = _logging.getLogger(__name__)

JSON_SCHEMA_DIALECT = "http://json-schema.org/draft-07/schema#"

INCLUDE_DIRECTIVE_SCHEMA: dict[str, _typing.Any] = {
    "type": "object",
    "properties": {constants.INCLUDE_KEY: {"type": "string"}},
    "required": [constants.INCLUDE_KEY],
    "additionalProperties": False,
}
"""Shape of an ``{"$include": "..."}`` array item."""


def generate_json_schema(
    schema: descriptor.SchemaDescriptor,
    *,
    cache: providers.ProviderCache | None = None,
    title: str | None = None,
) -> dict[str, _typing.Any]:
    """
    Generate the full JSON Schema for a document.

    ``$schema`` and ``$extends`` are allowed (not required) at the root.

    Args:
        schema: Descriptor to render.
        cache: Provider cache for enum values. A fresh one is used if omitted.
        title: Schema title. Defaults to the descriptor's title.

    Returns:
        A JSON Schema document (draft-07).
    """
    cache = cache if cache is not None else providers.ProviderCache()
    result: dict[str, _typing.Any] = {"$schema": JSON_SCHEMA_DIALECT}
    if title or schema.title:
        result["title"] = title or schema.title

    body = _object_schema(schema, cache)
    body["properties"] = {
        constants.SCHEMA_KEY: {"type": "string"},
        constants.EXTENDS_KEY: {"type": "string", "minLength": 1},
        **body["properties"],
    }
    result.update(body)
    return result


def relax_for_extends(full_schema: dict[str, _typing.Any]) -> dict[str, _typing.Any]:
    """
    Derive the child-profile schema: only ``$extends`` is required at the root.

    Nested objects keep their own ``required`` lists.
    """
    relaxed = _copy.deepcopy(full_schema)
    relaxed["required"] = [constants.EXTENDS_KEY]
    return relaxed


def fragment_schema(
    item: descriptor.SchemaDescriptor | descriptor.FieldKind,
    *,
    cache: providers.ProviderCache | None = None,
) -> dict[str, _typing.Any]:
    """
    Schema for fragment files: an object with a required ``Items`` array.

    Args:
        item: Descriptor (object items) or kind (scalar items) of one item.
        cache: Provider cache for enum values.
    """
    cache = cache if cache is not None else providers.ProviderCache()
    if isinstance(item, descriptor.SchemaDescriptor):
        item_schema = _object_schema(item, cache)
    else:
        item_schema = _kind_schema(descriptor.FieldKind(item))
    return {
        "$schema": JSON_SCHEMA_DIALECT,
        "type": "object",
        "properties": {
            constants.SCHEMA_KEY: {"type": "string"},
            constants.FRAGMENT_ITEMS_KEY: {"type": "array", "items": item_schema},
        },
        "required": [constants.FRAGMENT_ITEMS_KEY],
        "additionalProperties": False,
    }


def write_schema_files(
    schema: descriptor.SchemaDescriptor,
    directory: _pathlib.Path,
    *,
    fragment_field: str | None = None,
    cache: providers.ProviderCache | None = None,
) -> dict[str, _pathlib.Path]:
    """
    Write ``schema.json``, ``schema-extends.json`` and, when the descriptor has
    an include-capable array, ``schema-fragment.json``.

    Args:
        schema: Descriptor to render.
        directory: Directory to write into (created if missing).
        fragment_field: Include-capable field whose items fragments hold.
            Defaults to the first include-capable root field.
        cache: Provider cache shared by all three renders.

    Returns:
        Mapping of file name to written path.

    Raises:
        InvalidArgumentError: If ``fragment_field`` is not an include-capable
            root field.
    """
    cache = cache if cache is not None else providers.ProviderCache()
    full = generate_json_schema(schema, cache=cache)
    written = {
        constants.SCHEMA_FILE: loader.dump_json(directory / constants.SCHEMA_FILE, full),
        constants.EXTENDS_SCHEMA_FILE: loader.dump_json(
            directory / constants.EXTENDS_SCHEMA_FILE, relax_for_extends(full)
        ),
    }

    field = _fragment_field(schema, fragment_field)
    if field is not None:
        item = field.item_fields if field.item_fields is not None else field.items
        if item is not None:
            written[constants.FRAGMENT_SCHEMA_FILE] = loader.dump_json(
                directory / constants.FRAGMENT_SCHEMA_FILE,
                fragment_schema(item, cache=cache),
            )

    _logger.debug("Wrote schema files %s to %s", sorted(written), directory)
    return written


# =============================================================================
# Internals
# =============================================================================


def _fragment_field(
    schema: descriptor.SchemaDescriptor,
    name: str | None,
) -> descriptor.FieldDescriptor | None:
    if name is None:
        return next((f for f in schema if f.includable), None)
    field = schema.get(name)
    if field is None or not field.includable:
        raise errors.InvalidArgumentError(
            f"'{name}' is not an include-capable field",
            argument="fragment_field",
        )
    return field


def _kind_schema(kind: descriptor.FieldKind) -> dict[str, _typing.Any]:
    if kind is descriptor.FieldKind.ANY:
        return {}
    return {"type": kind.value}


def _object_schema(
    schema: descriptor.SchemaDescriptor,
    cache: providers.ProviderCache,
) -> dict[str, _typing.Any]:
    properties = {f.name: _field_schema(f, cache) for f in schema}
    result: dict[str, _typing.Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": False,
    }
    required = [f.name for f in schema if f.required]
    if required:
        result["required"] = required
    return result


def _field_schema(
    field: descriptor.FieldDescriptor,
    cache: providers.ProviderCache,
) -> dict[str, _typing.Any]:
    if field.kind is descriptor.FieldKind.OBJECT and field.fields is not None:
        result = _object_schema(field.fields, cache)
    elif field.kind is descriptor.FieldKind.ARRAY:
        result = {"type": "array"}
        item_schema = _item_schema(field, cache)
        if field.includable:
            directive = _copy.deepcopy(INCLUDE_DIRECTIVE_SCHEMA)
            # An unconstrained item would also match the directive
            regular = item_schema or {"not": _copy.deepcopy(INCLUDE_DIRECTIVE_SCHEMA)}
            result["items"] = {"oneOf": [regular, directive]}
        elif item_schema:
            result["items"] = item_schema
    else:
        result = _kind_schema(field.kind)
        if field.kind is descriptor.FieldKind.STRING:
            _add_enum(result, field, cache)

    if field.nullable and "type" in result:
        result["type"] = [result["type"], "null"]
        if "enum" in result:
            result["enum"] = [*result["enum"], None]
    if field.has_default:
        result["default"] = tree.deep_clone(field.default)
    if field.description:
        result["description"] = field.description
    return result


def _item_schema(
    field: descriptor.FieldDescriptor,
    cache: providers.ProviderCache,
) -> dict[str, _typing.Any]:
    if field.item_fields is not None:
        return _object_schema(field.item_fields, cache)
    if field.items is None:
        return {}
    result = _kind_schema(field.items)
    if field.items is descriptor.FieldKind.STRING:
        _add_enum(result, field, cache)
    return result


def _add_enum(
    result: dict[str, _typing.Any],
    field: descriptor.FieldDescriptor,
    cache: providers.ProviderCache,
) -> None:
    if isinstance(field.options, providers.Discriminated):
        # Allowed values depend on a sibling; offer the union as examples
        values: list[str] = []
        choices = [*field.options.providers.values()]
        if field.options.default is not None:
            choices.append(field.options.default)
        for provider in choices:
            values.extend(v for v in cache.options_for(provider) if v not in values)
        if values:
            result["examples"] = values
        return
    allowed = cache.resolve(field.options)
    if allowed is not None:
        result["enum"] = allowed
