"""
Schema descriptors, validation, sanitization and JSON Schema generation.
"""

from sigrun.schema.descriptor import (
    MISSING,
    FieldDescriptor,
    FieldKind,
    SchemaBuilder,
    SchemaDescriptor,
)
from sigrun.schema.generator import (
    INCLUDE_DIRECTIVE_SCHEMA,
    fragment_schema,
    generate_json_schema,
    relax_for_extends,
    write_schema_files,
)
from sigrun.schema.migrations import (
    DEFAULT_MIGRATIONS,
    Migration,
    NumberToString,
    RenameField,
    StringToList,
)
from sigrun.schema.model import Includable, Options, describe_model
from sigrun.schema.providers import (
    Discriminated,
    OptionsProvider,
    OptionsSpec,
    ProviderCache,
    StaticOptions,
)
from sigrun.schema.sanitizer import SanitizationReport, sanitize
from sigrun.schema.validator import Validator, Violation, validate

__all__ = [
    "DEFAULT_MIGRATIONS",
    "INCLUDE_DIRECTIVE_SCHEMA",
    "MISSING",
    "Discriminated",
    "FieldDescriptor",
    "FieldKind",
    "Includable",
    "Migration",
    "NumberToString",
    "Options",
    "OptionsProvider",
    "OptionsSpec",
    "ProviderCache",
    "RenameField",
    "SanitizationReport",
    "SchemaBuilder",
    "SchemaDescriptor",
    "StaticOptions",
    "StringToList",
    "Validator",
    "Violation",
    "describe_model",
    "fragment_schema",
    "generate_json_schema",
    "relax_for_extends",
    "sanitize",
    "validate",
    "write_schema_files",
]
