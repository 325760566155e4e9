"""
Shared constants for Sigrun.

This module provides a single source of truth for reserved keys, file
names, and default values that are used across multiple modules.
"""

# Reserved directive keys
EXTENDS_KEY = "$extends"
"""Top-level key naming the parent profile."""

INCLUDE_KEY = "$include"
"""Array-item key naming a fragment file to splice in."""

SCHEMA_KEY = "$schema"
"""Top-level key pointing editors at the generated schema."""

DIRECTIVE_KEYS = frozenset({EXTENDS_KEY, SCHEMA_KEY})
"""Root keys that are metadata, never configuration data."""

FRAGMENT_ITEMS_KEY = "Items"
"""Array property of a document-shaped fragment file."""

# File naming
JSON_SUFFIX = ".json"
CSV_SUFFIX = ".csv"

SCHEMA_FILE = "schema.json"
"""Full schema (all required properties)."""

EXTENDS_SCHEMA_FILE = "schema-extends.json"
"""Relaxed schema for child profiles (only $extends required)."""

FRAGMENT_SCHEMA_FILE = "schema-fragment.json"
"""Schema for fragment files referenced by $include."""

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
"""Timestamp used in dated output file and directory names."""

# Storage layout
SETTINGS_DIR_NAME = "settings"
STATE_DIR_NAME = "state"
OUTPUT_DIR_NAME = "output"

DEFAULT_EXCLUDE_PATTERNS = ("_*",)
"""Path segments skipped by recursive profile discovery (e.g. _fragments)."""

DEFAULT_JSON_INDENT = 2
"""Indent used when writing JSON files."""
