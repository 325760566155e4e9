"""
Shared pytest fixtures for Sigrun tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import json as _json
import os as _os
import pathlib as _pathlib
import typing as _typing
import unittest.mock as _mock

import pytest as _pytest

import sigrun.schema as schema

# Environment prefix cleared for isolated tests
ENV_PREFIX = "SIGRUN_"


def _write_json(path: _pathlib.Path, data: _typing.Any) -> _pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_json.dumps(data, indent=2), encoding="utf-8")
    return path


def _read_json(path: _pathlib.Path) -> _typing.Any:
    return _json.loads(path.read_text(encoding="utf-8"))


@_pytest.fixture
def write_json() -> _typing.Callable[[_pathlib.Path, _typing.Any], _pathlib.Path]:
    """Write a JSON file (parents created): ``write_json(path, data)``."""
    return _write_json


@_pytest.fixture
def read_json() -> _typing.Callable[[_pathlib.Path], _typing.Any]:
    """Parse a JSON file: ``read_json(path)``."""
    return _read_json


@_pytest.fixture
def clean_env() -> dict[str, str]:
    """
    Return environment dict with SIGRUN_* keys removed.

    Use with mock.patch.dict to isolate tests from the actual environment.
    """
    return {k: v for k, v in _os.environ.items() if not k.startswith(ENV_PREFIX)}


@_pytest.fixture
def isolated_env(clean_env: dict[str, str], tmp_path: _pathlib.Path):
    """
    Context manager that isolates tests from environment variables and
    the real user config directory.

    Usage:
        def test_something(isolated_env):
            with isolated_env:
                settings = config.Settings()
    """
    user_dir = tmp_path / "user-config"
    return _mock.patch.dict(
        _os.environ,
        {**clean_env, "SIGRUN_CONFIG_DIR": str(user_dir)},
        clear=True,
    )


@_pytest.fixture
def profile_dir(tmp_path: _pathlib.Path) -> _pathlib.Path:
    """Empty directory for profile trees."""
    directory = tmp_path / "profiles"
    directory.mkdir()
    return directory


@_pytest.fixture
def panel_schema() -> schema.SchemaDescriptor:
    """
    Descriptor for a small panel profile:

        {"title": str, "columns": int, "fields": [{"name": str, "unit": str}]}
    """
    field_item = (
        schema.SchemaBuilder()
        .field("name", schema.FieldKind.STRING, default="")
        .field("unit", schema.FieldKind.STRING, default="mm", options=["mm", "m", "kg"])
        .build()
    )
    return (
        schema.SchemaBuilder(title="Panel")
        .field("title", schema.FieldKind.STRING, default="Untitled")
        .field("columns", schema.FieldKind.INTEGER, default=2)
        .field("fields", schema.FieldKind.ARRAY, items=field_item, includable=True, default=[])
        .build()
    )
