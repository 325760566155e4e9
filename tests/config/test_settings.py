"""Tests for the Settings class and project root discovery."""

import logging as _logging
import os as _os
import pathlib as _pathlib

import pytest as _pytest

import sigrun.config as config


class TestDefaults:
    """Built-in defaults with an isolated environment."""

    def test_default_values(self, isolated_env, tmp_path: _pathlib.Path) -> None:
        with isolated_env:
            settings = config.Settings()

        assert settings.version == 1
        assert settings.storage.app_name == "sigrun"
        assert settings.composition.exclude_patterns == ["_*"]
        assert settings.composition.json_indent == 2
        assert settings.logging.level == "warning"
        assert settings.log_level == _logging.WARNING
        assert settings.output.color is True

    def test_default_storage_root(self, isolated_env) -> None:
        with isolated_env:
            settings = config.Settings()
        assert settings.storage_root == _pathlib.Path.home() / ".local" / "share"


class TestOverrides:
    """Environment variables and user config."""

    def test_env_var_nested(self, isolated_env) -> None:
        with isolated_env:
            _os.environ["SIGRUN_LOGGING__LEVEL"] = "debug"
            _os.environ["SIGRUN_STORAGE__ROOT"] = "/srv/data"
            settings = config.Settings()

        assert settings.log_level == _logging.DEBUG
        assert settings.storage_root == _pathlib.Path("/srv/data")

    def test_user_config_file(self, isolated_env) -> None:
        with isolated_env:
            user_dir = _pathlib.Path(_os.environ["SIGRUN_CONFIG_DIR"])
            user_dir.mkdir(parents=True)
            (user_dir / "config.yaml").write_text("output:\n  theme: github-dark\n")
            settings = config.Settings()

        assert settings.output.theme == "github-dark"

    def test_env_beats_user_config(self, isolated_env) -> None:
        with isolated_env:
            user_dir = _pathlib.Path(_os.environ["SIGRUN_CONFIG_DIR"])
            user_dir.mkdir(parents=True)
            (user_dir / "config.yaml").write_text("logging:\n  level: info\n")
            _os.environ["SIGRUN_LOGGING__LEVEL"] = "error"
            settings = config.Settings()

        assert settings.logging.level == "error"

    def test_constructor_beats_everything(self, isolated_env) -> None:
        with isolated_env:
            _os.environ["SIGRUN_VERSION"] = "3"
            settings = config.Settings(version=5)
        assert settings.version == 5

    def test_unknown_keys_reported(self, isolated_env) -> None:
        with isolated_env:
            user_dir = _pathlib.Path(_os.environ["SIGRUN_CONFIG_DIR"])
            user_dir.mkdir(parents=True)
            (user_dir / "config.yaml").write_text(
                "composition:\n  exclude_patern: ['x']\nmystery: 1\n"
            )
            settings = config.Settings()

        unknown = settings.get_unknown_fields()
        assert unknown["composition.exclude_patern"] == ["x"]
        assert unknown["mystery"] == 1

    def test_invalid_level_rejected(self, isolated_env) -> None:
        with isolated_env:
            _os.environ["SIGRUN_LOGGING__LEVEL"] = "loud"
            with _pytest.raises(ValueError):
                config.Settings()


class TestFindProjectRoot:
    """Walking up to a project marker."""

    def test_finds_marker_directory(self, tmp_path: _pathlib.Path) -> None:
        (tmp_path / ".sigrun").mkdir()
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert config.find_project_root(nested) == tmp_path.resolve()

    def test_git_marker(self, tmp_path: _pathlib.Path) -> None:
        (tmp_path / ".git").mkdir()
        nested = tmp_path / "src"
        nested.mkdir()
        assert config.find_project_root(nested) == tmp_path.resolve()
