"""Tests for the sigrun command line."""

import json as _json
import os as _os
import pathlib as _pathlib
import typing as _typing

import click.testing as _click_testing
import pytest as _pytest

import sigrun.cli as cli

WriteJson = _typing.Callable[[_pathlib.Path, _typing.Any], _pathlib.Path]


@_pytest.fixture
def runner(tmp_path: _pathlib.Path) -> _click_testing.CliRunner:
    """CliRunner with SIGRUN_* cleared and an empty user config directory."""
    env: dict[str, str | None] = {k: None for k in _os.environ if k.startswith("SIGRUN_")}
    env["SIGRUN_CONFIG_DIR"] = str(tmp_path / "user-config")
    return _click_testing.CliRunner(env=env)


class TestCLIBasics:
    def test_help_lists_commands(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["--help"])
        assert result.exit_code == 0
        for command in ["resolve", "diff", "list", "config"]:
            assert command in result.output

    def test_version(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestResolveCommand:
    def test_resolve_profile(
        self, runner: _click_testing.CliRunner, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        write_json(profile_dir / "base.json", {"color": "red", "tags": ["a"]})
        write_json(profile_dir / "child.json", {"$extends": "base", "tags": ["b"], "color": None})

        result = runner.invoke(cli.cli, ["resolve", "child", "--dir", str(profile_dir)])

        assert result.exit_code == 0, result.output
        assert _json.loads(result.output) == {"tags": ["a", "b"]}

    def test_resolve_chain(
        self, runner: _click_testing.CliRunner, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        write_json(profile_dir / "base.json", {})
        write_json(profile_dir / "child.json", {"$extends": "base"})

        result = runner.invoke(cli.cli, ["resolve", "child", "--dir", str(profile_dir), "--chain"])

        assert result.exit_code == 0
        assert result.output.split() == ["base", "child"]

    def test_resolve_error(
        self, runner: _click_testing.CliRunner, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        write_json(profile_dir / "a.json", {"$extends": "b"})
        write_json(profile_dir / "b.json", {"$extends": "a"})

        result = runner.invoke(cli.cli, ["resolve", "a", "--dir", str(profile_dir)])

        assert result.exit_code == 1
        assert "Circular inheritance detected" in result.output

    def test_resolve_undecodable_profile(
        self, runner: _click_testing.CliRunner, profile_dir: _pathlib.Path
    ) -> None:
        (profile_dir / "latin.json").write_bytes(b'{"a": "\xff\xfe"}')

        result = runner.invoke(cli.cli, ["resolve", "latin", "--dir", str(profile_dir)])

        assert result.exit_code == 1
        assert "invalid UTF-8" in result.output

    def test_no_includes(
        self, runner: _click_testing.CliRunner, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        write_json(profile_dir / "p.json", {"l": [{"$include": "missing"}]})
        result = runner.invoke(
            cli.cli, ["resolve", "p", "--dir", str(profile_dir), "--no-includes"]
        )
        assert result.exit_code == 0
        assert _json.loads(result.output) == {"l": [{"$include": "missing"}]}


class TestDiffCommand:
    def test_patch(
        self, runner: _click_testing.CliRunner, tmp_path: _pathlib.Path, write_json: WriteJson
    ) -> None:
        base = write_json(tmp_path / "base.json", {"a": 1, "b": 2})
        edited = write_json(tmp_path / "edited.json", {"a": 1, "c": 3})

        result = runner.invoke(cli.cli, ["diff", str(base), str(edited)])

        assert result.exit_code == 0
        assert _json.loads(result.output) == {"b": None, "c": 3}

    def test_child_profile(
        self, runner: _click_testing.CliRunner, tmp_path: _pathlib.Path, write_json: WriteJson
    ) -> None:
        base = write_json(tmp_path / "base.json", {"a": 1})
        edited = write_json(tmp_path / "edited.json", {"a": 1})

        result = runner.invoke(cli.cli, ["diff", str(base), str(edited), "--extends", "base"])

        assert result.exit_code == 0
        assert _json.loads(result.output) == {"$extends": "base"}


class TestListCommand:
    def test_list(
        self, runner: _click_testing.CliRunner, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        write_json(profile_dir / "base.json", {})
        write_json(profile_dir / "schema.json", {})
        write_json(profile_dir / "wip" / "child.json", {})
        write_json(profile_dir / "_fragments" / "f.json", [])

        flat = runner.invoke(cli.cli, ["list", "--dir", str(profile_dir)])
        deep = runner.invoke(cli.cli, ["list", "--dir", str(profile_dir), "--recursive"])

        assert flat.output.split() == ["base"]
        assert deep.output.split() == ["base", "wip/child"]

    def test_list_leaves_directory_untouched(
        self, runner: _click_testing.CliRunner, tmp_path: _pathlib.Path
    ) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(cli.cli, ["list", "--dir", str(empty)])

        assert result.exit_code == 0
        assert result.output == ""
        assert sorted(p.name for p in tmp_path.iterdir()) == ["empty"]


class TestConfiguredStorage:
    """Without --dir, commands use <storage.root>/<storage.app_name>/settings."""

    @_pytest.fixture
    def settings_dir(self, tmp_path: _pathlib.Path, write_json: WriteJson) -> _pathlib.Path:
        directory = tmp_path / "data" / "panels" / "settings"
        write_json(directory / "base.json", {"color": "red"})
        write_json(directory / "child.json", {"$extends": "base", "size": 5})
        return directory

    @_pytest.fixture
    def storage_env(self, tmp_path: _pathlib.Path) -> dict[str, str]:
        return {
            "SIGRUN_STORAGE__ROOT": str(tmp_path / "data"),
            "SIGRUN_STORAGE__APP_NAME": "panels",
        }

    def test_resolve_default_dir(
        self,
        runner: _click_testing.CliRunner,
        settings_dir: _pathlib.Path,
        storage_env: dict[str, str],
    ) -> None:
        result = runner.invoke(cli.cli, ["resolve", "child"], env=storage_env)

        assert result.exit_code == 0, result.output
        assert _json.loads(result.output) == {"color": "red", "size": 5}

    def test_list_default_dir(
        self,
        runner: _click_testing.CliRunner,
        settings_dir: _pathlib.Path,
        storage_env: dict[str, str],
    ) -> None:
        result = runner.invoke(cli.cli, ["list"], env=storage_env)

        assert result.exit_code == 0, result.output
        assert result.output.split() == ["base", "child"]


class TestConfigCommands:
    def test_show_json(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["config", "show", "--json"])
        assert result.exit_code == 0
        data = _json.loads(result.output)
        assert data["storage"]["app_name"] == "sigrun"
        assert data["logging"]["level"] == "warning"

    def test_show_yaml(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["config", "show", "--no-color"])
        assert result.exit_code == 0
        assert "composition:" in result.output

    def test_path_all(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["config", "path", "--all"])
        assert result.exit_code == 0
        assert "Built-in defaults:" in result.output
        assert "User config:" in result.output
        assert "Project config:" in result.output
