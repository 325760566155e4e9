"""Custom pydantic-settings source for Sigrun configuration.

Configuration layers (in precedence order, highest first):
1. Environment variables (handled by pydantic-settings)
2. Project config: .sigrun/config.yaml in project root
3. User config: ~/.config/sigrun/config.yaml (or SIGRUN_CONFIG_DIR)
4. Built-in defaults: bundled config.yaml

Layers 2-4 are merged with Sigrun's own tree merge, so the YAML files
follow the same rules as JSON profiles: nested mappings merge, lists
concatenate and an explicit ``null`` removes the key.

Environment variables:
- SIGRUN_CONFIG_DIR: Override user config directory (default: ~/.config/sigrun)
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic.fields as _pydantic_fields
import pydantic_settings as _pydantic_settings
import yaml as _yaml

import sigrun.errors as errors
import sigrun.tree as tree

# Environment variable for overriding user config directory
ENV_CONFIG_DIR = "SIGRUN_CONFIG_DIR"

CONFIG_FILE_NAME = "config.yaml"
PROJECT_CONFIG_DIR = ".sigrun"


class ConfigFileError(errors.SigrunError):
    """Error loading or parsing a configuration file."""

    kind = errors.ErrorKind.FILE_FORMAT

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        super().__init__(f"Error in config file {path}: {message}", path=path)


class LayeredYamlSettingsSource(_pydantic_settings.PydanticBaseSettingsSource):
    """
    Settings source that loads and merges layered YAML config files.

    The merged result is a plain dict handed to pydantic for validation.

    Layers (lowest to highest precedence):
    1. Built-in defaults (src/sigrun/config/defaults/config.yaml)
    2. User config (~/.config/sigrun/config.yaml)
    3. Project config (.sigrun/config.yaml)
    """

    def __init__(
        self,
        settings_cls: type[_pydantic_settings.BaseSettings],
        project_root: _pathlib.Path | None = None,
        *,
        user_config_path: _pathlib.Path | None = None,
        builtin_config_path: _pathlib.Path | None = None,
    ) -> None:
        """
        Initialize the settings source.

        Args:
            settings_cls: The Settings class being populated.
            project_root: Optional project root path for project-level config.
            user_config_path: Override path for user config file (for testing).
                If not provided, uses SIGRUN_CONFIG_DIR env var or default XDG path.
            builtin_config_path: Override path for builtin defaults (for testing).
        """
        super().__init__(settings_cls)
        self._project_root = project_root
        self._user_config_path = user_config_path
        self._builtin_config_path = builtin_config_path
        # Layers actually loaded, highest precedence first
        self._loaded_layers: list[tuple[str, _pathlib.Path]] = []
        self._merged = self._load_config_layers()

    def _load_config_layers(self) -> dict[str, _typing.Any]:
        """Load and merge the config files, lowest precedence first."""
        layers: list[dict[str, _typing.Any]] = []
        layer_info: list[tuple[str, _pathlib.Path]] = []

        # Built-in defaults are required: missing or empty is an install bug
        builtin_path = self._get_builtin_config_path()
        if not builtin_path.exists():
            raise ConfigFileError(
                builtin_path,
                "built-in defaults not found (possible installation problem)",
            )
        builtin_content = self._load_yaml_file(builtin_path)
        if not builtin_content:
            raise ConfigFileError(
                builtin_path,
                "built-in defaults file is empty (possible installation problem)",
            )
        layers.append(builtin_content)
        layer_info.append(("built-in", builtin_path))

        user_path = self._get_user_config_path()
        if user_path.exists():
            content = self._load_yaml_file(user_path)
            if content:
                layers.append(content)
                layer_info.append(("user", user_path))

        if self._project_root:
            project_path = get_project_config_path(self._project_root)
            if project_path.exists():
                content = self._load_yaml_file(project_path)
                if content:
                    layers.append(content)
                    layer_info.append(("project", project_path))

        layer_info.reverse()
        self._loaded_layers = layer_info

        return tree.merge_chain(*layers)

    def get_loaded_layers(self) -> list[tuple[str, _pathlib.Path]]:
        """
        Get info about layers that were actually loaded.

        Returns:
            List of (layer_name, path) tuples, highest precedence first.
        """
        return list(self._loaded_layers)

    def get_layer_paths(self) -> list[tuple[str, _pathlib.Path, bool]]:
        """
        Get info about all config layers, loaded or not.

        Returns:
            List of (layer_name, path, exists) tuples, highest precedence first.
        """
        layers: list[tuple[str, _pathlib.Path, bool]] = []

        if self._project_root:
            project_path = get_project_config_path(self._project_root)
            layers.append(("project", project_path, project_path.exists()))

        user_path = self._get_user_config_path()
        layers.append(("user", user_path, user_path.exists()))

        builtin_path = self._get_builtin_config_path()
        layers.append(("built-in", builtin_path, builtin_path.exists()))

        return layers

    def _get_builtin_config_path(self) -> _pathlib.Path:
        if self._builtin_config_path is not None:
            return self._builtin_config_path
        return get_builtin_defaults_path()

    def _get_user_config_path(self) -> _pathlib.Path:
        if self._user_config_path is not None:
            return self._user_config_path
        return get_user_config_path()

    def _load_yaml_file(
        self,
        path: _pathlib.Path,
    ) -> dict[str, _typing.Any] | None:
        """
        Load a YAML file and return its contents as a dict.

        Returns:
            Parsed YAML contents, or None if file is empty.

        Raises:
            ConfigFileError: If the file cannot be read, is malformed YAML,
                or contains non-dict content at the top level.
        """
        try:
            with path.open("r", encoding="utf-8") as f:
                parsed = _yaml.safe_load(f)
        except PermissionError as e:
            raise ConfigFileError(path, f"permission denied: {e}") from e
        except _yaml.YAMLError as e:
            raise ConfigFileError(path, f"invalid YAML: {e}") from e
        except OSError as e:
            raise ConfigFileError(path, f"cannot read file: {e}") from e

        if parsed is None:
            return None

        if not isinstance(parsed, dict):
            type_name = type(parsed).__name__
            raise ConfigFileError(
                path,
                f"config must be a YAML mapping (dict), got {type_name}",
            )

        return parsed

    def get_field_value(
        self,
        field: _pydantic_fields.FieldInfo,  # noqa: ARG002 - required by pydantic-settings interface
        field_name: str,
    ) -> tuple[_typing.Any, str, bool]:
        """
        Get value for a field from the merged config.

        Returns:
            Tuple of (value, field_name, is_complex).
        """
        value = self._merged.get(field_name, None)
        if value is None:
            return None, field_name, False
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, _typing.Any]:
        """
        Return merged config as a plain dict for pydantic validation.

        Unknown keys are included so Settings can report them.
        """
        return tree.deep_clone(self._merged)


def get_builtin_defaults_path() -> _pathlib.Path:
    """Path of the bundled defaults/config.yaml."""
    return _pathlib.Path(__file__).parent / "defaults" / CONFIG_FILE_NAME


def get_user_config_dir() -> _pathlib.Path:
    """
    Get the user config directory.

    Respects SIGRUN_CONFIG_DIR if set, otherwise uses the XDG standard path.
    """
    config_dir_env = _os.environ.get(ENV_CONFIG_DIR)
    if config_dir_env:
        return _pathlib.Path(config_dir_env)
    return _pathlib.Path.home() / ".config" / "sigrun"


def get_user_config_path() -> _pathlib.Path:
    """Path of config.yaml in the user config directory."""
    return get_user_config_dir() / CONFIG_FILE_NAME


def get_project_config_path(project_root: _pathlib.Path) -> _pathlib.Path:
    """Path of .sigrun/config.yaml within a project."""
    return project_root / PROJECT_CONFIG_DIR / CONFIG_FILE_NAME
