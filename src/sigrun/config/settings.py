"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with SIGRUN_ prefix
3. Layered YAML config files:
   - Project config: .sigrun/config.yaml (highest)
   - User config: ~/.config/sigrun/config.yaml
   - Built-in defaults: bundled defaults/config.yaml (lowest)

Nested config uses double underscore delimiter:
  SIGRUN_LOGGING__LEVEL=debug
  SIGRUN_STORAGE__ROOT=/srv/data
"""

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import sigrun.config.sources as sources
import sigrun.config.types as types

_PROJECT_MARKERS = (sources.PROJECT_CONFIG_DIR, "pyproject.toml", ".git")


def find_project_root(start_path: _pathlib.Path | None = None) -> _pathlib.Path:
    """
    Find the project root directory.

    Walks up from ``start_path`` (default: cwd) looking for a ``.sigrun``
    directory, ``pyproject.toml`` or ``.git``. Falls back to ``start_path``.
    """
    start = (start_path or _pathlib.Path.cwd()).resolve()
    current = start
    while True:
        if any((current / marker).exists() for marker in _PROJECT_MARKERS):
            return current
        if current == current.parent:
            return start
        current = current.parent


class Settings(_pydantic_settings.BaseSettings):
    """
    Sigrun engine configuration.

    All settings can be overridden via environment variables with SIGRUN_ prefix.
    For nested config, use double underscore: SIGRUN_LOGGING__LEVEL=debug

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (SIGRUN_*)
    3. Project config (.sigrun/config.yaml)
    4. User config (~/.config/sigrun/config.yaml)
    5. Built-in defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="SIGRUN_",
        env_nested_delimiter="__",  # SIGRUN_LOGGING__LEVEL
        extra="allow",  # Preserve unknown fields for auditing
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings, constructor args (highest)
        2. env_settings (SIGRUN_* env vars)
        3. yaml layers
        4. defaults via Field definitions (lowest)
        """
        return (
            init_settings,
            env_settings,
            sources.LayeredYamlSettingsSource(settings_cls, find_project_root()),
        )

    # =========================================================================
    # Config version (for future migrations)
    # =========================================================================

    version: int = _pydantic.Field(default=1, description="Config schema version")

    # =========================================================================
    # Nested config sections
    # =========================================================================

    storage: types.StorageConfig = _pydantic.Field(default_factory=types.StorageConfig)
    """Storage root and application directory."""

    composition: types.CompositionConfig = _pydantic.Field(
        default_factory=types.CompositionConfig
    )
    """Profile discovery and JSON formatting."""

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging settings."""

    output: types.OutputConfig = _pydantic.Field(default_factory=types.OutputConfig)
    """CLI output settings."""

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def storage_root(self) -> _pathlib.Path:
        """Storage root directory (``~/.local/share`` unless configured)."""
        if self.storage.root:
            return _pathlib.Path(self.storage.root).expanduser()
        return _pathlib.Path.home() / ".local" / "share"

    @property
    def log_level(self) -> int:
        """Numeric logging level."""
        return _typing.cast(int, getattr(_logging, self.logging.level.upper()))

    def get_unknown_fields(self) -> dict[str, _typing.Any]:
        """
        Collect every unrecognized key, top-level and in sections.

        Returns:
            Flat dict of dotted path -> value.
        """
        result: dict[str, _typing.Any] = dict(self.model_extra or {})
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if isinstance(value, types.ConfigBase):
                result.update(value.collect_all_extra_fields(field_name))
        return result
