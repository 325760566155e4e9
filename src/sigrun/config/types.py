"""Configuration type definitions for Sigrun settings.

Config sections nested within the main Settings class:
- StorageConfig: storage root and application directory name
- CompositionConfig: discovery exclusions, JSON indent
- LoggingConfig: level and format
- OutputConfig: CLI output colors

All types use `extra="allow"` so unknown keys are preserved rather than
dropped. Use `collect_all_extra_fields()` to audit a config for typos.
"""

import typing as _typing

import pydantic as _pydantic

import sigrun.constants as constants

# =============================================================================
# Base class with introspection
# =============================================================================


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config types.

    Unknown fields are kept in ``model_extra`` so they can be reported.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Return fields that were provided but are not part of the section."""
        return dict(self.model_extra) if self.model_extra else {}

    def has_extra_fields(self) -> bool:
        """Check if this section has any unrecognized fields."""
        return bool(self.model_extra)

    def collect_all_extra_fields(
        self,
        prefix: str = "",
    ) -> dict[str, _typing.Any]:
        """
        Recursively collect extra fields from this section and nested ones.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"composition.exclude_patern": ["_*"]}

        Args:
            prefix: Dotted path prefix (used in recursion).
        """
        result: dict[str, _typing.Any] = {}

        for key, value in self.get_extra_fields().items():
            path = f"{prefix}.{key}" if prefix else key
            result[path] = value

        for field_name in self.__class__.model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, ConfigBase):
                child_prefix = f"{prefix}.{field_name}" if prefix else field_name
                result.update(value.collect_all_extra_fields(child_prefix))

        return result


# =============================================================================
# Storage
# =============================================================================


class StorageConfig(ConfigBase):
    """
    Where documents live.

    YAML section: storage.*
    """

    root: str | None = None
    """Storage root. None = platform data directory (~/.local/share)."""

    app_name: str = _pydantic.Field(default="sigrun", min_length=1)
    """Directory under the root holding settings/, state/ and output/."""


# =============================================================================
# Composition
# =============================================================================


class CompositionConfig(ConfigBase):
    """
    Profile discovery and file writing.

    YAML section: composition.*
    """

    exclude_patterns: list[str] = _pydantic.Field(
        default_factory=lambda: list(constants.DEFAULT_EXCLUDE_PATTERNS)
    )
    """Path segments skipped by profile discovery (``_*`` skips ``_fragments``)."""

    recursive_discovery: bool = False
    """Search nested directories when listing profiles."""

    json_indent: int = _pydantic.Field(default=constants.DEFAULT_JSON_INDENT, ge=0, le=8)
    """Indent used when printing JSON."""


# =============================================================================
# Logging
# =============================================================================


class LoggingConfig(ConfigBase):
    """
    Logging settings.

    YAML section: logging.*
    """

    level: _typing.Literal["debug", "info", "warning", "error"] = "warning"
    """Log level."""

    format: str = "%(levelname)s %(name)s: %(message)s"
    """Format string passed to logging.basicConfig."""


# =============================================================================
# CLI output
# =============================================================================


class OutputConfig(ConfigBase):
    """
    CLI output settings.

    YAML section: output.*
    """

    color: bool = True
    """Syntax-highlight JSON output on terminals."""

    theme: str = "monokai"
    """Pygments theme for highlighted output."""
