"""
Main CLI entry point for Sigrun.

Provides the command-line interface using Click:

    sigrun resolve PROFILE [--dir DIR] [--chain]
    sigrun diff BASE EDITED [--extends NAME]
    sigrun list [--dir DIR] [--recursive]
    sigrun config show [--json]
    sigrun config path
"""

import json as _json
import logging as _logging
import os as _os
import pathlib as _pathlib
import sys as _sys
import typing as _typing

import click as _click
import rich.console as _rich_console
import rich.syntax as _rich_syntax
import yaml as _yaml

import sigrun
import sigrun.composition as composition
import sigrun.composition.paths as paths
import sigrun.config as config
import sigrun.config.sources as config_sources
import sigrun.errors as errors
import sigrun.storage as storage
import sigrun.tree as tree

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}


def _should_use_color(cli_flag: bool | None, settings: config.Settings) -> tuple[bool, bool]:
    """Determine whether to use color output.

    Priority:
    1. CLI flag (--color / --no-color) if specified
    2. NO_COLOR env var (if set, disable color)
    3. output.color from config, when stdout is a TTY

    Returns:
        Tuple of (color_enabled, force_color).
    """
    if cli_flag is not None:
        return (cli_flag, cli_flag)
    if _os.environ.get("NO_COLOR") is not None:
        return (False, False)
    return (settings.output.color and _sys.stdout.isatty(), False)


def _print_highlighted(
    text: str,
    lexer: str,
    settings: config.Settings,
    *,
    color: bool,
    force_color: bool = False,
) -> None:
    """Print JSON or YAML text, optionally with syntax highlighting."""
    if not color:
        _click.echo(text)
        return
    console = _rich_console.Console(
        force_terminal=force_color,
        no_color=False if force_color else None,
        color_system="truecolor" if force_color else "auto",
    )
    console.print(
        _rich_syntax.Syntax(
            text,
            lexer,
            theme=settings.output.theme,
            background_color="default",
        )
    )


def _print_json(ctx: _click.Context, data: _typing.Any, use_color: bool | None) -> None:
    settings: config.Settings = ctx.obj["settings"]
    color, force = _should_use_color(use_color, settings)
    text = _json.dumps(data, indent=settings.composition.json_indent, ensure_ascii=False)
    _print_highlighted(text, "json", settings, color=color, force_color=force)


def _fail(error: errors.SigrunError) -> _typing.NoReturn:
    raise _click.ClickException(str(error)) from error


def _default_profile_dir(ctx: _click.Context) -> _pathlib.Path:
    settings: config.Settings = ctx.obj["settings"]
    try:
        app = storage.Storage(settings.storage_root, settings.storage.app_name)
        return app.settings_dir()
    except (errors.SigrunError, OSError) as e:
        raise _click.ClickException(f"Cannot use the settings directory: {e}") from e


_color_option = _click.option(
    "--color/--no-color",
    "use_color",
    default=None,
    help="Enable/disable syntax highlighting (default: auto-detect TTY)",
)


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(sigrun.__version__, "-v", "--version", prog_name="sigrun")
@_click.option(
    "--log-level",
    type=_click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Override the configured log level",
)
@_click.pass_context
def cli(ctx: _click.Context, log_level: str | None) -> None:
    """Sigrun - composable JSON configuration profiles.

    Resolves $extends / $include composition, computes minimal child
    profiles, and lists profile directories.
    """
    try:
        settings = config.Settings()
    except errors.SigrunError as e:
        _fail(e)
    if log_level is not None:
        settings.logging.level = log_level  # type: ignore[assignment]

    _logging.basicConfig(level=settings.log_level, format=settings.logging.format)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@_click.argument("profile")
@_click.option(
    "--dir",
    "directory",
    type=_click.Path(exists=True, file_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Profile directory (default: the configured settings directory)",
)
@_click.option("--chain", is_flag=True, help="Print the inheritance chain instead")
@_click.option("--no-includes", is_flag=True, help="Leave $include directives in place")
@_color_option
@_click.pass_context
def resolve(
    ctx: _click.Context,
    profile: str,
    directory: _pathlib.Path | None,
    chain: bool,
    no_includes: bool,
    use_color: bool | None,
) -> None:
    """Resolve PROFILE into a single flattened document.

    Examples:
        sigrun resolve production
        sigrun resolve wip/panel --dir settings/profiles
        sigrun resolve production --chain
    """
    if directory is None:
        directory = _default_profile_dir(ctx)
    resolver = composition.ProfileResolver(directory, expand_includes=not no_includes)
    try:
        if chain:
            for item in resolver.resolve_chain(profile):
                _click.echo(item.name)
            return
        document = resolver.resolve(profile)
    except errors.SigrunError as e:
        _fail(e)
    _print_json(ctx, document, use_color)


@cli.command()
@_click.argument("base", type=_click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path))
@_click.argument("edited", type=_click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path))
@_click.option(
    "--extends",
    "extends_name",
    type=str,
    default=None,
    help="Wrap the patch as a child profile extending NAME",
)
@_color_option
@_click.pass_context
def diff(
    ctx: _click.Context,
    base: _pathlib.Path,
    edited: _pathlib.Path,
    extends_name: str | None,
    use_color: bool | None,
) -> None:
    """Print the minimal patch turning BASE into EDITED.

    Both files are compared as written; directives are not resolved.

    Examples:
        sigrun diff base.json edited.json
        sigrun diff base.json edited.json --extends base > child.json
    """
    try:
        base_doc = composition.load_json_object(base)
        edited_doc = composition.load_json_object(edited)
        if extends_name is not None:
            result = tree.create_child_profile(base_doc, edited_doc, extends_name)
        else:
            result = tree.create_patch(base_doc, edited_doc)
    except errors.SigrunError as e:
        _fail(e)
    except ValueError as e:
        raise _click.BadParameter(str(e), param_hint="--extends") from e
    _print_json(ctx, result, use_color)


@cli.command(name="list")
@_click.option(
    "--dir",
    "directory",
    type=_click.Path(exists=True, file_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Profile directory (default: the configured settings directory)",
)
@_click.option(
    "--recursive/--no-recursive",
    default=None,
    help="Search nested directories (default: composition.recursive_discovery)",
)
@_click.pass_context
def list_cmd(
    ctx: _click.Context, directory: _pathlib.Path | None, recursive: bool | None
) -> None:
    """List profiles in a directory.

    Schema files and paths under directories matching the configured
    exclusion patterns (default: _*) are skipped.
    """
    settings: config.Settings = ctx.obj["settings"]
    if recursive is None:
        recursive = settings.composition.recursive_discovery

    if directory is None:
        directory = _default_profile_dir(ctx)

    found = storage.list_json_files(
        directory.resolve(),
        recursive=recursive,
        exclude_patterns=settings.composition.exclude_patterns,
    )
    for name in found:
        _click.echo(paths.strip_suffix(name))


@cli.group(name="config")
def config_cmd() -> None:
    """Configuration management commands."""


@config_cmd.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_color_option
@_click.pass_context
def config_show(ctx: _click.Context, as_json: bool, use_color: bool | None) -> None:
    """Show effective configuration from all sources.

    Unknown keys found in config files are listed as warnings.

    Examples:
        sigrun config show           # YAML (colorized on terminals)
        sigrun config show --json    # JSON
    """
    settings: config.Settings = ctx.obj["settings"]
    full_config = settings.model_dump(mode="json")

    if as_json:
        _click.echo(_json.dumps(full_config, indent=2))
    else:
        color, force = _should_use_color(use_color, settings)
        yaml_text = _yaml.dump(full_config, default_flow_style=False, sort_keys=False)
        _print_highlighted(yaml_text, "yaml", settings, color=color, force_color=force)

    for key in sorted(settings.get_unknown_fields()):
        _click.echo(f"warning: unknown config key '{key}'", err=True)


@config_cmd.command(name="path")
@_click.option("--all", "show_all", is_flag=True, help="Show all paths even if not found")
def config_path(show_all: bool) -> None:
    """Show configuration file paths and their status.

    Examples:
        sigrun config path        # Show existing config files
        sigrun config path --all  # Show all possible paths
    """
    locations = [
        ("Built-in defaults", config_sources.get_builtin_defaults_path()),
        ("User config", config_sources.get_user_config_path()),
        ("Project config", config_sources.get_project_config_path(config.find_project_root())),
    ]

    for name, path in locations:
        exists = path.exists()
        if exists or show_all:
            status = "✓" if exists else "✗"
            _click.echo(f"{status} {name}: {path}")


def main() -> None:
    """Entry point for the sigrun command."""
    cli()


if __name__ == "__main__":
    main()
