"""Librarian CLI - resolve and load namespaced classes from the command line."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import click
import yaml
from rich.table import Table
from rich.text import Text

from .console import console
from .errors import LoaderError
from .errors import SettingsError
from .loader import LoaderOptions
from .loader import Mode
from .logging_setup import init_console_logging
from .logging_setup import init_json_logging
from .paths import create_loader
from .paths import create_runtime
from .paths import create_settings
from .settings import LoaderConfig
from .ui.error_display import display_loader_error
from .utils.error_format import escape_markup
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)


@dataclass
class CliState:
    """Effective configuration shared with subcommands."""

    config: LoaderConfig
    verbose: bool = False


def _parse_prefix(value: str) -> tuple[str, str]:
    """Split ``PREFIX=DIR``; the prefix itself may not be empty."""
    prefix, sep, directory = value.partition("=")
    if not sep or not prefix or not directory:
        raise click.BadParameter(f"Expected PREFIX=DIR, got '{value}'", param_hint="--prefix")
    return prefix, directory


def apply_overrides(
    config: LoaderConfig,
    *,
    mode: str | None = None,
    separator: str | None = None,
    extension: str | None = None,
    search_path: bool | None = None,
    prefixes: tuple[str, ...] = (),
    fallbacks: tuple[str, ...] = (),
) -> LoaderConfig:
    """Layer command-line options over the settings-file configuration."""
    update: dict = {}

    if mode is not None:
        update["mode"] = Mode.parse(mode)

    option_overrides = {
        key: value
        for key, value in {"separator": separator, "extension": extension, "global_search_path": search_path}.items()
        if value is not None
    }
    if option_overrides:
        update["options"] = LoaderOptions.model_validate({**config.options.model_dump(), **option_overrides})

    if prefixes:
        paths = {prefix: list(dirs) for prefix, dirs in config.paths.items()}
        for value in prefixes:
            prefix, directory = _parse_prefix(value)
            paths.setdefault(prefix, []).append(directory)
        update["paths"] = paths

    if fallbacks:
        update["fallbacks"] = [*config.fallbacks, *fallbacks]

    return config.model_copy(update=update) if update else config


@click.group(invoke_without_command=True)
@click.version_option(package_name="librarian")
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Settings file merged over the global, project and local scopes",
)
@click.option("--mode", type=click.Choice(["silent", "normal", "debug"]), default=None, help="Operational mode")
@click.option("--separator", default=None, help="Namespace separator token (default: backslash)")
@click.option("--extension", default=None, help="File extension appended to class paths (default: .py)")
@click.option("--prefix", "prefixes", multiple=True, metavar="PREFIX=DIR", help="Add a directory for a class prefix")
@click.option("--fallback", "fallbacks", multiple=True, metavar="DIR", help="Add a fallback directory")
@click.option(
    "--search-path/--no-search-path",
    default=None,
    help="Consult sys.path when prefixes and fallbacks miss",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr and tracebacks on errors")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Append JSONL logs to this file")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    mode: str | None,
    separator: str | None,
    extension: str | None,
    prefixes: tuple[str, ...],
    fallbacks: tuple[str, ...],
    search_path: bool | None,
    verbose: bool,
    log_file: str | None,
):
    """Librarian - resolve namespaced class names to files and load them."""
    if log_file:
        init_json_logging(log_file)
    if verbose:
        init_console_logging(logging.DEBUG)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()

    try:
        config = create_settings().get_loader_config(config_file)
    except SettingsError as e:
        console.print(f"[red]Error:[/red] {escape_markup(e)}")
        ctx.exit(1)

    config = apply_overrides(
        config,
        mode=mode,
        separator=separator,
        extension=extension,
        search_path=search_path,
        prefixes=prefixes,
        fallbacks=fallbacks,
    )
    ctx.obj = CliState(config=config, verbose=verbose)


@cli.command("find")
@click.argument("name")
@click.pass_obj
def find_cmd(state: CliState, name: str):
    """Print the file NAME resolves to, without loading it."""
    loader = create_loader(state.config)
    found = loader.find(name)

    if found:
        click.echo(found)
        return

    console.print(f"[red]Not found:[/red] {escape_markup(name)}")
    if loader.tried_paths:
        table = Table(title="Tried paths", show_header=False, box=None, padding=(0, 1))
        table.add_column("Path", style="dim")
        for path in loader.tried_paths:
            table.add_row(Text(path))
        console.print(table)
    raise SystemExit(1)


@cli.command("load")
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
def load_cmd(state: CliState, names: tuple[str, ...]):
    """Resolve and load each of NAMES, then list what was loaded."""
    runtime = create_runtime()
    loader = create_loader(state.config, runtime)
    loader.register()

    failed = False
    for name in names:
        try:
            runtime.resolve(name)
        except LoaderError as e:
            display_loader_error(console, e, verbose=state.verbose)
            failed = True
        except Exception as e:
            # NameError when the handler chain gave up, or whatever the class file raised
            console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
            if state.verbose:
                console.print_exception()
            failed = True

    loaded = loader.loaded()
    if loaded:
        kinds = runtime.symbols()
        table = Table(title="Loaded", show_header=True, header_style="bold cyan")
        table.add_column("Name", style="green", no_wrap=True)
        table.add_column("Kind", style="yellow", no_wrap=True)
        table.add_column("File", style="magenta")
        for name, file in loaded.items():
            table.add_row(Text(name), kinds[name].value, Text(file))
        console.print(table)

    if failed:
        raise SystemExit(1)


@cli.command("config")
@click.pass_obj
def config_cmd(state: CliState):
    """Show the effective configuration as YAML."""
    click.echo(yaml.safe_dump(state.config.to_dict(), default_flow_style=False, sort_keys=False), nl=False)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
