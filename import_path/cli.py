"""Typer-based CLI for import-path."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config, config_manager
from .exceptions import InvalidMatcherError, PackageConfigError
from .finder import ImportPath

app = typer.Typer(
    help="🧭 import-path: find how a Dart module ends up importing another one.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console(highlight=False, soft_wrap=True)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"import-path v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """import-path: shortest or all import chains between Dart modules."""
    pass


def _print(message: str) -> None:
    console.print(message, markup=False, emoji=False, highlight=False, soft_wrap=True)


def _switch(on: bool, off: bool, names: str) -> Optional[bool]:
    if on and off:
        raise typer.BadParameter(f"Options {names} are mutually exclusive.")
    if on:
        return True
    if off:
        return False
    return None


@app.command("find")
def find(
    from_path: str = typer.Argument(..., help="Entry point: a Dart file path or URI."),
    target: str = typer.Argument(..., help="Import to find: a URI or path, or a pattern with --regexp."),
    regexp: bool = typer.Option(False, "--regexp", "-r", help="Parse the target as a regular expression."),
    find_all: bool = typer.Option(False, "--all", help="Search for all the import paths."),
    shortest: bool = typer.Option(False, "--shortest", help="Search only the shortest import paths."),
    strip: bool = typer.Option(False, "--strip", "-s", help="Strip the search root from displayed paths."),
    no_strip: bool = typer.Option(False, "--no-strip", help="Display full module URIs."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only display the found paths."),
    no_quiet: bool = typer.Option(False, "--no-quiet", help="Display progress messages and warnings."),
    style: Optional[str] = typer.Option(
        None, "--style", help="Output style: elegant (connector), dots (indent) or json (structured)."
    ),
    dots: bool = typer.Option(False, "--dots", help="Shortcut for --style dots."),
    fast: bool = typer.Option(False, "--fast", help="Parse only the import section of each file."),
    exact: bool = typer.Option(False, "--exact", help="Always parse whole files."),
    conditional: bool = typer.Option(False, "--conditional", help="Follow every alternative of conditional imports."),
    no_conditional: bool = typer.Option(
        False, "--no-conditional", help="Ignore the alternatives of conditional imports."
    ),
    max_expansion: Optional[int] = typer.Option(
        None, "--max-expansion", min=0, help="Maximum number of modules expanded by the search."
    ),
    package_dir: Optional[Path] = typer.Option(
        None, "--package-dir", "-p", exists=True, file_okay=False,
        help="Directory whose package config resolves package: URIs (default: the entry's).",
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Config file to read options from."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Find the shortest (or all) import paths from FROM_PATH to TARGET.

    Examples:
      import-path find web/main.dart dart:io
      import-path find bin/tool.dart package:analyzer/dart/ast/ast.dart --all -s
      import-path find web/main.dart "dart:(io|html)" --regexp --all
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s  %(name)-24s  %(levelname)-7s  %(message)s",
        )

    if dots:
        if style not in (None, "dots", "indent"):
            raise typer.BadParameter("--dots can't be combined with another --style.")
        style = "dots"

    try:
        options = config_manager.load_search_options(config_file).merged(
            find_all=_switch(find_all, shortest, "--all/--shortest"),
            quiet=_switch(quiet, no_quiet, "--quiet/--no-quiet"),
            strip=_switch(strip, no_strip, "--strip/--no-strip"),
            fast_parser=_switch(fast, exact, "--fast/--exact"),
            include_conditional_imports=_switch(conditional, no_conditional, "--conditional/--no-conditional"),
            max_expansion=max_expansion,
            style=style,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    try:
        finder = ImportPath.from_options(
            from_path,
            target,
            options,
            regexp=regexp,
            package_directory=package_dir,
            message_printer=_print,
        )
    except InvalidMatcherError as exc:
        raise typer.BadParameter(str(exc))

    try:
        tree = finder.execute(style=options.style)
    except PackageConfigError as exc:
        typer.echo(f"❌ {exc}", err=True)
        raise typer.Exit(code=2)

    if tree is None:
        raise typer.Exit(code=1)


@app.command("show-config")
def show_config(
    config_file: Optional[Path] = typer.Option(None, "--config", help="Config file to read."),
):
    """Show the effective search options."""
    path = config_file or config.CONFIG_FILE
    options = config_manager.load_search_options(config_file)

    table = Table(title=f"Search options ({path})")
    table.add_column("Option", style="cyan")
    table.add_column("Value")
    for key, value in options.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command("set-config")
def set_config(
    key: str = typer.Argument(..., help="Search option name, e.g. max_expansion."),
    value: str = typer.Argument(..., help="New value."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Config file to update."),
):
    """Persist a default search option."""
    try:
        config_manager.save_search_option(key, value, config_file)
    except KeyError:
        raise typer.BadParameter(
            f"Unknown option '{key}'. Known options: {', '.join(config.SearchOptions.field_types())}"
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    typer.echo(f"Saved {key} = {value} to {config_file or config.CONFIG_FILE}")


if __name__ == "__main__":
    app()
