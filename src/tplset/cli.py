"""tplset CLI Entry Point

Usage:
    tplset compile [DIRECTORY]                 # Compile and list template sets
    tplset compile -e .html -e .tmpl           # Match several suffixes
    tplset render index.html                   # Render a set's root template
    tplset render index.html title             # Render a named template of a set
    tplset render index.html --data ctx.yaml   # Render with context data
    tplset render page.html --layout base      # Render inside a layout
    tplset --version                           # Show version
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ._version import __version__
from .config import Options
from .errors import exit_with_error, handle_error
from .exceptions import TplsetError
from .store import TemplateStore

console = Console()
err_console = Console(stderr=True)

typer_app = typer.Typer(help="Compose template fragment directories into executable template sets.")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the tplset CLI.

    Log levels:
    - Normal: only warnings/errors shown
    - Verbose (-v): INFO level - compile summaries
    - Debug (TPLSET_DEBUG=1): DEBUG level - cached fragments, shadowed defines
    """
    if os.environ.get("TPLSET_DEBUG"):
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=bool(os.environ.get("TPLSET_DEBUG")),
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("tplset")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def load_options(
    config: Path, directory: Optional[Path], extensions: Optional[List[str]]
) -> Options:
    """Merge tplset.yaml (if present) with command line overrides."""
    return Options.load(config, directory=directory, extensions=extensions or None)


def load_data(path: Optional[Path]) -> dict[str, Any]:
    """Read render context from a YAML or JSON file."""
    if path is None:
        return {}
    if not path.exists():
        exit_with_error(f"Data file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        exit_with_error(f"Data file must contain a mapping: {path}")
    return data


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tplset {__version__}")
        raise typer.Exit()


@typer_app.callback()
def main(
    version: bool = typer.Option(
        False,
        "-V",
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Compose template fragment directories into executable template sets."""


@typer_app.command("compile")
def compile_command(
    directory: Optional[Path] = typer.Argument(
        None, help="Template root directory (default: from config, else ./templates)."
    ),
    extensions: Optional[List[str]] = typer.Option(
        None, "-e", "--ext", help="File suffix to compile; repeatable."
    ),
    config: Path = typer.Option(
        Path("tplset.yaml"), "-c", "--config", help="Path to tplset.yaml."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """Compile every template set under a directory and list them."""
    setup_logging(verbose)
    options = load_options(config, directory, extensions)

    try:
        templates = TemplateStore(options).reload()
    except TplsetError as exc:
        handle_error(exc)

    if not templates:
        console.print(f"[yellow]No templates found in {options.directory}[/yellow]")
        return

    table = Table()
    table.add_column("Template", style="cyan")
    table.add_column("Fragments", justify="right")
    table.add_column("Names")

    for set_name, unit in sorted(templates.items()):
        table.add_row(set_name, str(len(unit.fragments)), ", ".join(unit.names))

    console.print(table)


@typer_app.command("render")
def render_command(
    template: str = typer.Argument(..., help="Top-level template file, e.g. index.html."),
    name: Optional[str] = typer.Argument(
        None, help="Template to execute within the set (default: the file itself)."
    ),
    directory: Optional[Path] = typer.Option(
        None, "-d", "--directory", help="Template root directory."
    ),
    data_file: Optional[Path] = typer.Option(
        None, "--data", help="YAML or JSON file with the render context."
    ),
    layout: Optional[str] = typer.Option(
        None, "--layout", help="Layout template that calls content()."
    ),
    extensions: Optional[List[str]] = typer.Option(
        None, "-e", "--ext", help="File suffix to compile; repeatable."
    ),
    config: Path = typer.Option(
        Path("tplset.yaml"), "-c", "--config", help="Path to tplset.yaml."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output."),
) -> None:
    """Render one template to stdout."""
    setup_logging(verbose)
    options = load_options(config, directory, extensions)
    data = load_data(data_file)

    try:
        output = TemplateStore(options).render(template, name, data, layout)
    except TplsetError as exc:
        handle_error(exc)

    typer.echo(output, nl=False)


def app() -> None:
    """Entry point for the CLI."""
    typer_app()


if __name__ == "__main__":
    app()
