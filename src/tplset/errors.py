"""CLI error reporting for tplset.

Each tplset error type carries the status the CLI exits with:

    1  generic failure (bad data file, unexpected error)
    2  a template file is unreadable or empty
    3  a template does not compile
    4  the requested template set or name is undefined
"""

from typing import NoReturn

import typer

from tplset.exceptions import TplsetError


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Print message to stderr in red and exit with exit_code."""
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=exit_code)


def handle_error(error: Exception) -> NoReturn:
    """Report error and exit with the status its type declares."""
    if isinstance(error, TplsetError):
        exit_with_error(str(error), error.exit_code)
    exit_with_error(f"Unexpected error: {error}")
