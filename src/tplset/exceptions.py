"""tplset Exceptions

Custom exceptions raised while compiling and executing template sets.
"""

from __future__ import annotations

from pathlib import Path


class TplsetError(Exception):
    """Base exception for all tplset errors.

    ``exit_code`` is the process status the CLI exits with.
    """

    exit_code = 1


class TemplateIOError(TplsetError):
    """Raised when a template file cannot be read."""

    exit_code = 2

    def __init__(self, path: str | Path, reason: str = "cannot read file"):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Template unreadable: {self.path} ({reason})")


class EmptyTemplateError(TplsetError):
    """Raised when a template file exists but holds zero bytes."""

    exit_code = 2

    def __init__(self, path: str | Path):
        self.path = str(path)
        super().__init__(f"Template file is empty: {self.path}")


class CompileError(TplsetError):
    """Raised when a template source is not syntactically valid."""

    exit_code = 3

    def __init__(self, name: str, message: str, lineno: int | None = None):
        self.name = name
        self.message = message
        self.lineno = lineno
        location = f"{name}:{lineno}" if lineno is not None else name
        super().__init__(f"Template compile failed at {location}: {message}")


class UndefinedTemplateError(TplsetError):
    """Raised when executing a template name that is not in the unit."""

    exit_code = 4

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Template is undefined: {name}")
