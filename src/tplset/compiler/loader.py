"""Loader - reads fragment files and derives their canonical names."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from tplset.exceptions import EmptyTemplateError, TemplateIOError


def read_fragment(path: str | Path) -> str:
    """Read a fragment file as text.

    Args:
        path: Path to the fragment file.

    Returns:
        The file content.

    Raises:
        TemplateIOError: If the file cannot be read.
        EmptyTemplateError: If the file holds zero bytes.
    """
    p = Path(path)
    try:
        # newline="" keeps the file's line endings in the fragment source
        with open(p, encoding="utf-8", newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateIOError(p, str(e)) from e

    if not content:
        raise EmptyTemplateError(p)

    return content


def canonical_name(root: str | Path, path: str | Path) -> str:
    """Return the root-relative, forward-slash name of a fragment file.

    Example:
        >>> canonical_name("/tpl", "/tpl/a/b.html")
        'a/b.html'
    """
    rel = os.path.relpath(os.path.abspath(path), os.path.abspath(root))
    parts = Path(rel).parts
    if not parts or parts[0] == os.pardir:
        raise TemplateIOError(path, f"outside template root {root}")
    return PurePosixPath(*parts).as_posix()
