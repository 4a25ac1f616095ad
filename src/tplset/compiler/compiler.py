"""Compiler - walks a template directory and compiles one unit per matching file."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from tplset.compiler.compositor import compose
from tplset.compiler.includer import Includer
from tplset.compiler.resolver import resolve_redefinitions
from tplset.compiler.spec import FragmentCache
from tplset.exceptions import TemplateIOError
from tplset.unit import CompiledUnit

log = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".html",)

Funcs = Mapping[str, Callable[..., Any]]


def normalize_extensions(extensions: Iterable[str]) -> List[str]:
    """Make sure every extension carries its leading dot."""
    return [e if e.startswith(".") else f".{e}" for e in extensions if e]


def _raise_walk_error(err: OSError) -> None:
    raise TemplateIOError(err.filename or "<unknown>", err.strerror or str(err)) from err


def iter_template_files(root: Path, extensions: Iterable[str]) -> Iterator[Path]:
    """Yield regular files under root whose suffix is recognised, in sorted walk order."""
    exts = set(extensions)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.suffix in exts and path.is_file():
                yield path


@dataclass
class CompilePass:
    """State of one top-level file's compile pass."""

    root: Path
    entry: Path
    cache: FragmentCache = field(default_factory=FragmentCache)


class TemplateCompiler:
    """Compiles a template directory into a mapping of named units.

    Symbolic template names seen by any pass are remembered for the lifetime
    of the compiler, so a name first met in one file is still resolved when
    it collides in a file compiled later. They are kept as an insertion-ordered
    set, so repeated compiles do not grow it. A lock serialises whole compiles.
    """

    def __init__(self) -> None:
        self.symbolic_refs: Dict[str, None] = {}
        self._lock = threading.Lock()

    def compile(
        self,
        root: str | Path,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        funcs: Optional[Funcs] = None,
        autoescape: bool = True,
    ) -> Mapping[str, CompiledUnit]:
        """Compile every matching file under root.

        Algorithm, per top-level file:
        1. Include: cache the file and every file it references
        2. Resolve: shadow redefinitions of symbolic names
        3. Compose: build the unit from the resolved cache

        Args:
            root: Template root directory.
            extensions: Recognised file suffixes (e.g. [".html"]).
            funcs: Custom functions installed in every unit.
            autoescape: Whether to HTML-escape expression output.

        Returns:
            Read-only mapping of canonical file name to compiled unit.

        Raises:
            TplsetError: The first failure aborts the whole walk.
        """
        root = Path(root)
        if not root.is_dir():
            raise TemplateIOError(root, "not a directory")

        exts = normalize_extensions(extensions)

        with self._lock:
            templates: Dict[str, CompiledUnit] = {}
            for path in iter_template_files(root, exts):
                unit = self._compile_file(CompilePass(root=root, entry=path), funcs, autoescape)
                templates[unit.name] = unit

        log.info("Compiled %d template(s) from %s", len(templates), root)
        return MappingProxyType(templates)

    def _compile_file(
        self, ctx: CompilePass, funcs: Optional[Funcs], autoescape: bool
    ) -> CompiledUnit:
        try:
            Includer(ctx.root, ctx.cache, self.symbolic_refs).add(ctx.entry)
            renamed = resolve_redefinitions(ctx.cache, self.symbolic_refs)
            unit = compose(ctx.cache, funcs, autoescape)
        finally:
            ctx.cache.clear()

        log.debug(
            "Compiled %s: %d fragment(s), %d shadowed define(s)",
            unit.name,
            len(unit.fragments),
            renamed,
        )
        return unit


_default_compiler = TemplateCompiler()


def compile_templates(
    root: str | Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    funcs: Optional[Funcs] = None,
    autoescape: bool = True,
) -> Mapping[str, CompiledUnit]:
    """Compile a template directory with the process-wide compiler."""
    return _default_compiler.compile(root, extensions, funcs, autoescape)
