"""Template Store

Holds the latest compiled template mapping for a directory and renders from it.

A reload compiles the whole directory and publishes the new mapping with a
single reference swap. Readers always see a complete mapping; if a reload
fails, the previous mapping stays in effect.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from tplset.compiler import TemplateCompiler
from tplset.config import Options
from tplset.exceptions import UndefinedTemplateError
from tplset.unit import CompiledUnit, Sink

log = logging.getLogger(__name__)


class TemplateStore:
    """Compiled template sets for one configured directory."""

    def __init__(
        self,
        options: Options | None = None,
        compiler: TemplateCompiler | None = None,
    ):
        """Initialize the store. Nothing is compiled until the first reload.

        Args:
            options: Directory, extensions and funcs. Defaults to Options().
            compiler: Compiler to use. A private one is created if omitted.
        """
        self.options = options or Options()
        self.compiler = compiler or TemplateCompiler()
        self._templates: Mapping[str, CompiledUnit] = MappingProxyType({})
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def templates(self) -> Mapping[str, CompiledUnit]:
        """The currently published mapping (read-only)."""
        return self._templates

    def reload(self) -> Mapping[str, CompiledUnit]:
        """Recompile the directory and publish the result."""
        templates = self.compiler.compile(
            self.options.directory,
            self.options.extensions,
            self.options.funcs,
            self.options.autoescape,
        )
        self._templates = templates
        self._loaded = True
        log.info("Published %d template set(s)", len(templates))
        return templates

    def get(self, set_name: str) -> CompiledUnit:
        """Return the unit compiled from the top-level file ``set_name``."""
        if not self._loaded:
            self.reload()
        unit = self._templates.get(set_name)
        if unit is None:
            raise UndefinedTemplateError(set_name)
        return unit

    def render(
        self,
        set_name: str,
        name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        layout: Optional[str] = None,
    ) -> str:
        """Render template ``name`` (default: the set's root) from set ``set_name``."""
        return self.get(set_name).render(name, data, layout)

    def render_to(
        self,
        sink: Sink,
        set_name: str,
        name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        layout: Optional[str] = None,
    ) -> None:
        """Render and write to ``sink``; nothing is written on failure."""
        self.get(set_name).execute(sink, name, data, layout)
