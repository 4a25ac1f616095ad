"""Compiled template units."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, Tuple

from jinja2 import Environment, Template, TemplateNotFound
from markupsafe import Markup

from tplset.compiler.spec import Fragment
from tplset.exceptions import UndefinedTemplateError


class Sink(Protocol):
    """Anything rendered output can be written to (a response body, a file, a buffer)."""

    def write(self, data: str) -> Any: ...


class CompiledUnit:
    """All fragments composed for one top-level file.

    Every fragment is addressable by its own name and every define block by
    the name it declares. The unit itself is known by its root fragment's
    name, which is also the default template to execute.
    """

    def __init__(
        self,
        name: str,
        environment: Environment,
        fragments: Sequence[Fragment],
        names: Sequence[str],
    ):
        self.name = name
        self.environment = environment
        self._fragments: Tuple[Fragment, ...] = tuple(fragments)
        self._names: Tuple[str, ...] = tuple(names)

    @property
    def fragments(self) -> Tuple[Fragment, ...]:
        """Resolved fragments, in cache order."""
        return self._fragments

    @property
    def names(self) -> Tuple[str, ...]:
        """Every name registered in the namespace, in registration order."""
        return self._names

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __repr__(self) -> str:
        return f"CompiledUnit({self.name!r}, names={len(self._names)})"

    def template(self, name: Optional[str] = None) -> Template:
        """Return the compiled Jinja template registered under ``name``."""
        name = name or self.name
        if name not in self._names:
            raise UndefinedTemplateError(name)
        return self.environment.get_template(name)

    def render(
        self,
        name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        layout: Optional[str] = None,
    ) -> str:
        """Render a named template of this unit.

        Args:
            name: Template to execute. Defaults to the unit's root.
            data: Context variables.
            layout: Optional layout template. When set, the layout is rendered
                instead and can call ``content()`` to render ``name`` and
                ``current()`` to get its name.

        Raises:
            UndefinedTemplateError: If ``name``, ``layout`` or any template
                they include is not in the unit.
        """
        target = name or self.name
        context = dict(data or {})

        if layout is None:
            return self._render(target, context)

        def content() -> Markup:
            return Markup(self._render(target, context))

        context["content"] = content
        context["current"] = lambda: target
        return self._render(layout, context)

    def execute(
        self,
        sink: Sink,
        name: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        layout: Optional[str] = None,
    ) -> None:
        """Render a named template and write it to ``sink``.

        Output is rendered in full before the write, so a failed render
        leaves the sink untouched.
        """
        sink.write(self.render(name, data, layout))

    def _render(self, name: str, context: Mapping[str, Any]) -> str:
        template = self.template(name)
        try:
            return "".join(template.generate(**context))
        except TemplateNotFound as e:
            raise UndefinedTemplateError(e.name or name) from e
