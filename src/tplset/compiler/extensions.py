"""Jinja2 extensions for tplset template units."""

from __future__ import annotations

import posixpath
from typing import Any, Callable, Mapping, Optional

from jinja2 import BaseLoader, Environment, nodes
from jinja2.ext import Extension

from tplset.compiler.tags import has_extension


class TemplateExtension(Extension):
    """Extension for {% template "name" %} inclusion tags.

    The target is looked up in the unit's namespace: either a fragment file
    name (e.g. "partials/nav.html") or a name declared with
    {% define "name" %}. The included template sees the caller's context.

    An optional trailing token after the target is accepted and ignored:

        {% template "title" %}
        {% template "partials/nav.html" . %}
    """

    tags = {"template"}

    def parse(self, parser):
        """Parse {% template "target" [token] %} into an Include node."""
        lineno = next(parser.stream).lineno
        target = parser.stream.expect("string").value

        while parser.stream.current.type not in ("block_end", "eof"):
            next(parser.stream)

        if has_extension(target):
            target = posixpath.normpath(target)

        return nodes.Include(nodes.Const(target), True, False, lineno=lineno)


def get_tplset_jinja_env(
    loader: BaseLoader,
    funcs: Optional[Mapping[str, Callable[..., Any]]] = None,
    autoescape: bool = True,
) -> Environment:
    """Create a Jinja2 Environment for one compiled unit.

    Custom functions are installed both as globals ({{ fn(x) }}) and as
    filters ({{ x | fn }}).

    A fragment's final newline is kept, so composed fragments do not run
    into each other. Line endings in rendered output are normalized to
    ``newline_sequence`` ("\\n").

    Args:
        loader: Loader serving the unit's namespace.
        funcs: Custom functions injected into every template of the unit.
        autoescape: Whether to HTML-escape expression output.

    Returns:
        Configured Jinja2 Environment.
    """
    env = Environment(
        loader=loader,
        extensions=[TemplateExtension],
        autoescape=autoescape,
        keep_trailing_newline=True,
        auto_reload=False,
        cache_size=-1,
    )

    for name, fn in (funcs or {}).items():
        env.globals[name] = fn
        env.filters[name] = fn

    return env
