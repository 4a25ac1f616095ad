"""Compositor - turns a resolved fragment cache into one compiled unit."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from jinja2 import DictLoader, TemplateSyntaxError

from tplset.compiler.extensions import get_tplset_jinja_env
from tplset.compiler.spec import FragmentCache
from tplset.compiler.tags import split_definitions
from tplset.exceptions import CompileError
from tplset.unit import CompiledUnit

log = logging.getLogger(__name__)


def compose(
    cache: FragmentCache,
    funcs: Optional[Mapping[str, Callable[..., Any]]] = None,
    autoescape: bool = True,
) -> CompiledUnit:
    """Build a CompiledUnit rooted at the cache's entry fragment.

    Each fragment's body (define blocks cut out) is registered under the
    fragment name, and each define block under its declared name. Names are
    registered in cache order and the first registration of a name wins.
    All templates are compiled eagerly.

    Args:
        cache: Resolved fragment cache.
        funcs: Custom functions installed in the unit.
        autoescape: Whether to HTML-escape expression output.

    Returns:
        The compiled unit.

    Raises:
        CompileError: If any registered template is not valid.
    """
    root = cache.root
    sources: Dict[str, str] = {}

    for fragment in cache:
        body, definitions = split_definitions(fragment.source, fragment.name)
        for name, source in [(fragment.name, body), *definitions]:
            if name in sources:
                log.debug("Dropped duplicate template %r from %s", name, fragment.name)
                continue
            sources[name] = source

    env = get_tplset_jinja_env(DictLoader(sources), funcs, autoescape)
    for name in sources:
        try:
            env.get_template(name)
        except TemplateSyntaxError as e:
            raise CompileError(name, e.message or str(e), e.lineno) from e

    return CompiledUnit(root.name, env, list(cache), list(sources))
