"""Resolver - keeps the first definition of each symbolic name and shadows the rest.

Several fragments composed together may each declare a default for the same
block (a layout slot, say). The first definition in cache order stays live;
later ones are renamed to an unreferenced placeholder such as
``title_invalidated_#1``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

from tplset.compiler.spec import FragmentCache
from tplset.compiler.tags import find_define_tags, render_define_tag

log = logging.getLogger(__name__)

PLACEHOLDER = "{name}_invalidated_#{index}"


def _defined_names(cache: FragmentCache) -> Set[str]:
    return {tag.name for fragment in cache for tag in find_define_tags(fragment.source)}


def resolve_name(cache: FragmentCache, name: str, taken: Optional[Set[str]] = None) -> int:
    """Rename every define of ``name`` after the first one.

    Args:
        cache: Fully populated cache; rewritten fragments are swapped in.
        name: Symbolic template name.
        taken: Names already defined in the cache. Placeholders handed out
            are added to it. Computed from the cache when omitted.

    Returns:
        Number of definitions renamed.
    """
    if taken is None:
        taken = _defined_names(cache)
    found = False
    index = 0
    renamed = 0
    rewrites: Dict[str, str] = {}

    for fragment in cache:
        pieces: List[str] = []
        cursor = 0
        for tag in find_define_tags(fragment.source):
            if tag.name != name:
                continue
            # First definition in cache order stays authoritative
            if not found:
                found = True
                continue

            index += 1
            placeholder = PLACEHOLDER.format(name=name, index=index)
            while placeholder in taken:
                index += 1
                placeholder = PLACEHOLDER.format(name=name, index=index)
            taken.add(placeholder)
            renamed += 1

            pieces.append(fragment.source[cursor : tag.start])
            pieces.append(render_define_tag(tag, placeholder))
            cursor = tag.end
            log.debug("Shadowed define %r in %s as %r", name, fragment.name, placeholder)

        if pieces:
            pieces.append(fragment.source[cursor:])
            rewrites[fragment.name] = "".join(pieces)

    for fragment_name, source in rewrites.items():
        cache.replace(fragment_name, source)

    return renamed


def resolve_redefinitions(cache: FragmentCache, symbolic_refs: Iterable[str]) -> int:
    """Apply first-wins shadowing for every referenced symbolic name.

    Repeated names are harmless: a second walk finds only the surviving
    definition.

    Returns:
        Total number of definitions renamed.
    """
    taken = _defined_names(cache)
    renamed = 0
    for name in list(symbolic_refs):
        renamed += resolve_name(cache, name, taken)
    return renamed
