"""Includer - loads an entry fragment and every file it pulls in via template tags."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

from tplset.compiler.loader import canonical_name, read_fragment
from tplset.compiler.spec import Fragment, FragmentCache
from tplset.compiler.tags import find_template_tags, has_extension

log = logging.getLogger(__name__)


class Includer:
    """Fills a FragmentCache from an entry file.

    Cache order is depth-first pre-order: the entry fragment first, then its
    file-backed dependencies in tag-scan order. Symbolic targets (no file
    extension) are recorded in ``symbolic_refs``, an insertion-ordered set
    the caller may share across passes.
    """

    def __init__(self, root: Path, cache: FragmentCache, symbolic_refs: Dict[str, None]):
        """Initialize includer.

        Args:
            root: Template root directory; file targets are resolved against it.
            cache: Cache to fill.
            symbolic_refs: Ordered set (dict keys) collecting symbolic template names.
        """
        self.root = Path(root)
        self.cache = cache
        self.symbolic_refs = symbolic_refs

    def add(self, path: str | Path) -> None:
        """Cache a fragment file and every file it references, transitively.

        Traversal uses an explicit stack, so include depth is not bounded by
        the interpreter's recursion limit. Already cached names are skipped,
        which also stops cycles.

        Raises:
            TemplateIOError: If a file cannot be read.
            EmptyTemplateError: If a file is empty.
        """
        stack: List[Path] = [Path(path)]

        while stack:
            current = stack.pop()
            name = canonical_name(self.root, current)
            if name in self.cache:
                log.debug("Fragment %s already cached", name)
                continue

            fragment = Fragment(name=name, source=read_fragment(current))
            self.cache.add(fragment)
            log.debug("Cached fragment %s", name)

            children: List[Path] = []
            for tag in find_template_tags(fragment.source):
                if has_extension(tag.name):
                    children.append(self.root / tag.name)
                else:
                    self.symbolic_refs[tag.name] = None

            # Reversed so the first tag is visited first
            stack.extend(reversed(children))
