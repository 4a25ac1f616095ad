"""Compiler IR spec - fragments and the per-file fragment cache."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional


@dataclass(frozen=True)
class Fragment:
    """One named unit of template source."""

    name: str  # e.g., "partials/nav.html"
    source: str

    def with_source(self, source: str) -> "Fragment":
        """Return a copy carrying a rewritten source."""
        return replace(self, source=source)


@dataclass
class FragmentCache:
    """Insertion-ordered fragments, unique by name.

    The first fragment added under a name wins; later adds are no-ops.
    Order matters: it decides which definition stays authoritative and
    which fragment roots the compiled unit.
    """

    _fragments: List[Fragment] = field(default_factory=list)
    _index: Dict[str, int] = field(default_factory=dict)

    def add(self, fragment: Fragment) -> bool:
        """Append a fragment. Returns False if the name is already cached."""
        if fragment.name in self._index:
            return False
        self._index[fragment.name] = len(self._fragments)
        self._fragments.append(fragment)
        return True

    def get(self, name: str) -> Optional[Fragment]:
        idx = self._index.get(name)
        return None if idx is None else self._fragments[idx]

    def replace(self, name: str, source: str) -> Fragment:
        """Swap in a copy of a cached fragment with a new source."""
        idx = self._index[name]
        updated = self._fragments[idx].with_source(source)
        self._fragments[idx] = updated
        return updated

    def clear(self) -> None:
        self._fragments.clear()
        self._index.clear()

    @property
    def root(self) -> Fragment:
        """The entry fragment (first one added)."""
        if not self._fragments:
            raise LookupError("fragment cache is empty")
        return self._fragments[0]

    @property
    def names(self) -> List[str]:
        return [f.name for f in self._fragments]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[Fragment]:
        return iter(list(self._fragments))

    def __len__(self) -> int:
        return len(self._fragments)
