"""Tag extraction - lexical scanning of define/template tags.

Two tag kinds are recognised, using Jinja statement delimiters:

    {% define "name" %} ... {% end %}     named sub-template (also {% enddefine %})
    {% template "target" [expr] %}       inclusion of another template

Scanning is regex based and does not parse the full template grammar, so a
tag look-alike inside a comment or raw block is matched too.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterator, List, Optional, Tuple

from tplset.exceptions import CompileError

_QUOTED = r"""(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)')"""

DEFINE_TAG = re.compile(
    r"(?P<open>\{%[-+]?)\s*define\s+"
    + _QUOTED
    + r"""\s*(?:["']?(?P<arg>\w*)["']?)?\s*(?P<close>[-+]?%\})"""
)
TEMPLATE_TAG = re.compile(
    r"(?P<open>\{%[-+]?)\s*template\s+"
    + _QUOTED
    + r"(?P<arg>[^%]*?)\s*(?P<close>[-+]?%\})"
)
END_TAG = re.compile(r"(?P<open>\{%[-+]?)\s*(?:end|enddefine)\s*(?P<close>[-+]?%\})")


@dataclass(frozen=True)
class TagMatch:
    """A single define or template tag found in a source."""

    kind: str  # "define" or "template"
    name: str
    arg: Optional[str]
    start: int
    end: int
    open: str = "{%"
    close: str = "%}"


def _tag_name(m: re.Match[str]) -> str:
    return m.group("dq") if m.group("dq") is not None else m.group("sq")


def _to_match(kind: str, m: re.Match[str]) -> TagMatch:
    arg = (m.group("arg") or "").strip() or None
    return TagMatch(
        kind=kind,
        name=_tag_name(m),
        arg=arg,
        start=m.start(),
        end=m.end(),
        open=m.group("open"),
        close=m.group("close"),
    )


def find_define_tags(source: str) -> Iterator[TagMatch]:
    """Yield every define tag in source order."""
    return (_to_match("define", m) for m in DEFINE_TAG.finditer(source))


def find_template_tags(source: str) -> Iterator[TagMatch]:
    """Yield every template tag in source order."""
    return (_to_match("template", m) for m in TEMPLATE_TAG.finditer(source))


def has_extension(target: str) -> bool:
    """Whether a template target looks like a file path rather than a symbolic name."""
    return bool(PurePosixPath(target).suffix)


def render_define_tag(tag: TagMatch, name: str) -> str:
    """Rebuild a define tag under a new name, keeping its whitespace markers."""
    return f'{tag.open} define "{name}" {tag.close}'


def _lineno(source: str, pos: int) -> int:
    return source.count("\n", 0, pos) + 1


def split_definitions(
    source: str, origin: str = "<template>"
) -> Tuple[str, List[Tuple[str, str]]]:
    """Cut define blocks out of a source.

    Nested blocks are extracted as well; the enclosing definition keeps its
    body minus the nested block, as the top-level body does.

    Args:
        source: Template source text.
        origin: Name used in error messages.

    Returns:
        (body, definitions) where definitions is a list of (name, body) pairs
        in source order.

    Raises:
        CompileError: If define and end tags are unbalanced.
    """
    events = sorted(
        list(DEFINE_TAG.finditer(source)) + list(END_TAG.finditer(source)),
        key=lambda m: m.start(),
    )

    parts: List[str] = []
    definitions: List[Tuple[str, str]] = []
    cursor = 0
    depth = 0
    strip_next = False
    opening: Optional[re.Match[str]] = None

    for m in events:
        if m.re is DEFINE_TAG:
            if depth == 0:
                opening = m
            depth += 1
            continue

        if depth == 0:
            raise CompileError(
                origin, "unexpected end tag outside of a define block", _lineno(source, m.start())
            )
        depth -= 1
        if depth:
            continue

        assert opening is not None
        before = source[cursor : opening.start()]
        if strip_next:
            before = before.lstrip()
        if opening.group("open").endswith("-"):
            before = before.rstrip()
        parts.append(before)

        inner = source[opening.end() : m.start()]
        if opening.group("close").startswith("-"):
            inner = inner.lstrip()
        if m.group("open").endswith("-"):
            inner = inner.rstrip()
        inner_body, nested = split_definitions(inner, origin)
        definitions.append((_tag_name(opening), inner_body))
        definitions.extend(nested)

        cursor = m.end()
        strip_next = m.group("close").startswith("-")

    if depth:
        assert opening is not None
        raise CompileError(
            origin,
            f'define "{_tag_name(opening)}" is never closed',
            _lineno(source, opening.start()),
        )

    tail = source[cursor:]
    if strip_next:
        tail = tail.lstrip()
    parts.append(tail)

    return "".join(parts), definitions
