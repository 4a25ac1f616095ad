"""Tests for the directory compiler and the compiled units it produces."""

import io
import threading

import os

import pytest

from tplset.compiler import TemplateCompiler, compile_templates
from tplset.exceptions import (
    CompileError,
    EmptyTemplateError,
    TemplateIOError,
    UndefinedTemplateError,
)


def test_entry_fragment_definition_wins_over_included_one(write_tree):
    """The entry file is first in cache order, so its define of a block wins."""
    root = write_tree(
        {
            "index.html": (
                '{% template "partials/nav.html" %}Hi{% template "title" %}'
                '{% define "title" %}Index{% end %}'
            ),
            "partials/nav.html": '<nav>{% define "title" %}Nav{% end %}</nav>',
        }
    )

    templates = TemplateCompiler().compile(root)
    unit = templates["index.html"]

    assert unit.render("title") == "Index"
    assert unit.render() == "<nav></nav>HiIndex"
    assert unit.render("partials/nav.html") == "<nav></nav>"
    assert unit.render("title_invalidated_#1") == "Nav"


def test_one_entry_per_matching_file(write_tree):
    """Every matching file is a top-level entry keyed by its canonical name."""
    root = write_tree(
        {
            "index.html": '{% template "partials/nav.html" %}',
            "partials/nav.html": '<nav>{% define "title" %}Nav{% end %}</nav>',
            "a/b/deep.html": "deep",
        }
    )

    templates = TemplateCompiler().compile(root)

    assert sorted(templates) == ["a/b/deep.html", "index.html", "partials/nav.html"]
    assert templates["partials/nav.html"].render("title") == "Nav"
    assert templates["a/b/deep.html"].name == "a/b/deep.html"


def test_first_included_definition_wins(write_tree):
    """With cache order [main, p, q], X renders p's body."""
    root = write_tree(
        {
            "main.html": '{% template "p.html" %}{% template "q.html" %}[{% template "X" %}]',
            "p.html": '{% define "X" %}P{% end %}',
            "q.html": '{% define "X" %}Q{% end %}',
        }
    )

    unit = TemplateCompiler().compile(root)["main.html"]

    assert unit.render() == "[P]"
    assert unit.render("X") == "P"
    assert unit.render("X_invalidated_#1") == "Q"


def test_unreferenced_duplicate_keeps_first_definition(write_tree):
    """Names never used in a template tag still resolve to the first definition."""
    root = write_tree(
        {
            "main.html": '{% template "p.html" %}{% template "q.html" %}',
            "p.html": '{% define "X" %}P{% end %}',
            "q.html": '{% define "X" %}Q{% end %}',
        }
    )

    unit = TemplateCompiler().compile(root)["main.html"]

    assert unit.render("X") == "P"
    assert "X_invalidated_#1" not in unit


def test_symbolic_names_carry_over_between_files(write_tree):
    """A name referenced in an earlier file is resolved in later files too."""
    root = write_tree(
        {
            "a.html": '{% template "slot" %}{% define "slot" %}A{% end %}',
            "b.html": '{% template "c.html" %}{% template "d.html" %}',
            "c.html": '{% define "slot" %}C{% end %}',
            "d.html": '{% define "slot" %}D{% end %}',
        }
    )
    compiler = TemplateCompiler()

    templates = compiler.compile(root)

    assert list(compiler.symbolic_refs) == ["slot"]
    unit = templates["b.html"]
    assert unit.render("slot") == "C"
    assert unit.render("slot_invalidated_#1") == "D"


def test_empty_file_aborts_compile(write_tree):
    root = write_tree({"index.html": "ok", "z.html": ""})

    with pytest.raises(EmptyTemplateError):
        TemplateCompiler().compile(root)


def test_syntax_error_aborts_compile(write_tree):
    """Invalid template source fails the whole walk with the offending name."""
    root = write_tree({"bad.html": "{% if x %}never closed", "good.html": "ok"})

    with pytest.raises(CompileError) as exc_info:
        TemplateCompiler().compile(root)

    assert exc_info.value.name == "bad.html"


def test_syntax_error_in_define_names_the_block(write_tree):
    root = write_tree({"page.html": '{% define "broken" %}{{ x ) }}{% end %}'})

    with pytest.raises(CompileError) as exc_info:
        TemplateCompiler().compile(root)

    assert exc_info.value.name == "broken"


def test_unbalanced_define_is_compile_error(write_tree):
    root = write_tree({"page.html": '{% define "x" %}open'})

    with pytest.raises(CompileError):
        TemplateCompiler().compile(root)


def test_missing_root(tmp_path):
    with pytest.raises(TemplateIOError):
        TemplateCompiler().compile(tmp_path / "nope")


def test_recompile_is_idempotent(write_tree):
    """Two compiles of an unchanged tree give the same names and output."""
    root = write_tree(
        {
            "index.html": '{% template "nav.html" %}{% template "title" %}{% define "title" %}I{% end %}',
            "nav.html": '{% define "title" %}N{% end %}nav',
        }
    )
    compiler = TemplateCompiler()

    first = compiler.compile(root)
    second = compiler.compile(root)

    assert list(first) == list(second)
    for key in first:
        assert first[key].names == second[key].names
        assert [f.source for f in first[key].fragments] == [f.source for f in second[key].fragments]
        for name in first[key].names:
            assert first[key].render(name) == second[key].render(name)


def test_extensions_filter(write_tree):
    root = write_tree({"page.tmpl": "tmpl", "page.html": "html", "notes.txt": "txt"})

    templates = TemplateCompiler().compile(root, extensions=["tmpl"])

    assert list(templates) == ["page.tmpl"]


def test_funcs_available_in_every_fragment(write_tree):
    """Custom functions work as globals and filters, in included fragments too."""
    root = write_tree(
        {
            "index.html": '{{ shout("hi") }}|{{ "x" | shout }}|{% template "part.html" %}',
            "part.html": '{{ shout("p") }}',
        }
    )

    templates = TemplateCompiler().compile(root, funcs={"shout": lambda s: s.upper() + "!"})

    assert templates["index.html"].render() == "HI!|X!|P!"


def test_render_with_data_and_autoescape(write_tree):
    root = write_tree({"index.html": "Hello {{ name }}"})

    escaped = TemplateCompiler().compile(root)["index.html"]
    raw = TemplateCompiler().compile(root, autoescape=False)["index.html"]

    assert escaped.render(data={"name": "<b>"}) == "Hello &lt;b&gt;"
    assert raw.render(data={"name": "<b>"}) == "Hello <b>"


def test_defined_block_sees_caller_context(write_tree):
    root = write_tree(
        {"index.html": '{% define "greet" %}Hi {{ name }}{% end %}{% template "greet" . %}!'}
    )

    unit = TemplateCompiler().compile(root)["index.html"]

    assert unit.render(data={"name": "Bob"}) == "Hi Bob!"


def test_undefined_template_name(write_tree):
    root = write_tree({"index.html": "x"})
    unit = TemplateCompiler().compile(root)["index.html"]

    with pytest.raises(UndefinedTemplateError) as exc_info:
        unit.render("missing")
    assert exc_info.value.name == "missing"


def test_template_tag_to_unknown_name_fails_at_execution(write_tree):
    """A tag pointing at a name nobody defines fails when executed."""
    root = write_tree({"index.html": 'a{% template "nowhere" %}'})
    unit = TemplateCompiler().compile(root)["index.html"]

    with pytest.raises(UndefinedTemplateError) as exc_info:
        unit.render()
    assert exc_info.value.name == "nowhere"


def test_execute_writes_to_sink(write_tree):
    root = write_tree({"index.html": 'ok{% template "nowhere" %}', "page.html": "page"})
    templates = TemplateCompiler().compile(root)

    sink = io.StringIO()
    templates["page.html"].execute(sink)
    assert sink.getvalue() == "page"

    failed = io.StringIO()
    with pytest.raises(UndefinedTemplateError):
        templates["index.html"].execute(failed)
    assert failed.getvalue() == ""


def test_layout_wraps_template(write_tree):
    root = write_tree(
        {"page.html": '{% define "layout" %}<main>{{ content() }}</main>{% end %}<p>{{ current() }}</p>'}
    )
    unit = TemplateCompiler().compile(root)["page.html"]

    assert unit.render(layout="layout") == "<main><p>page.html</p></main>"


def test_output_mapping_is_read_only(write_tree):
    root = write_tree({"index.html": "x"})
    templates = TemplateCompiler().compile(root)

    with pytest.raises(TypeError):
        templates["other.html"] = templates["index.html"]


def test_concurrent_compiles_are_serialised(write_tree):
    root = write_tree(
        {
            "index.html": '{% template "nav.html" %}{% template "title" %}',
            "nav.html": '{% define "title" %}N{% end %}',
        }
    )
    compiler = TemplateCompiler()
    results = []

    def worker():
        results.append(compiler.compile(root)["index.html"].render())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == ["N"] * 4


def test_compile_templates_uses_shared_compiler(write_tree):
    root = write_tree({"index.html": "hello"})

    templates = compile_templates(root)

    assert templates["index.html"].render() == "hello"


def test_repeated_compiles_do_not_grow_symbolic_names(write_tree):
    root = write_tree(
        {
            "index.html": '{% template "nav.html" %}{% template "title" %}{% template "title" %}',
            "nav.html": '{% template "menu" %}{% define "title" %}N{% end %}',
        }
    )
    compiler = TemplateCompiler()

    compiler.compile(root)
    seen = len(compiler.symbolic_refs)
    for _ in range(5):
        compiler.compile(root)

    assert seen == 2
    assert len(compiler.symbolic_refs) == seen


def test_trailing_newline_of_fragment_is_kept(write_tree):
    root = write_tree(
        {
            "index.html": '{% template "nav.html" %}Hi\n',
            "nav.html": "<nav>\n",
        }
    )

    unit = TemplateCompiler().compile(root)["index.html"]

    assert unit.render("nav.html") == "<nav>\n"
    assert unit.render() == "<nav>\nHi\n"


def test_crlf_fragment_renders_with_newlines(write_tree):
    root = write_tree({"index.html": "x"})
    (root / "index.html").write_bytes(b"a\r\nb")

    unit = TemplateCompiler().compile(root)["index.html"]

    assert unit.fragments[0].source == "a\r\nb"
    assert unit.render() == "a\nb"


def test_unreadable_directory_aborts_compile(write_tree, monkeypatch):
    """A directory the walk cannot list is an error, not an empty subtree."""
    root = write_tree({"index.html": "ok", "locked/page.html": "hidden"})
    real_scandir = os.scandir

    def scandir(path="."):
        if os.path.basename(os.fspath(path)) == "locked":
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)

    with pytest.raises(TemplateIOError) as exc_info:
        TemplateCompiler().compile(root)
    assert exc_info.value.path.endswith("locked")
    assert isinstance(exc_info.value.__cause__, PermissionError)
