"""tplset - template composition engine.

Walks a directory of template fragments, follows {% template %} inclusions,
shadows duplicate {% define %} blocks and compiles each top-level file into a
self-contained, executable template unit.
"""

from tplset._version import __version__
from tplset.compiler import DEFAULT_EXTENSIONS, TemplateCompiler, compile_templates
from tplset.config import Options
from tplset.exceptions import (
    CompileError,
    EmptyTemplateError,
    TemplateIOError,
    TplsetError,
    UndefinedTemplateError,
)
from tplset.store import TemplateStore
from tplset.unit import CompiledUnit

__all__ = [
    "__version__",
    "DEFAULT_EXTENSIONS",
    "TemplateCompiler",
    "compile_templates",
    "Options",
    "TemplateStore",
    "CompiledUnit",
    "TplsetError",
    "TemplateIOError",
    "EmptyTemplateError",
    "CompileError",
    "UndefinedTemplateError",
]
