"""tplset compiler - composes template fragment directories into executable units."""

from tplset.compiler.compiler import (
    DEFAULT_EXTENSIONS,
    TemplateCompiler,
    compile_templates,
)
from tplset.compiler.spec import Fragment, FragmentCache

__all__ = [
    "DEFAULT_EXTENSIONS",
    "TemplateCompiler",
    "compile_templates",
    "Fragment",
    "FragmentCache",
]
