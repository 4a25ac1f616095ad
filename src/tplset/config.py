"""Configuration for tplset.yaml

Recognised keys (capitalised spellings are accepted too):
- directory: template root, default "templates"
- extensions: matched file suffixes, default [".html"]
- autoescape: HTML-escape expression output, default true

Custom functions (``funcs``) can only be passed programmatically.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator

from tplset.compiler.compiler import DEFAULT_EXTENSIONS, normalize_extensions


class Options(BaseModel):
    """Template set options."""

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}

    directory: Path = Field(
        default=Path("templates"),
        validation_alias=AliasChoices("directory", "Directory"),
        description="Directory to load templates from",
    )
    extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXTENSIONS),
        validation_alias=AliasChoices("extensions", "Extensions"),
        description="File suffixes compiled as templates",
    )
    funcs: dict[str, Callable[..., Any]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("funcs", "Funcs"),
        description="Functions injected into every compiled unit",
    )
    autoescape: bool = True

    @field_validator("extensions")
    @classmethod
    def normalize(cls, v: list[str]) -> list[str]:
        """Add missing leading dots; fall back to the default when empty."""
        return normalize_extensions(v) or list(DEFAULT_EXTENSIONS)

    @classmethod
    def load(cls, path: Path, **overrides: Any) -> "Options":
        """Load options from a yaml file. A missing file yields defaults."""
        data: dict[str, Any] = {}
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(data)
