from pathlib import Path
from typing import Callable, Dict

import pytest


@pytest.fixture
def write_tree(tmp_path) -> Callable[[Dict[str, str]], Path]:
    """Write {relative path: content} under tmp_path/templates and return the root."""
    root = tmp_path / "templates"

    def _write(files: Dict[str, str]) -> Path:
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _write
