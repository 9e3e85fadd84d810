"""
Shared fixtures: a syntax registry and a helper writing sample sources to tmp_path.
"""

from pathlib import Path
from typing import Callable

import pytest

from intent_check.core.treesitter.syntax import SyntaxRegistry


@pytest.fixture
def syntax() -> SyntaxRegistry:
    """One registry per test, so query caches never leak between tests."""
    return SyntaxRegistry()


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], str]:
    """Write ``content`` to ``tmp_path / name`` and return the path as a string."""
    def _write(name: str, content: str) -> str:
        target = tmp_path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return str(target)
    return _write
