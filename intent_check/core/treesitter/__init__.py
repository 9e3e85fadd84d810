"""
Tree-sitter integration for intent-check.

Provides language loading, parsing and query utilities shared by analyzers
and constraint rules.
"""

from .languages import get_js_language, get_ts_language, get_tsx_language, get_py_language
from .syntax import CompiledQuery, Grammar, ParsedSource, SyntaxRegistry, line_of

__all__ = [
    "SyntaxRegistry",
    "Grammar",
    "CompiledQuery",
    "ParsedSource",
    "line_of",
    "get_js_language",
    "get_ts_language",
    "get_tsx_language",
    "get_py_language",
]
