"""
Tree-sitter language loaders.

These helpers return Tree-sitter Language objects for JavaScript/TypeScript/TSX/Python.
"""

from functools import lru_cache

from tree_sitter import Language

from tree_sitter_javascript import language as js_language
from tree_sitter_python import language as py_language
from tree_sitter_typescript import language_typescript, language_tsx


@lru_cache(maxsize=1)
def get_js_language() -> Language:
    return Language(js_language())


@lru_cache(maxsize=1)
def get_ts_language() -> Language:
    return Language(language_typescript())


@lru_cache(maxsize=1)
def get_tsx_language() -> Language:
    return Language(language_tsx())


@lru_cache(maxsize=1)
def get_py_language() -> Language:
    return Language(py_language())


LANGUAGE_LOADERS = {
    "javascript": get_js_language,
    "typescript": get_ts_language,
    "tsx": get_tsx_language,
    "python": get_py_language,
}

# Grammars in one family share node shapes, so one query source serves all of them.
LANGUAGE_FAMILIES = {
    "javascript": "ecmascript",
    "typescript": "ecmascript",
    "tsx": "ecmascript",
    "python": "python",
}

EXTENSION_LANGUAGES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".pyi": "python",
}

DEFAULT_LANGUAGE = "javascript"
