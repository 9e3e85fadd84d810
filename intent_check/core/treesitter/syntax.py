"""
Syntax access layer: grammar selection, parsing and structural queries.

A ``SyntaxRegistry`` is created once per run and handed to every analyzer
and constraint rule. Each grammar it loads owns one parser and one cache of
compiled queries, so a query can only ever run against trees of the grammar
it was compiled for.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from tree_sitter import Language, Node, Parser, Query, QueryCursor, QueryError, Tree

from ..errors import GrammarMismatchError, QueryCompileError
from .languages import DEFAULT_LANGUAGE, EXTENSION_LANGUAGES, LANGUAGE_FAMILIES, LANGUAGE_LOADERS

CaptureSet = Dict[str, Node]


@dataclass(eq=False)
class Grammar:
    name: str
    family: str
    language: Language
    parser: Parser
    queries: Dict[str, Query] = field(default_factory=dict)

    def query(self, pattern_source: str) -> Query:
        """Compile ``pattern_source`` for this grammar on first use; cached afterwards."""
        compiled = self.queries.get(pattern_source)
        if compiled is None:
            try:
                compiled = Query(self.language, pattern_source)
            except QueryError as e:
                raise QueryCompileError(f"Query does not compile for grammar '{self.name}': {e}") from e
            self.queries[pattern_source] = compiled
        return compiled


@dataclass(eq=False)
class CompiledQuery:
    grammar: Grammar
    pattern_source: str
    query: Query


@dataclass(eq=False)
class ParsedSource:
    tree: Tree
    source: bytes
    grammar: Grammar
    path: Optional[str] = None
    fallback: bool = False

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def family(self) -> str:
        return self.grammar.family

    def text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def matches(self, pattern_source: str, node: Optional[Node] = None) -> List[CaptureSet]:
        """Run a pattern compiled for this tree's own grammar."""
        return _capture_sets(self.grammar.query(pattern_source), node or self.root)


def line_of(node: Node) -> int:
    return node.start_point[0] + 1


def _capture_sets(query: Query, node: Node) -> List[CaptureSet]:
    capture_sets: List[CaptureSet] = []
    for _, captures in QueryCursor(query).matches(node):
        capture_sets.append({name: nodes[0] for name, nodes in captures.items() if nodes})
    return capture_sets


class SyntaxRegistry:
    """Grammar-pluggable parsing with one parser and one query cache per grammar."""

    def __init__(self, default_language: str = DEFAULT_LANGUAGE):
        if default_language not in LANGUAGE_LOADERS:
            raise ValueError(f"Unsupported language: {default_language}")
        self.default_language = default_language
        self._grammars: Dict[str, Grammar] = {}

    def grammar(self, name: str) -> Grammar:
        grammar = self._grammars.get(name)
        if grammar is None:
            if name not in LANGUAGE_LOADERS:
                raise ValueError(f"Unsupported language: {name}")
            language = LANGUAGE_LOADERS[name]()
            parser = Parser()
            parser.language = language
            grammar = Grammar(name=name, family=LANGUAGE_FAMILIES[name], language=language, parser=parser)
            self._grammars[name] = grammar
        return grammar

    @staticmethod
    def has_language_for(extension: str) -> bool:
        return extension.lower() in EXTENSION_LANGUAGES

    def language_for(self, extension: str) -> Grammar:
        """Grammar for a file extension; unknown extensions get the default grammar."""
        name = EXTENSION_LANGUAGES.get(extension.lower(), self.default_language)
        return self.grammar(name)

    def parse(self, source: Union[str, bytes], extension: str = ".js", path: Optional[str] = None) -> ParsedSource:
        data = source.encode("utf-8") if isinstance(source, str) else source
        grammar = self.language_for(extension)
        fallback = not self.has_language_for(extension)
        if fallback:
            logging.debug(f"No grammar for '{extension}', parsing with {grammar.name} (best effort)")
        tree = grammar.parser.parse(data)
        return ParsedSource(tree=tree, source=data, grammar=grammar, path=path, fallback=fallback)

    def parse_file(self, file_path: Union[str, Path]) -> ParsedSource:
        """Read a UTF-8 file and parse it by its extension; OSError/UnicodeDecodeError propagate."""
        path_obj = Path(file_path)
        source = path_obj.read_text(encoding="utf-8")
        return self.parse(source, path_obj.suffix, path=str(file_path))

    @staticmethod
    def compile_query(grammar: Grammar, pattern_source: str) -> CompiledQuery:
        return CompiledQuery(grammar=grammar, pattern_source=pattern_source, query=grammar.query(pattern_source))

    @staticmethod
    def run_query(compiled: CompiledQuery, parsed: ParsedSource, node: Optional[Node] = None) -> List[CaptureSet]:
        if compiled.grammar is not parsed.grammar:
            raise GrammarMismatchError(
                f"Query compiled for '{compiled.grammar.name}' cannot run on a '{parsed.grammar.name}' tree"
            )
        return _capture_sets(compiled.query, node or parsed.root)
