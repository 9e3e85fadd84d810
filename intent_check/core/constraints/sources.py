"""Shared state for constraint rules and parsing of the files a scope selects."""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List

from ..models import Implementation
from ..treesitter.syntax import ParsedSource, SyntaxRegistry
from .scope import resolve_files


@dataclass
class RuleContext:
    syntax: SyntaxRegistry
    # Route receiver names per analyzer, as configured for the run.
    receivers: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    def receivers_for(self, analyzer_name: str, default: FrozenSet[str]) -> FrozenSet[str]:
        return self.receivers.get(analyzer_name) or default


def iter_scope_sources(rule: str, scope: str, implementations: List[Implementation], syntax: SyntaxRegistry) -> Iterator[ParsedSource]:
    """Parsed in-scope files; unreadable files are skipped for this rule."""
    for file in resolve_files(scope, implementations):
        try:
            yield syntax.parse_file(file)
        except (OSError, UnicodeDecodeError) as e:
            logging.warning(f"{rule}: skipping {file}: {e}")
