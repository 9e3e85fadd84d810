"""High-level reconciliation orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .analyzers.registry import AnalyzerRunner, create_runner
from .config import IntentCheckConfig
from .constraints import ConstraintEngine
from .intent import IntentDocument, load_intent, parse_intent
from .matcher import FeatureMatcher
from .report import build_report
from .scanner import find_source_files
from .treesitter.syntax import SyntaxRegistry


@dataclass
class IntentChecker:
    config: IntentCheckConfig
    syntax: SyntaxRegistry = field(default_factory=SyntaxRegistry)
    runner: Optional[AnalyzerRunner] = None

    def __post_init__(self):
        if self.runner is None:
            settings = self.config.analyzers
            self.runner = create_runner(
                self.syntax,
                include=settings.include,
                custom=settings.custom,
                receivers=settings.receivers,
                base_dir=Path(self.config.base_dir) if self.config.base_dir else None,
            )

    def load(self) -> IntentDocument:
        """Load and validate the configured intent file; raises before any analysis."""
        intent_path = self.config.intent_path()
        return parse_intent(load_intent(intent_path), source=str(intent_path))

    def scan(self) -> List[str]:
        return find_source_files(
            self.config.scan_path(),
            extensions=self.runner.file_extensions(),
            exclude=self.config.exclude,
            respect_gitignore=self.config.respect_gitignore,
        )

    def check(
        self,
        intent: IntentDocument,
        files: List[str],
        intent_file: Optional[str] = None,
        show_progress: bool = False,
        timestamp: Optional[str] = None,
    ) -> Dict[str, Any]:
        implementations = self.runner.analyze_files(files, show_progress=show_progress)

        matcher = FeatureMatcher(self.runner, auth_middleware=frozenset(self.config.contracts.auth_middleware))
        check_result = matcher.check(intent.features, implementations)

        constraint_results = None
        if intent.constraints:
            constraint_results = ConstraintEngine(self.syntax, receivers=self.runner.receivers()).evaluate(
                intent.constraints, implementations
            )

        return build_report(
            intent,
            check_result,
            constraint_results=constraint_results,
            meta={
                "intentFile": intent_file or self.config.intent_file,
                "analyzers": self.runner.names,
                "warnings": self.runner.warnings,
            },
            timestamp=timestamp,
        )

    def run(self, show_progress: bool = False) -> Dict[str, Any]:
        intent = self.load()
        return self.check(intent, self.scan(), show_progress=show_progress)
