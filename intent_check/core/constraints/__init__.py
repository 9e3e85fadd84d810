"""
Constraint engine: cross-cutting architectural rules over many files and routes.

Constraint evaluation is independent of feature matching. It never changes
present/missing counts or the compliance score; it only feeds the drift flag
and the constraint section of the report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List

from ..models import STATUS_DRAFT, ConstraintResult, ConstraintViolation, Implementation
from ..treesitter.syntax import SyntaxRegistry
from .rules import BUILTIN_RULES
from .scope import is_known_scope, matches_scope, resolve_files
from .sources import RuleContext

ConstraintRule = Callable[..., List[ConstraintViolation]]


def _failed(feature, rule: str, message: str) -> ConstraintResult:
    return ConstraintResult(
        feature_id=feature.id,
        rule=rule,
        status="failed",
        violations=[ConstraintViolation(constraint=feature.id, rule=rule, message=message)],
    )


@dataclass
class ConstraintEngine:
    syntax: SyntaxRegistry
    rules: Dict[str, ConstraintRule] = field(default_factory=lambda: dict(BUILTIN_RULES))
    # Analyzer name to configured route receivers; built-in defaults apply when absent.
    receivers: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    def evaluate(self, features: Iterable, implementations: List[Implementation]) -> List[ConstraintResult]:
        context = RuleContext(syntax=self.syntax, receivers=dict(self.receivers))
        results: List[ConstraintResult] = []
        for feature in features:
            if not feature.is_constraint or feature.status == STATUS_DRAFT:
                continue

            rule = feature.rule
            rule_fn = self.rules.get(rule)
            if rule_fn is None:
                results.append(_failed(feature, rule, f"Unknown constraint rule: '{rule}'"))
                continue
            if not is_known_scope(feature.scope):
                results.append(_failed(feature, rule, f"Unknown constraint scope: '{feature.scope}'"))
                continue

            violations = rule_fn(feature, implementations, context)
            results.append(
                ConstraintResult(
                    feature_id=feature.id,
                    rule=rule,
                    status="failed" if violations else "passed",
                    violations=violations,
                )
            )
        failed = sum(1 for r in results if not r.passed)
        logging.info(f"Evaluated {len(results)} constraints, {failed} failed")
        return results


__all__ = ["ConstraintEngine", "ConstraintRule", "RuleContext", "BUILTIN_RULES", "matches_scope", "resolve_files"]
