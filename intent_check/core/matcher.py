"""Classification of declared features against discovered implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

from .analyzers.base import normalize_path
from .analyzers.registry import AnalyzerRunner
from .intent import Feature
from .models import (
    RESULT_DRAFT,
    RESULT_MISSING,
    RESULT_PRESENT,
    RESULT_UNANALYZABLE,
    STATUS_DRAFT,
    CheckResult,
    ContractViolation,
    FeatureOutcome,
    Implementation,
)

RouteTriple = Tuple[str, str, str]


def check_auth_contract(feature: Feature, implementation: Implementation, auth_middleware: FrozenSet[str]) -> List[ContractViolation]:
    expected = (feature.contract or {}).get("auth")
    if not expected:
        return []
    has_auth = any(m in auth_middleware for m in implementation.middleware)
    if expected == "required" and not has_auth:
        return [ContractViolation(contract="auth", expected="required", actual="missing")]
    if expected == "none" and has_auth:
        return [ContractViolation(contract="auth", expected="none", actual="present")]
    return []


def _triple(file: str, method: str, path: str) -> RouteTriple:
    return file, (method or "").upper(), normalize_path(path or "")


@dataclass
class FeatureMatcher:
    runner: AnalyzerRunner
    auth_middleware: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        self.auth_middleware = frozenset(self.auth_middleware)

    def check(self, features: Iterable[Feature], implementations: List[Implementation]) -> CheckResult:
        by_analyzer: Dict[str, List[Implementation]] = {}
        for impl in implementations:
            by_analyzer.setdefault(impl.analyzer or "", []).append(impl)

        outcomes = [
            self.classify(feature, by_analyzer)
            for feature in features
            if not feature.is_constraint
        ]
        return CheckResult(outcomes=outcomes, extras=self._extras(outcomes, implementations))

    def classify(self, feature: Feature, by_analyzer: Dict[str, List[Implementation]]) -> FeatureOutcome:
        analyzers = self.runner.analyzers_for(feature.type)
        if not analyzers:
            return FeatureOutcome(
                feature=feature,
                result=RESULT_UNANALYZABLE,
                reason=f"No analyzer available for type '{feature.type}'",
            )
        if feature.status == STATUS_DRAFT:
            return FeatureOutcome(feature=feature, result=RESULT_DRAFT)

        for analyzer in analyzers:
            result = self.runner.match(analyzer, feature, by_analyzer.get(analyzer.name, []))
            if not result.found:
                continue
            violations = list(result.contract_violations)
            if result.implementation is not None:
                violations.extend(check_auth_contract(feature, result.implementation, self.auth_middleware))
            return FeatureOutcome(
                feature=feature,
                result=RESULT_PRESENT,
                implemented_in=result.implemented_in,
                line=result.line,
                analyzer=analyzer.name,
                contract_violations=violations,
            )
        return FeatureOutcome(feature=feature, result=RESULT_MISSING)

    @staticmethod
    def _extras(outcomes: List[FeatureOutcome], implementations: List[Implementation]) -> List[Implementation]:
        covered: Set[RouteTriple] = {
            _triple(o.implemented_in or "", o.feature.method, o.feature.path)
            for o in outcomes
            if o.result == RESULT_PRESENT
        }
        # A draft declares the route without a location, so it covers the route in any file.
        drafted = {
            _triple("", o.feature.method, o.feature.path)[1:]
            for o in outcomes
            if o.result == RESULT_DRAFT and o.feature.method and o.feature.path
        }
        extras = []
        for impl in implementations:
            triple = _triple(impl.file, impl.method, impl.path)
            if triple not in covered and triple[1:] not in drafted:
                extras.append(impl)
        return extras
