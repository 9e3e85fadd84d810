"""
Core data models for facts discovered in source and for match outcomes.

Declared features live in ``intent_check.core.intent`` because they are
validated on load; everything produced during a run is a plain dataclass.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

ROUTE_TYPE = "http-route"
CONSTRAINT_TYPE = "constraint"

RESULT_PRESENT = "present"
RESULT_MISSING = "missing"
RESULT_DRAFT = "draft"
RESULT_UNANALYZABLE = "unanalyzable"

STATUS_DRAFT = "draft"
STATUS_APPROVED = "approved"
STATUS_DEPRECATED = "deprecated"


@dataclass(frozen=True)
class Implementation:
    """A fact discovered in source, e.g. one registered HTTP route."""
    type: str
    method: str
    path: str
    file: str
    line: Optional[int] = None
    middleware: Tuple[str, ...] = ()
    analyzer: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> "Implementation":
        """Coerce an analyzer result (instance or mapping) into an Implementation."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(f"expected an Implementation or a mapping, got {type(value).__name__}")
        line = value.get("line")
        return cls(
            type=str(value["type"]),
            method=str(value.get("method") or ""),
            path=str(value.get("path") or ""),
            file=str(value["file"]),
            line=int(line) if line else None,
            middleware=tuple(str(m) for m in value.get("middleware") or ()),
            analyzer=value.get("analyzer"),
        )

    @property
    def route_key(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True)
class ContractViolation:
    contract: str
    expected: str
    actual: str

    def to_dict(self) -> Dict[str, Any]:
        return {"contract": self.contract, "expected": self.expected, "actual": self.actual}


@dataclass
class MatchResult:
    found: bool
    implemented_in: Optional[str] = None
    line: Optional[int] = None
    contract_violations: List[ContractViolation] = field(default_factory=list)
    implementation: Optional[Implementation] = None  # the fact that satisfied the feature, if known

    @classmethod
    def from_value(cls, value: Any) -> "MatchResult":
        """Coerce a plugin's match result (instance or mapping) into a MatchResult."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(f"expected a MatchResult or a mapping, got {type(value).__name__}")
        violations = []
        for item in value.get("contract_violations") or value.get("contractViolations") or []:
            violations.append(
                item if isinstance(item, ContractViolation)
                else ContractViolation(str(item["contract"]), str(item["expected"]), str(item["actual"]))
            )
        return cls(
            found=bool(value.get("found")),
            implemented_in=value.get("implemented_in") or value.get("implementedIn"),
            line=value.get("line"),
            contract_violations=violations,
        )


@dataclass
class FeatureOutcome:
    """Classification of one declared feature."""
    feature: Any  # intent_check.core.intent.Feature
    result: str
    implemented_in: Optional[str] = None
    line: Optional[int] = None
    analyzer: Optional[str] = None
    contract_violations: List[ContractViolation] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def is_deprecated(self) -> bool:
        return self.result == RESULT_PRESENT and self.feature.status == STATUS_DEPRECATED


@dataclass
class CheckResult:
    outcomes: List[FeatureOutcome] = field(default_factory=list)
    extras: List[Implementation] = field(default_factory=list)

    def by_result(self, result: str) -> List[FeatureOutcome]:
        return [o for o in self.outcomes if o.result == result]

    @property
    def present(self) -> List[FeatureOutcome]:
        return self.by_result(RESULT_PRESENT)

    @property
    def missing(self) -> List[FeatureOutcome]:
        return self.by_result(RESULT_MISSING)

    @property
    def draft(self) -> List[FeatureOutcome]:
        return self.by_result(RESULT_DRAFT)

    @property
    def unanalyzable(self) -> List[FeatureOutcome]:
        return self.by_result(RESULT_UNANALYZABLE)

    @property
    def deprecated(self) -> List[FeatureOutcome]:
        return [o for o in self.outcomes if o.is_deprecated]


@dataclass(frozen=True)
class ConstraintViolation:
    constraint: str
    rule: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    route: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "constraint": self.constraint,
            "rule": self.rule,
            "message": self.message,
        }
        for key in ("file", "line", "route", "expected", "actual"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class ConstraintResult:
    feature_id: str
    rule: str
    status: str  # passed | failed
    violations: List[ConstraintViolation] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status == "passed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureId": self.feature_id,
            "rule": self.rule,
            "status": self.status,
            "violations": [v.to_dict() for v in self.violations],
        }
