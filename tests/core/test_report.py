import json

from intent_check.core.intent import Feature, IntentDocument
from intent_check.core.models import (
    CheckResult,
    ConstraintResult,
    ConstraintViolation,
    ContractViolation,
    FeatureOutcome,
    Implementation,
)
from intent_check.core.report import build_report, compute_compliance_score, format_report

TIMESTAMP = "2026-01-01T00:00:00+00:00"


def _feature(feature_id: str, **kwargs) -> Feature:
    kwargs.setdefault("type", "http-route")
    if kwargs["type"] == "http-route":
        kwargs.setdefault("method", "GET")
        kwargs.setdefault("path", f"/{feature_id}")
    return Feature(id=feature_id, **kwargs)


def _outcome(feature_id: str, result: str, **kwargs) -> FeatureOutcome:
    feature = _feature(feature_id, status=kwargs.pop("status", "approved"))
    if result == "present":
        kwargs.setdefault("implemented_in", "app.js")
        kwargs.setdefault("line", 1)
        kwargs.setdefault("analyzer", "express-route")
    return FeatureOutcome(feature=feature, result=result, **kwargs)


def _report(outcomes, extras=(), constraint_results=None):
    intent = IntentDocument(version="0.2", features=[o.feature for o in outcomes])
    check = CheckResult(outcomes=list(outcomes), extras=list(extras))
    return build_report(intent, check, constraint_results, meta={"intentFile": "intent.json"}, timestamp=TIMESTAMP)


def test_compliance_score_rounding() -> None:
    assert compute_compliance_score(0, 0) == 100.0
    assert compute_compliance_score(2, 3) == 66.7
    assert compute_compliance_score(1, 8) == 12.5
    assert compute_compliance_score(3, 3) == 100.0


def test_all_present_has_no_drift() -> None:
    report = _report([_outcome("a", "present"), _outcome("b", "present")])

    assert report["summary"]["complianceScore"] == 100.0
    assert report["drift"] == {"hasDrift": False, "missingCount": 0, "extraCount": 0, "contractViolationCount": 0}
    assert "constraints" not in report
    assert report["meta"]["timestamp"] == TIMESTAMP


def test_nothing_analyzed_scores_100() -> None:
    report = _report([_outcome("d", "draft", status="draft"), _outcome("u", "unanalyzable", reason="no analyzer")])

    summary = report["summary"]
    assert (summary["analyzed"], summary["draft"], summary["unanalyzable"]) == (0, 1, 1)
    assert summary["complianceScore"] == 100.0
    assert not report["drift"]["hasDrift"]


def test_missing_features_score_zero_and_drift() -> None:
    report = _report([_outcome("a", "missing"), _outcome("b", "missing")])

    assert report["summary"]["complianceScore"] == 0.0
    assert report["drift"]["hasDrift"]
    assert report["drift"]["missingCount"] == 2


def test_extras_are_sorted_and_cause_drift() -> None:
    extras = [
        Implementation(type="http-route", method="POST", path="/z", file="b.js", line=2, analyzer="express-route"),
        Implementation(type="http-route", method="GET", path="/y", file="a.js", line=5, analyzer="express-route"),
    ]

    report = _report([_outcome("a", "present")], extras=extras)

    assert [(e["implementedIn"], e["path"]) for e in report["extraFeatures"]] == [("a.js", "/y"), ("b.js", "/z")]
    assert report["drift"]["hasDrift"]
    assert report["summary"]["complianceScore"] == 100.0


def test_contract_violations_count_toward_drift() -> None:
    violation = ContractViolation(contract="auth", expected="required", actual="missing")
    outcome = _outcome("secure", "present", contract_violations=[violation])

    report = _report([outcome])

    assert report["summary"]["contractViolations"] == 1
    assert report["drift"]["contractViolationCount"] == 1
    assert report["drift"]["hasDrift"]
    assert report["features"][0]["contractViolations"] == [violation.to_dict()]


def test_constraint_failures_drift_but_not_score() -> None:
    failed = ConstraintResult(
        feature_id="api-auth",
        rule="routes-require-middleware",
        status="failed",
        violations=[ConstraintViolation(constraint="api-auth", rule="routes-require-middleware", message="m")],
    )
    passed = ConstraintResult(feature_id="layers", rule="no-direct-import", status="passed")

    report = _report([_outcome("a", "present")], constraint_results=[failed, passed])

    summary = report["summary"]
    assert (summary["constraintsChecked"], summary["constraintsPassed"], summary["constraintsFailed"]) == (2, 1, 1)
    assert summary["complianceScore"] == 100.0
    assert report["drift"]["constraintFailedCount"] == 1
    assert report["drift"]["hasDrift"]
    assert report["constraints"]["results"][0]["featureId"] == "api-auth"


def test_deprecated_present_counted() -> None:
    report = _report([_outcome("old", "present", status="deprecated")])

    assert report["summary"]["deprecated"] == 1


def test_format_report_variants() -> None:
    report = _report([_outcome("a", "present"), _outcome("b", "missing")])

    assert json.loads(format_report(report, "json")) == report
    assert format_report(report, "summary").startswith("DRIFT | score: 50% | present: 1 | missing: 1")
    text = format_report(report, "text")
    assert "Missing features:" in text
    assert "b (GET /b)" in text
