from typing import Any, Dict, List

from intent_check.core.report_diff import diff_reports, format_diff


def _report(score: float, features: List[Dict[str, Any]], extras: List[Dict[str, Any]] = ()) -> Dict[str, Any]:
    return {"summary": {"complianceScore": score}, "features": features, "extraFeatures": list(extras)}


def _f(feature_id: str, result: str) -> Dict[str, Any]:
    return {"id": feature_id, "result": result, "method": "GET", "path": f"/{feature_id}"}


def test_self_diff_is_empty() -> None:
    report = _report(50.0, [_f("a", "present"), _f("b", "missing")], [{"method": "GET", "path": "/x"}])

    diff = diff_reports(report, report)

    assert not diff.has_changes
    assert [f["id"] for f in diff.still_missing] == ["b"]
    assert diff.score_before == diff.score_after == 50.0


def test_feature_transitions() -> None:
    previous = _report(50.0, [_f("a", "missing"), _f("b", "present"), _f("gone", "present"), _f("d", "draft")])
    current = _report(50.0, [_f("a", "present"), _f("b", "missing"), _f("new", "missing"), _f("d", "present")])

    diff = diff_reports(current, previous)

    assert [f["id"] for f in diff.newly_present] == ["a", "d"]
    assert [f["id"] for f in diff.newly_missing] == ["b"]
    assert [f["id"] for f in diff.new_features] == ["new"]
    assert [f["id"] for f in diff.removed_features] == ["gone"]
    assert diff.still_missing == []


def test_extras_join_on_method_and_path() -> None:
    previous = _report(100.0, [], [{"method": "GET", "path": "/old", "implementedIn": "a.js"}])
    current = _report(100.0, [], [{"method": "GET", "path": "/new", "implementedIn": "a.js"}])

    diff = diff_reports(current, previous).to_dict()

    assert [e["path"] for e in diff["newExtras"]] == ["/new"]
    assert [e["path"] for e in diff["resolvedExtras"]] == ["/old"]


def test_format_diff_shows_score_change() -> None:
    previous = _report(50.0, [_f("a", "missing")])
    current = _report(100.0, [_f("a", "present")])

    text = format_diff(diff_reports(current, previous))

    assert "Compliance: 50%" in text
    assert "100%" in text
    assert "Newly implemented:" in text
    assert "a (GET /a)" in text


def test_previous_report_without_summary() -> None:
    diff = diff_reports(_report(100.0, []), {"features": []})

    assert diff.score_before is None
    assert "No changes since previous report." in format_diff(diff)
