"""Run-to-run comparison of two compliance reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .report import bold, dim, green, red, yellow


@dataclass(frozen=True)
class DiffResult:
    score_before: Optional[float]
    score_after: float
    newly_present: List[Dict[str, Any]] = field(default_factory=list)
    newly_missing: List[Dict[str, Any]] = field(default_factory=list)
    still_missing: List[Dict[str, Any]] = field(default_factory=list)
    new_features: List[Dict[str, Any]] = field(default_factory=list)
    removed_features: List[Dict[str, Any]] = field(default_factory=list)
    new_extras: List[Dict[str, Any]] = field(default_factory=list)
    resolved_extras: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return any((
            self.newly_present,
            self.newly_missing,
            self.new_features,
            self.removed_features,
            self.new_extras,
            self.resolved_extras,
        ))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scoreBefore": self.score_before,
            "scoreAfter": self.score_after,
            "newlyPresent": self.newly_present,
            "newlyMissing": self.newly_missing,
            "stillMissing": self.still_missing,
            "newFeatures": self.new_features,
            "removedFeatures": self.removed_features,
            "newExtras": self.new_extras,
            "resolvedExtras": self.resolved_extras,
        }


def _extra_key(extra: Dict[str, Any]) -> str:
    return f"{extra.get('method')} {extra.get('path')}"


def diff_reports(current: Dict[str, Any], previous: Dict[str, Any]) -> DiffResult:
    """Compare two reports, joining features by id and extras by "METHOD path"."""
    current_features = current.get("features") or []
    previous_features = previous.get("features") or []
    previous_by_id = {f["id"]: f for f in previous_features}
    current_ids = {f["id"] for f in current_features}

    newly_present, newly_missing, still_missing, new_features = [], [], [], []
    for feature in current_features:
        before = previous_by_id.get(feature["id"])
        if before is None:
            new_features.append(feature)
        elif feature["result"] == "present" and before.get("result") != "present":
            newly_present.append(feature)
        elif feature["result"] == "missing" and before.get("result") != "missing":
            newly_missing.append(feature)
        elif feature["result"] == "missing":
            still_missing.append(feature)

    removed_features = [f for f in previous_features if f["id"] not in current_ids]

    current_extras = current.get("extraFeatures") or []
    previous_extras = previous.get("extraFeatures") or []
    previous_keys = {_extra_key(e) for e in previous_extras}
    current_keys = {_extra_key(e) for e in current_extras}

    return DiffResult(
        score_before=(previous.get("summary") or {}).get("complianceScore"),
        score_after=current["summary"]["complianceScore"],
        newly_present=newly_present,
        newly_missing=newly_missing,
        still_missing=still_missing,
        new_features=new_features,
        removed_features=removed_features,
        new_extras=[e for e in current_extras if _extra_key(e) not in previous_keys],
        resolved_extras=[e for e in previous_extras if _extra_key(e) not in current_keys],
    )


def _label(feature: Dict[str, Any]) -> str:
    if feature.get("method") and feature.get("path"):
        return f"{feature['id']} ({feature['method']} {feature['path']})"
    return feature["id"]


def format_diff(diff: DiffResult) -> str:
    lines: List[str] = [""]
    if diff.score_before is None:
        lines.append(bold(f"Compliance: {diff.score_after:g}%"))
    else:
        if diff.score_after > diff.score_before:
            arrow = green("↑")
        elif diff.score_after < diff.score_before:
            arrow = red("↓")
        else:
            arrow = "="
        lines.append(bold(f"Compliance: {diff.score_before:g}% {arrow} {diff.score_after:g}%"))

    sections = [
        (green, "Newly implemented:", "+", diff.newly_present, _label),
        (red, "Newly missing:", "-", diff.newly_missing, _label),
        (dim, "Still missing:", "-", diff.still_missing, _label),
        (str, "New in intent:", "+", diff.new_features, lambda f: f"{f['id']} ({f['result']})"),
        (str, "Removed from intent:", "-", diff.removed_features, lambda f: f["id"]),
        (yellow, "New extra routes:", "+", diff.new_extras, lambda e: f"{_extra_key(e)} ({e.get('implementedIn')})"),
        (green, "Resolved extras:", "-", diff.resolved_extras, _extra_key),
    ]
    for paint, title, marker, items, render in sections:
        if not items:
            continue
        lines.append(paint(f"\n{title}"))
        lines.extend(f"  {marker} {render(item)}" for item in items)

    if not diff.has_changes:
        lines.append(dim("\nNo changes since previous report."))
    lines.append("")
    return "\n".join(lines)
