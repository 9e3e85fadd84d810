"""Compliance report composition and rendering."""

from __future__ import annotations

import json
import math
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .intent import IntentDocument
from .models import CheckResult, ConstraintResult, FeatureOutcome, Implementation

REPORT_VERSION = "0.2"


def compute_compliance_score(present: int, analyzed: int) -> float:
    """Percentage of analyzed features found present, half-up to one decimal; 100 when nothing was analyzed."""
    if analyzed == 0:
        return 100.0
    return math.floor(present / analyzed * 1000 + 0.5) / 10


@dataclass
class ReportBuilder:
    def build_report(
        self,
        intent: IntentDocument,
        check_result: CheckResult,
        constraint_results: Optional[List[ConstraintResult]] = None,
        meta: Optional[Dict[str, Any]] = None,
        timestamp: Optional[str] = None,
    ) -> Dict[str, Any]:
        meta = meta or {}
        present = check_result.present
        missing = check_result.missing
        analyzed = len(present) + len(missing)
        contract_violations = sum(len(o.contract_violations) for o in present)
        contracts_checked = sum(1 for o in present if o.feature.contract)
        extras = sorted(check_result.extras, key=self._extra_sort_key)

        report: Dict[str, Any] = {
            "version": REPORT_VERSION,
            "meta": {
                "intentFile": meta.get("intentFile", "intent.json"),
                "intentVersion": intent.version or "0.1",
                "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
                "analyzers": list(meta.get("analyzers", [])),
            },
            "summary": {
                "totalDeclared": len(check_result.outcomes),
                "analyzed": analyzed,
                "unanalyzable": len(check_result.unanalyzable),
                "present": len(present),
                "missing": len(missing),
                "extra": len(extras),
                "draft": len(check_result.draft),
                "deprecated": len(check_result.deprecated),
                "complianceScore": compute_compliance_score(len(present), analyzed),
                "contractsChecked": contracts_checked,
                "contractViolations": contract_violations,
            },
            "features": [self._serialize_outcome(o) for o in check_result.outcomes],
            "extraFeatures": [self._serialize_extra(e) for e in extras],
            "drift": {
                "hasDrift": bool(missing or extras or contract_violations),
                "missingCount": len(missing),
                "extraCount": len(extras),
                "contractViolationCount": contract_violations,
            },
        }
        if meta.get("warnings"):
            report["meta"]["warnings"] = list(meta["warnings"])

        if constraint_results is not None:
            failed = sum(1 for r in constraint_results if not r.passed)
            report["summary"]["constraintsChecked"] = len(constraint_results)
            report["summary"]["constraintsPassed"] = len(constraint_results) - failed
            report["summary"]["constraintsFailed"] = failed
            report["drift"]["constraintFailedCount"] = failed
            report["drift"]["hasDrift"] = report["drift"]["hasDrift"] or failed > 0
            report["constraints"] = {"results": [r.to_dict() for r in constraint_results]}
        return report

    @staticmethod
    def _extra_sort_key(impl: Implementation):
        return impl.file, impl.line or 0, impl.method, impl.path

    @staticmethod
    def _serialize_outcome(outcome: FeatureOutcome) -> Dict[str, Any]:
        feature = outcome.feature
        data: Dict[str, Any] = {
            "id": feature.id,
            "type": feature.type,
            "status": feature.status,
            "result": outcome.result,
        }
        optional = {
            "implementedIn": outcome.implemented_in,
            "line": outcome.line,
            "analyzer": outcome.analyzer,
            "method": feature.method.upper() if feature.method else None,
            "path": feature.path,
            "reason": outcome.reason,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if outcome.contract_violations:
            data["contractViolations"] = [v.to_dict() for v in outcome.contract_violations]
        return data

    @staticmethod
    def _serialize_extra(impl: Implementation) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": impl.type,
            "method": impl.method,
            "path": impl.path,
            "implementedIn": impl.file,
        }
        if impl.line:
            data["line"] = impl.line
        data["analyzer"] = impl.analyzer
        return data


def build_report(intent, check_result, constraint_results=None, meta=None, timestamp=None) -> Dict[str, Any]:
    return ReportBuilder().build_report(intent, check_result, constraint_results, meta, timestamp)


# --- Rendering ---

def _supports_color() -> bool:
    return sys.stderr.isatty() and os.environ.get("NO_COLOR") is None


def _painter(code: str) -> Callable[[str], str]:
    def paint(text: str) -> str:
        return f"\x1b[{code}m{text}\x1b[0m" if _supports_color() else text
    return paint


green, red, yellow, dim, bold = (_painter(c) for c in ("32", "31", "33", "2", "1"))


def _format_score(value: float) -> str:
    return f"{value:g}%"


def _route_label(feature: Dict[str, Any]) -> str:
    if feature.get("method") and feature.get("path"):
        return f" ({feature['method']} {feature['path']})"
    return ""


def _format_summary_line(report: Dict[str, Any]) -> str:
    summary = report["summary"]
    status = "DRIFT" if report["drift"]["hasDrift"] else "OK"
    line = (
        f"{status} | score: {_format_score(summary['complianceScore'])} | present: {summary['present']}"
        f" | missing: {summary['missing']} | extra: {summary['extra']}"
    )
    if summary.get("contractsChecked"):
        passing = summary["contractsChecked"] - summary["contractViolations"]
        line += f" | contracts: {passing}/{summary['contractsChecked']}"
    if "constraintsChecked" in summary:
        line += f" | constraints: {summary['constraintsPassed']}/{summary['constraintsChecked']}"
    return line


def format_report(report: Dict[str, Any], fmt: str = "text") -> str:
    if fmt == "json":
        return json.dumps(report, indent=2)
    if fmt == "summary":
        return _format_summary_line(report)

    summary = report["summary"]
    score = summary["complianceScore"]
    score_text = _format_score(score)
    colored_score = green(score_text) if score == 100 else yellow(score_text) if score >= 80 else red(score_text)

    lines: List[str] = [
        "",
        bold(f"Intent check: {report['meta']['intentFile']}") + "  " + dim(f"(v{report['meta']['intentVersion']})"),
        f"Compliance score:  {colored_score}",
        f"Declared features: {summary['totalDeclared']}",
        f"Present:           {green(str(summary['present'])) if summary['present'] else '0'}",
        f"Missing:           {red(str(summary['missing'])) if summary['missing'] else '0'}",
        f"Extra:             {yellow(str(summary['extra'])) if summary['extra'] else '0'}",
    ]
    if summary["draft"]:
        lines.append(f"Draft (skipped):   {dim(str(summary['draft']))}")
    if summary["unanalyzable"]:
        lines.append(f"No analyzer:       {yellow(str(summary['unanalyzable']))}")
    if summary["deprecated"]:
        lines.append(f"Deprecated:        {yellow(str(summary['deprecated']))}")
    if summary["contractsChecked"]:
        passing = summary["contractsChecked"] - summary["contractViolations"]
        text = f"{passing}/{summary['contractsChecked']} passing"
        lines.append(f"Contracts:         {red(text) if summary['contractViolations'] else green(text)}")
    if "constraintsChecked" in summary:
        text = f"{summary['constraintsPassed']}/{summary['constraintsChecked']} passing"
        lines.append(f"Constraints:       {red(text) if summary['constraintsFailed'] else green(text)}")

    features = report["features"]
    missing = [f for f in features if f["result"] == "missing"]
    if missing:
        lines.append(red("\nMissing features:"))
        lines.extend(f"  - {f['id']}{_route_label(f)}" for f in missing)

    violating = [f for f in features if f.get("contractViolations")]
    if violating:
        lines.append(red("\nContract violations:"))
        for f in violating:
            for v in f["contractViolations"]:
                lines.append(f"  - {f['id']}{_route_label(f)}: {v['contract']}: expected {v['expected']}, actual {v['actual']}")

    failed_constraints = [r for r in report.get("constraints", {}).get("results", []) if r["status"] == "failed"]
    if failed_constraints:
        lines.append(red("\nConstraint violations:"))
        for result in failed_constraints:
            for v in result["violations"]:
                location = ""
                if v.get("file") and v.get("line"):
                    location = " " + dim("({}:{})".format(v["file"], v["line"]))
                lines.append(f"  - {result['featureId']} [{result['rule']}] {v['message']}{location}")

    if report["extraFeatures"]:
        lines.append(yellow("\nExtra features (not in intent):"))
        for e in report["extraFeatures"]:
            location = f"{e['implementedIn']}:{e['line']}" if e.get("line") else e["implementedIn"]
            lines.append(f"  - {e['method']} {e['path']} {dim(f'({location})')}")

    deprecated = [f for f in features if f["status"] == "deprecated" and f["result"] == "present"]
    if deprecated:
        lines.append(yellow("\nDeprecated features (still present):"))
        lines.extend(f"  - {f['id']}{_route_label(f)} in {f['implementedIn']}" for f in deprecated)

    unanalyzable = [f for f in features if f["result"] == "unanalyzable"]
    if unanalyzable:
        lines.append(yellow("\nFeatures with no analyzer:"))
        for f in unanalyzable:
            type_label = dim("(type: {})".format(f["type"]))
            lines.append(f"  - {f['id']} {type_label}")

    lines.append("")
    return "\n".join(lines)
