from typing import Dict, List, Optional

from tree_sitter import Node

from ...models import ConstraintViolation, Implementation
from ...treesitter.syntax import ParsedSource, line_of
from ..sources import RuleContext, iter_scope_sources

RULE_NAME = "no-direct-import"

IMPORT_QUERIES: Dict[str, str] = {
    "ecmascript": """
(import_statement source: (string) @source) @statement
(call_expression
  function: (identifier) @fn
  arguments: (arguments . (string) @source)) @statement
""",
    "python": """
(import_statement name: (dotted_name) @source) @statement
(import_statement name: (aliased_import name: (dotted_name) @source)) @statement
(import_from_statement module_name: (dotted_name) @source) @statement
""",
}

MODULE_SEPARATORS = {"ecmascript": "/", "python": "."}


def _import_target(parsed: ParsedSource, captures: Dict[str, Node]) -> Optional[str]:
    fn = captures.get("fn")
    if fn is not None and parsed.text(fn) != "require":
        return None
    source = captures["source"]
    if source.type == "string":
        return parsed.text(source)[1:-1]
    return parsed.text(source)


def _forbidden_match(target: str, forbidden: List[str], separator: str) -> Optional[str]:
    for name in forbidden:
        if target == name or target.startswith(name + separator):
            return name
    return None


def no_direct_import(feature, implementations: List[Implementation], context: RuleContext) -> List[ConstraintViolation]:
    forbidden = list(feature.param("forbidden", []))
    if not forbidden:
        return []

    violations: List[ConstraintViolation] = []
    for parsed in iter_scope_sources(RULE_NAME, feature.scope, implementations, context.syntax):
        query = IMPORT_QUERIES.get(parsed.family)
        if query is None:
            continue
        reported = set()
        for captures in parsed.matches(query):
            target = _import_target(parsed, captures)
            if target is None:
                continue
            name = _forbidden_match(target, forbidden, MODULE_SEPARATORS[parsed.family])
            statement = captures["statement"]
            if name is None or (statement.id, name) in reported:
                continue
            reported.add((statement.id, name))
            verb = "requires" if "fn" in captures else "imports"
            violations.append(
                ConstraintViolation(
                    constraint=feature.id,
                    rule=RULE_NAME,
                    message=f"File {parsed.path} {verb} forbidden module '{target}'",
                    file=parsed.path,
                    line=line_of(statement),
                    expected=f"no import of '{name}'",
                    actual=target,
                )
            )
    return violations
