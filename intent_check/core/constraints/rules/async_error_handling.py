"""
Async route handlers must guard their body with a try statement.

The try statement has to be a direct child of the handler's body block; a
try nested deeper, or a wrapper applied by the caller, does not count.
"""

from typing import FrozenSet, List

from tree_sitter import Node

from ...analyzers.base import HTTP_METHODS
from ...analyzers.express_route import EXPRESS_RECEIVERS, ExpressRouteAnalyzer, is_route_registration
from ...analyzers.python_route import PYTHON_RECEIVERS, PythonRouteAnalyzer, decorated_function, is_route_decorator
from ...models import ConstraintViolation, Implementation
from ...treesitter.syntax import ParsedSource, line_of
from ..sources import RuleContext, iter_scope_sources

RULE_NAME = "async-error-handling"

HANDLER_VERBS = HTTP_METHODS | {"use"}

ECMASCRIPT_HANDLER_QUERY = """
(call_expression
  arguments: (arguments [(arrow_function) (function_expression)] @handler)) @call
"""

PYTHON_HANDLER_QUERY = """
(decorated_definition
  (decorator) @decorator
  definition: (function_definition) @handler)
"""


def is_async(node: Node) -> bool:
    return any(child.type == "async" for child in node.children)


def body_has_try(node: Node, block_type: str) -> bool:
    body = node.child_by_field_name("body")
    if body is None or body.type != block_type:
        return False
    return any(child.type == "try_statement" for child in body.named_children)


def _ecmascript_handlers(parsed: ParsedSource, receivers: FrozenSet[str]) -> List[Node]:
    handlers = []
    for captures in parsed.matches(ECMASCRIPT_HANDLER_QUERY):
        handler = captures["handler"]
        if is_async(handler) and is_route_registration(parsed, captures["call"], receivers, HANDLER_VERBS):
            handlers.append(handler)
    return handlers


def _python_handlers(parsed: ParsedSource, receivers: FrozenSet[str]) -> List[Node]:
    handlers = {}
    for captures in parsed.matches(PYTHON_HANDLER_QUERY):
        decorator = captures["decorator"]
        handler = decorated_function(decorator)
        if handler is None or handler.id in handlers:
            continue
        if is_async(handler) and is_route_decorator(parsed, decorator, receivers):
            handlers[handler.id] = handler
    return list(handlers.values())


def async_error_handling(feature, implementations: List[Implementation], context: RuleContext) -> List[ConstraintViolation]:
    violations: List[ConstraintViolation] = []
    for parsed in iter_scope_sources(RULE_NAME, feature.scope, implementations, context.syntax):
        if parsed.family == "ecmascript":
            receivers = context.receivers_for(ExpressRouteAnalyzer.name, EXPRESS_RECEIVERS)
            handlers, block_type = _ecmascript_handlers(parsed, receivers), "statement_block"
        elif parsed.family == "python":
            receivers = context.receivers_for(PythonRouteAnalyzer.name, PYTHON_RECEIVERS)
            handlers, block_type = _python_handlers(parsed, receivers), "block"
        else:
            continue

        for handler in handlers:
            if body_has_try(handler, block_type):
                continue
            line = line_of(handler)
            violations.append(
                ConstraintViolation(
                    constraint=feature.id,
                    rule=RULE_NAME,
                    message=f"Async route handler at {parsed.path}:{line} lacks try/catch error handling",
                    file=parsed.path,
                    line=line,
                    expected="try/catch wrapper",
                    actual="unguarded async handler",
                )
            )
    return violations
