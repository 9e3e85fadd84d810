from typing import List

from ...models import ConstraintViolation, Implementation
from ..sources import RuleContext
from ..scope import resolve_routes

RULE_NAME = "routes-require-middleware"


def routes_require_middleware(feature, implementations: List[Implementation], context: RuleContext) -> List[ConstraintViolation]:
    required = feature.required_middleware
    if not required:
        return []

    violations: List[ConstraintViolation] = []
    for route in resolve_routes(feature.scope, implementations):
        actual = ", ".join(route.middleware) if route.middleware else "none"
        for name in required:
            if name in route.middleware:
                continue
            violations.append(
                ConstraintViolation(
                    constraint=feature.id,
                    rule=RULE_NAME,
                    message=f"Route {route.route_key} is missing required middleware '{name}'",
                    file=route.file,
                    line=route.line,
                    route=route.route_key,
                    expected=name,
                    actual=actual,
                )
            )
    return violations
