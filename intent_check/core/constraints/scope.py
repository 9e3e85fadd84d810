"""Scope patterns selecting the routes and files a constraint applies to."""

from typing import List

from ..analyzers.base import normalize_path
from ..models import Implementation, ROUTE_TYPE

ALL_ROUTES = "*"
NAMED_SCOPES = frozenset({"route-handlers"})


def is_known_scope(scope: str) -> bool:
    return scope == ALL_ROUTES or scope.startswith("/") or scope in NAMED_SCOPES


def matches_scope(route_path: str, scope: str) -> bool:
    """
    - "*" and named scopes match every route
    - "/api/*" matches "/api" and anything under "/api/"
    - anything else is an exact match after parameter normalization
    """
    if scope == ALL_ROUTES or scope in NAMED_SCOPES:
        return True
    if scope.endswith("/*"):
        prefix = scope[:-1]
        return route_path.startswith(prefix) or route_path == scope[:-2]
    return normalize_path(route_path) == normalize_path(scope)


def resolve_routes(scope: str, implementations: List[Implementation]) -> List[Implementation]:
    if not is_known_scope(scope):
        return []
    return [impl for impl in implementations if impl.type == ROUTE_TYPE and matches_scope(impl.path, scope)]


def resolve_files(scope: str, implementations: List[Implementation]) -> List[str]:
    """Sorted unique files holding at least one in-scope route."""
    return sorted({impl.file for impl in resolve_routes(scope, implementations)})
