"""
Decorator route detection for Python web frameworks (FastAPI, Flask).

``@app.get("/users")``, ``@router.post("/items", dependencies=[Depends(auth)])``
and ``@bp.route("/login", methods=["GET", "POST"])``.
"""

from __future__ import annotations

from typing import FrozenSet, List, Optional

from tree_sitter import Node

from ..models import Implementation, ROUTE_TYPE
from ..treesitter.syntax import ParsedSource, line_of
from .base import HTTP_METHODS, RouteAnalyzer

PYTHON_RECEIVERS = frozenset({"app", "router", "bp", "blueprint", "api"})
MULTI_METHOD_VERBS = frozenset({"route", "api_route"})

ROUTE_DECORATOR_QUERY = """
(decorator
  (call
    function: (attribute
      object: (identifier) @receiver
      attribute: (identifier) @verb)
    arguments: (argument_list) @args) @call) @decorator
"""


def python_string_value(parsed: ParsedSource, node: Node) -> Optional[str]:
    """Value of a plain string literal; interpolated f-strings give None."""
    if node.type != "string":
        return None
    parts: List[str] = []
    for child in node.named_children:
        if child.type == "interpolation":
            return None
        if child.type == "string_content":
            parts.append(parsed.text(child))
    return "".join(parts)


def keyword_argument(args: Node, name: str, parsed: ParsedSource) -> Optional[Node]:
    for child in args.named_children:
        if child.type != "keyword_argument":
            continue
        if parsed.text(child.child_by_field_name("name")) == name:
            return child.child_by_field_name("value")
    return None


def route_verbs(parsed: ParsedSource, verb: str, args: Node) -> List[str]:
    """HTTP verbs registered by one decorator call, lower-case."""
    if verb in HTTP_METHODS:
        return [verb]
    if verb not in MULTI_METHOD_VERBS:
        return []
    methods = keyword_argument(args, "methods", parsed)
    if methods is None:
        return ["get"]
    verbs = []
    for item in methods.named_children:
        value = python_string_value(parsed, item)
        if value and value.lower() in HTTP_METHODS:
            verbs.append(value.lower())
    return verbs


def is_route_decorator(parsed: ParsedSource, decorator: Node, receivers: FrozenSet[str]) -> bool:
    expression = decorator.named_children[0] if decorator.named_children else None
    if expression is None or expression.type != "call":
        return False
    function = expression.child_by_field_name("function")
    if function is None or function.type != "attribute":
        return False
    obj = function.child_by_field_name("object")
    attr = function.child_by_field_name("attribute")
    if obj is None or obj.type != "identifier" or parsed.text(obj) not in receivers:
        return False
    verb = parsed.text(attr).lower()
    return verb in HTTP_METHODS or verb in MULTI_METHOD_VERBS


def decorated_function(decorator: Node) -> Optional[Node]:
    parent = decorator.parent
    if parent is None or parent.type != "decorated_definition":
        return None
    definition = parent.child_by_field_name("definition")
    if definition is None or definition.type != "function_definition":
        return None
    return definition


def _decorator_name(parsed: ParsedSource, decorator: Node) -> Optional[str]:
    expression = decorator.named_children[0] if decorator.named_children else None
    if expression is None:
        return None
    if expression.type == "call":
        expression = expression.child_by_field_name("function")
    if expression is not None and expression.type in ("identifier", "attribute"):
        return parsed.text(expression)
    return None


def extract_dependencies(parsed: ParsedSource, args: Node) -> List[str]:
    """Names passed to ``Depends(...)`` in a FastAPI ``dependencies=[...]`` keyword."""
    value = keyword_argument(args, "dependencies", parsed)
    if value is None or value.type not in ("list", "tuple"):
        return []
    names = []
    for item in value.named_children:
        if item.type != "call" or parsed.text(item.child_by_field_name("function")) != "Depends":
            continue
        dep_args = item.child_by_field_name("arguments")
        first = dep_args.named_children[0] if dep_args is not None and dep_args.named_children else None
        if first is not None and first.type in ("identifier", "attribute"):
            names.append(parsed.text(first))
    return names


class PythonRouteAnalyzer(RouteAnalyzer):
    name = "python-route"
    file_extensions = (".py",)
    default_receivers = PYTHON_RECEIVERS

    def extract_routes(self, parsed: ParsedSource, file: str) -> List[Implementation]:
        routes: List[Implementation] = []
        for captures in parsed.matches(ROUTE_DECORATOR_QUERY):
            if parsed.text(captures["receiver"]) not in self.receivers:
                continue
            args = captures["args"]
            positional = [c for c in args.named_children if c.type not in ("keyword_argument", "comment")]
            if not positional:
                continue
            path = python_string_value(parsed, positional[0])
            if path is None or not path.startswith("/"):
                continue
            verbs = route_verbs(parsed, parsed.text(captures["verb"]).lower(), args)
            if not verbs:
                continue

            decorator = captures["decorator"]
            middleware = extract_dependencies(parsed, args) + self._sibling_decorators(parsed, decorator)
            for verb in verbs:
                routes.append(
                    Implementation(
                        type=ROUTE_TYPE,
                        method=verb.upper(),
                        path=path,
                        file=file,
                        line=line_of(decorator),
                        middleware=tuple(middleware),
                    )
                )
        return routes

    def _sibling_decorators(self, parsed: ParsedSource, decorator: Node) -> List[str]:
        """Non-route decorators on the same function, e.g. ``@login_required``."""
        parent = decorator.parent
        if parent is None or parent.type != "decorated_definition":
            return []
        names = []
        for sibling in parent.named_children:
            if sibling.type != "decorator" or sibling.id == decorator.id:
                continue
            if is_route_decorator(parsed, sibling, self.receivers):
                continue
            name = _decorator_name(parsed, sibling)
            if name:
                names.append(name)
        return names
