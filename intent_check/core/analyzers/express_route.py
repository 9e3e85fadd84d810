"""
Express-style route detection for JavaScript/TypeScript sources.

Detects ``app.get("/users", handler)`` style registrations and the chained
``router.route("/users").get(h1).post(h2)`` form.
"""

from __future__ import annotations

from typing import FrozenSet, List, Optional

from tree_sitter import Node

from ..models import Implementation, ROUTE_TYPE
from ..treesitter.syntax import ParsedSource, line_of
from .base import HTTP_METHODS, RouteAnalyzer

EXPRESS_RECEIVERS = frozenset({"app", "router"})

# The path has to be the first argument of the call.
ROUTE_CALL_QUERY = """
(call_expression
  function: (member_expression
    object: (identifier) @receiver
    property: (property_identifier) @verb)
  arguments: (arguments . (string) @path)) @call
(call_expression
  function: (member_expression
    object: (identifier) @receiver
    property: (property_identifier) @verb)
  arguments: (arguments . (template_string) @path)) @call
"""

MIDDLEWARE_NODE_TYPES = ("identifier", "member_expression")


def string_literal_value(parsed: ParsedSource, node: Node) -> Optional[str]:
    """Value of a string or substitution-free template literal, else None."""
    if node.type == "string":
        return parsed.text(node)[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        return parsed.text(node)[1:-1]
    return None


def call_arguments(call: Node) -> List[Node]:
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    return [child for child in args.named_children if child.type != "comment"]


def collect_chained_verbs(parsed: ParsedSource, call: Node) -> List[str]:
    """Walk up ``.verb(handler)`` links chained off ``call``, stopping at the first non-verb link."""
    verbs: List[str] = []
    current = call
    while current.parent is not None:
        member = current.parent
        if member.type != "member_expression":
            break
        obj = member.child_by_field_name("object")
        if obj is None or obj.id != current.id:
            break
        prop = member.child_by_field_name("property")
        if prop is None:
            break
        verb = parsed.text(prop).lower()
        if verb not in HTTP_METHODS:
            break
        outer = member.parent
        if outer is None or outer.type != "call_expression":
            break
        function = outer.child_by_field_name("function")
        if function is None or function.id != member.id:
            break
        verbs.append(verb)
        current = outer
    return verbs


def extract_middleware(parsed: ParsedSource, call: Node) -> List[str]:
    """Arguments strictly between the path and the final handler."""
    args = call_arguments(call)
    if len(args) <= 2:
        return []
    return [parsed.text(arg) for arg in args[1:-1] if arg.type in MIDDLEWARE_NODE_TYPES]


def chained_route_receiver(parsed: ParsedSource, obj: Node) -> Optional[Node]:
    """Receiver of ``receiver.route(path)`` when ``obj`` is that call or a ``.verb(...)`` chained off it."""
    current = obj
    while current is not None and current.type == "call_expression":
        function = current.child_by_field_name("function")
        if function is None or function.type != "member_expression":
            return None
        prop = function.child_by_field_name("property")
        if prop is None:
            return None
        verb = parsed.text(prop).lower()
        if verb == "route":
            receiver = function.child_by_field_name("object")
            return receiver if receiver is not None and receiver.type == "identifier" else None
        if verb not in HTTP_METHODS:
            return None
        current = function.child_by_field_name("object")
    return None


def is_route_registration(
    parsed: ParsedSource,
    call: Node,
    receivers: FrozenSet[str],
    verbs: FrozenSet[str],
) -> bool:
    """True for ``receiver.verb(...)`` and ``receiver.route(path).verb(...)`` registrations."""
    if call.type != "call_expression":
        return False
    function = call.child_by_field_name("function")
    if function is None or function.type != "member_expression":
        return False
    obj = function.child_by_field_name("object")
    prop = function.child_by_field_name("property")
    if obj is None or prop is None or parsed.text(prop).lower() not in verbs:
        return False
    if obj.type == "call_expression":
        obj = chained_route_receiver(parsed, obj)
    return obj is not None and obj.type == "identifier" and parsed.text(obj) in receivers


class ExpressRouteAnalyzer(RouteAnalyzer):
    name = "express-route"
    file_extensions = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")
    default_receivers = EXPRESS_RECEIVERS

    def extract_routes(self, parsed: ParsedSource, file: str) -> List[Implementation]:
        routes: List[Implementation] = []
        for captures in parsed.matches(ROUTE_CALL_QUERY):
            receiver = captures["receiver"]
            if parsed.text(receiver) not in self.receivers:
                continue
            path = string_literal_value(parsed, captures["path"])
            if path is None or not path.startswith("/"):
                continue

            verb = parsed.text(captures["verb"]).lower()
            line = line_of(receiver)
            if verb == "route":
                for chained in collect_chained_verbs(parsed, captures["call"]):
                    routes.append(
                        Implementation(type=ROUTE_TYPE, method=chained.upper(), path=path, file=file, line=line)
                    )
            elif verb in HTTP_METHODS:
                routes.append(
                    Implementation(
                        type=ROUTE_TYPE,
                        method=verb.upper(),
                        path=path,
                        file=file,
                        line=line,
                        middleware=tuple(extract_middleware(parsed, captures["call"])),
                    )
                )
        return routes
