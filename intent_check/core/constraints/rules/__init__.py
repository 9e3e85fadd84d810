"""Built-in constraint rules, keyed by rule name."""

from .async_error_handling import async_error_handling
from .no_direct_import import no_direct_import
from .routes_require_middleware import routes_require_middleware

BUILTIN_RULES = {
    "routes-require-middleware": routes_require_middleware,
    "no-direct-import": no_direct_import,
    "async-error-handling": async_error_handling,
}

__all__ = ["BUILTIN_RULES", "async_error_handling", "no_direct_import", "routes_require_middleware"]
