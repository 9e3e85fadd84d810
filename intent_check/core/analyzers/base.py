"""Base analyzer interfaces and shared route helpers."""

import logging
import re
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Sequence

from ..models import Implementation, MatchResult, ROUTE_TYPE
from ..treesitter.syntax import ParsedSource, SyntaxRegistry

HTTP_METHODS = frozenset({"get", "post", "put", "patch", "delete", "options", "head"})

_PATH_PARAM = re.compile(r":[^/]+")


def normalize_path(path: str) -> str:
    """Replace every ``:segment`` with ``:param`` so parameter names do not matter."""
    return _PATH_PARAM.sub(":param", path)


class Analyzer:
    """Base class for analyzers.

    Subclasses declare ``name``, the feature ``supported_types`` they can
    satisfy and the ``file_extensions`` they want to receive. An analyzer
    with no extensions receives no files.
    """

    name: str = "base"
    supported_types: Sequence[str] = ()
    file_extensions: Sequence[str] = ()

    def analyze(self, files: List[str]) -> List[Implementation]:
        raise NotImplementedError

    def match(self, feature, implementations: List[Implementation]) -> MatchResult:
        raise NotImplementedError


class RouteAnalyzer(Analyzer):
    """Tree-sitter based analyzer for ``http-route`` features."""

    supported_types = (ROUTE_TYPE,)
    default_receivers: FrozenSet[str] = frozenset()

    def __init__(self, syntax: SyntaxRegistry, receivers: Optional[Iterable[str]] = None):
        self.syntax = syntax
        self.receivers = frozenset(receivers) if receivers else self.default_receivers

    def analyze(self, files: List[str]) -> List[Implementation]:
        routes: List[Implementation] = []
        for file in files:
            try:
                parsed = self.syntax.parse_file(file)
            except (OSError, UnicodeDecodeError) as e:
                logging.warning(f"{self.name}: skipping {file}: {e}")
                continue
            routes.extend(self.extract_routes(parsed, file))
        logging.debug(f"{self.name}: {len(routes)} routes in {len(files)} files")
        return routes

    def extract_routes(self, parsed: ParsedSource, file: str) -> List[Implementation]:
        raise NotImplementedError

    def match(self, feature, implementations: List[Implementation]) -> MatchResult:
        method = (feature.method or "").upper()
        expected = normalize_path(feature.path or "")
        for impl in implementations:
            if impl.method == method and normalize_path(impl.path) == expected:
                return MatchResult(found=True, implemented_in=impl.file, line=impl.line, implementation=impl)
        return MatchResult(found=False)


def has_extension(file: str, extensions: Iterable[str]) -> bool:
    suffix = Path(file).suffix.lower()
    return any(suffix == ext.lower() for ext in extensions)
