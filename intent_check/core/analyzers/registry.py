"""
Analyzer registry and runner.

The runner holds an explicit, ordered analyzer list. Order is priority: when
several analyzers serve one feature type, the first one that finds the
feature wins and the rest are not consulted.
"""

from __future__ import annotations

import importlib.util
import logging
from collections import OrderedDict
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

from tqdm import tqdm

from ..models import Implementation, MatchResult
from ..treesitter.syntax import SyntaxRegistry
from .base import has_extension
from .express_route import ExpressRouteAnalyzer
from .python_route import PythonRouteAnalyzer

BUILTIN_ANALYZERS = OrderedDict([
    (ExpressRouteAnalyzer.name, ExpressRouteAnalyzer),
    (PythonRouteAnalyzer.name, PythonRouteAnalyzer),
])

REQUIRED_PLUGIN_FIELDS = ("name", "supported_types", "analyze", "match")


def validate_plugin(candidate: Any) -> List[str]:
    """Names of required capability fields the candidate lacks."""
    missing = [f for f in REQUIRED_PLUGIN_FIELDS if not getattr(candidate, f, None)]
    supported = getattr(candidate, "supported_types", None)
    if "supported_types" not in missing and (isinstance(supported, str) or not isinstance(supported, (list, tuple))):
        missing.append("supported_types")
    for method in ("analyze", "match"):
        if method not in missing and not callable(getattr(candidate, method)):
            missing.append(method)
    return missing


def _plugin_candidate(module: Any) -> Any:
    if hasattr(module, "analyzer"):
        return module.analyzer
    factory = getattr(module, "create_analyzer", None)
    if callable(factory):
        return factory()
    return module


def load_custom_analyzers(
    paths: Iterable[str],
    base_dir: Optional[Path] = None,
    warnings: Optional[List[str]] = None,
) -> List[Any]:
    """Import analyzer plugins from Python files; bad plugins are skipped with a warning."""
    analyzers: List[Any] = []
    base = base_dir or Path.cwd()

    def _skip(message: str) -> None:
        logging.warning(message)
        if warnings is not None:
            warnings.append(message)

    for index, raw_path in enumerate(paths):
        resolved = (base / raw_path).resolve()
        try:
            spec = importlib.util.spec_from_file_location(f"intent_check_plugin_{index}_{resolved.stem}", resolved)
            if spec is None or spec.loader is None:
                raise ImportError(f"cannot import from {resolved}")
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            candidate = _plugin_candidate(module)
        except Exception as e:
            _skip(f"Failed to load custom analyzer at {raw_path}: {e}")
            continue

        missing = validate_plugin(candidate)
        if missing:
            _skip(f"Custom analyzer at {raw_path} is missing required fields {missing}, skipping.")
            continue
        logging.info(f"Loaded custom analyzer '{candidate.name}' from {raw_path}")
        analyzers.append(candidate)
    return analyzers


def create_builtin_analyzers(
    syntax: SyntaxRegistry,
    include: Optional[Sequence[str]] = None,
    receivers: Optional[Dict[str, List[str]]] = None,
) -> List[Any]:
    """Built-in analyzers in ``include`` order (all, in default order, when None)."""
    receivers = receivers or {}
    names = list(BUILTIN_ANALYZERS) if include is None else list(include)
    analyzers = []
    for name in names:
        factory = BUILTIN_ANALYZERS.get(name)
        if factory is None:
            logging.warning(f"Unknown built-in analyzer '{name}' in include list, ignoring.")
            continue
        analyzers.append(factory(syntax, receivers=receivers.get(name)))
    return analyzers


class AnalyzerRunner:
    """Dispatches files to analyzers and isolates analyzer failures."""

    def __init__(self, analyzers: Sequence[Any]):
        self.analyzers = list(analyzers)
        self.warnings: List[str] = []
        self._type_index: Dict[str, List[Any]] = {}
        for analyzer in self.analyzers:
            for feature_type in analyzer.supported_types:
                self._type_index.setdefault(feature_type, []).append(analyzer)

    @property
    def names(self) -> List[str]:
        return [a.name for a in self.analyzers]

    def analyzers_for(self, feature_type: str) -> List[Any]:
        return list(self._type_index.get(feature_type, []))

    def receivers(self) -> Dict[str, FrozenSet[str]]:
        """Route receiver names per analyzer that declares any."""
        return {a.name: frozenset(a.receivers) for a in self.analyzers if getattr(a, "receivers", None)}

    def file_extensions(self) -> List[str]:
        extensions = set()
        for analyzer in self.analyzers:
            extensions.update(getattr(analyzer, "file_extensions", None) or ())
        return sorted(extensions)

    def _warn(self, message: str) -> None:
        logging.warning(message)
        self.warnings.append(message)

    def analyze_files(self, files: Sequence[str], show_progress: bool = False) -> List[Implementation]:
        implementations: List[Implementation] = []
        for analyzer in tqdm(self.analyzers, desc="Analyzing", unit="analyzer", disable=not show_progress):
            extensions = getattr(analyzer, "file_extensions", None) or ()
            relevant = [f for f in files if has_extension(f, extensions)]
            if not relevant:
                continue
            try:
                results = analyzer.analyze(relevant)
            except Exception as e:
                self._warn(f"Analyzer '{analyzer.name}' failed during analyze: {e}")
                continue

            for item in results or []:
                try:
                    impl = Implementation.from_value(item)
                except (KeyError, TypeError, ValueError) as e:
                    self._warn(f"Analyzer '{analyzer.name}' returned an invalid implementation: {e}")
                    continue
                implementations.append(replace(impl, analyzer=analyzer.name))
        logging.info(f"Discovered {len(implementations)} implementations in {len(files)} files")
        return implementations

    def match(self, analyzer: Any, feature: Any, implementations: List[Implementation]) -> MatchResult:
        """Run one analyzer's ``match``; a failure counts as not found."""
        try:
            return MatchResult.from_value(analyzer.match(feature, implementations))
        except Exception as e:
            self._warn(f"Analyzer '{analyzer.name}' failed matching feature '{feature.id}': {e}")
            return MatchResult(found=False)


def create_runner(
    syntax: SyntaxRegistry,
    include: Optional[Sequence[str]] = None,
    custom: Iterable[str] = (),
    receivers: Optional[Dict[str, List[str]]] = None,
    base_dir: Optional[Path] = None,
) -> AnalyzerRunner:
    load_warnings: List[str] = []
    analyzers = create_builtin_analyzers(syntax, include=include, receivers=receivers)
    analyzers.extend(load_custom_analyzers(custom, base_dir=base_dir, warnings=load_warnings))
    runner = AnalyzerRunner(analyzers)
    runner.warnings.extend(load_warnings)
    return runner
