"""
Pluggable analyzers turning source files into Implementation facts.
"""

from .base import Analyzer, HTTP_METHODS, RouteAnalyzer, normalize_path
from .express_route import ExpressRouteAnalyzer
from .python_route import PythonRouteAnalyzer
from .registry import AnalyzerRunner, create_runner, load_custom_analyzers

__all__ = [
    "Analyzer",
    "RouteAnalyzer",
    "ExpressRouteAnalyzer",
    "PythonRouteAnalyzer",
    "AnalyzerRunner",
    "create_runner",
    "load_custom_analyzers",
    "normalize_path",
    "HTTP_METHODS",
]
