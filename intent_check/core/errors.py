"""Exception types raised by the reconciliation engine and its loaders."""

from typing import List, Optional


class IntentCheckError(Exception):
    """Base class for all intent-check errors."""


class ConfigurationError(IntentCheckError):
    """The configuration file is missing or cannot be parsed."""


class IntentLoadError(IntentCheckError):
    """The declared document cannot be read or decoded."""


class IntentValidationError(IntentCheckError):
    """The declared document is structurally invalid."""

    def __init__(self, errors: List[str], source: Optional[str] = None):
        self.errors = list(errors)
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"{len(self.errors)} validation error(s){where}: " + "; ".join(self.errors))


class GrammarMismatchError(IntentCheckError):
    """A query compiled for one grammar was run against a tree of another."""


class QueryCompileError(IntentCheckError):
    """A structural query pattern does not compile for a grammar."""
