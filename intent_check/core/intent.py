"""
Loading, normalization and validation of the declared feature document.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .errors import IntentLoadError, IntentValidationError
from .models import CONSTRAINT_TYPE, ROUTE_TYPE, STATUS_APPROVED

CURRENT_INTENT_VERSION = "0.2"
DECLARED_HTTP_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"}

EXAMPLE_FEATURE = {
    "id": "example-feature",
    "type": ROUTE_TYPE,
    "description": "Example route - replace with your own",
    "status": STATUS_APPROVED,
    "method": "GET",
    "path": "/example",
}


class Feature(BaseModel):
    """A declared unit of intended behavior."""
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    type: str
    status: Literal["draft", "approved", "deprecated"] = STATUS_APPROVED
    description: Optional[str] = None
    method: Optional[str] = None
    path: Optional[str] = None
    contract: Optional[Dict[str, Any]] = None
    rule: Optional[str] = None
    scope: Optional[str] = None
    middleware: Optional[Union[str, List[str]]] = None
    forbidden: Optional[List[str]] = None

    @field_validator("id", "type")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("method")
    @classmethod
    def _known_method(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value.upper() not in DECLARED_HTTP_METHODS:
            raise ValueError(f"must be one of {sorted(DECLARED_HTTP_METHODS)}")
        return value

    @model_validator(mode="after")
    def _check_shape(self) -> "Feature":
        if self.type == ROUTE_TYPE and (not self.method or not self.path):
            raise ValueError("route features require 'method' and 'path'")
        if self.type == CONSTRAINT_TYPE and (not self.rule or not self.scope):
            raise ValueError("constraint features require 'rule' and 'scope'")
        return self

    @property
    def is_constraint(self) -> bool:
        return self.type == CONSTRAINT_TYPE

    @property
    def required_middleware(self) -> List[str]:
        if not self.middleware:
            return []
        if isinstance(self.middleware, str):
            return [self.middleware]
        return list(self.middleware)

    def param(self, name: str, default: Any = None) -> Any:
        """Rule-specific parameter, declared or extra."""
        if name in type(self).model_fields:
            value = getattr(self, name)
        else:
            value = (self.model_extra or {}).get(name)
        return default if value is None else value


class IntentDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: str = "0.1"
    meta: Optional[Dict[str, Any]] = None
    features: List[Feature]

    @property
    def constraints(self) -> List[Feature]:
        return [f for f in self.features if f.is_constraint]


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def load_intent(file_path: Union[str, Path]) -> Dict[str, Any]:
    """Read a declared document (JSON or YAML) without validating it."""
    path_obj = Path(file_path)
    try:
        raw_text = path_obj.read_text(encoding="utf-8")
    except OSError as e:
        raise IntentLoadError(f"Failed to read {file_path}: {e}") from e

    try:
        if path_obj.suffix == ".json":
            data = json.loads(raw_text)
        else:
            data = yaml.safe_load(raw_text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise IntentLoadError(f"Failed to parse {file_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        raise IntentLoadError(f"{file_path} must contain a 'features' array")
    logging.info(f"Loaded {len(data['features'])} declared features from {file_path}")
    return data


def normalize_intent(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Upgrade a v0.1 document in memory: default status, current version, meta present."""
    normalized = dict(raw)
    normalized["version"] = CURRENT_INTENT_VERSION
    if not normalized.get("meta"):
        normalized["meta"] = {}
    normalized["features"] = [
        {"status": STATUS_APPROVED, **feature} if isinstance(feature, dict) else feature
        for feature in raw.get("features") or []
    ]
    return normalized


def write_intent(file_path: Union[str, Path], data: Dict[str, Any]) -> None:
    """Write a document as JSON, or YAML when the file name says so."""
    path_obj = Path(file_path)
    if path_obj.suffix in (".yaml", ".yml"):
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    path_obj.write_text(text, encoding="utf-8")


def generate_feature_id(method: str, path: str) -> str:
    """``GET /users/:id`` becomes ``get-users-id``; the bare root becomes ``get-root``."""
    cleaned = re.sub(r":([^/]+)", r"\1", path[1:] if path.startswith("/") else path)
    cleaned = re.sub(r"[^a-zA-Z0-9-]", "", cleaned.replace("/", "-"))
    prefix = method.lower()
    return f"{prefix}-{cleaned}" if cleaned else f"{prefix}-root"


def scaffold_intent(implementations: Iterable[Any], name: str) -> Dict[str, Any]:
    """A starter document declaring each discovered route once, in discovery order."""
    features: List[Dict[str, Any]] = []
    seen = set()
    for impl in implementations:
        if impl.type != ROUTE_TYPE or not impl.method or not impl.path:
            continue
        key = (impl.method, impl.path)
        if key in seen:
            continue
        seen.add(key)
        features.append({
            "id": generate_feature_id(impl.method, impl.path),
            "type": ROUTE_TYPE,
            "status": STATUS_APPROVED,
            "method": impl.method,
            "path": impl.path,
        })
    if not features:
        features.append(dict(EXAMPLE_FEATURE))
    return {"version": CURRENT_INTENT_VERSION, "meta": {"name": name}, "features": features}


def check_duplicate_ids(raw: Dict[str, Any]) -> List[str]:
    seen = set()
    duplicates: List[str] = []
    for feature in raw.get("features") or []:
        feature_id = feature.get("id") if isinstance(feature, dict) else None
        if not feature_id:
            continue
        if feature_id in seen and feature_id not in duplicates:
            duplicates.append(feature_id)
        seen.add(feature_id)
    return duplicates


def _format_error(error: Dict[str, Any]) -> str:
    location = "/" + "/".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid")
    if error.get("type") == "missing":
        return f"{location}: missing required field"
    return f"{location}: {message}"


def validate_intent(raw: Dict[str, Any]) -> ValidationResult:
    errors: List[str] = []
    try:
        IntentDocument.model_validate(raw)
    except ValidationError as e:
        errors.extend(_format_error(err) for err in e.errors())

    for duplicate in check_duplicate_ids(raw):
        errors.append(f"/features: duplicate feature id '{duplicate}'")

    unique = list(dict.fromkeys(errors))
    return ValidationResult(valid=not unique, errors=unique)


def parse_intent(raw: Dict[str, Any], source: Optional[str] = None) -> IntentDocument:
    """Validate and normalize a raw document; raises IntentValidationError."""
    result = validate_intent(raw)
    if not result.valid:
        raise IntentValidationError(result.errors, source=source)
    return IntentDocument.model_validate(normalize_intent(raw))
