import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

# Default configuration values
DEFAULT_CONFIG_PATH = "intent-check.config.yaml"
DEFAULT_INTENT_FILE = "intent.json"
DEFAULT_SCAN_DIR = "."
DEFAULT_EXCLUDE = ["node_modules", ".git", "test"]
DEFAULT_RESPECT_GITIGNORE = True
DEFAULT_REPORT_FORMAT = "text"


class AnalyzerSettings(BaseModel):
    # Ordered: the position of a built-in analyzer here is its matching priority.
    include: Optional[List[str]] = None
    custom: List[str] = Field(default_factory=list)
    receivers: Dict[str, List[str]] = Field(default_factory=dict)


class ContractSettings(BaseModel):
    auth_middleware: List[str] = Field(default_factory=list)


class ReportSettings(BaseModel):
    output: Optional[str] = None
    format: Literal["text", "json", "summary"] = DEFAULT_REPORT_FORMAT


class IntentCheckConfig(BaseModel):
    """
    Central configuration model for intent-check.
    """
    model_config = ConfigDict(extra="allow")

    intent_file: str = Field(default=DEFAULT_INTENT_FILE)
    scan_dir: str = Field(default=DEFAULT_SCAN_DIR)
    exclude: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    respect_gitignore: bool = DEFAULT_RESPECT_GITIGNORE
    analyzers: AnalyzerSettings = Field(default_factory=AnalyzerSettings)
    contracts: ContractSettings = Field(default_factory=ContractSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)

    # Directory relative paths (intent file, scan dir, plugins) are resolved against.
    base_dir: Optional[str] = None

    def resolve(self, path: str) -> Path:
        candidate = Path(path)
        if candidate.is_absolute() or not self.base_dir:
            return candidate
        return Path(self.base_dir) / candidate

    def intent_path(self) -> Path:
        return self.resolve(self.intent_file)

    def scan_path(self) -> Path:
        return self.resolve(self.scan_dir)


def load_config(
    config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> IntentCheckConfig:
    """
    Load configuration from file and overrides.

    Priority:
    1. CLI Arguments (if provided and not None)
    2. Config File (if provided or found at default path)
    3. Default Values

    Args:
        config_path: Path to the YAML config file. If None, tries 'intent-check.config.yaml'.
        cli_args: Dictionary of CLI arguments to override config values.

    Returns:
        IntentCheckConfig: The resolved configuration object.

    Raises:
        ConfigurationError: an explicit config path does not exist, or the file
            is not valid YAML or does not fit the configuration model.
    """
    config_data: Dict[str, Any] = {}

    target_path = config_path if config_path else DEFAULT_CONFIG_PATH
    path_obj = Path(target_path)

    if path_obj.exists() and path_obj.is_file():
        try:
            with open(path_obj, 'r', encoding='utf-8') as f:
                file_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config file {target_path}: {e}") from e
        if file_data:
            if not isinstance(file_data, dict):
                raise ConfigurationError(f"Config file {target_path} must contain a mapping")
            config_data.update(file_data)
        config_data.setdefault("base_dir", str(path_obj.resolve().parent))
        logging.info(f"Loaded configuration from {target_path}")
    elif config_path:
        raise ConfigurationError(f"Config file not found at explicit path: {config_path}")
    else:
        logging.info(f"No config file found at {DEFAULT_CONFIG_PATH}, using defaults.")

    if cli_args:
        for key, value in cli_args.items():
            if value is not None:
                config_data[key] = value

    try:
        return IntentCheckConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
