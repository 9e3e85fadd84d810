from pathlib import Path

import pytest

from intent_check.core.config import IntentCheckConfig, load_config
from intent_check.core.errors import ConfigurationError


def test_defaults_without_config_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config.intent_file == "intent.json"
    assert config.exclude == ["node_modules", ".git", "test"]
    assert config.analyzers.include is None
    assert config.report.format == "text"


def test_file_values_and_cli_overrides(write_file, tmp_path: Path) -> None:
    path = write_file("intent-check.config.yaml", (
        "intent_file: docs/intent.yaml\n"
        "scan_dir: src\n"
        "analyzers:\n"
        "  include: [python-route, express-route]\n"
        "  receivers:\n"
        "    express-route: [api]\n"
        "contracts:\n"
        "  auth_middleware: [requireAuth]\n"
        "report:\n"
        "  format: summary\n"
    ))

    config = load_config(path, cli_args={"scan_dir": "/elsewhere", "intent_file": None})

    assert config.analyzers.include == ["python-route", "express-route"]
    assert config.analyzers.receivers == {"express-route": ["api"]}
    assert config.contracts.auth_middleware == ["requireAuth"]
    assert config.report.format == "summary"
    assert config.intent_path() == tmp_path / "docs" / "intent.yaml"
    assert config.scan_path() == Path("/elsewhere")


def test_missing_explicit_config_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / "nope.yaml"))


def test_malformed_yaml_is_an_error(write_file) -> None:
    with pytest.raises(ConfigurationError):
        load_config(write_file("bad.yaml", "exclude: [unclosed\n"))


def test_invalid_values_are_an_error(write_file) -> None:
    with pytest.raises(ConfigurationError):
        load_config(write_file("bad.yaml", "report:\n  format: html\n"))


def test_relative_paths_without_base_dir() -> None:
    config = IntentCheckConfig(intent_file="intent.json")

    assert config.intent_path() == Path("intent.json")
