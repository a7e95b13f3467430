"""Unit tests for configuration management module."""

import json
from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from dagguard.config import (
    DagguardConfig,
    GraphSettings,
    LoggingSettings,
    get_config,
    load_config,
    reset_config,
)
from dagguard.graph.dag import DanglingReferenceError, Graph
from dagguard.graph.node import Node


@pytest.fixture
def valid_config_dict() -> dict[str, Any]:
    """Fixture providing valid configuration dictionary."""
    return {
        "graph": {"strict_references": True},
        "logging": {"level": "DEBUG", "json_logs": False},
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, valid_config_dict: dict[str, Any]) -> Path:
    """Fixture providing temporary YAML config file."""
    config_path = tmp_path / "dagguard.yaml"
    with config_path.open("w") as f:
        yaml.dump(valid_config_dict, f)
    return config_path


@pytest.fixture
def temp_json_config_file(tmp_path: Path, valid_config_dict: dict[str, Any]) -> Path:
    """Fixture providing temporary JSON config file."""
    config_path = tmp_path / "dagguard.json"
    with config_path.open("w") as f:
        json.dump(valid_config_dict, f)
    return config_path


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Reset configuration singleton before and after each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def clean_env_vars(monkeypatch):
    """Clean environment variables before each test."""
    for env_var in (
        "DAGGUARD_GRAPH_STRICT_REFERENCES",
        "DAGGUARD_LOGGING_LEVEL",
        "DAGGUARD_LOGGING_JSON",
    ):
        monkeypatch.delenv(env_var, raising=False)


class TestSettingsModels:
    """Tests for the individual settings models."""

    def test_graph_settings_defaults(self):
        """Test GraphSettings preserves blocked-reference behaviour by default."""
        assert GraphSettings().strict_references is False

    def test_graph_settings_frozen(self):
        """Test GraphSettings cannot be changed after a Graph holds it."""
        settings = GraphSettings()
        with pytest.raises(ValidationError):
            settings.strict_references = True

    def test_logging_settings_defaults(self):
        """Test LoggingSettings defaults."""
        settings = LoggingSettings()
        assert settings.level == "INFO"
        assert settings.json_logs is True

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_logging_level_valid(self, level):
        """Test every standard level name is accepted."""
        assert LoggingSettings(level=level).level == level

    def test_logging_level_invalid(self):
        """Test an unknown level is rejected."""
        with pytest.raises(ValidationError, match="level"):
            LoggingSettings(level="VERBOSE")

    def test_config_defaults(self):
        """Test DagguardConfig can be built without any file."""
        config = DagguardConfig()
        assert config.graph.strict_references is False
        assert config.logging.level == "INFO"


class TestLoadConfig:
    """Tests for loading configuration files."""

    def test_load_yaml(self, temp_config_file):
        """Test loading a YAML file."""
        config = load_config(temp_config_file)

        assert config.graph.strict_references is True
        assert config.logging.level == "DEBUG"
        assert config.logging.json_logs is False

    def test_load_json(self, temp_json_config_file):
        """Test loading a JSON file through the YAML loader."""
        config = load_config(temp_json_config_file)

        assert config.graph.strict_references is True

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        """Test an empty file raises ValueError."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("")

        with pytest.raises(ValueError, match="empty"):
            load_config(config_path)

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises ValueError."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("graph: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(config_path)

    def test_invalid_value(self, tmp_path):
        """Test invalid field values raise ValidationError."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("logging:\n  level: LOUD\n")

        with pytest.raises(ValidationError):
            load_config(config_path)

    def test_top_level_list_rejected(self, tmp_path):
        """Test a YAML document that is not a mapping raises ValueError."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path)

    def test_top_level_scalar_rejected(self, tmp_path):
        """Test a bare scalar document raises ValueError."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("strict\n")

        with pytest.raises(ValueError, match="got str"):
            load_config(config_path)

    def test_null_section_uses_defaults(self, tmp_path):
        """Test a section with no value falls back to its defaults."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("graph:\nlogging:\n  level: WARNING\n")

        config = load_config(config_path)

        assert config.graph == GraphSettings()
        assert config.logging.level == "WARNING"

    def test_default_file_discovery(self, tmp_path, temp_config_file, monkeypatch):
        """Test dagguard.yaml is found in the working directory."""
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.graph.strict_references is True

    def test_no_default_file(self, tmp_path, monkeypatch):
        """Test a helpful error when no default file exists."""
        monkeypatch.chdir(tmp_path)

        with pytest.raises(FileNotFoundError, match="No configuration file found"):
            load_config()


class TestEnvOverrides:
    """Tests for DAGGUARD_* environment overrides."""

    def test_strict_references_override(self, temp_config_file, monkeypatch):
        """Test a boolean override."""
        monkeypatch.setenv("DAGGUARD_GRAPH_STRICT_REFERENCES", "false")

        config = load_config(temp_config_file)

        assert config.graph.strict_references is False

    def test_logging_overrides(self, temp_config_file, monkeypatch):
        """Test level and renderer overrides."""
        monkeypatch.setenv("DAGGUARD_LOGGING_LEVEL", "error")
        monkeypatch.setenv("DAGGUARD_LOGGING_JSON", "yes")

        config = load_config(temp_config_file)

        assert config.logging.level == "ERROR"
        assert config.logging.json_logs is True

    def test_override_creates_missing_section(self, tmp_path, monkeypatch):
        """Test overrides apply even when the file omits the section."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("logging:\n  level: INFO\n")
        monkeypatch.setenv("DAGGUARD_GRAPH_STRICT_REFERENCES", "1")

        config = load_config(config_path)

        assert config.graph.strict_references is True

    def test_override_fills_null_section(self, tmp_path, monkeypatch):
        """Test a section left empty in the file still takes overrides."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("graph:\nlogging:\n  level: INFO\n")
        monkeypatch.setenv("DAGGUARD_GRAPH_STRICT_REFERENCES", "true")

        config = load_config(config_path)

        assert config.graph.strict_references is True
        assert config.logging.level == "INFO"

    def test_override_into_scalar_section_rejected(self, tmp_path, monkeypatch):
        """Test overriding inside a section that is not a mapping raises ValueError."""
        config_path = tmp_path / "dagguard.yaml"
        config_path.write_text("graph: 5\n")
        monkeypatch.setenv("DAGGUARD_GRAPH_STRICT_REFERENCES", "true")

        with pytest.raises(ValueError, match="'graph' must be a mapping"):
            load_config(config_path)


class TestConfigSingleton:
    """Tests for the get_config singleton."""

    def test_get_config_caches(self, temp_config_file):
        """Test repeated calls return the same instance."""
        first = get_config(temp_config_file)
        second = get_config()

        assert first is second

    def test_get_config_reload(self, temp_config_file):
        """Test reload=True re-reads the file."""
        first = get_config(temp_config_file)
        second = get_config(temp_config_file, reload=True)

        assert first is not second
        assert first == second

    def test_config_drives_graph(self, temp_config_file):
        """Test a Graph built from loaded settings enforces strict references."""
        graph = Graph(get_config(temp_config_file).graph)

        with pytest.raises(DanglingReferenceError):
            graph.add_node(1, Node([2]))
