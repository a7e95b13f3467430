"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML/JSON configuration files with environment variable overrides.
"""

import os
import threading
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from dagguard.log_config import configure_logging, get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_NAMES = ("dagguard.yaml", "dagguard.yml", "dagguard.json")
TRUTHY_VALUES = ("true", "1", "yes")


class GraphSettings(BaseModel):
    """Graph behaviour settings.

    Attributes:
        strict_references: Reject nodes whose predecessors do not exist with
            DanglingReferenceError instead of treating them as unsortable
    """

    strict_references: bool = Field(
        default=False,
        description="Reject undefined predecessor ids eagerly",
    )

    model_config = {"frozen": True}


class LoggingSettings(BaseModel):
    """Logging settings.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render JSON lines instead of the colored console format
    """

    level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=True,
        description="Use the JSON renderer",
    )

    model_config = {"str_strip_whitespace": True}


class DagguardConfig(BaseModel):
    """Top-level configuration combining all settings.

    Attributes:
        graph: Graph behaviour settings
        logging: Logging settings
    """

    graph: GraphSettings = Field(default_factory=GraphSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DagguardConfig":
        """Load configuration from a YAML (or JSON) file.

        Args:
            path: Path to the configuration file

        Returns:
            Parsed and validated DagguardConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If the file is empty, not valid YAML, or not a mapping
            pydantic.ValidationError: If a setting has an invalid value
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if not config_data:
            msg = "Configuration file is empty"
            raise ValueError(msg)

        if not isinstance(config_data, dict):
            msg = (
                "Configuration file must contain a mapping of sections, "
                f"got {type(config_data).__name__}"
            )
            raise ValueError(msg)

        # "graph:" with no value loads as None
        config_data = {key: value for key, value in config_data.items() if value is not None}
        config_data = cls._apply_env_overrides(config_data)
        config = cls(**config_data)

        logger.info(
            "configuration_loaded",
            strict_references=config.graph.strict_references,
            logging_level=config.logging.level,
        )

        return config

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: DAGGUARD_<SECTION>_<KEY>

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            ("graph", "strict_references"): "DAGGUARD_GRAPH_STRICT_REFERENCES",
            ("logging", "level"): "DAGGUARD_LOGGING_LEVEL",
            ("logging", "json_logs"): "DAGGUARD_LOGGING_JSON",
        }

        for path, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            current = config_data
            for key in path[:-1]:
                if key not in current:
                    current[key] = {}
                if not isinstance(current[key], dict):
                    msg = f"Configuration section '{key}' must be a mapping"
                    raise ValueError(msg)
                current = current[key]

            if env_var.endswith(("_REFERENCES", "_JSON")):
                current[path[-1]] = value.lower() in TRUTHY_VALUES
            else:
                current[path[-1]] = value.upper()

            logger.debug(
                "env_override_applied",
                env_var=env_var,
                config_path=".".join(path),
            )

        return config_data

    def apply_logging(self) -> None:
        """Configure structlog from the logging section."""
        configure_logging(level=self.logging.level, json_logs=self.logging.json_logs)


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: DagguardConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> DagguardConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                dagguard.yaml, dagguard.yml or dagguard.json in the current
                directory.

        Returns:
            Loaded DagguardConfig instance

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in DEFAULT_CONFIG_NAMES:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                msg = (
                    "No configuration file found. Expected "
                    f"{', '.join(DEFAULT_CONFIG_NAMES)}"
                )
                raise FileNotFoundError(msg)

        return DagguardConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> DagguardConfig:
        """Get configuration instance (singleton pattern).

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            DagguardConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> DagguardConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> DagguardConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ConfigManager",
    "DagguardConfig",
    "GraphSettings",
    "LoggingSettings",
    "get_config",
    "load_config",
    "reset_config",
]
