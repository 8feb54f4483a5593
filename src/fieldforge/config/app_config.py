"""
Configuration management for fieldforge.

Holds the few knobs the factory engine exposes: logging output and how
definition-level literals are handed to builds. Values come from defaults,
environment variables or a JSON file.
"""

import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class LogLevel(Enum):
    """Enumeration for log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class FieldForgeConfig:
    """
    Runtime configuration for factories.

    Attributes
    ----------
    log_level : LogLevel
        Level applied by ``setup_logging``
    structured_logging : bool
        Emit JSON records instead of human-readable lines
    copy_default_literals : bool
        Copy the mutable containers (dict, list, set, bytearray) inside
        literals stored on a factory each time they are resolved, so produced
        objects never alias the definition
    trace_resolution : bool
        Emit a DEBUG record for every resolved field
    """

    log_level: LogLevel = LogLevel.WARNING
    structured_logging: bool = False
    copy_default_literals: bool = True
    trace_resolution: bool = False

    @classmethod
    def from_env(cls) -> "FieldForgeConfig":
        """
        Create configuration from environment variables.

        Returns
        -------
        FieldForgeConfig
            Configuration populated from ``FIELDFORGE_*`` variables, falling
            back to defaults for unset or invalid values
        """
        config = cls()

        log_level_name = os.getenv("FIELDFORGE_LOG_LEVEL", config.log_level.value)
        try:
            config.log_level = LogLevel(log_level_name.upper())
        except ValueError:
            config.log_level = LogLevel.WARNING

        config.structured_logging = _env_flag(
            "FIELDFORGE_STRUCTURED_LOGGING", config.structured_logging
        )
        config.copy_default_literals = _env_flag(
            "FIELDFORGE_COPY_DEFAULT_LITERALS", config.copy_default_literals
        )
        config.trace_resolution = _env_flag(
            "FIELDFORGE_TRACE_RESOLUTION", config.trace_resolution
        )
        return config

    @classmethod
    def from_file(cls, config_path: str) -> "FieldForgeConfig":
        """
        Create configuration from a JSON configuration file.

        Raises
        ------
        FileNotFoundError
            If the configuration file doesn't exist
        json.JSONDecodeError
            If the configuration file is not valid JSON
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, "r", encoding="utf-8") as f:
            config_data = json.load(f)

        config = cls()
        config._update_from_dict(config_data)
        return config

    def _update_from_dict(self, data: Dict[str, Any]) -> None:
        if "log_level" in data:
            self.log_level = LogLevel(str(data["log_level"]).upper())
        for key in ("structured_logging", "copy_default_literals", "trace_resolution"):
            if key in data:
                setattr(self, key, bool(data[key]))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_level": self.log_level.value,
            "structured_logging": self.structured_logging,
            "copy_default_literals": self.copy_default_literals,
            "trace_resolution": self.trace_resolution,
        }

    def validate(self) -> List[str]:
        """
        Validate configuration values and return any errors.

        Returns
        -------
        List[str]
            List of validation error messages, empty if valid
        """
        errors = []
        if not isinstance(self.log_level, LogLevel):
            errors.append("log_level must be a LogLevel")
        for key in ("structured_logging", "copy_default_literals", "trace_resolution"):
            if not isinstance(getattr(self, key), bool):
                errors.append(f"{key} must be a boolean")
        return errors


# Global configuration instance
_global_config: Optional[FieldForgeConfig] = None


def get_config() -> FieldForgeConfig:
    """Get the global configuration, loading it from the environment once."""
    global _global_config
    if _global_config is None:
        _global_config = FieldForgeConfig.from_env()
    return _global_config


def set_config(config: FieldForgeConfig) -> None:
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Drop the global configuration so the next access reloads it."""
    global _global_config
    _global_config = None


def load_config_from_file(config_path: str) -> FieldForgeConfig:
    """Load configuration from file and install it globally."""
    config = FieldForgeConfig.from_file(config_path)
    set_config(config)
    return config
