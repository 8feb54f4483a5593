"""Configuration for fieldforge."""

from .app_config import (
    FieldForgeConfig,
    LogLevel,
    get_config,
    load_config_from_file,
    reset_config,
    set_config,
)

__all__ = [
    "FieldForgeConfig",
    "LogLevel",
    "get_config",
    "load_config_from_file",
    "reset_config",
    "set_config",
]
