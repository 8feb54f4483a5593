"""
Logging and build tracing for fieldforge.

Modules obtain loggers with ``get_logger(__name__)``; applications that want
fieldforge's records on the console call ``setup_logging()``.
"""

import logging
from typing import Optional

from fieldforge.config.app_config import FieldForgeConfig, get_config

from .context import (
    BuildTrace,
    BuildTraceScope,
    clear_build_trace,
    get_build_trace,
)
from .formatters import BuildFormatter, JSONFormatter, get_console_formatter

ROOT_LOGGER_NAME = "fieldforge"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the fieldforge namespace.

    Parameters
    ----------
    name : str
        Usually ``__name__`` of the calling module

    Returns
    -------
    logging.Logger
        Logger whose records propagate to the ``fieldforge`` root logger
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(config: Optional[FieldForgeConfig] = None) -> logging.Logger:
    """
    Attach a console handler to the ``fieldforge`` logger.

    Calling it again replaces the handler installed by the previous call.
    """
    config = config or get_config()
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(config.log_level.value)

    for handler in list(root.handlers):
        if getattr(handler, "_fieldforge_console", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(get_console_formatter(config.structured_logging))
    handler._fieldforge_console = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    return root


__all__ = [
    "BuildFormatter",
    "BuildTrace",
    "BuildTraceScope",
    "JSONFormatter",
    "clear_build_trace",
    "get_build_trace",
    "get_logger",
    "setup_logging",
]
