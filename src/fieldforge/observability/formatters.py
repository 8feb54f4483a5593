"""
Logging formatters for fieldforge.

JSONFormatter emits one JSON object per record for machine consumption;
BuildFormatter emits a single human-readable line. Both tag records with the
factory build in progress, when there is one.
"""

import json
import logging
import os
import socket
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .context import get_build_trace

# Attributes every LogRecord carries; anything else came in via ``extra``
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects."""

    def __init__(
        self,
        include_build: bool = True,
        extra_fields: Optional[Dict[str, Any]] = None,
    ):
        super().__init__()
        self.include_build = include_build
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if self.include_build:
            trace = get_build_trace()
            if trace is not None:
                log_data["build"] = {
                    "factory": trace.factory_name,
                    "factory_id": trace.factory_id,
                    "seq": trace.seq,
                }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                ),
            }

        log_data.update(self.extra_fields)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class BuildFormatter(logging.Formatter):
    """Human-readable formatter prefixing records with the active build."""

    def __init__(self, include_build: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.include_build = include_build

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        if self.include_build:
            trace = get_build_trace()
            if trace is not None:
                formatted = f"[{trace.label}] {formatted}"
        return formatted


def get_console_formatter(structured: bool = False) -> logging.Formatter:
    if structured:
        return JSONFormatter(
            extra_fields={
                "hostname": get_hostname(),
                "process_id": get_process_id(),
                "python_version": get_python_version(),
            }
        )
    return BuildFormatter()


def get_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


def get_process_id() -> int:
    return os.getpid()


def get_python_version() -> str:
    return f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
