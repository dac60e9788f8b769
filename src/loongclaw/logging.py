"""
LoongClaw Structured Logging

Provides a configured logger for LoongClaw using stdlib logging
with structured context.

Usage:
    from loongclaw.logging import get_logger

    logger = get_logger("loongclaw.tools")
    logger.info("Tool finished", extra={"tool_name": "exec_shell", "duration_ms": 12.5})

For machine-readable output:
    from loongclaw.logging import configure_logging
    configure_logging(json_output=True, level="INFO")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Record attributes promoted into the structured payload when present
STRUCTURED_FIELDS = (
    "tool_name",
    "tier",
    "signature",
    "event_type",
    "session_id",
    "provider",
    "model",
    "path",
    "duration_ms",
)


class LoongClawFormatter(logging.Formatter):
    """Structured log formatter for LoongClaw.

    Outputs either human-readable or JSON format depending on configuration.
    """

    def __init__(self, json_output: bool = False):
        super().__init__()
        self._json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in STRUCTURED_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self._json_output:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        extra_keys = {
            k: v
            for k, v in log_data.items()
            if k not in ("timestamp", "level", "logger", "message", "exception")
        }
        extra_str = ""
        if extra_keys:
            extra_str = " | " + " ".join(f"{k}={v}" for k, v in extra_keys.items())

        line = f"[{log_data['timestamp']}] {record.levelname:8s} {record.name}: {record.getMessage()}{extra_str}"
        if "exception" in log_data:
            line = f"{line}\n{log_data['exception']}"
        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """Configure LoongClaw logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, emit one JSON object per record.
    """
    root_logger = logging.getLogger("loongclaw")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    root_logger.handlers.clear()

    # stderr keeps logs out of tool output and answers on stdout
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(LoongClawFormatter(json_output=json_output))
    root_logger.addHandler(handler)

    root_logger.propagate = False


def get_logger(name: str = "loongclaw") -> logging.Logger:
    """Get a LoongClaw logger instance.

    Args:
        name: Logger name (usually a module path like "loongclaw.tools").

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


configure_logging(level="WARNING")
