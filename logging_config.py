"""Centralized logging configuration.

This module provides:
- PlainFormatter for local, human readable stderr output
- JSONFormatter for structured logging (one object per line)
- setup_logging() to wire either of them onto the root logger
"""

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def resolve_log_level(level: Optional[str] = None) -> str:
    """Return a valid level name from the argument, else LOG_LEVEL, else INFO.

    Raises:
        ValueError: If the chosen name is not a known level.
    """
    level = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level `{level}`, expected one of: {', '.join(LOG_LEVELS)}")
    return level


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, service: Optional[str] = None):
        super().__init__()
        self.service = service or "decap-oauth"

    def format(self, record: logging.LogRecord) -> str:
        # Extract tag from message if present: [TAG] message
        tag = None
        message = record.getMessage()
        tag_match = re.match(r'\[([A-Z_]+)\]\s*(.*)', message)
        if tag_match:
            tag = tag_match.group(1)
            message = tag_match.group(2)

        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "service": self.service,
            "level": record.levelname,
            "tag": tag,
            "message": message,
            "module": record.module,
            "extra": {
                "function": record.funcName,
                "line": record.lineno,
            }
        }

        if record.exc_info:
            log_entry["extra"]["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class PlainFormatter(logging.Formatter):
    """Plain text formatter for stderr output (local debugging)."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> logging.Logger:
    """Configure the root logger.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or INFO.
        json_format: Emit JSON lines instead of plain text. Defaults to
            LOG_FORMAT=json.

    Returns:
        Configured root logger.

    Raises:
        ValueError: If the level name is unknown.
    """
    level = resolve_log_level(level)
    if json_format is None:
        json_format = os.getenv("LOG_FORMAT", "plain").lower() == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(JSONFormatter() if json_format else PlainFormatter())
    root_logger.addHandler(stderr_handler)

    # Suppress noisy HTTP client logs (token exchange uses httpx)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"[STARTUP] Logging configured - level: {level}, json: {json_format}")

    return root_logger
