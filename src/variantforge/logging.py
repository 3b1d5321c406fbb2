"""Logging configuration for VariantForge.

Loggers live under the ``variantforge`` namespace.  Library code only
calls :func:`get_logger`; handlers are installed by the CLI (or by an
embedding build tool) through :func:`setup_logging`.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "variantforge"
DEFAULT_FORMAT = "%(levelname)-5s | %(name)-22s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)-22s | %(message)s"

# Attributes callers may attach via ``extra=`` that the JSON formatter keeps.
CONTEXT_FIELDS = ("resource", "preset", "asset")

_SETUP_LOCK = threading.Lock()


class JsonFormatter(logging.Formatter):
    """JSON log formatter that also carries per-asset context fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _make_formatter(fmt: str, json_logs: bool) -> logging.Formatter:
    return JsonFormatter() if json_logs else logging.Formatter(fmt)


def _stderr_handler(logger: logging.Logger) -> logging.Handler:
    """Return the single stderr handler on *logger*, creating it if needed."""
    existing = [
        h
        for h in logger.handlers
        if type(h) is logging.StreamHandler and getattr(h, "stream", None) is sys.stderr
    ]
    for duplicate in existing[1:]:
        logger.removeHandler(duplicate)
    if existing:
        return existing[0]
    handler = logging.StreamHandler(sys.stderr)
    logger.addHandler(handler)
    return handler


def _file_handler(logger: logging.Logger, log_file: str) -> logging.Handler:
    target = os.path.abspath(str(log_file))
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler) and h.baseFilename == target:
            return h
    handler = logging.FileHandler(target, encoding="utf-8")
    logger.addHandler(handler)
    return handler


def setup_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    log_file: str | None = None,
    json_logs: bool = False,
) -> None:
    """Configure handlers on the ``variantforge`` logger.

    Repeated calls reuse the existing handlers instead of stacking new
    ones, so a build tool can call this once per invocation.

    Args:
        level: Logging level (default: INFO).
        verbose: If True, include timestamps in console output.
        log_file: Optional file path to write logs to (in addition to stderr).
        json_logs: Emit structured JSON log lines when True.
    """
    with _SETUP_LOCK:
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(level)

        console_fmt = VERBOSE_FORMAT if verbose else DEFAULT_FORMAT
        _stderr_handler(logger).setFormatter(_make_formatter(console_fmt, json_logs))

        if log_file:
            _file_handler(logger, log_file).setFormatter(
                _make_formatter(VERBOSE_FORMAT, json_logs)
            )


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a VariantForge module.

    Args:
        name: Module name (e.g., ``"loader"``, ``"transform"``).

    Returns:
        A logger instance under the ``variantforge`` namespace.
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
