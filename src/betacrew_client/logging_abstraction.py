"""Logging setup for the BetaCrew client.

Provides JSON and human-readable formatters that carry the run ID and any
structured context passed through ``extra=`` by the transport and protocol
modules.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import override

from betacrew_client.correlation import get_run_id

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "setup_logging",
]

# Attributes every LogRecord has; anything else arrived through extra=
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
    | {"message", "asctime", "run_id"},
)


def _context_of(record: logging.LogRecord) -> dict[str, object]:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "run_id": get_run_id(),
        }

        context = _context_of(record)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formatter that outputs human-readable logs with the run ID."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(run_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        run_id = get_run_id()
        record.run_id = f"[{run_id[:8]}]" if run_id else "[--------]"

        formatted = super().format(record)

        context = _context_of(record)
        if context:
            context_str = " | ".join(f"{k}={v}" for k, v in context.items())
            formatted = f"{formatted} | {context_str}"

        return formatted


def setup_logging(log_level: str, log_format: str = "human") -> None:
    """Configure the root logger with a single stdout handler.

    Args:
        log_level: Level name (DEBUG, INFO, ...)
        log_format: "json" or "human"
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if log_format == "json" else HumanReadableFormatter())
    handler.setLevel(level)
    root_logger.addHandler(handler)
