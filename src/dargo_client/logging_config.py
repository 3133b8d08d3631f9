from __future__ import annotations

import logging
import sys
from datetime import datetime


class ConsoleFormatter(logging.Formatter):
    """Format: [HH:MM:SS] [LEVEL] [module] message"""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        out = f"[{ts}] [{record.levelname}] [{record.module}] {record.getMessage()}"
        if record.exc_info:
            out += "\n" + self.formatException(record.exc_info)
        return out


def configure_logging(level: str = "INFO") -> None:
    """Install a single stderr handler on the package logger (idempotent)."""
    logger = logging.getLogger("dargo_client")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for h in list(logger.handlers):
        if isinstance(h.formatter, ConsoleFormatter):
            logger.removeHandler(h)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ConsoleFormatter())
    logger.addHandler(handler)
