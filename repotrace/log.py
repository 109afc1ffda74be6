"""Logging — compact colored terminal output for the repotrace logger tree."""

from __future__ import annotations

import logging

_COLORS = {
    "DEBUG":    "\033[36m",    # cyan
    "INFO":     "\033[34m",    # blue
    "WARNING":  "\033[33m",    # yellow
    "ERROR":    "\033[31m",    # red
    "CRITICAL": "\033[1;31m",  # bold red
}
_RESET = "\033[0m"

ROOT_LOGGER = "repotrace"


class ColorFormatter(logging.Formatter):
    """Compact colored formatter for terminal output."""

    def format(self, record: logging.LogRecord) -> str:
        color = _COLORS.get(record.levelname, "")
        ts = self.formatTime(record, "%H:%M:%S")
        return f"{color}{ts} [{record.name}] {record.getMessage()}{_RESET}"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stderr handler to the ``repotrace`` logger.

    Safe to call more than once; only the level changes on later calls.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(ColorFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(level.upper())
    return logger
