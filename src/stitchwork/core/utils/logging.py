"""
Logging configuration using loguru.

Continuation components never configure logging themselves; each one takes a
diagnostics sink (a bound loguru logger) in its constructor so sessions stay
independently testable.  ``get_logger`` hands out those sinks and
``setup_logging`` wires the process-wide output once at app startup.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

DEFAULT_COMPONENT = "stitchwork"

# Records emitted without an explicit component still render.
logger.configure(extra={"component": DEFAULT_COMPONENT})


def get_logger(component: str) -> Logger:
    """Return a loguru logger bound to *component* for use as a diagnostics sink."""
    return logger.bind(component=component)


def setup_logging(
    level: str = "WARNING",
    log_file: str | Path | None = None,
    fmt: str = "<level>[{level.name}]</level> <cyan>{extra[component]}</cyan> {message}",
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure loguru with console and optional file output.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, only logs to stderr.
        fmt: Loguru format string; ``{extra[component]}`` names the emitting component.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.
    """
    logger.remove()
    logger.configure(extra={"component": DEFAULT_COMPONENT})
    logger.add(sys.stderr, level=level, format=fmt)

    if log_file:
        logger.add(
            str(log_file),
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[component]} | {message}",
            rotation=rotation,
            retention=retention,
        )
