"""Logging for the ``budget_tracker`` package.

Library modules call ``get_logger("budget_tracker.<module>")`` and never attach
handlers. The CLI calls :func:`configure_logging` once, with the level taken
from ``--log-level`` or ``BUDGET_TRACKER_LOG_LEVEL`` (see :mod:`.settings`).
Import and approval messages already name the period (``3/2024``) and user,
so the default format stays short enough for a terminal.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

PKG_LOGGER_NAME = "budget_tracker"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"

_handler: logging.Handler | None = None


def parse_level(level: int | str | None) -> int:
    """Map ``"debug"``/``"INFO"``/``10`` to a level number; unknown names are INFO."""

    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str = DEFAULT_FORMAT,
    stream: IO[str] = sys.stderr,
) -> logging.Handler:
    """Attach one stream handler to the package logger.

    Calling again replaces the previous handler, so a later ``--log-level``
    wins over whatever was configured first. Returns the installed handler.
    """

    global _handler

    logger = logging.getLogger(PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h is _handler:
            logger.removeHandler(h)

    resolved = parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DEFAULT_DATEFMT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _handler = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "parse_level"]
