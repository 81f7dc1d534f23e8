#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client.

The message log: a record of every message received, kept apart from app logging.
"""

from __future__ import annotations

import logging
import shutil
import sys
from datetime import datetime as dt
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

import colorlog

from .version import VERSION

DEV_MODE = False

_LOGGER = logging.getLogger(__name__)
if DEV_MODE:
    _LOGGER.setLevel(logging.DEBUG)

MSG_LOGGER = logging.getLogger(f"{__package__}.messages")

CONSOLE_WIDTH = shutil.get_terminal_size(fallback=(2000, 24)).columns - 1

MSG_FMT = "%(asctime)s %(message)s%(_device)s"
CONSOLE_FMT = f"%(asctime)s %(message).{CONSOLE_WIDTH - 13}s%(_device)s"

MSG_COLOURS = {
    "DEBUG": "white",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red",
}


class _MsgFormatter:
    """Format a message record, with a timestamp in milliseconds."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return dt.fromtimestamp(record.created).isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        device = getattr(record, "device", None)
        record._device = f" < {device}" if device else ""
        return super().format(record)  # type: ignore[misc]


class MsgFormatter(_MsgFormatter, logging.Formatter):
    pass


class ColoredMsgFormatter(_MsgFormatter, colorlog.ColoredFormatter):
    pass


class LevelRangeFilter(logging.Filter):
    """Pass only those records with a level in [lower, upper]."""

    def __init__(self, lower: int, upper: int = logging.CRITICAL) -> None:
        super().__init__()
        self._lower = lower
        self._upper = upper

    def filter(self, record: logging.LogRecord) -> bool:
        return self._lower <= record.levelno <= self._upper


def _file_handler(
    file_name: str, rotate_backups: int, rotate_bytes: int | None
) -> logging.FileHandler:
    if rotate_bytes:
        return RotatingFileHandler(
            file_name, maxBytes=rotate_bytes, backupCount=rotate_backups or 2
        )
    if rotate_backups:
        return TimedRotatingFileHandler(
            file_name, when="midnight", backupCount=rotate_backups
        )
    return logging.FileHandler(file_name)


def set_logging(
    logger: logging.Logger,
    cc_console: bool = False,
    file_name: str | None = None,
    rotate_backups: int = 0,
    rotate_bytes: int | None = None,
) -> None:
    """(Re)configure the handlers of a message logger.

    Without a file_name, and without cc_console, the logger is effectively disabled.
    Files are rotated by size if rotate_bytes, else at midnight if rotate_backups.
    """

    for handler in list(logger.handlers):  # may be called more than once
        logger.removeHandler(handler)

    logger.propagate = False

    if not file_name and not cc_console:
        logger.setLevel(logging.CRITICAL)
        return

    logger.setLevel(logging.DEBUG)

    if file_name:
        handler = _file_handler(file_name, rotate_backups, rotate_bytes)
        handler.setFormatter(MsgFormatter(fmt=MSG_FMT))
        handler.addFilter(LevelRangeFilter(logging.INFO, logging.WARNING))
        logger.addHandler(handler)

    if cc_console:
        formatter = ColoredMsgFormatter(
            fmt=f"%(log_color)s{CONSOLE_FMT}", reset=True, log_colors=MSG_COLOURS
        )

        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(formatter)
        handler.addFilter(LevelRangeFilter(logging.WARNING))
        logger.addHandler(handler)

        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(formatter)
        handler.addFilter(LevelRangeFilter(logging.DEBUG, logging.INFO))
        logger.addHandler(handler)

    logger.warning("meross_tx %s", VERSION)
