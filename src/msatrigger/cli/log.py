"""Logging setup for the msa-trigger CLI.

Every record goes to stderr (coloured by level) and, when a log file is
configured, is appended to it as plain text. Lines look like:

    [ 2024-01-31 12:00:00 ] Using sequence file: D:\\Transfer\\Exploris_seq.sld
    [ 2024-01-31 12:00:00 ] [ERROR] RAW file not found in sequence ...
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

ROOT_LOGGER = "msatrigger"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    logging.DEBUG: "magenta",
    logging.INFO: "cyan",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class TriggerFormatter(logging.Formatter):
    """Timestamped formatter that tags every level except INFO."""

    def __init__(self) -> None:
        super().__init__("[ %(asctime)s ] %(level_tag)s%(message)s", datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        record.level_tag = "" if record.levelno == logging.INFO else f"[{record.levelname}] "
        return super().format(record)


class ColorizedHandler(logging.Handler):
    """Logging handler writing coloured lines to stderr through click.

    click drops the colour codes when stderr is not a terminal.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            fg = LEVEL_COLORS.get(record.levelno, "cyan")
            click.echo(click.style(msg, fg=fg), err=True)
        except Exception:
            self.handleError(record)


def close_logging() -> None:
    """Detach and close all handlers of the msatrigger logger."""
    root_logger = logging.getLogger(ROOT_LOGGER)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()


def setup_logging(log_path: Path | None = None, debug: bool = False) -> None:
    """Configure the msatrigger logger for one invocation.

    Args:
        log_path: File to append to, or None for stderr only.
        debug: Whether to log DEBUG records.
    """
    close_logging()
    formatter = TriggerFormatter()

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    root_logger.propagate = False

    stderr_handler = ColorizedHandler()
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)

    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        except OSError as e:
            root_logger.warning(f"Cannot open log file {log_path}, logging to stderr only: {e}")
        else:
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)


def enable_debug_logging() -> None:
    """Switch the msatrigger logger to DEBUG after setup."""
    logging.getLogger(ROOT_LOGGER).setLevel(logging.DEBUG)
