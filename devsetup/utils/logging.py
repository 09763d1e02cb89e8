"""Logging setup shared by every devsetup command."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


DEFAULT_LOG_DIR = Path("/var/log/devsetup")
LOGGER_NAME = "devsetup"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_path(command: str = "", log_dir: Path | None = None) -> Path:
    """
    Timestamped log file for one command run, creating its directory.

    Args:
        command: Command name appended to the file name, e.g. 'setup-env'
        log_dir: Directory for log files (defaults to DEVSETUP_LOG_DIR or /var/log/devsetup)

    Raises:
        OSError: If the directory cannot be created
    """
    if log_dir is None:
        log_dir = Path(os.environ.get("DEVSETUP_LOG_DIR") or DEFAULT_LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    parts = ["devsetup", stamp] + ([command] if command else [])
    return log_dir / ("_".join(parts) + ".log")


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler() -> logging.Handler:
    handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
    handler.setLevel(logging.INFO)
    return handler


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """
    Configure the package logger, replacing handlers from earlier calls.

    Args:
        verbose: Also log INFO and above to stderr
        log_file: Write a DEBUG log to this file

    Returns:
        The 'devsetup' logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    if log_file is not None:
        logger.addHandler(_file_handler(log_file))
    if verbose:
        logger.addHandler(_console_handler())
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
