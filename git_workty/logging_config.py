"""Logging configuration for git-workty"""
import copy
import logging
import sys
from pathlib import Path

LOGGER_ROOT = "workty"

LOG_DIR = Path.home() / ".git-workty"
LOG_FILE = "git-workty.log"

DEBUG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"
SHORT_FORMAT = "[%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LevelColorFormatter(logging.Formatter):
    """Formatter that colors the level name when stderr is a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None or not sys.stderr.isatty():
            return super().format(record)
        # Other handlers (the debug log file) must still see the plain level name
        record = copy.copy(record)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _level_for(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def _file_handler() -> logging.Handler:
    """Debug log written next to the user's home, replaced on every run."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(LOG_DIR / LOG_FILE, mode="w")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """
    Configure logging for the application.

    Log records always go to stderr, never stdout: stdout carries paths and
    JSON that shell helpers capture.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and also write a log file
    """
    level = _level_for(verbose, debug)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if debug:
        root_logger.addHandler(_file_handler())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if debug:
        console_handler.setFormatter(LevelColorFormatter(fmt=DEBUG_FORMAT, datefmt=DATE_FORMAT))
    else:
        console_handler.setFormatter(LevelColorFormatter(fmt=SHORT_FORMAT))
    root_logger.addHandler(console_handler)

    # GitPython logs every command it runs at DEBUG
    logging.getLogger("git").setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, e.g. ``git_workty.services.git.backend``
    becomes ``workty.git.backend``.

    Args:
        name: Name of the module (typically __name__)
    """
    for prefix in ("git_workty.", "services."):
        if name.startswith(prefix):
            name = name[len(prefix):]
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")
