# src/taskdeck/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

APP_LOGGER = "taskdeck"
LOG_FILE_NAME = "taskdeck.log"

# Loggers whose records already reach the user through console output
# (the weather notifier, command replies). On the console they only pass at WARNING+.
_ECHOED_BY_REPL = ("taskdeck.weather", "taskdeck.core.lifecycle")

_LIBRARY_LEVELS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
}

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _under(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + ".")


class _ConsoleNoiseFilter(logging.Filter):
    """Console gets app logs; background fetch chatter and library noise only when serious."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if any(_under(name, p) for p in _ECHOED_BY_REPL):
            return record.levelno >= logging.WARNING
        if _under(name, APP_LOGGER):
            return True
        # py.warnings and third-party libraries
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskdeck",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Console handler on stderr (filtered, so it does not interleave with the REPL prompt)
    plus a size-rotated file with everything at `file_level`.

    Replaces any handlers already on the root logger. Returns the log file path.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)
        if isinstance(h, RotatingFileHandler):
            h.close()

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    console.addFilter(_ConsoleNoiseFilter())

    rotating = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    rotating.setLevel(file_level)
    rotating.setFormatter(formatter)

    root.addHandler(console)
    root.addHandler(rotating)

    logging.captureWarnings(True)
    for name, level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    return log_file
