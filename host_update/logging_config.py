"""
Centralized logging configuration for host-update.

Provides console output plus an append-only, timestamped audit log file.
Core components never look up a global logger: the logger built here is
passed into each of them explicitly.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO


LOGGER_NAME = "host_update"


def audit_log_path(log_dir: str, now: Optional[datetime] = None) -> Path:
    """
    Resolve the audit log file for a run.

    Args:
        log_dir: Directory receiving audit logs
        now: Timestamp of the run (defaults to current time)

    Returns:
        Path like <log_dir>/update-20240131-174501.log
    """
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return Path(log_dir) / f"update-{stamp}.log"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
    name: str = LOGGER_NAME,
    console_stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure a logger for one run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for the audit log
        verbose: Enable verbose (DEBUG) output
        quiet: Suppress console output below WARNING
        propagate: Allow log propagation (useful for testing)
        name: Logger name; distinct names keep separate runs isolated
        console_stream: Console destination (defaults to stdout)

    Returns:
        Configured logger instance
    """
    if verbose:
        effective_level = "DEBUG"
    elif quiet:
        effective_level = "WARNING"
    else:
        effective_level = level.upper()

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if log_file else getattr(logging, effective_level))

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    console_stream = console_stream or sys.stdout
    console_handler = logging.StreamHandler(console_stream)
    console_handler.setLevel(getattr(logging, effective_level))
    console_handler.setFormatter(ColoredFormatter(
        "%(levelname_colored)s %(message)s",
        use_colors=console_stream.isatty(),
    ))
    logger.addHandler(console_handler)

    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            # An unwritable log must never stop the run
            logger.warning(f"Cannot write log file {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ))
            logger.addHandler(file_handler)

    logger.propagate = propagate

    return logger


def log_file_of(logger: logging.Logger) -> Optional[str]:
    """Return the audit log path attached to a logger, if any."""
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return handler.baseFilename
    return None


class ColoredFormatter(logging.Formatter):
    """
    Formatter with colored output for different log levels.
    """

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[1;31m', # Bold Red
    }
    RESET = '\033[0m'

    SYMBOLS = {
        'DEBUG': '🔍',
        'INFO': '✓',
        'WARNING': '⚠️',
        'ERROR': '✗',
        'CRITICAL': '🚨',
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        if self.use_colors:
            levelname = record.levelname
            color = self.COLORS.get(levelname, '')
            symbol = self.SYMBOLS.get(levelname, '')
            record.levelname_colored = f"{color}{symbol} {levelname}{self.RESET}"
        else:
            record.levelname_colored = record.levelname

        return super().format(record)
