"""
Centralized logging configuration for pyenv-uv.

Every operator-facing message goes through the ``pyenv_uv`` logger and ends
up on the diagnostic stream (stderr), prefixed the same way the shell
commands of the host version manager prefix theirs.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = "pyenv_uv"
CONSOLE_FORMAT = "pyenv-uv: %(levelname_colored)s%(message)s"

# Global logger instance
_logger: Optional[logging.Logger] = None


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        verbose: Enable verbose (DEBUG) output
        quiet: Only warnings and errors on the console
        propagate: Allow log propagation (useful for testing)

    Returns:
        Configured logger instance
    """
    global _logger

    if verbose or os.environ.get("PYENV_UV_DEBUG", "0") == "1":
        effective_level = "DEBUG"
    elif quiet:
        effective_level = "WARNING"
    else:
        effective_level = level.upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, effective_level))
    logger.handlers.clear()

    # Warnings must stay visible even in quiet mode
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, effective_level))
    console_handler.setFormatter(
        ColoredFormatter(CONSOLE_FORMAT, use_colors=sys.stderr.isatty())
    )
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)
        if effective_level != "DEBUG":
            # File gets everything; console filtering is done by its handler
            logger.setLevel(logging.DEBUG)

    logger.propagate = propagate

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """
    Get the configured logger instance.

    If logging hasn't been set up, initializes with defaults.
    """
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger


class ColoredFormatter(logging.Formatter):
    """
    Formatter producing ``warning: ``/``error: `` prefixes, coloured on a TTY.
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[1;31m',
    }
    RESET = '\033[0m'

    PREFIXES = {
        'DEBUG': 'debug: ',
        'INFO': '',
        'WARNING': 'warning: ',
        'ERROR': 'error: ',
        'CRITICAL': 'error: ',
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        prefix = self.PREFIXES.get(record.levelname, '')
        if self.use_colors and prefix:
            color = self.COLORS.get(record.levelname, '')
            record.levelname_colored = f"{color}{prefix}{self.RESET}"
        else:
            record.levelname_colored = prefix
        return super().format(record)
