"""Logging configuration and utilities for mvpastats."""

import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Optional

import numpy as np
from colorama import Fore, Style, init


# Initialize colorama for cross-platform color support
init(autoreset=True)


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name of each record."""

    COLORS = {
        'DEBUG': Fore.BLUE,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        levelname = record.levelname
        record.levelname = f"{self.COLORS.get(levelname, '')}{levelname}{Style.RESET_ALL}"

        try:
            return super().format(record)
        finally:
            # the record is shared with the other handlers
            record.levelname = levelname


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``mvpastats`` logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        verbose: If True, set log level to DEBUG (per-call details such as
            partition counts and cache misses), otherwise INFO
        log_file: Optional path to a log file, written without colors

    Returns:
        The ``mvpastats`` logger
    """
    level = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger('mvpastats')
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter('%(levelname)s - %(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


@contextmanager
def timer(logger: logging.Logger, message: str, level: int = logging.DEBUG):
    """Log the start and the duration of a block.

    Args:
        logger: Logger instance
        message: Description of the operation being timed
        level: Logging level of both messages

    Example:
        >>> logger = setup_logging(verbose=True)
        >>> with timer(logger, "F stat"):
        ...     compute_statistic(ds, "F")
        DEBUG - Starting: F stat
        DEBUG - Completed: F stat (0.01s)
    """
    start = time.perf_counter()
    logger.log(level, f"Starting: {message}")

    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.log(level, f"Completed: {message} ({elapsed:.2f}s)")


def _format_value(value: Any) -> str:
    """Short description of an option value for log output."""
    if isinstance(value, np.ndarray):
        return f"array(shape={value.shape})"
    if hasattr(value, "npartitions"):
        return f"{value.npartitions} partitions"
    if callable(value):
        return getattr(value, "__name__", repr(value))
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def log_config(
    logger: logging.Logger,
    config: Any,
    title: str = "Configuration",
    level: int = logging.INFO,
) -> None:
    """Log the options of a configuration, one per line.

    Args:
        logger: Logger instance
        config: Configuration dictionary or dataclass. Arrays are logged
            by shape, functions by name.
        title: Title for the configuration section
        level: Logging level of all lines
    """
    if is_dataclass(config) and not isinstance(config, type):
        # keep nested dataclasses (partitions) intact
        config = {f.name: getattr(config, f.name) for f in fields(config)}

    log_section(logger, title, level)

    for key, value in config.items():
        if isinstance(value, dict):
            logger.log(level, f"{key}:")
            for subkey, subvalue in value.items():
                logger.log(level, f"  {subkey}: {_format_value(subvalue)}")
        else:
            logger.log(level, f"{key}: {_format_value(value)}")

    logger.log(level, "=" * 60)


def log_section(logger: logging.Logger, title: str, level: int = logging.INFO) -> None:
    """Log a section header."""
    logger.log(level, "=" * 60)
    logger.log(level, title)
    logger.log(level, "=" * 60)
