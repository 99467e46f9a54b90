"""Logging utilities with colored console output."""
import logging
import sys
from typing import Any, Dict, Optional
from colorama import Fore, Style, init

# Initialize colorama for cross-platform colored output
init(autoreset=True)

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name for console output."""

    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{Style.RESET_ALL}"

        result = super().format(record)

        # Other handlers share the record
        record.levelname = levelname

        return result


def setup_logger(
    name: str,
    level: str = "INFO",
    console: bool = True,
    log_file: Optional[str] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Setup logger with optional console and file output.

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console: Enable console output
        log_file: Optional file path for log output
        fmt: Log record format

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ColoredFormatter(fmt=fmt, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def setup_logger_from_config(name: str, logging_config: Optional[Dict[str, Any]] = None,
                             level: Optional[str] = None) -> logging.Logger:
    """
    Setup logger from the 'logging' section of the configuration.

    Args:
        name: Logger name
        logging_config: Dictionary with level, file, console and format keys
        level: Level overriding the configured one

    Returns:
        Configured logger instance
    """
    logging_config = logging_config or {}
    return setup_logger(
        name,
        level=level or logging_config.get('level', 'INFO'),
        console=logging_config.get('console', True),
        log_file=logging_config.get('file'),
        fmt=logging_config.get('format', DEFAULT_FORMAT),
    )
