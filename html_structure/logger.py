"""
Logging configuration for the HTML structure analyzer.
"""

import logging
import os
import sys
from typing import Optional, Union

# Environment overrides read by setup_logger_from_env() (the CLI loads .env first)
LOG_LEVEL_ENV = "HTML_STRUCTURE_LOG_LEVEL"
LOG_FILE_ENV = "HTML_STRUCTURE_LOG_FILE"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "html_structure",
    level: int = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up and return a logger instance.

    Calling this again on an already configured logger only adjusts the
    level, so the analyzer can change verbosity at runtime without stacking
    duplicate handlers.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional file path for logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    logger.setLevel(level)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def parse_level(value: Union[str, int, None], default: int = logging.INFO) -> int:
    """Turn 'debug' / 'WARNING' / '10' into a logging level, falling back to default."""
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    value = value.strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else default


def setup_logger_from_env(default_level: int = logging.INFO) -> logging.Logger:
    """Configure the package logger from HTML_STRUCTURE_LOG_LEVEL / HTML_STRUCTURE_LOG_FILE."""
    level = parse_level(os.getenv(LOG_LEVEL_ENV), default_level)
    return setup_logger(level=level, log_file=os.getenv(LOG_FILE_ENV) or None)


# Default logger instance, created once at import time
logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.

    Child loggers (e.g. "html_structure.interest_detector") inherit the
    package logger's handlers and level, and their name tells which pipeline
    stage produced each message.

    Args:
        module_name: Name of the module (e.g., 'tree_builder', 'main')

    Returns:
        Child logger instance
    """
    return logging.getLogger(f"html_structure.{module_name}")
