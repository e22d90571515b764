"""
Centralized logging configuration.

Provides bootstrap_logging() for entry points (tests, invoke tasks, scripts)
so that the envelope package logs consistently, using Python's native INI
format when a logging.ini is present.
"""

import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import Optional

VALID_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Loggers whose level follows LOG_LEVEL even when logging.ini pins them
PACKAGE_LOGGERS = [
    'response_envelope',
]

_bootstrapped = False


def _find_logging_config() -> Optional[Path]:
    """
    Find the logging configuration file.

    Looks for LOGGING_CONFIG, then logging.ini in the current working directory
    or a config/ subdirectory.

    Returns:
        Path to logging configuration file, or None if not found.
    """
    explicit = os.environ.get('LOGGING_CONFIG')
    if explicit and Path(explicit).exists():
        return Path(explicit)

    for candidate in (Path('logging.ini'), Path('config/logging.ini')):
        if candidate.exists():
            return candidate

    return None


def _resolve_level() -> str:
    """Read LOG_LEVEL, falling back to INFO for missing or invalid values."""
    log_level = os.environ.get('LOG_LEVEL', 'INFO').strip().upper()
    if log_level not in VALID_LEVELS:
        print(f"Warning: Invalid LOG_LEVEL '{log_level}', using INFO", file=sys.stderr)
        log_level = 'INFO'
    os.environ['LOG_LEVEL'] = log_level
    return log_level


def _basic_config(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(levelname)s: %(name)s: %(message)s',
        stream=sys.stderr
    )


def bootstrap_logging(name: Optional[str] = None, force: bool = False) -> None:
    """
    Bootstrap logging configuration.

    1. Resolves LOG_LEVEL (default INFO)
    2. Loads logging.ini with logging.config.fileConfig() when present
    3. Applies the LOG_LEVEL override to the root logger, stream handlers and
       the package loggers

    Repeated calls are no-ops unless force is set.

    Args:
        name: Optional logger name to report the configuration on
        force: Re-run even if logging was already bootstrapped
    """
    global _bootstrapped
    if _bootstrapped and not force:
        return

    level = _resolve_level()
    config_path = _find_logging_config()

    if config_path is None:
        _basic_config(level)
    else:
        try:
            logging.config.fileConfig(str(config_path), disable_existing_loggers=False)
        except (OSError, KeyError, ValueError) as e:
            print(f"Warning: Failed to load logging config from {config_path}: {e}", file=sys.stderr)
            print("Using basic logging configuration", file=sys.stderr)
            _basic_config(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level))
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setLevel(getattr(logging, level))
    for logger_name in PACKAGE_LOGGERS:
        logging.getLogger(logger_name).setLevel(getattr(logging, level))

    _bootstrapped = True
    logging.getLogger(name or __name__).debug(
        f"Logging configured at {level} from {config_path or 'basicConfig'}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name, ensuring logging is bootstrapped.

    Args:
        name: Name for the logger

    Returns:
        Configured logger instance
    """
    bootstrap_logging()
    return logging.getLogger(name)
