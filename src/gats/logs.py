import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "gats"


def get_log_dir() -> Path:
    return Path.home() / ".local" / "share" / "gats" / "logs"


def setup_logging(level: Optional[str] = None, log_file: bool = True) -> logging.Logger:
    """Set up logging for the gats package with environment-based levels."""
    env_level = (level or os.getenv("GATS_LOG_LEVEL", "")).upper()
    is_debug = os.getenv("GATS_DEBUG", "").lower() in ("1", "true", "yes")

    # Default to WARNING so normal CLI use stays quiet
    if is_debug:
        console_level = logging.DEBUG
    elif env_level:
        console_level = getattr(logging, env_level, logging.WARNING)
    else:
        console_level = logging.WARNING

    log_format = "[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    console_formatter = logging.Formatter(
        "%(levelname)-8s [%(name)s] %(message)s" if is_debug
        else "%(levelname)s: %(message)s"
    )

    # Console goes to stderr so command output stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(console_level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # Logger accepts all, handlers filter
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = get_log_dir()
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir / "gats.log")
        except OSError as e:
            logger.warning("File logging disabled: %s", e)
        else:
            file_handler.setFormatter(logging.Formatter(log_format, date_format))
            file_handler.setLevel(logging.DEBUG)
            logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for a specific module."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)
