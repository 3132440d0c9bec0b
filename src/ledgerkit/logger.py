"""Logging configuration for ledgerkit.

Sets up logging to the console and, when a log directory is configured, to a
file with date-based naming.
"""

import logging
from datetime import date
from typing import Optional

from ledgerkit.config import LedgerConfig

LOGGER_NAME = "ledgerkit"


def setup_logging(config: LedgerConfig) -> logging.Logger:
    """Set up application logging with console and optional file handlers.

    Args:
        config: Application configuration containing log settings.

    Returns:
        Configured logger instance.
    """
    level = config.log_level.upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Clear any existing handlers (in case this is called multiple times)
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter("%(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if config.log_dir is not None:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file_path = config.log_dir / f"ledgerkit-{date.today().isoformat()}.log"
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the application logger, or a child of it.

    Args:
        name: Optional child name, e.g. ``"statement"``.

    Returns:
        The ledgerkit logger instance.
    """
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
