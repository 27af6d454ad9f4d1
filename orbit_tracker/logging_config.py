"""
Logging Configuration

Library modules only create loggers (``logging.getLogger(__name__)``) and
never install handlers. Applications such as ``demo.py`` call
``configure_logging`` once at startup; the level defaults to LOG_LEVEL from
the environment.

Usage:
    from orbit_tracker.logging_config import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
    logger.info("Tracking ISS (ZARYA)")
    logger.warning("Element set is 9.2 days from epoch")
"""

import logging
import sys
from typing import Iterable, Optional, Union

from orbit_tracker.config import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Connection-pool chatter from the TLE providers' HTTP client
NOISY_LOGGERS = ("urllib3",)


def configure_logging(level: Optional[Union[int, str]] = None,
                      log_file: Optional[str] = None,
                      quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    """
    Install console (and optionally file) handlers on the root logger.

    Calling it again replaces the previous handlers.

    Parameters
    ----------
    level : int or str, optional
        Logging level (e.g. logging.DEBUG or "DEBUG"). Defaults to LOG_LEVEL.
    log_file : str, optional
        Also append log records to this file.
    quiet : iterable of str
        Third-party loggers held at WARNING regardless of ``level``.
    """
    if level is None:
        level = config.LOG_LEVEL

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` (typically ``__name__``)."""
    return logging.getLogger(name)
