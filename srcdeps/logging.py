"""Logging helpers shared by all srcdeps components."""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

_ROOT_LOGGER_NAME = "srcdeps"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the ``srcdeps`` namespace.

    Parameters
    ----------
    name : Optional[str]
        Component name, e.g. ``"Maker"``. If None, the root ``srcdeps`` logger is returned.

    Returns
    -------
    logging.Logger
        The logger named ``srcdeps.<name>``.
    """
    if not name:
        return logging.getLogger(_ROOT_LOGGER_NAME)
    if name.startswith(_ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Install a stream handler on the ``srcdeps`` logger.

    Calling this more than once only updates the level.

    Parameters
    ----------
    level : Optional[Union[str, int]]
        Log level. Defaults to the ``SRCDEPS_LOG_LEVEL`` environment variable, or ``INFO``.

    Returns
    -------
    logging.Logger
        The configured root ``srcdeps`` logger.
    """
    global _configured

    if level is None:
        level = os.environ.get("SRCDEPS_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    logger.setLevel(level)
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True
    return logger
