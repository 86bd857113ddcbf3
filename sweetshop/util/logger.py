"""Logging utility for the storefront."""

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER = "sweetshop"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root.addHandler(handler)
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        root.setLevel(getattr(logging, level, logging.INFO))
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a storefront logger.

    Module loggers live under the ``sweetshop`` logger and share its stdout
    handler, so LOG_LEVEL applies to all of them.

    Args:
        name: Logger name, typically __name__ of the calling module
    """
    root = _configure_root()
    if not name or name == ROOT_LOGGER:
        return root
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
