"""Utility functions package."""

from .logger import get_logger
from .notifier import Notifier, Notice
from .session_cache import SessionCache
from .handler_wrapper import user_action

__all__ = [
    "get_logger",
    "Notifier",
    "Notice",
    "SessionCache",
    "user_action",
]
