"""Decorator for user-facing handlers.

Handlers are the outermost layer: any failure becomes a transient error
notice and the handler returns its default instead of raising.
"""

import copy
import functools
from typing import Any, Optional

from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


def user_action(failure_message: str = "An error occurred. Please try again.",
                success_message: Optional[str] = None, default: Any = None):
    """Wrap a handler method of an object that has a ``notifier`` attribute.

    Args:
        failure_message: Notice shown for errors that carry no user message of their own
        success_message: Optional notice shown when the handler returns normally
        default: Value returned when the handler fails
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                result = func(self, *args, **kwargs)
            except Exception as e:
                logger.error(f"{func.__name__} failed: {e}")
                self.notifier.report(e, failure_message)
                return copy.copy(default)
            if success_message:
                self.notifier.success(success_message)
            return result
        return wrapper
    return decorator
