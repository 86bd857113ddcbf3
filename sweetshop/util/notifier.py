"""Transient user notifications (toasts) raised by storefront handlers."""

from datetime import datetime, timezone
from typing import Callable, List, Literal, Optional
from pydantic import BaseModel, Field

from sweetshop.exceptions import ProjectError
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

NoticeLevel = Literal["success", "info", "warning", "error"]


class Notice(BaseModel):
    level: NoticeLevel
    message: str
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """Collects notices for the presentation layer and mirrors them to the log.

    Notices are transient: only the most recent ``max_notices`` are kept.
    """

    def __init__(self, max_notices: int = 50):
        self.max_notices = max_notices
        self._notices: List[Notice] = []
        self._listeners: List[Callable[[Notice], None]] = []

    @property
    def notices(self) -> List[Notice]:
        return list(self._notices)

    @property
    def last(self) -> Optional[Notice]:
        return self._notices[-1] if self._notices else None

    def subscribe(self, listener: Callable[[Notice], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self._notices.append(notice)
        del self._notices[:-self.max_notices]
        for listener in list(self._listeners):
            listener(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.notify("success", message)

    def info(self, message: str) -> Notice:
        return self.notify("info", message)

    def warning(self, message: str) -> Notice:
        return self.notify("warning", message)

    def error(self, message: str) -> Notice:
        return self.notify("error", message)

    def report(self, error: Exception, fallback: str = "An error occurred. Please try again.") -> Notice:
        """Show an error notice for a failure caught at a handler boundary.

        Storefront errors carry their own user message; anything else gets the fallback.
        """
        if isinstance(error, ProjectError):
            logger.warning(f"{error.code}: {error.message}")
            return self.error(error.user_message)
        logger.error(f"Unexpected error: {error}")
        return self.error(fallback)

    def clear(self):
        self._notices.clear()
