"""Session-lifetime key/value cache.

Values are stored JSON-encoded, the way browser session storage keeps
strings, so callers always get back a fresh copy.
"""

import json
from typing import Any, Callable, Dict, Optional

from sweetshop.util.logger import get_logger

logger = get_logger(__name__)


class SessionCache:

    def __init__(self):
        self._store: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding unreadable cache entry {key}")
            self._store.pop(key, None)
            return None

    def set(self, key: str, value: Any):
        self._store[key] = json.dumps(value, default=str)

    def remove(self, key: str):
        self._store.pop(key, None)

    def clear(self):
        self._store.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value, or call ``loader`` and cache its result."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value)
        return value
