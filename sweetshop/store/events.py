"""In-process signal bus used to fan session events out to independent stores."""

from collections import defaultdict
from typing import Any, Callable, Dict, List

from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

# Published on sign-out; every store holding per-user data resets on it.
USER_CLEARED = "user/clearUser"

Handler = Callable[[Any], None]


class SignalBus:

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, signal: str, handler: Handler) -> Callable[[], None]:
        """Register a handler for a signal.

        Args:
            signal: Signal name, e.g. USER_CLEARED
            handler: Called with the published payload

        Returns:
            A function that removes the subscription
        """
        self._handlers[signal].append(handler)

        def unsubscribe():
            if handler in self._handlers[signal]:
                self._handlers[signal].remove(handler)

        return unsubscribe

    def publish(self, signal: str, payload: Any = None) -> int:
        """Deliver a signal to every subscriber in subscription order.

        A failing handler is logged and does not stop delivery to the others.

        Returns:
            Number of handlers that completed
        """
        delivered = 0
        for handler in list(self._handlers.get(signal, [])):
            try:
                handler(payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Handler for {signal} failed: {e}")
        return delivered

    def subscriber_count(self, signal: str) -> int:
        return len(self._handlers.get(signal, []))
