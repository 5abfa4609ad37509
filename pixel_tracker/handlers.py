import copy
import logging
from threading import Lock
from typing import Callable, List

from pixel_tracker.models.event import TrackingEvent


logger = logging.getLogger(__name__)

EventHandler = Callable[[TrackingEvent], None]


class HandlerChain:
    """Ordered callbacks run once per captured event."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._handlers: List[EventHandler] = []

    def register(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def dispatch(self, event: TrackingEvent) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(copy.deepcopy(event))
            except Exception:
                logger.exception(
                    "Tracking handler %s failed for %s",
                    getattr(handler, "__name__", repr(handler)),
                    event.path,
                )

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)
