import copy
import logging
from threading import Lock
from typing import List

from pixel_tracker.models.event import TrackingEvent


logger = logging.getLogger(__name__)


class EventStore:
    """Append-only in-memory sequence of captured tracking events.

    Events are kept for the lifetime of the process; there is no eviction,
    size cap or persistence.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._events: List[TrackingEvent] = []

    def append(self, event: TrackingEvent) -> None:
        stored = copy.deepcopy(event)
        with self._lock:
            self._events.append(stored)
            count = len(self._events)
        logger.debug("Stored tracking event #%d for %s", count, event.path)

    def snapshot(self) -> List[TrackingEvent]:
        """Return deep copies of all stored events in append order."""

        with self._lock:
            events = list(self._events)
        return [copy.deepcopy(event) for event in events]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
