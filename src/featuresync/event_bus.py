"""
EventBus for in-process pub/sub event streaming.

Carries start signals from the scheduler to the engine, and result batches
and failures from the engine to the rest of the application.

Usage:
    bus = EventBus()

    # Subscribe to specific event types
    bus.subscribe('sync.completed', lambda event: store(event.results))
    bus.subscribe('sync.failed', report_failure)

    # Subscribe to all events
    bus.subscribe('*', lambda event: log_event(event))

    # Publish events
    from featuresync.events import SyncStartRequestedEvent
    bus.publish(SyncStartRequestedEvent(source="sync_trigger"))
"""

from typing import Callable, Dict, List, Any
from threading import Lock
import logging

logger = logging.getLogger(__name__)

WILDCARD = '*'

Subscriber = Callable[[Any], None]


class EventBus:
    """
    In-process pub/sub keyed by `event.event_type`.

    Callbacks run synchronously in the publishing thread, specific
    subscribers before WILDCARD ones. A callback that raises is logged and
    skipped.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: str, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(callback)
        logger.debug(f"Subscribed to {event_type}: {getattr(callback, '__name__', 'callable')}")

    def unsubscribe(self, event_type: str, callback: Subscriber) -> bool:
        """Returns False if `callback` was not subscribed to `event_type`."""
        with self._lock:
            callbacks = self._subscribers.get(event_type)
            if not callbacks or callback not in callbacks:
                return False
            callbacks.remove(callback)
            if not callbacks:
                del self._subscribers[event_type]
        logger.debug(f"Unsubscribed from {event_type}")
        return True

    def publish(self, event: Any) -> None:
        event_type = getattr(event, 'event_type', None)
        if event_type is None:
            logger.warning(f"Dropping {type(event).__name__}: no event_type")
            return

        with self._lock:
            callbacks = [
                *self._subscribers.get(event_type, ()),
                *self._subscribers.get(WILDCARD, ()),
            ]

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Subscriber failed on {event_type}: {e}", exc_info=True)

        logger.debug(f"Published {event_type} to {len(callbacks)} subscribers")


__all__ = ['EventBus', 'WILDCARD']
