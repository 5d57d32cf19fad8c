"""
SyncScheduler - Merges change and lifecycle signals into rate-limited sync starts.

Two independent channels feed one output:
- sync trigger (notify_data_changed, request_sync_immediately): 1 second window
- app lifecycle (notify_app_lifecycle_event): 600 second window

The first call on a channel arms a timer; further calls within the window are
absorbed. When the timer fires, exactly one SyncStartRequestedEvent is
published on the scheduler's event bus. The scheduler never runs a sync
itself; the engine subscribes to its events.

Usage:
    scheduler = SyncScheduler()
    engine.attach(scheduler)

    scheduler.notify_app_lifecycle_event()   # app became active
    scheduler.notify_data_changed()          # local data was modified
"""

from typing import Any, Callable, Optional
import asyncio
import logging

from .event_bus import EventBus
from .events import SyncStartRequestedEvent

logger = logging.getLogger(__name__)

IMMEDIATE_SYNC_DEBOUNCE_INTERVAL = 1.0
APP_LIFECYCLE_EVENTS_DEBOUNCE_INTERVAL = 600.0


class Debouncer:
    """
    Collapses bursts of calls into one callback per window.

    The timer is armed on the first call of a burst and is not re-armed by
    later calls, so a steady stream of calls yields one callback per interval.
    Safe to call from any thread once bound to a loop.
    """

    def __init__(self,
                 interval: float,
                 callback: Callable[[], Any],
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 name: str = "debouncer"):
        if interval < 0:
            raise ValueError("Debounce interval must be non-negative")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._closed = False

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        """Register a call; schedules the callback if no timer is pending."""
        if self._closed:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._loop.call_soon_threadsafe(self._arm)

    def _arm(self) -> None:
        if self._closed:
            return
        if self._handle is not None:
            logger.debug(f"{self.name}: call absorbed, timer already armed")
            return
        self._handle = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._closed:
            return
        logger.debug(f"{self.name}: window elapsed, emitting")
        self.callback()

    def cancel(self) -> None:
        """Drop a pending emission."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def close(self) -> None:
        """Cancel the timer and ignore calls still queued or made later."""
        self._closed = True
        self.cancel()


class SyncScheduler:
    """Trigger aggregator publishing debounced 'sync.start_requested' events."""

    def __init__(self,
                 event_bus: Optional[EventBus] = None,
                 immediate_sync_interval: float = IMMEDIATE_SYNC_DEBOUNCE_INTERVAL,
                 app_lifecycle_interval: float = APP_LIFECYCLE_EVENTS_DEBOUNCE_INTERVAL,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.event_bus = event_bus or EventBus()
        self._sync_trigger = Debouncer(
            immediate_sync_interval,
            lambda: self._emit("sync_trigger"),
            loop=loop,
            name="sync_trigger",
        )
        self._app_lifecycle = Debouncer(
            app_lifecycle_interval,
            lambda: self._emit("app_lifecycle"),
            loop=loop,
            name="app_lifecycle",
        )

    def notify_data_changed(self) -> None:
        """Local data changed and should be synced soon."""
        self._sync_trigger.trigger()

    def notify_app_lifecycle_event(self) -> None:
        """The app was launched or became active."""
        self._app_lifecycle.trigger()

    def request_sync_immediately(self) -> None:
        """Explicit user request to sync."""
        self._sync_trigger.trigger()

    def subscribe(self, callback: Callable[[SyncStartRequestedEvent], None]) -> None:
        """Receive start signals."""
        self.event_bus.subscribe(SyncStartRequestedEvent.event_type, callback)

    def unsubscribe(self, callback: Callable[[SyncStartRequestedEvent], None]) -> bool:
        return self.event_bus.unsubscribe(SyncStartRequestedEvent.event_type, callback)

    def close(self) -> None:
        """Cancel pending timers; no further signals are emitted."""
        self._sync_trigger.close()
        self._app_lifecycle.close()

    def _emit(self, source: str) -> None:
        logger.debug(f"Start sync requested by {source}")
        self.event_bus.publish(SyncStartRequestedEvent(source=source))


__all__ = [
    'SyncScheduler',
    'Debouncer',
    'IMMEDIATE_SYNC_DEBOUNCE_INTERVAL',
    'APP_LIFECYCLE_EVENTS_DEBOUNCE_INTERVAL',
]
