"""
SyncEngine - Application-facing facade over the sync worker.

Owns the fixed set of data providers, starts cycles in the background and
publishes their outcome:
- sync.completed: one SyncCompletedEvent per successful cycle
- sync.failed: one SyncFailedEvent per failed cycle

Usage:
    engine = SyncEngine(
        data_providers=[bookmarks_provider, settings_provider],
        api=HttpxRemoteAPI(token=token),
        endpoints=Endpoints("https://sync.example.com"),
    )
    engine.subscribe_results(lambda event: display(event.results))
    engine.attach(SyncScheduler())
    engine.start_sync()
"""

from typing import Callable, Iterable, List, Optional, Tuple
import asyncio
import logging

from .errors import ProviderRegistrationError, SyncError
from .event_bus import EventBus
from .events import SyncCompletedEvent, SyncFailedEvent, SyncStartRequestedEvent
from .models import SyncResult
from .providers.base import DataProvider
from .scheduler import SyncScheduler
from .transport import Endpoints, RemoteAPI
from .worker import SyncWorker

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Starts sync cycles and publishes their results.

    Only one cycle runs at a time. start_sync() while a cycle is in flight
    marks a single follow-up cycle as pending instead of starting another;
    any number of such calls collapse into that one follow-up.

    Must be used from within a running asyncio event loop.
    """

    def __init__(self,
                 data_providers: Iterable[DataProvider],
                 api: RemoteAPI,
                 endpoints: Endpoints,
                 event_bus: Optional[EventBus] = None):
        """
        Args:
            data_providers: Providers to sync; fixed for the engine's lifetime
            api: Network transport
            endpoints: Sync server URLs
            event_bus: Bus for result and failure events (default: private bus)

        Raises:
            ProviderRegistrationError: Two providers serve the same feature
        """
        self.data_providers: Tuple[DataProvider, ...] = tuple(data_providers)
        self.worker = SyncWorker(self.data_providers, api, endpoints)
        self.event_bus = event_bus or EventBus()
        self.last_error: Optional[BaseException] = None
        self._task: Optional[asyncio.Task] = None
        self._pending = False
        self._scheduler: Optional[SyncScheduler] = None

    def register_provider(self, provider: DataProvider) -> None:
        """Providers are fixed at construction; always raises."""
        raise ProviderRegistrationError(
            f"Cannot register provider for '{provider.feature.name}' after the engine was created"
        )

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def start_sync(self) -> bool:
        """
        Trigger a sync cycle without blocking.

        Returns:
            True if a new cycle was started, False if the request was absorbed
            by the cycle currently in flight
        """
        if self.in_flight:
            self._pending = True
            logger.debug("Sync already in flight, follow-up cycle marked pending")
            return False

        self._pending = False
        self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    async def wait_idle(self) -> None:
        """Wait until no cycle is running or pending."""
        while self.in_flight:
            await asyncio.wait({self._task})

    def attach(self, scheduler: SyncScheduler) -> None:
        """Start a cycle on every start signal from `scheduler`."""
        if self._scheduler is not None:
            self._scheduler.unsubscribe(self._on_start_requested)
        self._scheduler = scheduler
        scheduler.subscribe(self._on_start_requested)

    def detach(self) -> None:
        if self._scheduler is not None:
            self._scheduler.unsubscribe(self._on_start_requested)
            self._scheduler = None

    def subscribe_results(self, callback: Callable[[SyncCompletedEvent], None]) -> None:
        self.event_bus.subscribe(SyncCompletedEvent.event_type, callback)

    def subscribe_errors(self, callback: Callable[[SyncFailedEvent], None]) -> None:
        self.event_bus.subscribe(SyncFailedEvent.event_type, callback)

    def _on_start_requested(self, event: SyncStartRequestedEvent) -> None:
        logger.debug(f"Start signal from {event.source}")
        self.start_sync()

    async def _run(self) -> None:
        while True:
            self._pending = False
            await self._run_cycle()
            if not self._pending:
                break
            logger.debug("Running pending follow-up cycle")

    async def _run_cycle(self) -> None:
        try:
            results = await self.worker.sync()
            await self._dispatch_results(results)
        except SyncError as e:
            self._fail(e)
            logger.warning(f"Sync cycle failed: {e}")
        except Exception as e:
            self._fail(e)
            logger.error(f"Unexpected error during sync cycle: {e}", exc_info=True)
        else:
            self.last_error = None
            logger.info(f"Sync cycle completed for {len(results)} features")
            self.event_bus.publish(SyncCompletedEvent(results=tuple(results)))

    async def _dispatch_results(self, results: List[SyncResult]) -> None:
        """
        Hand each result to its provider.

        Every handle_result call runs to completion before the first failure
        is raised, so no provider is still writing once the cycle has ended.
        Providers that succeeded keep their new cursor even when the cycle is
        reported failed.
        """
        providers = {provider.feature: provider for provider in self.data_providers}
        outcomes = await asyncio.gather(
            *(providers[r.feature].handle_result(r) for r in results),
            return_exceptions=True,
        )
        for result, outcome in zip(results, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, Exception):
                    logger.warning(f"Provider for {result.feature.name} failed to apply its result: {outcome}")
                raise outcome

    def _fail(self, error: BaseException) -> None:
        self.last_error = error
        self.event_bus.publish(SyncFailedEvent(error=error))


__all__ = ['SyncEngine']
