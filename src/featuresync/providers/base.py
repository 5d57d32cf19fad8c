"""
Data provider contract.

Every data domain that participates in sync implements DataProvider. The
engine only reads `feature` and `last_sync_timestamp` and awaits `changes()`;
the provider owns its storage, change tracking and cursor persistence.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import Feature, Syncable, SyncResult


class DataProvider(ABC):
    """
    Data source for objects to be synced with the server.

    Implementations must provide:
    - feature: Feature supported by this provider
    - last_sync_timestamp: Cursor from the last successful sync
    - changes(since): Local changes to send
    """

    @property
    @abstractmethod
    def feature(self) -> Feature:
        """Feature that is supported by this provider."""
        pass

    @property
    @abstractmethod
    def last_sync_timestamp(self) -> Optional[str]:
        """
        Server timestamp of the last successful sync of this feature.

        It is an identifier of the last sync rather than a date and must not
        be used for comparing times.
        """
        pass

    @abstractmethod
    async def changes(self, since: Optional[str]) -> List[Syncable]:
        """
        Return data to be synced for `feature` based on `since`.

        If `since` is None, include all objects.
        """
        pass

    async def handle_result(self, result: SyncResult) -> None:
        """
        Apply the outcome of a successful cycle.

        Called by the engine before the result batch is published. Providers
        that persist their cursor or merge received changes override this.
        """
        return None


__all__ = ['DataProvider']
