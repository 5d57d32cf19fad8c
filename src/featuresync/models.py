"""
Core data model shared by the sync engine and its data providers.

- Feature: identifies one independently-synced data domain (e.g. "bookmarks")
- Syncable: one opaque changed record, a JSON object the engine never interprets
- SyncResult: per-feature outcome of a completed sync cycle
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Feature:
    """
    Identifier of a synced data domain.

    Equality and hashing are by name, so features can be used as map keys.
    The name is also the top-level key in request and response bodies.
    """
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Feature name must be a non-empty string")

    def __str__(self) -> str:
        return self.name


@dataclass
class Syncable:
    """
    Data model passed to and received from the sync server.

    Payloads are expected to be encrypted by the data provider as needed.
    """
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return the payload for JSON serialization."""
        return self.payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Syncable':
        """Wrap a decoded JSON object."""
        return cls(payload=data)


@dataclass(frozen=True)
class SyncResult:
    """
    Outcome of one sync cycle for a single feature.

    Attributes:
        feature: Feature the result belongs to
        sent: Local changes transmitted in this cycle
        received: Changes returned by the server for this feature
        last_sync_timestamp: Server-issued cursor to pass back on the next cycle.
                             Opaque; never compared as a date.
    """
    feature: Feature
    sent: Tuple[Syncable, ...] = ()
    received: Tuple[Syncable, ...] = ()
    last_sync_timestamp: Optional[str] = None

    @classmethod
    def create(cls,
               feature: Feature,
               sent: Sequence[Syncable] = (),
               received: Sequence[Syncable] = (),
               last_sync_timestamp: Optional[str] = None) -> 'SyncResult':
        return cls(
            feature=feature,
            sent=tuple(sent),
            received=tuple(received),
            last_sync_timestamp=last_sync_timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "feature": self.feature.name,
            "sent": [s.to_dict() for s in self.sent],
            "received": [s.to_dict() for s in self.received],
            "last_sync_timestamp": self.last_sync_timestamp,
        }


__all__ = ['Feature', 'Syncable', 'SyncResult']
