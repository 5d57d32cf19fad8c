"""
Event type definitions for sync engine notifications.

- SyncStartRequestedEvent: The trigger aggregator asks for a sync cycle
- SyncCompletedEvent: A cycle finished; carries the per-feature result batch
- SyncFailedEvent: A cycle failed; carries the typed error

Subscribers observing only sync.completed cannot tell "nothing changed" from
"cycle failed"; failures are published separately as sync.failed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .errors import describe
from .models import SyncResult


@dataclass
class SyncStartRequestedEvent:
    """Event emitted when a debounced trigger channel fires."""
    source: str  # sync_trigger | app_lifecycle
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "sync.start_requested"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "source": self.source,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class SyncCompletedEvent:
    """Event emitted once per successful sync cycle."""
    results: Tuple[SyncResult, ...]
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "sync.completed"
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "results": [r.to_dict() for r in self.results],
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "metadata": self.metadata or {},
        }


@dataclass
class SyncFailedEvent:
    """Event emitted when a sync cycle fails."""
    error: BaseException
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "sync.failed"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            **describe(self.error),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


__all__ = ['SyncStartRequestedEvent', 'SyncCompletedEvent', 'SyncFailedEvent']
