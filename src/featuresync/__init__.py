"""
featuresync - Multi-feature data synchronization engine

Synchronizes independent data domains ("features") with a remote store in
one coordinated, rate-limited network exchange per cycle.
"""

__version__ = "0.1.0"

from .models import Feature, Syncable, SyncResult
from .errors import (
    SyncError,
    NoResponseBodyError,
    UnexpectedStatusCodeError,
    UnexpectedResponseBodyError,
    MissingFeatureError,
    InvalidDataInResponseError,
    NoFeaturesSpecifiedError,
    RequestEncodingError,
    LocalChangesError,
    TransportError,
    SyncTimeoutError,
    ProviderRegistrationError,
)
from .providers import DataProvider, JsonFileProvider
from .transport import Endpoints, HTTPMethod, HTTPResult, RemoteAPI, HttpxRemoteAPI
from .event_bus import EventBus
from .events import SyncStartRequestedEvent, SyncCompletedEvent, SyncFailedEvent
from .scheduler import SyncScheduler
from .worker import SyncWorker
from .engine import SyncEngine
from .config import SyncConfig, load_config

__all__ = [
    "Feature",
    "Syncable",
    "SyncResult",
    "SyncError",
    "NoResponseBodyError",
    "UnexpectedStatusCodeError",
    "UnexpectedResponseBodyError",
    "MissingFeatureError",
    "InvalidDataInResponseError",
    "NoFeaturesSpecifiedError",
    "RequestEncodingError",
    "LocalChangesError",
    "TransportError",
    "SyncTimeoutError",
    "ProviderRegistrationError",
    "DataProvider",
    "JsonFileProvider",
    "Endpoints",
    "HTTPMethod",
    "HTTPResult",
    "RemoteAPI",
    "HttpxRemoteAPI",
    "EventBus",
    "SyncStartRequestedEvent",
    "SyncCompletedEvent",
    "SyncFailedEvent",
    "SyncScheduler",
    "SyncWorker",
    "SyncEngine",
    "SyncConfig",
    "load_config",
]
