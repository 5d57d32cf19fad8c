"""
SyncWorker - Runs one sync cycle across all registered features.

A cycle:
1. Collects local changes from every data provider concurrently.
   Any provider failure aborts the cycle before the network is touched.
2. Sends a single request: GET when nothing changed locally, otherwise a
   PATCH carrying every registered feature (including those with no changes).
3. Validates the response strictly: every requested feature must be present
   with a string `last_modified` and an `entries` array of objects.
4. Builds one SyncResult per feature.

At most one cycle runs at a time; concurrent calls to sync() wait for the
running cycle to finish.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
import asyncio
import json
import logging

from .errors import (
    InvalidDataInResponseError,
    LocalChangesError,
    MissingFeatureError,
    NoFeaturesSpecifiedError,
    NoResponseBodyError,
    ProviderRegistrationError,
    RequestEncodingError,
    UnexpectedResponseBodyError,
    UnexpectedStatusCodeError,
)
from .models import Feature, Syncable, SyncResult
from .providers.base import DataProvider
from .transport import Endpoints, HTTPMethod, HTTPResult, RemoteAPI

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass
class LocalChanges:
    """Changes collected from one provider before the request is sent."""
    feature: Feature
    sent: List[Syncable]
    last_sync_timestamp: Optional[str]


def index_providers(data_providers: Iterable[DataProvider]) -> Dict[Feature, DataProvider]:
    """
    Map providers by feature.

    Raises:
        ProviderRegistrationError: Two providers serve the same feature
    """
    providers: Dict[Feature, DataProvider] = {}
    for provider in data_providers:
        feature = provider.feature
        if feature in providers:
            raise ProviderRegistrationError(f"Duplicate data provider for feature '{feature.name}'")
        providers[feature] = provider
    return providers


class SyncWorker:
    """
    Sync cycle executor.

    Thread-safety: not thread-safe; use from a single event loop. Cycles are
    serialized with an asyncio.Lock held for the whole cycle.
    """

    def __init__(self,
                 data_providers: Iterable[DataProvider],
                 api: RemoteAPI,
                 endpoints: Endpoints):
        self.data_providers: Dict[Feature, DataProvider] = index_providers(data_providers)
        self.api = api
        self.endpoints = endpoints
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        """True while a cycle is running."""
        return self._lock.locked()

    async def sync(self) -> List[SyncResult]:
        """
        Run one sync cycle.

        Returns:
            One SyncResult per registered feature

        Raises:
            SyncError: The cycle failed; no partial results are returned
        """
        async with self._lock:
            return await self._sync()

    async def _sync(self) -> List[SyncResult]:
        if not self.data_providers:
            raise NoFeaturesSpecifiedError()

        local = await self._collect_local_changes()

        has_local_changes = any(changes.sent for changes in local.values())
        if has_local_changes:
            logger.info(
                f"Sync cycle: PATCH {len(local)} features, "
                f"{sum(len(c.sent) for c in local.values())} local changes"
            )
            result = await self._execute_patch_request(local)
        else:
            logger.info(f"Sync cycle: GET {len(local)} features, no local changes")
            result = await self._execute_get_request(local.keys())

        response = self._decode_response(result)
        return [self._build_result(changes, response) for changes in local.values()]

    async def _collect_local_changes(self) -> Dict[Feature, LocalChanges]:
        providers = list(self.data_providers.values())
        # Read each cursor once so `since` and `modified_since` agree
        cursors = [provider.last_sync_timestamp for provider in providers]

        outcomes = await asyncio.gather(
            *(provider.changes(since) for provider, since in zip(providers, cursors)),
            return_exceptions=True,
        )

        local: Dict[Feature, LocalChanges] = {}
        for provider, since, outcome in zip(providers, cursors, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(f"Data provider for {provider.feature.name} failed: {outcome}")
                raise LocalChangesError(provider.feature, outcome) from outcome
            if not isinstance(outcome, (list, tuple)) or not all(isinstance(s, Syncable) for s in outcome):
                error = TypeError(f"changes() must return a list of Syncable, got {outcome!r}")
                raise LocalChangesError(provider.feature, error) from error
            local[provider.feature] = LocalChanges(
                feature=provider.feature,
                sent=list(outcome),
                last_sync_timestamp=since,
            )
        return local

    async def _execute_get_request(self, features: Iterable[Feature]) -> HTTPResult:
        return await self.api.execute(HTTPMethod.GET, self.endpoints.sync_get(features), headers={})

    async def _execute_patch_request(self, local: Dict[Feature, LocalChanges]) -> HTTPResult:
        body = self.encode_patch_body(local)
        return await self.api.execute(
            HTTPMethod.PATCH,
            self.endpoints.sync_patch,
            headers={},
            body=body,
            content_type=JSON_CONTENT_TYPE,
        )

    @staticmethod
    def encode_patch_body(local: Dict[Feature, LocalChanges]) -> bytes:
        """
        Serialize the PATCH body.

        {"<feature>": {"updates": [...], "modified_since": "<cursor>" | null}}
        """
        payload = {
            feature.name: {
                "updates": [syncable.payload for syncable in changes.sent],
                "modified_since": changes.last_sync_timestamp,
            }
            for feature, changes in local.items()
        }
        try:
            return json.dumps(payload, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise RequestEncodingError(f"Unable to encode request body: {e}") from e

    @staticmethod
    def _decode_response(result: HTTPResult) -> Dict[str, Any]:
        if not result.ok:
            raise UnexpectedStatusCodeError(result.status_code)
        if not result.data:
            raise NoResponseBodyError()
        try:
            decoded = json.loads(result.data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise UnexpectedResponseBodyError(f"Response body is not valid JSON: {e}") from e
        if not isinstance(decoded, dict):
            raise UnexpectedResponseBodyError(
                f"Response body must be a JSON object, got {type(decoded).__name__}"
            )
        return decoded

    @staticmethod
    def _build_result(changes: LocalChanges, response: Dict[str, Any]) -> SyncResult:
        feature = changes.feature
        feature_payload = response.get(feature.name)
        if not isinstance(feature_payload, dict):
            raise MissingFeatureError(feature)

        last_modified = feature_payload.get("last_modified")
        if not isinstance(last_modified, str):
            raise InvalidDataInResponseError(f"'{feature.name}.last_modified' must be a string")

        entries = feature_payload.get("entries")
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            raise InvalidDataInResponseError(f"'{feature.name}.entries' must be an array of objects")

        return SyncResult.create(
            feature=feature,
            sent=changes.sent,
            received=[Syncable.from_dict(entry) for entry in entries],
            last_sync_timestamp=last_modified,
        )


__all__ = ['SyncWorker', 'LocalChanges', 'index_providers']
