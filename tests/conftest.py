"""Pytest fixtures for featuresync tests"""
import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest

from featuresync.models import Feature, Syncable
from featuresync.providers.base import DataProvider
from featuresync.transport import Endpoints, HTTPMethod, HTTPResult, RemoteAPI


class StubProvider(DataProvider):
    """In-memory provider recording the cursors it was asked for."""

    def __init__(self, name: str, changes: Optional[List[Dict[str, Any]]] = None,
                 last_sync_timestamp: Optional[str] = None,
                 error: Optional[Exception] = None):
        self._feature = Feature(name)
        self._changes = changes or []
        self._last_sync_timestamp = last_sync_timestamp
        self.error = error
        self.calls: List[Optional[str]] = []
        self.handled = []

    @property
    def feature(self) -> Feature:
        return self._feature

    @property
    def last_sync_timestamp(self) -> Optional[str]:
        return self._last_sync_timestamp

    async def changes(self, since):
        self.calls.append(since)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return [Syncable(payload=c) for c in self._changes]

    async def handle_result(self, result):
        self.handled.append(result)
        self._last_sync_timestamp = result.last_sync_timestamp


class RecordingAPI(RemoteAPI):
    """RemoteAPI returning a canned response and recording requests."""

    def __init__(self, response: Any = None, status_code: int = 200,
                 data: Optional[bytes] = None, error: Optional[Exception] = None,
                 gate: Optional[asyncio.Event] = None):
        if data is None and response is not None:
            data = json.dumps(response).encode("utf-8")
        self.status_code = status_code
        self.data = data
        self.error = error
        self.gate = gate
        self.requests: List[Dict[str, Any]] = []
        self.active = 0
        self.max_active = 0

    async def execute(self, method, url, headers=None, body=None, content_type=None):
        self.requests.append({
            "method": method,
            "url": url,
            "body": json.loads(body) if body else None,
            "content_type": content_type,
        })
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
            return HTTPResult(status_code=self.status_code, data=self.data)
        finally:
            self.active -= 1


def feature_response(**features) -> Dict[str, Any]:
    """Build a server response: feature_response(bookmarks=("100", [...]))."""
    return {
        name: {"last_modified": ts, "entries": entries}
        for name, (ts, entries) in features.items()
    }


@pytest.fixture
def endpoints():
    return Endpoints("https://sync.example.com")


@pytest.fixture
def make_provider():
    """Factory for StubProvider instances."""
    return StubProvider


@pytest.fixture
def make_api():
    """Factory for RecordingAPI instances."""
    return RecordingAPI


@pytest.fixture
def make_response():
    return feature_response


@pytest.fixture
def sync_dir(tmp_path):
    """Temporary featuresync data directory."""
    base_path = tmp_path / "featuresync"
    (base_path / "data").mkdir(parents=True, exist_ok=True)
    return base_path
