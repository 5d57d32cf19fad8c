"""
JSON file backed data provider.

Keeps the state of one feature in `<data_dir>/<feature>.json`:

    {
      "last_sync_timestamp": "1690000000",
      "pending": [{"id": "a", "title": "..."}],
      "records": [{"id": "b", "title": "..."}]
    }

`pending` holds local changes not yet acknowledged by the server, `records`
holds the merged remote state.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import asyncio
import json
import logging

import aiofiles

from ..models import Feature, Syncable, SyncResult
from .base import DataProvider

logger = logging.getLogger(__name__)


def _empty_state() -> Dict[str, Any]:
    return {"last_sync_timestamp": None, "pending": [], "records": []}


class JsonFileProvider(DataProvider):
    """
    Reference DataProvider storing one feature in a JSON file.

    State is loaded eagerly on construction so `last_sync_timestamp` can be
    read synchronously; all writes go through aiofiles.
    """

    def __init__(self, feature_name: str, data_dir: Path):
        self._feature = Feature(feature_name)
        self.path = Path(data_dir) / f"{feature_name}.json"
        self._lock = asyncio.Lock()
        self._state = self._read_state()

    def _read_state(self) -> Dict[str, Any]:
        if not self.path.exists():
            return _empty_state()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupted state file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Corrupted state file {self.path}: expected an object")
        state = _empty_state()
        state.update(data)
        return state

    async def _write_state(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".json.tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(self._state, indent=2, ensure_ascii=False))
        tmp_path.replace(self.path)

    @property
    def feature(self) -> Feature:
        return self._feature

    @property
    def last_sync_timestamp(self) -> Optional[str]:
        return self._state.get("last_sync_timestamp")

    @property
    def pending(self) -> List[Dict[str, Any]]:
        return list(self._state["pending"])

    @property
    def records(self) -> List[Dict[str, Any]]:
        return list(self._state["records"])

    async def add_change(self, payload: Dict[str, Any]) -> None:
        """Queue a local change to be sent on the next cycle."""
        if not isinstance(payload, dict):
            raise TypeError("Change payload must be a JSON object")
        async with self._lock:
            self._state["pending"].append(payload)
            await self._write_state()
        logger.debug(f"Queued change for {self._feature.name} ({len(self._state['pending'])} pending)")

    async def changes(self, since: Optional[str]) -> List[Syncable]:
        # Without a cursor the server has never seen this feature: send everything
        async with self._lock:
            if since is None:
                items = self._state["records"] + self._state["pending"]
            else:
                items = self._state["pending"]
            return [Syncable(payload=dict(item)) for item in items]

    async def handle_result(self, result: SyncResult) -> None:
        """Drop acknowledged changes, merge received ones and store the cursor."""
        if result.feature != self._feature:
            raise ValueError(f"Result for '{result.feature.name}' passed to '{self._feature.name}' provider")

        async with self._lock:
            sent = [s.payload for s in result.sent]
            pending = self._state["pending"]
            # A first sync also resends `records`; only queued changes are new
            acknowledged = [payload for payload in sent if payload in pending]
            self._state["pending"] = [p for p in pending if p not in sent]

            records = self._state["records"]
            for payload in (*acknowledged, *(s.payload for s in result.received)):
                self._merge_record(records, payload)

            self._state["last_sync_timestamp"] = result.last_sync_timestamp
            await self._write_state()

        logger.info(
            f"Applied sync result for {self._feature.name}: "
            f"sent={len(result.sent)} received={len(result.received)} "
            f"cursor={result.last_sync_timestamp}"
        )

    @staticmethod
    def _merge_record(records: List[Dict[str, Any]], payload: Dict[str, Any]) -> None:
        record_id = payload.get("id")
        if record_id is not None:
            for i, existing in enumerate(records):
                if existing.get("id") == record_id:
                    if payload.get("deleted"):
                        del records[i]
                    else:
                        records[i] = payload
                    return
        if not payload.get("deleted"):
            records.append(payload)


__all__ = ['JsonFileProvider']
