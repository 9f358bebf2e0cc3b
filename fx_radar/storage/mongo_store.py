"""MongoDB-backed key-value store."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from fx_radar.utils.logger import get_logger

try:  # pragma: no cover - optional dependency
    from pymongo import MongoClient, UpdateOne
    from pymongo.errors import PyMongoError
except ModuleNotFoundError:  # pragma: no cover - handled dynamically
    MongoClient = None  # type: ignore[assignment]
    UpdateOne = None  # type: ignore[assignment]
    PyMongoError = Exception  # type: ignore[assignment]

LOGGER = get_logger(__name__)

COLLECTION_NAME = "fx_radar_kv"


class MongoKeyValueStore:
    """Store values as ``{_id: key, value: ...}`` documents."""

    def __init__(self, url: str, *, database: str | None = None) -> None:
        if MongoClient is None:  # pragma: no cover - exercised without pymongo
            raise ModuleNotFoundError(
                "pymongo is required for MongoDB storage (pip install fx-radar[mongo])"
            )
        self.url = url
        self._client = MongoClient(url)
        db = self._client.get_default_database() if database is None else self._client[database]
        if db is None:
            raise ValueError("MongoDB connection URI must include a database name")
        self._collection = db[COLLECTION_NAME]

    def _get_sync(self, keys: list[str]) -> dict[str, Any]:
        if not keys:
            return {}
        cursor = self._collection.find({"_id": {"$in": keys}})
        return {doc["_id"]: doc.get("value") for doc in cursor}

    def _set_sync(self, items: Mapping[str, Any]) -> None:
        if not items:
            return
        now = datetime.now(timezone.utc)
        operations = [
            UpdateOne({"_id": key}, {"$set": {"value": value, "updated_at": now}}, upsert=True)
            for key, value in items.items()
        ]
        try:
            self._collection.bulk_write(operations, ordered=False)
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to write to MongoDB: {exc}") from exc

    def _remove_sync(self, keys: list[str]) -> None:
        if keys:
            self._collection.delete_many({"_id": {"$in": keys}})

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        return await asyncio.to_thread(self._get_sync, list(keys))

    async def set(self, items: Mapping[str, Any]) -> None:
        await asyncio.to_thread(self._set_sync, dict(items))
        LOGGER.debug("Stored %s key(s) in MongoDB", len(items))

    async def remove(self, keys: Iterable[str]) -> None:
        await asyncio.to_thread(self._remove_sync, list(keys))

    async def close(self) -> None:  # pragma: no cover - trivial cleanup
        self._client.close()


__all__ = ["MongoKeyValueStore"]
