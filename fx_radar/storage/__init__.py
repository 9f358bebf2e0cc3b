"""Durable key-value storage used to persist cached exchange rates."""

from __future__ import annotations

from fx_radar.storage.base import DEFAULT_SQLITE_PATH, KeyValueStore, StoreBackend
from fx_radar.storage.memory import MemoryKeyValueStore
from fx_radar.storage.mongo_store import MongoKeyValueStore
from fx_radar.storage.sql_store import SQLKeyValueStore, sqlite_url


def open_store(url: str | None = None) -> KeyValueStore:
    """Open the store a URL points at; ``None`` gives an in-memory store.

    ``sqlite:///path``, ``postgresql://``, ``mysql+pymysql://`` and
    ``mongodb://`` / ``mongodb+srv://`` URLs are accepted.
    """

    if url is None or not url.strip():
        return MemoryKeyValueStore()
    scheme, sep, rest = url.strip().partition("://")
    if not sep:
        raise ValueError("Storage URL must include a scheme (e.g. sqlite:///fx.db)")
    backend, canonical_scheme = StoreBackend.resolve_backend_and_scheme(scheme)
    if backend is StoreBackend.MEMORY:
        return MemoryKeyValueStore()
    if backend is StoreBackend.MONGODB:
        return MongoKeyValueStore(f"{canonical_scheme}://{rest}")
    return SQLKeyValueStore(f"{canonical_scheme}://{rest}")


__all__ = [
    "DEFAULT_SQLITE_PATH",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "MongoKeyValueStore",
    "SQLKeyValueStore",
    "StoreBackend",
    "open_store",
    "sqlite_url",
]
