"""Async key-value store interface used to persist the rate cache."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Final, Iterable, Mapping, Protocol, runtime_checkable

DEFAULT_SQLITE_PATH: Final[Path] = Path.home() / ".fx_radar" / "fx_radar.db"


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable storage collaborator with JSON-serialisable values."""

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return the stored values for ``keys``; missing keys are omitted."""
        ...  # pragma: no cover - protocol definition

    async def set(self, items: Mapping[str, Any]) -> None: ...  # pragma: no cover

    async def remove(self, keys: Iterable[str]) -> None: ...  # pragma: no cover

    async def close(self) -> None: ...  # pragma: no cover


class StoreBackend(str, Enum):
    """Storage engines reachable through :func:`fx_radar.storage.open_store`."""

    MEMORY = "memory"
    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    MONGODB = "mongodb"

    @classmethod
    def resolve_backend_and_scheme(cls, scheme: str) -> tuple["StoreBackend", str]:
        """Return backend enum + canonical scheme used in connection URLs.

        Driver suffixes such as ``mysql+pymysql`` or ``mongodb+srv`` are kept;
        ``postgres`` is spelled ``postgresql`` as SQLAlchemy expects.
        """

        if not scheme:
            raise ValueError("Storage URL must include a scheme (e.g. sqlite:// or mongodb://)")
        base_scheme, _, driver = scheme.lower().partition("+")
        backend = _SCHEME_ALIASES.get(base_scheme)
        if backend is None:
            raise ValueError(
                "Unsupported storage backend. Supported values are memory, SQLite, MySQL, "
                "Postgres, and MongoDB."
            )
        if backend is cls.MEMORY:
            return backend, "memory"
        canonical = "postgresql" if backend is cls.POSTGRES else backend.value
        return backend, f"{canonical}+{driver}" if driver else canonical


_SCHEME_ALIASES: dict[str, StoreBackend] = {
    "memory": StoreBackend.MEMORY,
    "sqlite": StoreBackend.SQLITE,
    "mysql": StoreBackend.MYSQL,
    "postgres": StoreBackend.POSTGRES,
    "postgresql": StoreBackend.POSTGRES,
    "mongodb": StoreBackend.MONGODB,
}


__all__ = ["DEFAULT_SQLITE_PATH", "KeyValueStore", "StoreBackend"]
