"""SQLAlchemy-backed key-value store (SQLite, Postgres or MySQL)."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from sqlalchemy import Column, DateTime, String, Text, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from fx_radar.storage.base import DEFAULT_SQLITE_PATH
from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class _KeyValue(Base):
    __tablename__ = "fx_radar_kv"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


def sqlite_url(path: str | Path) -> str:
    resolved = Path(path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{resolved}"


class SQLKeyValueStore:
    """Persist JSON values in a single ``fx_radar_kv`` table.

    Blocking SQLAlchemy calls run on a worker thread. Values that no longer
    decode as JSON are returned as raw text so callers can decide how to
    treat them.
    """

    def __init__(self, url: str | None = None, *, echo: bool = False) -> None:
        self.url = url or sqlite_url(DEFAULT_SQLITE_PATH)
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        self.engine: Engine = create_engine(self.url, echo=echo, future=True, connect_args=connect_args)
        Base.metadata.create_all(self.engine)
        self._SessionFactory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False, future=True
        )

    @classmethod
    def for_sqlite_path(cls, path: str | Path) -> "SQLKeyValueStore":
        return cls(sqlite_url(path))

    def _get_sync(self, keys: list[str]) -> dict[str, Any]:
        if not keys:
            return {}
        with self._SessionFactory() as session:
            rows = session.execute(select(_KeyValue).where(_KeyValue.key.in_(keys))).scalars()
            found: dict[str, Any] = {}
            for row in rows:
                try:
                    found[row.key] = json.loads(row.value)
                except json.JSONDecodeError:
                    LOGGER.warning("Stored value for %s is not valid JSON", row.key)
                    found[row.key] = row.value
            return found

    def _set_sync(self, items: Mapping[str, Any]) -> int:
        now = datetime.now(timezone.utc)
        with self._SessionFactory() as session:
            for key, value in items.items():
                payload = json.dumps(value, sort_keys=True)
                existing = session.get(_KeyValue, key)
                if existing is None:
                    session.add(_KeyValue(key=key, value=payload, updated_at=now))
                else:
                    setattr(existing, "value", payload)
                    setattr(existing, "updated_at", now)
            session.commit()
        return len(items)

    def _remove_sync(self, keys: list[str]) -> None:
        if not keys:
            return
        with self._SessionFactory() as session:
            session.execute(delete(_KeyValue).where(_KeyValue.key.in_(keys)))
            session.commit()

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        return await asyncio.to_thread(self._get_sync, list(keys))

    async def set(self, items: Mapping[str, Any]) -> None:
        written = await asyncio.to_thread(self._set_sync, dict(items))
        LOGGER.debug(
            "Stored %s key(s) in %s", written, self.engine.url.render_as_string(hide_password=True)
        )

    async def remove(self, keys: Iterable[str]) -> None:
        await asyncio.to_thread(self._remove_sync, list(keys))

    async def close(self) -> None:
        self.engine.dispose()


__all__ = ["SQLKeyValueStore", "sqlite_url"]
