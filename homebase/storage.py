"""
Key/Value Storage Adapters for the Local Store Engine.

The local repositories persist each entity as one JSON array under the
key ``table:<entity>``.  Where that array lives is pluggable:

- :class:`SQLiteStorageAdapter`: durable, one row per key in the
  ``kv_store`` table, every key prefixed with ``<namespace>:`` so several
  applications can share a database file.
- :class:`InMemoryStorageAdapter`: process-local dict, used when the
  SQLite file cannot be opened and in tests.

:func:`create_storage_adapter` picks between them.

All adapter methods are coroutines so the repositories await them the
same way they await the remote client.  The SQLite calls themselves are
synchronous and short; under the single-threaded event loop they never
interleave.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from homebase.logger import StructuredLogger
from homebase.schema import initialize_schema

__all__ = [
    "InMemoryStorageAdapter",
    "SQLiteStorageAdapter",
    "StorageAdapter",
    "create_storage_adapter",
]


@runtime_checkable
class StorageAdapter(Protocol):
    """Async key/value store holding JSON-serialisable values."""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def keys(self) -> list[str]: ...


class InMemoryStorageAdapter:
    """Dict-backed adapter.

    Values are stored as JSON text, not as live objects, so a caller that
    mutates what it read never mutates the store.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    async def keys(self) -> list[str]:
        return list(self._data)


class SQLiteStorageAdapter:
    """Adapter persisting values in the SQLite ``kv_store`` table.

    Parameters
    ----------
    conn:
        An open connection whose schema has been initialised.
    namespace:
        Application namespace; every stored key is ``<namespace>:<key>``.
    logger:
        A ``StructuredLogger`` instance.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        namespace: str,
        logger: StructuredLogger,
    ) -> None:
        self._conn: sqlite3.Connection = conn
        self._prefix: str = f"{namespace}:"
        self._logger: StructuredLogger = logger

    @property
    def prefix(self) -> str:
        return self._prefix

    async def get(self, key: str) -> Optional[Any]:
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?",
            (self._prefix + key,),
        ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as exc:
            self._logger.error(
                "Corrupt JSON stored under '%s': %s", key, exc,
            )
            raise ValueError(f"Corrupt data stored under '{key}': {exc}") from exc

    async def set(self, key: str, value: Any) -> None:
        self._conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                           updated_at = CURRENT_TIMESTAMP
            """,
            (self._prefix + key, json.dumps(value)),
        )
        self._conn.commit()

    async def remove(self, key: str) -> None:
        self._conn.execute(
            "DELETE FROM kv_store WHERE key = ?", (self._prefix + key,),
        )
        self._conn.commit()

    async def clear(self) -> None:
        """Remove every key of this namespace, and only those."""
        self._conn.execute(
            "DELETE FROM kv_store WHERE substr(key, 1, ?) = ?",
            (len(self._prefix), self._prefix),
        )
        self._conn.commit()

    async def keys(self) -> list[str]:
        rows = self._conn.execute(
            "SELECT key FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(self._prefix), self._prefix),
        ).fetchall()
        return [row[0][len(self._prefix):] for row in rows]

    def close(self) -> None:
        """Close the underlying connection.  Safe to call twice."""
        try:
            self._conn.close()
        except sqlite3.ProgrammingError:
            pass


def create_storage_adapter(
    path: str | Path,
    namespace: str,
    logger: StructuredLogger,
) -> StorageAdapter:
    """Open the SQLite store at *path*, falling back to memory on failure.

    ``":memory:"`` is accepted as *path* and yields a throwaway SQLite
    database.  A file that cannot be created, opened or migrated is logged
    and replaced by an :class:`InMemoryStorageAdapter`; data written in
    that case is lost when the process exits.
    """
    try:
        conn = sqlite3.connect(str(path), check_same_thread=False)
        initialize_schema(conn, logger)
    except (sqlite3.Error, OSError) as exc:
        logger.warning(
            "Local store at '%s' is unavailable (%s). "
            "Falling back to in-memory storage.",
            path,
            exc,
        )
        return InMemoryStorageAdapter()

    logger.info("Local store opened at %s", path)
    return SQLiteStorageAdapter(conn, namespace, logger)
