"""
Local Store Schema Initialization.

The SQLite file behind the local store holds one flat key/value table.
Each key is ``<namespace>:table:<entity>`` and each value is the JSON
array holding every row of that entity.  :func:`initialize_schema`
creates it idempotently and records the version in ``schema_version``.

Future schema changes bump :data:`CURRENT_SCHEMA_VERSION` and register a
``(conn, logger)`` function in :data:`_MIGRATIONS` under the version it
produces.  An upgrade (migrations plus version bump) runs in a single
transaction; on failure it rolls back and the next startup retries.

Usage::

    conn = sqlite3.connect("homebase_local.db")
    initialize_schema(conn, StructuredLogger(name="schema"))
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable

from homebase.logger import StructuredLogger

__all__ = ["CURRENT_SCHEMA_VERSION", "initialize_schema"]

CURRENT_SCHEMA_VERSION: int = 1

_SCHEMA_VERSION_DDL = """
    CREATE TABLE IF NOT EXISTS schema_version (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

_KV_STORE_DDL = """
    CREATE TABLE IF NOT EXISTS kv_store (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

MigrationFunc = Callable[[sqlite3.Connection, StructuredLogger], None]

# Target version -> migration producing it.
_MIGRATIONS: dict[int, MigrationFunc] = {}


def _get_schema_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row is not None else 0


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Upsert the single-row version tracker.  Does **not** commit."""
    conn.execute(
        """
        INSERT INTO schema_version (id, version) VALUES (1, ?)
        ON CONFLICT(id) DO UPDATE SET version = excluded.version,
                                      applied_at = CURRENT_TIMESTAMP
        """,
        (version,),
    )


def initialize_schema(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Bring the local store to :data:`CURRENT_SCHEMA_VERSION`.

    Safe to call on every startup.  A failed upgrade is rolled back and
    the exception re-raised.
    """
    conn.execute(_SCHEMA_VERSION_DDL)
    conn.commit()
    current = _get_schema_version(conn)

    if current >= CURRENT_SCHEMA_VERSION:
        logger.debug("Schema is up to date (version %d).", current)
        return

    try:
        if current == 0:
            conn.execute(_KV_STORE_DDL)
        else:
            for version in sorted(v for v in _MIGRATIONS if current < v <= CURRENT_SCHEMA_VERSION):
                logger.info("Running migration to version %d", version)
                _MIGRATIONS[version](conn, logger)
        _set_schema_version(conn, CURRENT_SCHEMA_VERSION)
        conn.commit()
    except Exception:
        conn.rollback()
        logger.error("Schema migration failed, rolled back to version %d.", current)
        raise

    logger.info("Schema initialised at version %d.", CURRENT_SCHEMA_VERSION)
