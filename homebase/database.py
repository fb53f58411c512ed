"""
Database Connection Layer.

Holds the two stores a homebase process can talk to:

- **Supabase (PostgREST)**: the remote relational backend, reached through
  the async supabase client.  Server-side rules (RLS, cascades, RPCs) live
  there.
- **Local store**: a :class:`~homebase.storage.StorageAdapter` used in
  offline / demo mode.  Always available, even when the remote is in use,
  so switching modes never needs a restart.

Which one the repositories use is decided once, in
:func:`homebase.services.create_services`.  This module only manages the
raw connections; it contains no query logic.

Usage::

    from homebase.config import get_config
    from homebase.database import DatabaseManager
    from homebase.logger import StructuredLogger

    db = await DatabaseManager.connect(get_config(), StructuredLogger(name="database"))
"""

from __future__ import annotations

from typing import Optional

from supabase import AsyncClient, acreate_client

from homebase.config import AppConfig
from homebase.logger import StructuredLogger
from homebase.storage import StorageAdapter, create_storage_adapter


class DatabaseManager:
    """Owns the optional Supabase client and the local storage adapter.

    Parameters
    ----------
    supabase:
        A connected ``AsyncClient``, or ``None`` to run in local mode.
    storage:
        The local storage adapter.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    force_local:
        Use the local store even when a Supabase client is present.
    """

    def __init__(
        self,
        supabase: Optional[AsyncClient],
        storage: StorageAdapter,
        logger: StructuredLogger,
        force_local: bool = False,
    ) -> None:
        self._supabase: Optional[AsyncClient] = supabase
        self._storage: StorageAdapter = storage
        self._logger: StructuredLogger = logger
        self._force_local: bool = force_local

    @classmethod
    async def connect(
        cls,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> "DatabaseManager":
        """Build a manager from configuration.

        The Supabase client is only created when the remote backend is
        selected.  A client that fails to initialise is logged and the
        manager degrades to local mode.
        """
        storage = create_storage_adapter(
            config.LOCAL_STORE_PATH, config.STORAGE_NAMESPACE, logger,
        )

        client: Optional[AsyncClient] = None
        if not config.use_local_backend:
            try:
                client = await acreate_client(
                    config.SUPABASE_URL,
                    config.SUPABASE_ANON_KEY.get_secret_value(),
                )
                logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                logger.warning(
                    "Supabase credential format error: %s. Running in local mode.",
                    exc,
                )
            except Exception as exc:
                logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Running in local mode.",
                    exc,
                    exc_info=True,
                )

        return cls(client, storage, logger, force_local=config.USE_LOCAL_BACKEND)

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> AsyncClient:
        """Return the initialised Supabase client.

        Raises
        ------
        RuntimeError
            If the client was not initialised (local mode).
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "The application is running in local mode."
            )
        return self._supabase

    @property
    def storage(self) -> StorageAdapter:
        return self._storage

    @property
    def use_local_backend(self) -> bool:
        """``True`` when repositories must run against the local store."""
        return self._force_local or self._supabase is None

    def close(self) -> None:
        """Release the local store.  Safe to call multiple times."""
        close = getattr(self._storage, "close", None)
        if close is not None:
            close()
            self._logger.info("Local store closed.")
