"""
Local Repository (Local Store Engine).

Implements the same CRUD contract as :class:`BaseRepository` over a
:class:`~homebase.storage.StorageAdapter`.  Each entity lives under the
key ``table:<TABLE>`` as a JSON array of rows.

The engine synthesises what the remote database would: ``uuid4`` ids,
``created_at`` / ``updated_at`` stamps, column defaults (every row is
stored in its fully validated form) and ON DELETE CASCADE for owned
child rows.

There is no locking.  Two concurrent writers to the same table each read,
modify and write back the whole array; the last write wins.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, ClassVar, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from homebase.logger import StructuredLogger
from homebase.models.enums import DeletePolicy
from homebase.models.result import (
    Result,
    ResultError,
    record_not_found,
    to_api_error,
    validation_failure,
)
from homebase.repositories.base_repository import to_payload
from homebase.repositories.filters import matches, sort_records
from homebase.repositories.interfaces import Dto, Filters
from homebase.storage import StorageAdapter
from homebase.utils.general import utc_now

TEntity = TypeVar("TEntity", bound=BaseModel)
T = TypeVar("T")

__all__ = ["LocalRepository", "table_key"]

# Parent table -> owned child tables and their foreign key column.
_CASCADES: dict[str, tuple[tuple[str, str], ...]] = {
    "households": (
        ("members", "household_id"),
        ("shopping_lists", "household_id"),
        ("wishlists", "household_id"),
    ),
    "shopping_lists": (("shopping_items", "list_id"),),
    "wishlists": (("wishlist_items", "wishlist_id"),),
    "trips": (
        ("trip_members", "trip_id"),
        ("packing_items", "trip_id"),
        ("budget_entries", "trip_id"),
        ("timeline_events", "trip_id"),
        ("documents", "trip_id"),
    ),
}


# Emails of users invited while running locally, keyed by local user id.
USERS_TABLE = "users"


def table_key(table: str) -> str:
    return f"table:{table}"


class LocalRepository(Generic[TEntity]):
    """Base class for all local-store repositories.

    Parameters
    ----------
    storage:
        Shared key/value adapter.  Repositories with the same ``TABLE``
        on the same adapter see the same rows.
    logger:
        A ``StructuredLogger`` instance.
    clock:
        Source of timestamps.  Tests inject a monotonic fake.
    """

    TABLE: str = ""
    MODEL: type[BaseModel] = BaseModel
    DELETE_POLICY: DeletePolicy = DeletePolicy.HARD
    # Populated on read, never persisted.
    TRANSIENT_FIELDS: ClassVar[frozenset[str]] = frozenset()

    def __init__(
        self,
        storage: StorageAdapter,
        logger: StructuredLogger,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._logger = logger
        self._clock = clock

    @property
    def storage_key(self) -> str:
        return table_key(self.TABLE)

    # ------------------------------------------------------------------
    # Error boundary
    # ------------------------------------------------------------------

    async def _guard(
        self,
        operation_name: str,
        op: Callable[[], Awaitable[T]],
    ) -> Result[T]:
        """Run *op*; storage and data failures come back as errors.

        Rows rejected on write are raised as validation failures by
        :meth:`_normalize`.  Anything else (adapter down, corrupt JSON, a
        stored row that no longer validates) is an uncoded Unknown error
        carrying the caught message.
        """
        try:
            return Result(data=await op())
        except ResultError as exc:
            return Result(error=exc.error)
        except Exception as exc:
            error = to_api_error(exc)
            self._logger.error(
                "Local store %s failed on %s: %s",
                operation_name,
                self.TABLE,
                error.message,
            )
            return Result(error=error)

    # ------------------------------------------------------------------
    # Raw table access
    # ------------------------------------------------------------------

    async def _load_table(self, table: str) -> list[dict[str, Any]]:
        rows = await self._storage.get(table_key(table))
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise ValueError(f"Corrupt data stored under '{table_key(table)}'")
        return rows

    async def _load(self) -> list[dict[str, Any]]:
        return await self._load_table(self.TABLE)

    async def _save(self, rows: list[dict[str, Any]]) -> None:
        await self._storage.set(self.storage_key, rows)

    def _to_entity(self, row: Mapping[str, Any]) -> TEntity:
        return self.MODEL.model_validate(row)  # type: ignore[return-value]

    def _normalize(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Validate an incoming *row* and return the form that is persisted."""
        try:
            entity = self._to_entity(row)
        except ValidationError as exc:
            raise ResultError(validation_failure(str(exc))) from exc
        return entity.model_dump(mode="json", exclude=set(self.TRANSIENT_FIELDS))

    def _prepare_payload(self, payload: dict[str, Any], partial: bool) -> dict[str, Any]:
        """Hook to reshape a payload before it is stored.  Identity by default."""
        return payload

    def _prepare_insert(self, row: dict[str, Any], now: str) -> dict[str, Any]:
        """Hook for server-side column defaults on insert."""
        return row

    async def _select(
        self,
        filters: Optional[Filters] = None,
        order_by: str = "created_at",
        descending: bool = False,
        table: Optional[str] = None,
        model: Optional[type[BaseModel]] = None,
    ) -> list[Any]:
        """Select rows of *table* matching *filters*, ordered by *order_by*.

        Must be called inside :meth:`_guard`; errors propagate.
        """
        rows = await self._load_table(table or self.TABLE)
        validate = (model or self.MODEL).model_validate
        records = [validate(row) for row in rows if matches(row, filters)]
        return sort_records(records, order_by, descending)

    # ------------------------------------------------------------------
    # Local user directory (stands in for the remote auth users)
    # ------------------------------------------------------------------

    async def _remember_email(self, user_id: str, email: str) -> None:
        rows = [row for row in await self._load_table(USERS_TABLE) if row.get("id") != user_id]
        rows.append({"id": user_id, "email": email})
        await self._storage.set(table_key(USERS_TABLE), rows)

    async def _with_emails(self, records: list[Any]) -> list[Any]:
        """Copies of *records* with ``email`` filled from the user directory."""
        directory = {row.get("id"): row.get("email") for row in await self._load_table(USERS_TABLE)}
        return [
            record.model_copy(update={"email": directory[record.user_id]})
            if record.user_id in directory else record
            for record in records
        ]

    async def _insert(self, dtos: Sequence[Dto]) -> list[TEntity]:
        rows = await self._load()
        existing_ids = {row.get("id") for row in rows}
        created: list[dict[str, Any]] = []
        for dto in dtos:
            now = self._clock().isoformat()
            payload = self._prepare_payload(to_payload(dto), partial=False)
            record_id = str(payload.get("id") or uuid.uuid4())
            if record_id in existing_ids:
                raise ResultError(
                    validation_failure(f"Record with id {record_id} already exists")
                )
            row = self._prepare_insert(
                {**payload, "id": record_id, "created_at": now, "updated_at": now},
                now,
            )
            created.append(self._normalize(row))
            existing_ids.add(record_id)
        await self._save(rows + created)
        return [self._to_entity(row) for row in created]

    # ------------------------------------------------------------------
    # CRUD primitives
    # ------------------------------------------------------------------

    async def find_all(self, filters: Optional[Filters] = None) -> Result[list[TEntity]]:
        return await self._guard("find_all", lambda: self._select(filters))

    async def find_by_id(self, record_id: str) -> Result[TEntity]:
        async def _op() -> TEntity:
            for row in await self._load():
                if row.get("id") == record_id:
                    return self._to_entity(row)
            raise ResultError(record_not_found(record_id))

        return await self._guard("find_by_id", _op)

    async def create(self, dto: Dto) -> Result[TEntity]:
        async def _op() -> TEntity:
            return (await self._insert([dto]))[0]

        return await self._guard("create", _op)

    async def create_many(self, dtos: Sequence[Dto]) -> Result[list[TEntity]]:
        async def _op() -> list[TEntity]:
            if not dtos:
                return []
            return await self._insert(dtos)

        return await self._guard("create_many", _op)

    async def update(self, record_id: str, dto: Dto) -> Result[TEntity]:
        async def _op() -> TEntity:
            rows = await self._load()
            for index, row in enumerate(rows):
                if row.get("id") != record_id:
                    continue
                # A corrupt stored row surfaces as Unknown, before the patch is applied.
                self._to_entity(row)
                patch = self._prepare_payload(to_payload(dto, partial=True), partial=True)
                patch.pop("id", None)
                patch.pop("created_at", None)
                merged = self._normalize(
                    {**row, **patch, "updated_at": self._clock().isoformat()}
                )
                rows[index] = merged
                await self._save(rows)
                return self._to_entity(merged)
            raise ResultError(record_not_found(record_id))

        return await self._guard("update", _op)

    async def upsert(self, dto: Dto) -> Result[TEntity]:
        payload = to_payload(dto)
        record_id = payload.get("id")
        if record_id:
            existing = await self.find_by_id(str(record_id))
            if existing.ok:
                return await self.update(str(record_id), payload)
        return await self.create(payload)

    async def delete(self, record_id: str) -> Result[None]:
        async def _op() -> None:
            rows = await self._load()
            remaining = [row for row in rows if row.get("id") != record_id]
            if len(remaining) == len(rows):
                raise ResultError(record_not_found(record_id))
            await self._save(remaining)
            await self._cascade(self.TABLE, {record_id})
            return None

        return await self._guard("delete", _op)

    async def _cascade(self, table: str, parent_ids: set[str]) -> None:
        """Remove rows owned by the deleted parents, depth first."""
        for child_table, foreign_key in _CASCADES.get(table, ()):
            rows = await self._load_table(child_table)
            orphans = {
                str(row.get("id")) for row in rows if row.get(foreign_key) in parent_ids
            }
            if not orphans:
                continue
            await self._storage.set(
                table_key(child_table),
                [row for row in rows if row.get(foreign_key) not in parent_ids],
            )
            self._logger.debug(
                "Cascade removed %d row(s) from %s", len(orphans), child_table,
            )
            await self._cascade(child_table, orphans)
