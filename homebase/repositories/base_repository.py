"""
Base Repository (Remote Executor).

Provides shared infrastructure for every Supabase-backed repository:

- the async Supabase client and logger references
- a single error boundary (:meth:`BaseRepository._query`) that turns any
  raised value into a failed :class:`~homebase.models.result.Result`
- the generic CRUD primitives over ``TABLE``
- payload conversion shared with the local engine (:func:`to_payload`)

Subclasses set ``TABLE`` and ``MODEL`` and add their relational queries.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel
from supabase import AsyncClient

from homebase.logger import StructuredLogger
from homebase.models.enums import DeletePolicy
from homebase.models.result import (
    ErrorCode,
    Result,
    ResultError,
    record_not_found,
    to_api_error,
)
from homebase.repositories.interfaces import Dto, Filters
from homebase.utils.general import convert_to_json_safe, utc_now

TEntity = TypeVar("TEntity", bound=BaseModel)
T = TypeVar("T")

__all__ = ["BaseRepository", "to_payload"]


def to_payload(dto: Dto, partial: bool = False) -> dict[str, Any]:
    """Convert a DTO into a JSON-safe column mapping.

    Pydantic DTOs are dumped in JSON mode.  For creation (*partial* is
    ``False``) unset optional fields are dropped as ``None``; for updates
    only the fields the caller actually set are kept, so an explicit
    ``None`` still clears a column.
    """
    if isinstance(dto, BaseModel):
        if partial:
            return dto.model_dump(mode="json", exclude_unset=True)
        return dto.model_dump(mode="json", exclude_none=True)
    return convert_to_json_safe(dict(dto))


class BaseRepository(Generic[TEntity]):
    """Base class for all Supabase repositories. Receives dependencies via __init__."""

    TABLE: str = ""
    MODEL: type[BaseModel] = BaseModel
    DELETE_POLICY: DeletePolicy = DeletePolicy.HARD

    def __init__(
        self,
        supabase: AsyncClient,
        logger: StructuredLogger,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._supabase = supabase
        self._logger = logger
        self._clock = clock

    @property
    def supabase(self) -> AsyncClient:
        """Returns the Supabase client for cloud operations."""
        return self._supabase

    # ------------------------------------------------------------------
    # Error boundary
    # ------------------------------------------------------------------

    async def _query(
        self,
        operation_name: str,
        op: Callable[[], Awaitable[T]],
    ) -> Result[T]:
        """Run *op* and wrap its outcome in a :class:`Result`.

        Nothing raised inside *op* escapes.  Backend errors keep their own
        code; errors without one are tagged ``upstream_failure``.
        """
        try:
            return Result(data=await op())
        except ResultError as exc:
            return Result(error=exc.error)
        except Exception as exc:
            error = to_api_error(exc, default_code=ErrorCode.UPSTREAM_FAILURE)
            self._logger.warning(
                "Supabase %s failed on %s: %s",
                operation_name,
                self.TABLE,
                error.message,
            )
            return Result(error=error)

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _to_entity(self, row: Mapping[str, Any]) -> TEntity:
        return self.MODEL.model_validate(row)  # type: ignore[return-value]

    def _prepare_payload(self, payload: dict[str, Any], partial: bool) -> dict[str, Any]:
        """Hook to reshape a payload before it is sent.  Identity by default."""
        return payload

    @staticmethod
    def _apply_filters(builder: Any, filters: Optional[Filters]) -> Any:
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                builder = builder.in_(column, [convert_to_json_safe(v) for v in value])
            elif value is None:
                builder = builder.is_(column, "null")
            else:
                builder = builder.eq(column, convert_to_json_safe(value))
        return builder

    async def _select(
        self,
        filters: Optional[Filters] = None,
        order_by: str = "created_at",
        descending: bool = False,
        table: Optional[str] = None,
        model: Optional[type[BaseModel]] = None,
    ) -> list[Any]:
        """Select rows of *table* matching *filters*, ordered by *order_by*.

        Must be called inside :meth:`_query`; errors propagate.
        """
        builder = self.supabase.table(table or self.TABLE).select("*")
        builder = self._apply_filters(builder, filters)
        response = await builder.order(order_by, desc=descending).execute()
        validate = (model or self.MODEL).model_validate
        return [validate(row) for row in response.data or []]

    async def _rpc(self, function: str, params: Mapping[str, Any]) -> Any:
        """Call a Postgres function and return its payload."""
        response = await self.supabase.rpc(function, dict(params)).execute()
        return response.data

    # ------------------------------------------------------------------
    # CRUD primitives
    # ------------------------------------------------------------------

    async def find_all(self, filters: Optional[Filters] = None) -> Result[list[TEntity]]:
        return await self._query("find_all", lambda: self._select(filters))

    async def find_by_id(self, record_id: str) -> Result[TEntity]:
        async def _op() -> TEntity:
            response = await (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", record_id)
                .maybe_single()
                .execute()
            )
            # maybe_single() yields no response at all for a missing row.
            if response is None or not response.data:
                raise ResultError(record_not_found(record_id))
            return self._to_entity(response.data)

        return await self._query("find_by_id", _op)

    async def create(self, dto: Dto) -> Result[TEntity]:
        async def _op() -> TEntity:
            payload = self._prepare_payload(to_payload(dto), partial=False)
            response = await self.supabase.table(self.TABLE).insert(payload).execute()
            return self._to_entity(response.data[0])

        return await self._query("create", _op)

    async def create_many(self, dtos: Sequence[Dto]) -> Result[list[TEntity]]:
        async def _op() -> list[TEntity]:
            if not dtos:
                return []
            payloads = [self._prepare_payload(to_payload(d), partial=False) for d in dtos]
            response = await self.supabase.table(self.TABLE).insert(payloads).execute()
            return [self._to_entity(row) for row in response.data or []]

        return await self._query("create_many", _op)

    async def update(self, record_id: str, dto: Dto) -> Result[TEntity]:
        async def _op() -> TEntity:
            payload = self._prepare_payload(to_payload(dto, partial=True), partial=True)
            payload.pop("id", None)
            payload.pop("created_at", None)
            payload["updated_at"] = self._clock().isoformat()
            response = await (
                self.supabase.table(self.TABLE)
                .update(payload)
                .eq("id", record_id)
                .execute()
            )
            if not response.data:
                raise ResultError(record_not_found(record_id))
            return self._to_entity(response.data[0])

        return await self._query("update", _op)

    async def upsert(self, dto: Dto) -> Result[TEntity]:
        async def _op() -> TEntity:
            payload = self._prepare_payload(to_payload(dto), partial=False)
            response = await self.supabase.table(self.TABLE).upsert(payload).execute()
            return self._to_entity(response.data[0])

        return await self._query("upsert", _op)

    async def delete(self, record_id: str) -> Result[None]:
        async def _op() -> None:
            response = await (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("id", record_id)
                .execute()
            )
            if not response.data:
                raise ResultError(record_not_found(record_id))
            return None

        return await self._query("delete", _op)
