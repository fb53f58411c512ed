"""
Trip Service.

Trip planning: trips, sharing, and the per-trip packing list, budget,
timeline and documents.

:meth:`TripService.duplicate_trip` copies a trip together with its
packing, budget and timeline rows.  If any copy fails the new trip is
deleted again (its own cascade removes whatever was already copied) and
the copy error is returned.
"""

from __future__ import annotations

from typing import Any, Optional

from homebase.logger import StructuredLogger
from homebase.models.enums import TripMemberRole
from homebase.models.result import Result
from homebase.models.trip import (
    BudgetEntry,
    PackingItem,
    TimelineEvent,
    Trip,
    TripDocument,
    TripMember,
)
from homebase.repositories.interfaces import (
    BudgetEntryRepository,
    DocumentRepository,
    Dto,
    PackingItemRepository,
    TimelineEventRepository,
    TripMemberRepository,
    TripRepository,
)
from homebase.services.base_service import BaseService
from homebase.utils.audit import log_audit_event

# Columns a copied child row must not carry over.
_RECORD_COLUMNS = frozenset({"id", "trip_id", "created_at", "updated_at"})


def _copy_rows(rows: list[Any], trip_id: str, **overrides: Any) -> list[dict[str, Any]]:
    return [
        {
            **row.model_dump(mode="json", exclude=set(_RECORD_COLUMNS)),
            "trip_id": trip_id,
            **overrides,
        }
        for row in rows
    ]


class TripService(BaseService):
    """Service layer for trips and their collections."""

    def __init__(
        self,
        trips: TripRepository,
        trip_members: TripMemberRepository,
        packing_items: PackingItemRepository,
        budget_entries: BudgetEntryRepository,
        timeline_events: TimelineEventRepository,
        documents: DocumentRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._trips = trips
        self._trip_members = trip_members
        self._packing_items = packing_items
        self._budget_entries = budget_entries
        self._timeline_events = timeline_events
        self._documents = documents

    # ------------------------------------------------------------------
    # Trips
    # ------------------------------------------------------------------

    async def get_trips(self, user_id: str) -> Result[list[Trip]]:
        return await self._trips.find_by_user_id(user_id)

    async def get_trip(self, trip_id: str) -> Result[Trip]:
        return await self._trips.find_by_id(trip_id)

    async def create_trip(self, dto: Dto) -> Result[Trip]:
        result = await self._trips.create(dto)
        self._log_failure("create_trip", result)
        return result

    async def update_trip(self, trip_id: str, dto: Dto) -> Result[Trip]:
        return await self._trips.update(trip_id, dto)

    async def delete_trip(self, trip_id: str) -> Result[None]:
        return await self._trips.delete(trip_id)

    async def duplicate_trip(self, trip: Trip) -> Result[Trip]:
        """Copy *trip* with its packing list (unpacked), budget and timeline.

        Documents and shared members are not copied.
        """
        copy = await self._trips.duplicate(trip)
        if copy.error is not None:
            self._log_failure("duplicate_trip", copy)
            return copy

        copies: list[tuple[str, Any, dict[str, Any]]] = [
            ("packing_items", self._packing_items, {"is_packed": False}),
            ("budget_entries", self._budget_entries, {}),
            ("timeline_events", self._timeline_events, {}),
        ]
        for name, repo, overrides in copies:
            source = await repo.find_by_trip_id(trip.id)
            if source.error is not None:
                return await self._abandon_copy(copy.data.id, name, source)
            created = await repo.create_many(_copy_rows(source.data, copy.data.id, **overrides))
            if created.error is not None:
                return await self._abandon_copy(copy.data.id, name, created)

        log_audit_event(
            self._logger,
            action="DUPLICATE",
            entity_type="Trip",
            entity_id=copy.data.id,
            user_id=trip.created_by,
            details={"source_trip_id": trip.id},
        )
        return copy

    async def _abandon_copy(self, copy_id: str, step: str, failed: Result) -> Result[Trip]:
        self._logger.warning(
            "Copying %s into trip %s failed; deleting the copy: %s",
            step, copy_id, failed.error.message,
        )
        rollback = await self._trips.delete(copy_id)
        if rollback.error is not None:
            self._logger.error(
                "Rollback of duplicated trip %s failed: %s", copy_id, rollback.error.message,
            )
        return Result(error=failed.error)

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    async def get_members(self, trip_id: str) -> Result[list[TripMember]]:
        return await self._trip_members.find_by_trip_id(trip_id)

    async def invite_member(
        self,
        trip_id: str,
        email: str,
        role: TripMemberRole = TripMemberRole.VIEWER,
        current_user_id: Optional[str] = None,
    ) -> Result[TripMember]:
        return await self._trip_members.invite_by_email(trip_id, email, role, current_user_id)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    async def get_packing_items(self, trip_id: str) -> Result[list[PackingItem]]:
        return await self._packing_items.find_by_trip_id(trip_id)

    async def add_packing_item(self, dto: Dto) -> Result[PackingItem]:
        return await self._packing_items.create(dto)

    async def set_packed(self, item_id: str, is_packed: bool) -> Result[None]:
        return await self._packing_items.toggle_packed(item_id, is_packed)

    async def get_budget(self, trip_id: str) -> Result[list[BudgetEntry]]:
        return await self._budget_entries.find_by_trip_id(trip_id)

    async def add_budget_entry(self, dto: Dto) -> Result[BudgetEntry]:
        return await self._budget_entries.create(dto)

    async def get_timeline(self, trip_id: str) -> Result[list[TimelineEvent]]:
        return await self._timeline_events.find_by_trip_id(trip_id)

    async def add_timeline_event(self, dto: Dto) -> Result[TimelineEvent]:
        return await self._timeline_events.create(dto)

    async def get_documents(self, trip_id: str) -> Result[list[TripDocument]]:
        return await self._documents.find_by_trip_id(trip_id)

    async def add_document(self, dto: Dto) -> Result[TripDocument]:
        return await self._documents.create(dto)
