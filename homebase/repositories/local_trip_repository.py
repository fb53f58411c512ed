"""
Trip Repositories (local store).
"""

from __future__ import annotations

from typing import ClassVar, Optional

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
from homebase.repositories.filters import merge_records
from homebase.repositories.household_repository import cannot_add_self
from homebase.repositories.local_repository import LocalRepository
from homebase.repositories.trip_repository import duplicate_trip_payload
from homebase.utils.string_helpers import local_user_id_for_email


class LocalTripRepository(LocalRepository[Trip]):
    TABLE = "trips"
    MODEL = Trip

    async def find_by_user_id(self, user_id: str) -> Result[list[Trip]]:
        async def _op() -> list[Trip]:
            own = await self._select({"created_by": user_id})
            memberships = await self._select(
                {"user_id": user_id}, table="trip_members", model=TripMember,
            )
            known = {trip.id for trip in own}
            shared_ids = [m.trip_id for m in memberships if m.trip_id not in known]
            shared = await self._select({"id": shared_ids}) if shared_ids else []
            return merge_records((own, shared), "start_date")

        return await self._guard("find_by_user_id", _op)

    async def duplicate(self, trip: Trip) -> Result[Trip]:
        return await self.create(duplicate_trip_payload(trip))


class LocalTripMemberRepository(LocalRepository[TripMember]):
    TABLE = "trip_members"
    MODEL = TripMember
    TRANSIENT_FIELDS: ClassVar[frozenset[str]] = frozenset({"email"})

    async def find_by_trip_id(self, trip_id: str) -> Result[list[TripMember]]:
        async def _op() -> list[TripMember]:
            return await self._with_emails(await self._select({"trip_id": trip_id}))

        return await self._guard("find_by_trip_id", _op)

    async def invite_by_email(
        self,
        trip_id: str,
        email: str,
        role: TripMemberRole = TripMemberRole.VIEWER,
        current_user_id: Optional[str] = None,
    ) -> Result[TripMember]:
        user_id = local_user_id_for_email(email)
        if current_user_id and user_id == current_user_id:
            return Result(error=cannot_add_self())

        created = await self.create({"trip_id": trip_id, "user_id": user_id, "role": role})
        if created.error is not None:
            return created
        remembered = await self._guard("invite_by_email", lambda: self._remember_email(user_id, email))
        if remembered.error is not None:
            return Result(error=remembered.error)
        return Result(data=created.data.model_copy(update={"email": email}))


class LocalPackingItemRepository(LocalRepository[PackingItem]):
    TABLE = "packing_items"
    MODEL = PackingItem

    async def find_by_trip_id(self, trip_id: str) -> Result[list[PackingItem]]:
        return await self._guard(
            "find_by_trip_id",
            lambda: self._select({"trip_id": trip_id}, order_by="title"),
        )

    async def toggle_packed(self, item_id: str, is_packed: bool) -> Result[None]:
        updated = await self.update(item_id, {"is_packed": is_packed})
        return Result(error=updated.error)


class LocalBudgetEntryRepository(LocalRepository[BudgetEntry]):
    TABLE = "budget_entries"
    MODEL = BudgetEntry

    async def find_by_trip_id(self, trip_id: str) -> Result[list[BudgetEntry]]:
        return await self._guard(
            "find_by_trip_id",
            lambda: self._select({"trip_id": trip_id}, descending=True),
        )


class LocalTimelineEventRepository(LocalRepository[TimelineEvent]):
    TABLE = "timeline_events"
    MODEL = TimelineEvent

    async def find_by_trip_id(self, trip_id: str) -> Result[list[TimelineEvent]]:
        return await self._guard(
            "find_by_trip_id",
            lambda: self._select({"trip_id": trip_id}, order_by="date_time"),
        )


class LocalDocumentRepository(LocalRepository[TripDocument]):
    TABLE = "documents"
    MODEL = TripDocument

    async def find_by_trip_id(self, trip_id: str) -> Result[list[TripDocument]]:
        return await self._guard(
            "find_by_trip_id",
            lambda: self._select({"trip_id": trip_id}, descending=True),
        )
