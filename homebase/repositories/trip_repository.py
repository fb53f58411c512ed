"""
Trip Repositories (Supabase).

Covers trips, their shared members and the per-trip collections
(packing list, budget, timeline, documents).
"""

from __future__ import annotations

from typing import Any, Optional

from homebase.models.enums import TripMemberRole, TripStatus
from homebase.models.result import Result
from homebase.models.trip import (
    BudgetEntry,
    PackingItem,
    TimelineEvent,
    Trip,
    TripDocument,
    TripMember,
)
from homebase.repositories.base_repository import BaseRepository
from homebase.repositories.filters import merge_records
from homebase.repositories.household_repository import cannot_add_self, user_not_found


def duplicate_trip_payload(trip: Trip) -> dict[str, Any]:
    """Creation payload of a copy of *trip*, back in planning."""
    return {
        "name": f"Copy of {trip.name}",
        "start_date": trip.start_date,
        "end_date": trip.end_date,
        "status": TripStatus.PLANNING,
        "created_by": trip.created_by,
    }


class SupabaseTripRepository(BaseRepository[Trip]):
    TABLE = "trips"
    MODEL = Trip

    async def find_by_user_id(self, user_id: str) -> Result[list[Trip]]:
        """Trips the user created or was invited to, by start date."""
        async def _op() -> list[Trip]:
            own = await self._select({"created_by": user_id}, order_by="start_date")
            memberships = await self._select(
                {"user_id": user_id}, table="trip_members", model=TripMember,
            )
            known = {trip.id for trip in own}
            shared_ids = [m.trip_id for m in memberships if m.trip_id not in known]
            shared = (
                await self._select({"id": shared_ids}, order_by="start_date")
                if shared_ids else []
            )
            return merge_records((own, shared), "start_date")

        return await self._query("find_by_user_id", _op)

    async def duplicate(self, trip: Trip) -> Result[Trip]:
        return await self.create(duplicate_trip_payload(trip))


class SupabaseTripMemberRepository(BaseRepository[TripMember]):
    TABLE = "trip_members"
    MODEL = TripMember

    async def find_by_trip_id(self, trip_id: str) -> Result[list[TripMember]]:
        """Members of a trip with their email populated."""
        result = await self._query(
            "find_by_trip_id", lambda: self._select({"trip_id": trip_id}),
        )
        if result.error is not None:
            return result

        members: list[TripMember] = []
        for member in result.data:
            email = await self._query(
                "get_email_by_user_id",
                lambda: self._rpc("get_email_by_user_id", {"lookup_user_id": member.user_id}),
            )
            members.append(member.model_copy(update={"email": email.data or None}))
        return Result(data=members)

    async def invite_by_email(
        self,
        trip_id: str,
        email: str,
        role: TripMemberRole = TripMemberRole.VIEWER,
        current_user_id: Optional[str] = None,
    ) -> Result[TripMember]:
        lookup = await self._query(
            "get_user_id_by_email",
            lambda: self._rpc("get_user_id_by_email", {"lookup_email": email}),
        )
        if lookup.error is not None:
            return Result(error=user_not_found(lookup.error))
        if not lookup.data:
            return Result(error=user_not_found())

        user_id = str(lookup.data)
        if current_user_id and user_id == current_user_id:
            return Result(error=cannot_add_self())

        created = await self.create({"trip_id": trip_id, "user_id": user_id, "role": role})
        if created.error is not None:
            return created
        return Result(data=created.data.model_copy(update={"email": email}))


class SupabasePackingItemRepository(BaseRepository[PackingItem]):
    TABLE = "packing_items"
    MODEL = PackingItem

    async def find_by_trip_id(self, trip_id: str) -> Result[list[PackingItem]]:
        return await self._query(
            "find_by_trip_id",
            lambda: self._select({"trip_id": trip_id}, order_by="title"),
        )

    async def toggle_packed(self, item_id: str, is_packed: bool) -> Result[None]:
        updated = await self.update(item_id, {"is_packed": is_packed})
        return Result(error=updated.error)


class SupabaseBudgetEntryRepository(BaseRepository[BudgetEntry]):
    TABLE = "budget_entries"
    MODEL = BudgetEntry

    async def find_by_trip_id(self, trip_id: str) -> Result[list[BudgetEntry]]:
        return await self._query(
            "find_by_trip_id",
            lambda: self._select({"trip_id": trip_id}, descending=True),
        )


class SupabaseTimelineEventRepository(BaseRepository[TimelineEvent]):
    TABLE = "timeline_events"
    MODEL = TimelineEvent

    async def find_by_trip_id(self, trip_id: str) -> Result[list[TimelineEvent]]:
        return await self._query(
            "find_by_trip_id",
            lambda: self._select({"trip_id": trip_id}, order_by="date_time"),
        )


class SupabaseDocumentRepository(BaseRepository[TripDocument]):
    TABLE = "documents"
    MODEL = TripDocument

    async def find_by_trip_id(self, trip_id: str) -> Result[list[TripDocument]]:
        return await self._query(
            "find_by_trip_id",
            lambda: self._select({"trip_id": trip_id}, descending=True),
        )
