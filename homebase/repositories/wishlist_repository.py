"""
Wishlist and Wishlist Item Repositories (Supabase).

Visibility and partition rules are evaluated by
:mod:`homebase.repositories.filters` on the fetched rows, so the remote
answers match the local store exactly.  Reservations go through the
``reserve_wishlist_item`` RPC because anonymous visitors cannot update
``wishlist_items`` directly.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from supabase import AsyncClient

from homebase.logger import StructuredLogger
from homebase.models.enums import WishlistVisibility
from homebase.models.household import Member
from homebase.models.result import (
    ApiError,
    ErrorCode,
    Result,
    ResultError,
    validation_failure,
)
from homebase.models.wishlist import Wishlist, WishlistItem
from homebase.repositories.base_repository import BaseRepository, to_payload
from homebase.repositories.filters import (
    SHARED_VISIBILITIES,
    children_wishlists,
    is_publicly_shared,
    personal_wishlists,
    visible_household_wishlists,
    wishlist_not_found,
)
from homebase.repositories.interfaces import Dto, MemberRepository
from homebase.repositories.reservation import ReservationMixin
from homebase.utils.general import utc_now

NO_HOUSEHOLD_MESSAGE = "User must belong to a household to create wishlists"


def normalize_wishlist_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Keep ``visibility`` and the legacy ``is_public`` column in step.

    A payload carrying only ``is_public`` is translated to a visibility;
    whenever a visibility is present ``is_public`` is derived from it.
    """
    payload = dict(payload)
    if not payload.get("visibility") and payload.get("is_public") is not None:
        payload["visibility"] = (
            WishlistVisibility.PUBLIC if payload["is_public"] else WishlistVisibility.PRIVATE
        ).value
    if payload.get("visibility"):
        payload["is_public"] = payload["visibility"] == WishlistVisibility.PUBLIC
    else:
        payload.pop("visibility", None)
        payload.pop("is_public", None)
    return payload


async def resolve_wishlist_owner(
    payload: dict[str, Any], members: MemberRepository,
) -> dict[str, Any]:
    """Fill ``member_id`` / ``household_id`` from the author's membership.

    When either is missing both are taken from the author's earliest
    active membership.  Raises :class:`ResultError` when the author has
    none.
    """
    user_id = payload.get("user_id")
    if not user_id:
        raise ResultError(validation_failure("user_id is required to create a wishlist"))
    if payload.get("member_id") and payload.get("household_id"):
        return payload

    membership = await members.find_active_membership(str(user_id))
    if membership.error is not None:
        raise ResultError(ApiError(
            message=NO_HOUSEHOLD_MESSAGE,
            code=membership.error.code,
            details=membership.error.details,
        ))
    if membership.data is None:
        raise ResultError(ApiError(
            message=NO_HOUSEHOLD_MESSAGE, code=ErrorCode.VALIDATION_FAILED,
        ))
    return {
        **payload,
        "member_id": membership.data.id,
        "household_id": membership.data.household_id,
    }


class SupabaseWishlistRepository(BaseRepository[Wishlist]):
    """Data access layer for Wishlist entities."""

    TABLE = "wishlists"
    MODEL = Wishlist

    def __init__(
        self,
        supabase: AsyncClient,
        logger: StructuredLogger,
        members: MemberRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(supabase, logger, clock)
        self._members = members

    def _prepare_payload(self, payload: dict[str, Any], partial: bool) -> dict[str, Any]:
        return normalize_wishlist_payload(payload)

    async def create(self, dto: Dto) -> Result[Wishlist]:
        """Insert a wishlist, resolving its member and household first."""
        async def _op() -> Wishlist:
            payload = await resolve_wishlist_owner(to_payload(dto), self._members)
            payload = self._prepare_payload(payload, partial=False)
            payload.setdefault("visibility", WishlistVisibility.PRIVATE.value)
            payload.setdefault("is_public", False)
            response = await self.supabase.table(self.TABLE).insert(payload).execute()
            return self._to_entity(response.data[0])

        return await self._query("create", _op)

    async def find_by_user_id(self, user_id: str) -> Result[list[Wishlist]]:
        return await self._query(
            "find_by_user_id",
            lambda: self._select({"user_id": user_id}, descending=True),
        )

    async def _household_members(self, household_id: str) -> list[Member]:
        return await self._select(
            {"household_id": household_id}, table="members", model=Member,
        )

    async def find_by_household_id(
        self, household_id: str, exclude_user_id: Optional[str] = None,
    ) -> Result[list[Wishlist]]:
        async def _op() -> list[Wishlist]:
            wishlists = await self._select(
                {"household_id": household_id, "visibility": list(SHARED_VISIBILITIES)},
                descending=True,
            )
            members = await self._household_members(household_id)
            return visible_household_wishlists(
                wishlists, members, household_id, exclude_user_id,
            )

        return await self._query("find_by_household_id", _op)

    async def find_by_slug(self, slug: str) -> Result[Wishlist]:
        """Public lookup.  A private slug is reported exactly like a missing one."""
        async def _op() -> Wishlist:
            for wishlist in await self._select({"share_slug": slug}):
                if is_publicly_shared(wishlist):
                    return wishlist
            raise ResultError(wishlist_not_found())

        return await self._query("find_by_slug", _op)

    async def find_children_wishlists(
        self, user_id: str, household_id: str,
    ) -> Result[list[Wishlist]]:
        async def _op() -> list[Wishlist]:
            wishlists = await self._select(
                {"user_id": user_id, "household_id": household_id}, descending=True,
            )
            members = await self._household_members(household_id)
            return children_wishlists(wishlists, members, user_id, household_id)

        return await self._query("find_children_wishlists", _op)

    async def find_personal_wishlists(
        self, user_id: str, household_id: str,
    ) -> Result[list[Wishlist]]:
        async def _op() -> list[Wishlist]:
            wishlists = await self._select(
                {"user_id": user_id, "household_id": household_id}, descending=True,
            )
            members = await self._household_members(household_id)
            return personal_wishlists(wishlists, members, user_id, household_id)

        return await self._query("find_personal_wishlists", _op)


class SupabaseWishlistItemRepository(ReservationMixin, BaseRepository[WishlistItem]):
    """Data access layer for WishlistItem entities."""

    TABLE = "wishlist_items"
    MODEL = WishlistItem

    async def find_by_wishlist_id(self, wishlist_id: str) -> Result[list[WishlistItem]]:
        return await self._query(
            "find_by_wishlist_id",
            lambda: self._select({"wishlist_id": wishlist_id}),
        )

    async def _apply_reservation(
        self,
        item_id: str,
        reserve: bool,
        patch: dict[str, Any],
        email: Optional[str],
    ) -> Result[WishlistItem]:
        """Run the reservation RPC, then re-read the item.

        The database function enforces the same email rule server-side.
        """
        rpc = await self._query(
            "reserve_wishlist_item",
            lambda: self._rpc("reserve_wishlist_item", {
                "p_item_id": item_id,
                "p_reserved": reserve,
                "p_email": email,
                "p_name": patch.get("reserved_by_name"),
            }),
        )
        if rpc.error is not None:
            return Result(error=rpc.error)
        return await self.find_by_id(item_id)
