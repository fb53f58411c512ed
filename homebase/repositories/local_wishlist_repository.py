"""
Wishlist and Wishlist Item Repositories (local store).
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from homebase.logger import StructuredLogger
from homebase.models.enums import WishlistVisibility
from homebase.models.household import Member
from homebase.models.result import Result, ResultError, record_not_found, validation_failure
from homebase.models.wishlist import Wishlist, WishlistItem
from homebase.repositories.base_repository import to_payload
from homebase.repositories.filters import (
    children_wishlists,
    is_publicly_shared,
    personal_wishlists,
    visible_household_wishlists,
    wishlist_not_found,
)
from homebase.repositories.interfaces import Dto, MemberRepository
from homebase.repositories.local_repository import LocalRepository
from homebase.repositories.reservation import ReservationMixin
from homebase.repositories.wishlist_repository import (
    normalize_wishlist_payload,
    resolve_wishlist_owner,
)
from homebase.storage import StorageAdapter
from homebase.utils.general import utc_now


class LocalWishlistRepository(LocalRepository[Wishlist]):
    TABLE = "wishlists"
    MODEL = Wishlist

    def __init__(
        self,
        storage: StorageAdapter,
        logger: StructuredLogger,
        members: MemberRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(storage, logger, clock)
        self._members = members

    def _prepare_payload(self, payload: dict[str, Any], partial: bool) -> dict[str, Any]:
        return normalize_wishlist_payload(payload)

    async def _check_member(self, member_id: str, household_id: str) -> None:
        """A wishlist's member must be active in the wishlist's household."""
        member = await self._members.find_by_id(member_id)
        if member.error is not None:
            raise ResultError(member.error)
        if member.data.household_id != household_id or not member.data.is_active:
            raise ResultError(validation_failure(
                f"Member {member_id} is not an active member of household {household_id}"
            ))

    async def create(self, dto: Dto) -> Result[Wishlist]:
        async def _op() -> Wishlist:
            payload = await resolve_wishlist_owner(to_payload(dto), self._members)
            await self._check_member(payload["member_id"], payload["household_id"])
            payload = normalize_wishlist_payload(payload)
            payload.setdefault("visibility", WishlistVisibility.PRIVATE.value)
            return (await self._insert([payload]))[0]

        return await self._guard("create", _op)

    async def update(self, record_id: str, dto: Dto) -> Result[Wishlist]:
        """Update a wishlist, re-checking its member when the owner moves.

        A patch touching ``member_id`` or ``household_id`` is merged with
        the stored row first; the resulting member must be active in the
        resulting household.
        """
        patch = to_payload(dto, partial=True)
        if "member_id" in patch or "household_id" in patch:

            async def _check() -> None:
                stored = await self._select({"id": record_id})
                if not stored:
                    raise ResultError(record_not_found(record_id))
                member_id = patch.get("member_id", stored[0].member_id)
                household_id = patch.get("household_id", stored[0].household_id)
                if member_id is not None:
                    await self._check_member(member_id, household_id)

            checked = await self._guard("update", _check)
            if checked.error is not None:
                return Result(error=checked.error)

        return await super().update(record_id, dto)

    async def find_by_user_id(self, user_id: str) -> Result[list[Wishlist]]:
        return await self._guard(
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
            wishlists = await self._select({"household_id": household_id})
            members = await self._household_members(household_id)
            return visible_household_wishlists(
                wishlists, members, household_id, exclude_user_id,
            )

        return await self._guard("find_by_household_id", _op)

    async def find_by_slug(self, slug: str) -> Result[Wishlist]:
        async def _op() -> Wishlist:
            for wishlist in await self._select({"share_slug": slug}):
                if is_publicly_shared(wishlist):
                    return wishlist
            raise ResultError(wishlist_not_found())

        return await self._guard("find_by_slug", _op)

    async def find_children_wishlists(
        self, user_id: str, household_id: str,
    ) -> Result[list[Wishlist]]:
        async def _op() -> list[Wishlist]:
            wishlists = await self._select({"user_id": user_id, "household_id": household_id})
            members = await self._household_members(household_id)
            return children_wishlists(wishlists, members, user_id, household_id)

        return await self._guard("find_children_wishlists", _op)

    async def find_personal_wishlists(
        self, user_id: str, household_id: str,
    ) -> Result[list[Wishlist]]:
        async def _op() -> list[Wishlist]:
            wishlists = await self._select({"user_id": user_id, "household_id": household_id})
            members = await self._household_members(household_id)
            return personal_wishlists(wishlists, members, user_id, household_id)

        return await self._guard("find_personal_wishlists", _op)


class LocalWishlistItemRepository(ReservationMixin, LocalRepository[WishlistItem]):
    TABLE = "wishlist_items"
    MODEL = WishlistItem

    async def find_by_wishlist_id(self, wishlist_id: str) -> Result[list[WishlistItem]]:
        return await self._guard(
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
        return await self.update(item_id, patch)
