"""
Wishlist Service.

Wishlist authoring, household browsing, public sharing by slug and the
anonymous reservation flow.
"""

from __future__ import annotations

from typing import Optional

from homebase.config import AppConfig
from homebase.logger import StructuredLogger
from homebase.models.result import Result
from homebase.models.wishlist import Wishlist, WishlistItem
from homebase.repositories.base_repository import to_payload
from homebase.repositories.interfaces import Dto, WishlistItemRepository, WishlistRepository
from homebase.services.base_service import BaseService
from homebase.utils.audit import log_audit_event
from homebase.utils.string_helpers import generate_share_slug

# Attempts at drawing a share slug nobody else holds.
_SLUG_ATTEMPTS = 5


class WishlistService(BaseService):
    """Service layer for wishlists and their items."""

    def __init__(
        self,
        wishlists: WishlistRepository,
        items: WishlistItemRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._wishlists = wishlists
        self._items = items
        self._config = config

    async def _new_share_slug(self) -> str:
        slug = generate_share_slug(self._config.SHARE_SLUG_LENGTH)
        for _ in range(_SLUG_ATTEMPTS - 1):
            taken = await self._wishlists.find_all({"share_slug": slug})
            if taken.ok and not taken.data:
                break
            slug = generate_share_slug(self._config.SHARE_SLUG_LENGTH)
        return slug

    async def create_wishlist(self, dto: Dto) -> Result[Wishlist]:
        """Create a wishlist with a fresh share slug.

        ``user_id`` must be set on *dto*; the member and household are
        resolved from the author's membership when omitted.
        """
        payload = to_payload(dto)
        if not payload.get("share_slug"):
            payload["share_slug"] = await self._new_share_slug()

        result = await self._wishlists.create(payload)
        if result.error is not None:
            self._log_failure("create_wishlist", result)
            return result

        log_audit_event(
            self._logger,
            action="CREATE",
            entity_type="Wishlist",
            entity_id=result.data.id,
            user_id=result.data.user_id,
            details={"visibility": str(result.data.visibility)},
        )
        return result

    async def update_wishlist(self, wishlist_id: str, dto: Dto) -> Result[Wishlist]:
        return await self._wishlists.update(wishlist_id, dto)

    async def delete_wishlist(self, wishlist_id: str) -> Result[None]:
        return await self._wishlists.delete(wishlist_id)

    async def get_my_wishlists(self, user_id: str) -> Result[list[Wishlist]]:
        return await self._wishlists.find_by_user_id(user_id)

    async def get_household_wishlists(
        self, household_id: str, exclude_user_id: Optional[str] = None,
    ) -> Result[list[Wishlist]]:
        return await self._wishlists.find_by_household_id(household_id, exclude_user_id)

    async def get_children_wishlists(
        self, user_id: str, household_id: str,
    ) -> Result[list[Wishlist]]:
        return await self._wishlists.find_children_wishlists(user_id, household_id)

    async def get_personal_wishlists(
        self, user_id: str, household_id: str,
    ) -> Result[list[Wishlist]]:
        return await self._wishlists.find_personal_wishlists(user_id, household_id)

    async def get_shared_wishlist(self, slug: str) -> Result[Wishlist]:
        """Public page lookup.  Private and missing slugs look the same."""
        return await self._wishlists.find_by_slug(slug)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    async def get_items(self, wishlist_id: str) -> Result[list[WishlistItem]]:
        return await self._items.find_by_wishlist_id(wishlist_id)

    async def add_item(self, dto: Dto) -> Result[WishlistItem]:
        return await self._items.create(dto)

    async def update_item(self, item_id: str, dto: Dto) -> Result[WishlistItem]:
        return await self._items.update(item_id, dto)

    async def delete_item(self, item_id: str) -> Result[None]:
        return await self._items.delete(item_id)

    async def toggle_reservation(
        self,
        item_id: str,
        email: Optional[str],
        name: Optional[str] = None,
    ) -> Result[WishlistItem]:
        """Reserve or release an item on behalf of an anonymous visitor."""
        return await self._items.toggle_reservation(item_id, email, name)
