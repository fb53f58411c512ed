"""
Shopping Service.

Household shopping lists and the purchased toggle on their items.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Optional

from homebase.logger import StructuredLogger
from homebase.models.result import Result
from homebase.models.shopping import ShoppingItem, ShoppingList
from homebase.repositories.interfaces import Dto, ShoppingItemRepository, ShoppingListRepository
from homebase.services.base_service import BaseService
from homebase.utils.general import utc_now


class ShoppingService(BaseService):

    def __init__(
        self,
        lists: ShoppingListRepository,
        items: ShoppingItemRepository,
        logger: StructuredLogger,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(logger)
        self._lists = lists
        self._items = items
        self._clock = clock

    async def get_lists(self, household_id: str) -> Result[list[ShoppingList]]:
        return await self._lists.find_by_household_id(household_id)

    async def create_list(self, dto: Dto) -> Result[ShoppingList]:
        result = await self._lists.create(dto)
        self._log_failure("create_list", result)
        return result

    async def update_list(self, list_id: str, dto: Dto) -> Result[ShoppingList]:
        return await self._lists.update(list_id, dto)

    async def delete_list(self, list_id: str) -> Result[None]:
        return await self._lists.delete(list_id)

    async def get_items(self, list_id: str) -> Result[list[ShoppingItem]]:
        return await self._items.find_by_list_id(list_id)

    async def add_item(self, dto: Dto) -> Result[ShoppingItem]:
        return await self._items.create(dto)

    async def delete_item(self, item_id: str) -> Result[None]:
        return await self._items.delete(item_id)

    async def toggle_purchased(
        self, item_id: str, user_id: Optional[str] = None,
    ) -> Result[ShoppingItem]:
        """Flip ``is_purchased``.

        Marking an item purchased records who and when; unmarking clears
        both.
        """
        current = await self._items.find_by_id(item_id)
        if current.error is not None:
            return current

        if current.data.is_purchased:
            patch = {"is_purchased": False, "purchased_by": None, "purchased_at": None}
        else:
            patch = {
                "is_purchased": True,
                "purchased_by": user_id,
                "purchased_at": self._clock().isoformat(),
            }
        return await self._items.update(item_id, patch)
