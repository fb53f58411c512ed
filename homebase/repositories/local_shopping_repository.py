"""
Shopping List and Shopping Item Repositories (local store).
"""

from __future__ import annotations

from homebase.models.result import Result
from homebase.models.shopping import ShoppingItem, ShoppingList
from homebase.repositories.local_repository import LocalRepository


class LocalShoppingListRepository(LocalRepository[ShoppingList]):
    TABLE = "shopping_lists"
    MODEL = ShoppingList

    async def find_by_household_id(self, household_id: str) -> Result[list[ShoppingList]]:
        return await self._guard(
            "find_by_household_id",
            lambda: self._select({"household_id": household_id}, descending=True),
        )


class LocalShoppingItemRepository(LocalRepository[ShoppingItem]):
    TABLE = "shopping_items"
    MODEL = ShoppingItem

    async def find_by_list_id(self, list_id: str) -> Result[list[ShoppingItem]]:
        return await self._guard(
            "find_by_list_id",
            lambda: self._select({"list_id": list_id}),
        )
