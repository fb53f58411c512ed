"""
Shopping List and Shopping Item Repositories (Supabase).
"""

from __future__ import annotations

from homebase.models.result import Result
from homebase.models.shopping import ShoppingItem, ShoppingList
from homebase.repositories.base_repository import BaseRepository


class SupabaseShoppingListRepository(BaseRepository[ShoppingList]):
    TABLE = "shopping_lists"
    MODEL = ShoppingList

    async def find_by_household_id(self, household_id: str) -> Result[list[ShoppingList]]:
        """Lists of a household, newest first."""
        return await self._query(
            "find_by_household_id",
            lambda: self._select({"household_id": household_id}, descending=True),
        )


class SupabaseShoppingItemRepository(BaseRepository[ShoppingItem]):
    TABLE = "shopping_items"
    MODEL = ShoppingItem

    async def find_by_list_id(self, list_id: str) -> Result[list[ShoppingItem]]:
        """Items of a list in the order they were added."""
        return await self._query(
            "find_by_list_id",
            lambda: self._select({"list_id": list_id}),
        )
