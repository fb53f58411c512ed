"""
Repository Interfaces.

One ``typing.Protocol`` per repository type.  The remote and local
implementations both satisfy these structurally, and the factories in
:mod:`homebase.repositories.factories` are annotated with the Protocol,
never with a concrete class.  Services depend on these types only.

``Dto`` is either a pydantic model (dumped in JSON mode)
or a plain mapping of column names to values.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any, Optional, Protocol, TypeVar, Union

from pydantic import BaseModel

from homebase.models.enums import DeletePolicy, TripMemberRole
from homebase.models.household import Household, Member
from homebase.models.result import Result
from homebase.models.shopping import ShoppingItem, ShoppingList
from homebase.models.trip import (
    BudgetEntry,
    PackingItem,
    TimelineEvent,
    Trip,
    TripDocument,
    TripMember,
)
from homebase.models.wishlist import Wishlist, WishlistItem

TEntity = TypeVar("TEntity")

Dto = Union[BaseModel, Mapping[str, Any]]
Filters = Mapping[str, Any]


class Repository(Protocol[TEntity]):
    """Generic CRUD contract shared by every repository."""

    DELETE_POLICY: DeletePolicy

    async def find_all(self, filters: Optional[Filters] = None) -> Result[list[TEntity]]: ...

    async def find_by_id(self, record_id: str) -> Result[TEntity]: ...

    async def create(self, dto: Dto) -> Result[TEntity]: ...

    async def create_many(self, dtos: Sequence[Dto]) -> Result[list[TEntity]]: ...

    async def update(self, record_id: str, dto: Dto) -> Result[TEntity]: ...

    async def upsert(self, dto: Dto) -> Result[TEntity]: ...

    async def delete(self, record_id: str) -> Result[None]: ...


class HouseholdRepository(Repository[Household], Protocol):
    async def find_by_user_id(self, user_id: str) -> Result[list[Household]]: ...

    async def create_with_owner(
        self,
        name: str,
        user_id: str,
        display_name: Optional[str] = None,
    ) -> Result[Household]: ...


class MemberRepository(Repository[Member], Protocol):
    async def find_by_household_id(
        self, household_id: str, include_inactive: bool = False,
    ) -> Result[list[Member]]: ...

    async def find_active_membership(
        self, user_id: str, household_id: Optional[str] = None,
    ) -> Result[Optional[Member]]: ...

    async def create_child(
        self,
        household_id: str,
        name: str,
        date_of_birth: Optional[date] = None,
        avatar_url: Optional[str] = None,
    ) -> Result[str]: ...

    async def invite_by_email(
        self,
        household_id: str,
        email: str,
        current_user_id: Optional[str] = None,
    ) -> Result[Member]: ...

    async def soft_delete(self, member_id: str) -> Result[None]: ...


class WishlistRepository(Repository[Wishlist], Protocol):
    async def find_by_user_id(self, user_id: str) -> Result[list[Wishlist]]: ...

    async def find_by_household_id(
        self, household_id: str, exclude_user_id: Optional[str] = None,
    ) -> Result[list[Wishlist]]: ...

    async def find_by_slug(self, slug: str) -> Result[Wishlist]: ...

    async def find_children_wishlists(
        self, user_id: str, household_id: str,
    ) -> Result[list[Wishlist]]: ...

    async def find_personal_wishlists(
        self, user_id: str, household_id: str,
    ) -> Result[list[Wishlist]]: ...


class WishlistItemRepository(Repository[WishlistItem], Protocol):
    async def find_by_wishlist_id(self, wishlist_id: str) -> Result[list[WishlistItem]]: ...

    async def toggle_reservation(
        self, item_id: str, email: Optional[str], name: Optional[str] = None,
    ) -> Result[WishlistItem]: ...


class ShoppingListRepository(Repository[ShoppingList], Protocol):
    async def find_by_household_id(self, household_id: str) -> Result[list[ShoppingList]]: ...


class ShoppingItemRepository(Repository[ShoppingItem], Protocol):
    async def find_by_list_id(self, list_id: str) -> Result[list[ShoppingItem]]: ...


class TripRepository(Repository[Trip], Protocol):
    async def find_by_user_id(self, user_id: str) -> Result[list[Trip]]: ...

    async def duplicate(self, trip: Trip) -> Result[Trip]: ...


class TripMemberRepository(Repository[TripMember], Protocol):
    async def find_by_trip_id(self, trip_id: str) -> Result[list[TripMember]]: ...

    async def invite_by_email(
        self,
        trip_id: str,
        email: str,
        role: TripMemberRole = TripMemberRole.VIEWER,
        current_user_id: Optional[str] = None,
    ) -> Result[TripMember]: ...


class PackingItemRepository(Repository[PackingItem], Protocol):
    async def find_by_trip_id(self, trip_id: str) -> Result[list[PackingItem]]: ...

    async def toggle_packed(self, item_id: str, is_packed: bool) -> Result[None]: ...


class BudgetEntryRepository(Repository[BudgetEntry], Protocol):
    async def find_by_trip_id(self, trip_id: str) -> Result[list[BudgetEntry]]: ...


class TimelineEventRepository(Repository[TimelineEvent], Protocol):
    async def find_by_trip_id(self, trip_id: str) -> Result[list[TimelineEvent]]: ...


class DocumentRepository(Repository[TripDocument], Protocol):
    async def find_by_trip_id(self, trip_id: str) -> Result[list[TripDocument]]: ...
