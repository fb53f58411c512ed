from __future__ import annotations

"""
Data Models Package.

Re-exports all Pydantic models for short imports:
    from homebase.models import Household, Member, Wishlist, WishlistItem
    from homebase.models import Result, ApiError, ErrorCode
"""

from homebase.models.enums import (
    DeletePolicy,
    ItemPriority,
    MemberLifecycle,
    MemberRole,
    PackingCategory,
    ShoppingListStatus,
    TripMemberRole,
    TripStatus,
    WishlistVisibility,
)
from homebase.models.household import (
    CreateHouseholdDto,
    CreateMemberDto,
    Household,
    Member,
    UpdateHouseholdDto,
    UpdateMemberDto,
)
from homebase.models.record import Record
from homebase.models.result import ApiError, ErrorCode, Result, to_api_error
from homebase.models.shopping import (
    CreateShoppingItemDto,
    CreateShoppingListDto,
    ShoppingItem,
    ShoppingList,
    UpdateShoppingItemDto,
    UpdateShoppingListDto,
)
from homebase.models.trip import (
    BudgetEntry,
    CreateBudgetEntryDto,
    CreatePackingItemDto,
    CreateTimelineEventDto,
    CreateTripDocumentDto,
    CreateTripDto,
    CreateTripMemberDto,
    PackingItem,
    TimelineEvent,
    Trip,
    TripDocument,
    TripMember,
    UpdateTripDto,
)
from homebase.models.wishlist import (
    CreateWishlistDto,
    CreateWishlistItemDto,
    UpdateWishlistDto,
    UpdateWishlistItemDto,
    Wishlist,
    WishlistItem,
)

__all__ = [
    "ApiError",
    "BudgetEntry",
    "CreateBudgetEntryDto",
    "CreateHouseholdDto",
    "CreateMemberDto",
    "CreatePackingItemDto",
    "CreateShoppingItemDto",
    "CreateShoppingListDto",
    "CreateTimelineEventDto",
    "CreateTripDocumentDto",
    "CreateTripDto",
    "CreateTripMemberDto",
    "CreateWishlistDto",
    "CreateWishlistItemDto",
    "DeletePolicy",
    "ErrorCode",
    "Household",
    "ItemPriority",
    "Member",
    "MemberLifecycle",
    "MemberRole",
    "PackingCategory",
    "PackingItem",
    "Record",
    "Result",
    "ShoppingItem",
    "ShoppingList",
    "ShoppingListStatus",
    "TimelineEvent",
    "Trip",
    "TripDocument",
    "TripMember",
    "TripMemberRole",
    "TripStatus",
    "UpdateHouseholdDto",
    "UpdateMemberDto",
    "UpdateShoppingItemDto",
    "UpdateShoppingListDto",
    "UpdateTripDto",
    "UpdateWishlistDto",
    "UpdateWishlistItemDto",
    "Wishlist",
    "WishlistItem",
    "WishlistVisibility",
    "to_api_error",
]
