"""
Wishlist and WishlistItem Models.

``visibility`` is the authoritative access tier.  Older rows only carry
the boolean ``is_public``; they are read as ``public`` / ``private``
accordingly, and ``is_public`` is always re-derived from ``visibility``
so older consumers keep working.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from homebase.models.enums import ItemPriority, WishlistVisibility
from homebase.models.record import Record


def _visibility_from_legacy(data: object) -> object:
    """Fill ``visibility`` from the legacy ``is_public`` flag when absent."""
    if isinstance(data, Mapping) and not data.get("visibility") and "is_public" in data:
        data = dict(data)
        data["visibility"] = (
            WishlistVisibility.PUBLIC if data.get("is_public") else WishlistVisibility.PRIVATE
        )
    return data


class Wishlist(Record):
    """A user's wishlist, optionally scoped to a household member."""

    user_id: str
    member_id: Optional[str] = None
    household_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    visibility: WishlistVisibility = WishlistVisibility.PRIVATE
    is_public: bool = False
    share_slug: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_visibility(cls, data: object) -> object:
        return _visibility_from_legacy(data)

    @model_validator(mode="after")
    def _derive_is_public(self) -> "Wishlist":
        self.is_public = self.visibility == WishlistVisibility.PUBLIC
        return self


class CreateWishlistDto(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    visibility: Optional[WishlistVisibility] = None
    is_public: Optional[bool] = None
    member_id: Optional[str] = None
    household_id: Optional[str] = None
    user_id: Optional[str] = None
    share_slug: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_visibility(cls, data: object) -> object:
        return _visibility_from_legacy(data)


class UpdateWishlistDto(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    visibility: Optional[WishlistVisibility] = None
    is_public: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_visibility(cls, data: object) -> object:
        return _visibility_from_legacy(data)


class WishlistItem(Record):
    """An item on a wishlist, with its reservation sub-state.

    ``is_reserved``, ``reserved_by_email``, ``reserved_by_name`` and
    ``reserved_at`` always transition together.
    """

    wishlist_id: str
    title: str
    description: Optional[str] = None
    link: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: str = "EUR"
    image_url: Optional[str] = None
    priority: ItemPriority = ItemPriority.MEDIUM
    is_reserved: bool = False
    reserved_by_email: Optional[str] = None
    reserved_by_name: Optional[str] = None
    reserved_at: Optional[datetime] = None


class CreateWishlistItemDto(BaseModel):
    wishlist_id: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    link: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: str = "EUR"
    image_url: Optional[str] = None
    priority: ItemPriority = ItemPriority.MEDIUM


class UpdateWishlistItemDto(BaseModel):
    """Editable item fields.  Reservation fields are deliberately absent:
    they only change through the reservation transitions."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    link: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    image_url: Optional[str] = None
    priority: Optional[ItemPriority] = None
