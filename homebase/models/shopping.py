"""
Shopping List and Shopping Item Models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from homebase.models.enums import ShoppingListStatus
from homebase.models.record import Record


class ShoppingList(Record):
    """A household-scoped shopping list."""

    household_id: str
    title: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_by_member_id: Optional[str] = None
    status: ShoppingListStatus = ShoppingListStatus.ACTIVE


class CreateShoppingListDto(BaseModel):
    household_id: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_by_member_id: Optional[str] = None
    status: ShoppingListStatus = ShoppingListStatus.ACTIVE


class UpdateShoppingListDto(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[ShoppingListStatus] = None


class ShoppingItem(Record):
    list_id: str
    title: str
    quantity: int = Field(default=1, ge=0)
    category: Optional[str] = None
    is_purchased: bool = False
    added_by: Optional[str] = None
    purchased_by: Optional[str] = None
    purchased_at: Optional[datetime] = None


class CreateShoppingItemDto(BaseModel):
    list_id: str
    title: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=0)
    category: Optional[str] = None
    added_by: Optional[str] = None


class UpdateShoppingItemDto(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = None
    is_purchased: Optional[bool] = None
    purchased_by: Optional[str] = None
    purchased_at: Optional[datetime] = None
