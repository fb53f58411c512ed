"""
Trip Models.

A trip is owned by its creator and may be shared with other users
through ``trip_members``.  Packing, budget, timeline and document rows
each belong to exactly one trip.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from homebase.models.enums import PackingCategory, TripMemberRole, TripStatus
from homebase.models.record import Record


class Trip(Record):
    name: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: TripStatus = TripStatus.PLANNING
    created_by: Optional[str] = None


class CreateTripDto(BaseModel):
    name: str = Field(min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: TripStatus = TripStatus.PLANNING
    created_by: Optional[str] = None


class UpdateTripDto(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[TripStatus] = None


class TripMember(Record):
    """A user a trip is shared with.  ``email`` is populated on read."""

    trip_id: str
    user_id: str
    role: TripMemberRole = TripMemberRole.VIEWER
    email: Optional[str] = None


class CreateTripMemberDto(BaseModel):
    trip_id: str
    user_id: str
    role: TripMemberRole = TripMemberRole.VIEWER


class PackingItem(Record):
    trip_id: str
    title: str
    category: PackingCategory = PackingCategory.CUSTOM
    is_packed: bool = False


class CreatePackingItemDto(BaseModel):
    trip_id: str
    title: str = Field(min_length=1)
    category: PackingCategory = PackingCategory.CUSTOM
    is_packed: bool = False


class BudgetEntry(Record):
    trip_id: str
    category: str
    amount: float
    currency: str = "EUR"
    is_planned: bool = True


class CreateBudgetEntryDto(BaseModel):
    trip_id: str
    category: str = Field(min_length=1)
    amount: float
    currency: str = "EUR"
    is_planned: bool = True


class TimelineEvent(Record):
    trip_id: str
    title: str
    date_time: Optional[datetime] = None
    notes: Optional[str] = None


class CreateTimelineEventDto(BaseModel):
    trip_id: str
    title: str = Field(min_length=1)
    date_time: Optional[datetime] = None
    notes: Optional[str] = None


class TripDocument(Record):
    trip_id: str
    title: str
    description: Optional[str] = None
    file_url: Optional[str] = None


class CreateTripDocumentDto(BaseModel):
    trip_id: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    file_url: Optional[str] = None
