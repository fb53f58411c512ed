"""
Household and Member Models.

A household owns a set of members.  Members are soft-deleted
(``is_active = False``); children have no login identity and therefore
no ``user_id``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from homebase.models.enums import MemberLifecycle, MemberRole
from homebase.models.record import Record


class Household(Record):
    """A tenant: the unit every other household-scoped entity belongs to."""

    name: str
    slug: Optional[str] = None
    created_by: Optional[str] = None
    is_active: bool = True
    settings: dict[str, Any] = Field(default_factory=dict)


class CreateHouseholdDto(BaseModel):
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    created_by: Optional[str] = None


class UpdateHouseholdDto(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    settings: Optional[dict[str, Any]] = None


class Member(Record):
    """A person inside a household.

    ``email`` is populated on read from the user directory (the
    ``get_email_by_user_id`` function remotely, the local directory of
    invited users otherwise) and is never stored on the member row.
    """

    household_id: str
    user_id: Optional[str] = None
    role: MemberRole = MemberRole.MEMBER
    display_name: str = ""
    date_of_birth: Optional[date] = None
    avatar_url: Optional[str] = None
    is_active: bool = True
    joined_at: Optional[datetime] = None
    invited_by: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    email: Optional[str] = None

    @property
    def lifecycle(self) -> MemberLifecycle:
        return MemberLifecycle.ACTIVE if self.is_active else MemberLifecycle.REMOVED

    @property
    def is_child(self) -> bool:
        return self.role == MemberRole.CHILD


class CreateMemberDto(BaseModel):
    household_id: Optional[str] = None
    user_id: Optional[str] = None
    role: MemberRole = MemberRole.MEMBER
    display_name: str = ""
    date_of_birth: Optional[date] = None
    avatar_url: Optional[str] = None
    invited_by: Optional[str] = None


class UpdateMemberDto(BaseModel):
    role: Optional[MemberRole] = None
    display_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    avatar_url: Optional[str] = None
    is_active: Optional[bool] = None
    metadata: Optional[dict[str, Any]] = None
