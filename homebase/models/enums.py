"""
Shared Enumerations for homebase Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so rows read back from JSON or PostgREST match without conversion.
"""

from __future__ import annotations
from enum import StrEnum


class MemberRole(StrEnum):
    """Roles a member can hold inside a household.

    ``CHILD`` members have no login identity (``user_id`` is ``None``);
    they are authored and managed by a parent account.
    """

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    CHILD = "child"
    VIEWER = "viewer"


class MemberLifecycle(StrEnum):
    """Lifecycle state of a member row.

    Members are soft-deleted: removal keeps the row and marks it
    ``REMOVED`` (``is_active = False``) so wishlists and shopping history
    authored by that member stay attributable.
    """

    ACTIVE = "active"
    REMOVED = "removed"


class DeletePolicy(StrEnum):
    """How a repository's ``remove`` semantics are implemented."""

    HARD = "hard"
    SOFT = "soft"


class WishlistVisibility(StrEnum):
    """Access tier of a wishlist."""

    PRIVATE = "private"
    HOUSEHOLD = "household"
    PUBLIC = "public"


class ItemPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ShoppingListStatus(StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class TripStatus(StrEnum):
    PLANNING = "planning"
    BOOKED = "booked"
    READY = "ready"
    TRAVELING = "traveling"
    COMPLETED = "completed"


class TripMemberRole(StrEnum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


class PackingCategory(StrEnum):
    ADULT = "adult"
    KID = "kid"
    BABY = "baby"
    ROADTRIP = "roadtrip"
    CUSTOM = "custom"
