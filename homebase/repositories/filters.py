"""
Relational Filter Layer.

Pure functions shared by the remote and local repositories.  Each engine
only differs in how it fetches candidate rows; the membership,
visibility and partition rules below are applied to the fetched entities
identically, so both backends answer every query the same way.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional, TypeVar

from homebase.models.enums import MemberRole, WishlistVisibility
from homebase.models.household import Household, Member
from homebase.models.result import ApiError, not_found
from homebase.utils.general import convert_to_json_safe

T = TypeVar("T")

__all__ = [
    "SHARED_VISIBILITIES",
    "child_member_ids",
    "children_wishlists",
    "is_publicly_shared",
    "matches",
    "merge_households",
    "merge_records",
    "personal_wishlists",
    "sort_records",
    "visible_household_wishlists",
    "wishlist_not_found",
]

SHARED_VISIBILITIES: tuple[str, ...] = (
    WishlistVisibility.HOUSEHOLD,
    WishlistVisibility.PUBLIC,
)

WISHLIST_NOT_FOUND_MESSAGE: str = "Wishlist not found"


# ---------------------------------------------------------------------------
# Generic row predicates
# ---------------------------------------------------------------------------

def matches(row: Mapping[str, Any], filters: Optional[Mapping[str, Any]]) -> bool:
    """``True`` when *row* satisfies every ``column -> value`` filter.

    A collection value means membership, ``None`` means IS NULL, anything
    else is equality on the JSON form of the value.
    """
    for column, expected in (filters or {}).items():
        actual = row.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in [convert_to_json_safe(v) for v in expected]:
                return False
        elif expected is None:
            if actual is not None:
                return False
        elif actual != convert_to_json_safe(expected):
            return False
    return True


def sort_records(records: Iterable[T], attr: str, descending: bool = False) -> list[T]:
    """Sort by *attr* the way PostgREST does: NULLs last when ascending,
    first when descending.  Ties keep their stored order."""
    return sorted(
        records,
        key=lambda record: (getattr(record, attr) is None, getattr(record, attr)),
        reverse=descending,
    )


# ---------------------------------------------------------------------------
# Households
# ---------------------------------------------------------------------------

def merge_records(
    groups: Iterable[Iterable[T]], order_by: str, descending: bool = False,
) -> list[T]:
    """Union of several result sets, deduplicated by id (first wins)."""
    by_id: dict[str, T] = {}
    for group in groups:
        for record in group:
            by_id.setdefault(record.id, record)  # type: ignore[attr-defined]
    return sort_records(by_id.values(), order_by, descending)


def merge_households(
    created: Iterable[Household],
    member_of: Iterable[Household],
) -> list[Household]:
    """Union of created and joined households, deduplicated, oldest first."""
    return merge_records((created, member_of), "created_at")


# ---------------------------------------------------------------------------
# Wishlists
# ---------------------------------------------------------------------------

def child_member_ids(members: Iterable[Member]) -> set[str]:
    return {member.id for member in members if member.role == MemberRole.CHILD}


def _caller_member_id(
    members: Iterable[Member], household_id: str, user_id: str,
) -> Optional[str]:
    for member in members:
        if (
            member.household_id == household_id
            and member.user_id == user_id
            and member.is_active
        ):
            return member.id
    return None


def visible_household_wishlists(
    wishlists: Iterable[Any],
    members: Sequence[Member],
    household_id: str,
    exclude_user_id: Optional[str] = None,
) -> list[Any]:
    """Wishlists of *household_id* that other members may see, newest first.

    A wishlist is shared when its visibility is ``household`` or
    ``public``.  When *exclude_user_id* is given the caller's own
    wishlists are dropped.  Ownership compares the caller's member id in
    the household with the wishlist's ``member_id``; ``user_id`` is only
    compared when one of the two member ids is unknown.  Wishlists of
    child members are always kept, because the parent who authored them
    must still see them.
    """
    children = child_member_ids(members)
    caller_member_id = (
        _caller_member_id(members, household_id, exclude_user_id)
        if exclude_user_id
        else None
    )

    visible = []
    for wishlist in wishlists:
        if wishlist.household_id != household_id:
            continue
        if wishlist.visibility not in SHARED_VISIBILITIES:
            continue
        if exclude_user_id and wishlist.member_id not in children:
            if caller_member_id and wishlist.member_id:
                own = wishlist.member_id == caller_member_id
            else:
                own = wishlist.user_id == exclude_user_id
            if own:
                continue
        visible.append(wishlist)
    return sort_records(visible, "created_at", descending=True)


def _authored_in_household(
    wishlists: Iterable[Any], user_id: str, household_id: str,
) -> list[Any]:
    return [
        w for w in wishlists
        if w.user_id == user_id and w.household_id == household_id
    ]


def children_wishlists(
    wishlists: Iterable[Any],
    members: Iterable[Member],
    user_id: str,
    household_id: str,
) -> list[Any]:
    """Wishlists *user_id* authored in *household_id* for child members."""
    children = child_member_ids(members)
    return sort_records(
        [w for w in _authored_in_household(wishlists, user_id, household_id)
         if w.member_id in children],
        "created_at",
        descending=True,
    )


def personal_wishlists(
    wishlists: Iterable[Any],
    members: Iterable[Member],
    user_id: str,
    household_id: str,
) -> list[Any]:
    """Complement of :func:`children_wishlists` over the same scope."""
    children = child_member_ids(members)
    return sort_records(
        [w for w in _authored_in_household(wishlists, user_id, household_id)
         if w.member_id not in children],
        "created_at",
        descending=True,
    )


def is_publicly_shared(wishlist: Any) -> bool:
    """Slug access rule: public visibility, or the legacy public flag."""
    return wishlist.visibility == WishlistVisibility.PUBLIC or bool(
        getattr(wishlist, "is_public", False)
    )


def wishlist_not_found() -> ApiError:
    """The one error returned for a missing *or* non-public slug."""
    return not_found(WISHLIST_NOT_FOUND_MESSAGE)
