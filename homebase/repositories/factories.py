"""
Backend Selection Factories.

One ``get_<name>_repository`` function per repository type.  Each is a
pure function of the backend flag: it returns the Supabase or the local
implementation, annotated with the repository Protocol so callers cannot
tell which one they hold.  Nothing above this module branches on the
flag.

:func:`create_repositories` builds the whole set once; it is called by
the composition root, :func:`homebase.services.create_services`.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Optional, TypedDict

from supabase import AsyncClient

from homebase.database import DatabaseManager
from homebase.logger import StructuredLogger
from homebase.repositories.household_repository import (
    SupabaseHouseholdRepository,
    SupabaseMemberRepository,
)
from homebase.repositories.interfaces import (
    BudgetEntryRepository,
    DocumentRepository,
    HouseholdRepository,
    MemberRepository,
    PackingItemRepository,
    ShoppingItemRepository,
    ShoppingListRepository,
    TimelineEventRepository,
    TripMemberRepository,
    TripRepository,
    WishlistItemRepository,
    WishlistRepository,
)
from homebase.repositories.local_household_repository import (
    LocalHouseholdRepository,
    LocalMemberRepository,
)
from homebase.repositories.local_shopping_repository import (
    LocalShoppingItemRepository,
    LocalShoppingListRepository,
)
from homebase.repositories.local_trip_repository import (
    LocalBudgetEntryRepository,
    LocalDocumentRepository,
    LocalPackingItemRepository,
    LocalTimelineEventRepository,
    LocalTripMemberRepository,
    LocalTripRepository,
)
from homebase.repositories.local_wishlist_repository import (
    LocalWishlistItemRepository,
    LocalWishlistRepository,
)
from homebase.repositories.shopping_repository import (
    SupabaseShoppingItemRepository,
    SupabaseShoppingListRepository,
)
from homebase.repositories.trip_repository import (
    SupabaseBudgetEntryRepository,
    SupabaseDocumentRepository,
    SupabasePackingItemRepository,
    SupabaseTimelineEventRepository,
    SupabaseTripMemberRepository,
    SupabaseTripRepository,
)
from homebase.repositories.wishlist_repository import (
    SupabaseWishlistItemRepository,
    SupabaseWishlistRepository,
)
from homebase.storage import StorageAdapter
from homebase.utils.general import utc_now

Clock = Callable[[], datetime]


def _require(dependency: object, name: str, use_local: bool) -> None:
    if dependency is None:
        mode = "local" if use_local else "remote"
        raise ValueError(f"A {name} is required to build {mode} repositories")


def _pick(use_local: bool, supabase: Optional[AsyncClient], storage: Optional[StorageAdapter]) -> None:
    if use_local:
        _require(storage, "storage adapter", use_local)
    else:
        _require(supabase, "Supabase client", use_local)


def get_member_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> MemberRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalMemberRepository(storage, logger, clock)
    return SupabaseMemberRepository(supabase, logger, clock)


def get_household_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    members: Optional[MemberRepository] = None,
    clock: Clock = utc_now,
) -> HouseholdRepository:
    """Household repository.

    The local implementation creates the owner member itself and needs
    the local *members* repository (built on *storage* when omitted).
    """
    _pick(use_local, supabase, storage)
    if use_local:
        if not isinstance(members, LocalMemberRepository):
            members = LocalMemberRepository(storage, logger, clock)
        return LocalHouseholdRepository(storage, logger, members, clock)
    return SupabaseHouseholdRepository(supabase, logger, clock)


def get_wishlist_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    members: MemberRepository,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> WishlistRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalWishlistRepository(storage, logger, members, clock)
    return SupabaseWishlistRepository(supabase, logger, members, clock)


def get_wishlist_item_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> WishlistItemRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalWishlistItemRepository(storage, logger, clock)
    return SupabaseWishlistItemRepository(supabase, logger, clock)


def get_shopping_list_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> ShoppingListRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalShoppingListRepository(storage, logger, clock)
    return SupabaseShoppingListRepository(supabase, logger, clock)


def get_shopping_item_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> ShoppingItemRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalShoppingItemRepository(storage, logger, clock)
    return SupabaseShoppingItemRepository(supabase, logger, clock)


def get_trip_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> TripRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalTripRepository(storage, logger, clock)
    return SupabaseTripRepository(supabase, logger, clock)


def get_trip_member_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> TripMemberRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalTripMemberRepository(storage, logger, clock)
    return SupabaseTripMemberRepository(supabase, logger, clock)


def get_packing_item_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> PackingItemRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalPackingItemRepository(storage, logger, clock)
    return SupabasePackingItemRepository(supabase, logger, clock)


def get_budget_entry_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> BudgetEntryRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalBudgetEntryRepository(storage, logger, clock)
    return SupabaseBudgetEntryRepository(supabase, logger, clock)


def get_timeline_event_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> TimelineEventRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalTimelineEventRepository(storage, logger, clock)
    return SupabaseTimelineEventRepository(supabase, logger, clock)


def get_document_repository(
    use_local: bool,
    *,
    logger: StructuredLogger,
    supabase: Optional[AsyncClient] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
) -> DocumentRepository:
    _pick(use_local, supabase, storage)
    if use_local:
        return LocalDocumentRepository(storage, logger, clock)
    return SupabaseDocumentRepository(supabase, logger, clock)


class RepositoryContainer(TypedDict):
    """Every repository of the application, built for one backend."""

    households: HouseholdRepository
    members: MemberRepository
    wishlists: WishlistRepository
    wishlist_items: WishlistItemRepository
    shopping_lists: ShoppingListRepository
    shopping_items: ShoppingItemRepository
    trips: TripRepository
    trip_members: TripMemberRepository
    packing_items: PackingItemRepository
    budget_entries: BudgetEntryRepository
    timeline_events: TimelineEventRepository
    documents: DocumentRepository


def create_repositories(
    db: DatabaseManager,
    logger: StructuredLogger,
    clock: Clock = utc_now,
) -> RepositoryContainer:
    """Build every repository once for the backend *db* selects.

    The Supabase client is only requested in remote mode.
    """
    use_local = db.use_local_backend
    supabase = None if use_local else db.supabase
    storage = db.storage if use_local else None
    common = {"logger": logger, "supabase": supabase, "storage": storage, "clock": clock}

    members = get_member_repository(use_local, **common)
    logger.info(
        "Repositories wired for the %s backend.", "local" if use_local else "Supabase",
    )
    return RepositoryContainer(
        households=get_household_repository(use_local, members=members, **common),
        members=members,
        wishlists=get_wishlist_repository(use_local, members=members, **common),
        wishlist_items=get_wishlist_item_repository(use_local, **common),
        shopping_lists=get_shopping_list_repository(use_local, **common),
        shopping_items=get_shopping_item_repository(use_local, **common),
        trips=get_trip_repository(use_local, **common),
        trip_members=get_trip_member_repository(use_local, **common),
        packing_items=get_packing_item_repository(use_local, **common),
        budget_entries=get_budget_entry_repository(use_local, **common),
        timeline_events=get_timeline_event_repository(use_local, **common),
        documents=get_document_repository(use_local, **common),
    )
