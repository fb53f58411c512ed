"""
Repository Layer Package.

Provides data-access abstractions over Supabase (remote) and a local
key/value store (offline).  Every operation returns a ``Result``; services
never touch ``db.supabase`` or ``db.storage`` directly and never know which
backend they are talking to.

Usage:
    from homebase.repositories.factories import create_repositories
    repos = create_repositories(db, logger)
    await repos["wishlists"].find_by_slug("abc12345")
"""

from homebase.repositories.atomic import AtomicCreator
from homebase.repositories.base_repository import BaseRepository
from homebase.repositories.factories import RepositoryContainer, create_repositories
from homebase.repositories.interfaces import (
    BudgetEntryRepository,
    DocumentRepository,
    HouseholdRepository,
    MemberRepository,
    PackingItemRepository,
    Repository,
    ShoppingItemRepository,
    ShoppingListRepository,
    TimelineEventRepository,
    TripMemberRepository,
    TripRepository,
    WishlistItemRepository,
    WishlistRepository,
)
from homebase.repositories.local_repository import LocalRepository

__all__ = [
    "AtomicCreator",
    "BaseRepository",
    "LocalRepository",
    "RepositoryContainer",
    "create_repositories",
    "Repository",
    "HouseholdRepository",
    "MemberRepository",
    "WishlistRepository",
    "WishlistItemRepository",
    "ShoppingListRepository",
    "ShoppingItemRepository",
    "TripRepository",
    "TripMemberRepository",
    "PackingItemRepository",
    "BudgetEntryRepository",
    "TimelineEventRepository",
    "DocumentRepository",
]
