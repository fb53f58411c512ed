"""
Business Logic Services Package.

Services depend on the repository Protocols for data access and never on
a concrete backend.

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the application layer (screens / commands) can
consume without knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from homebase.config import AppConfig
from homebase.database import DatabaseManager
from homebase.logger import get_logger
from homebase.repositories.factories import RepositoryContainer, create_repositories
from homebase.services.household_service import HouseholdService
from homebase.services.shopping_service import ShoppingService
from homebase.services.trip_service import TripService
from homebase.services.wishlist_service import WishlistService


class ServiceContainer(TypedDict, total=False):
    """Typed container for all application services."""

    # --- Data access ---
    repositories: RepositoryContainer

    # --- Core ---
    household_service: HouseholdService
    wishlist_service: WishlistService
    shopping_service: ShoppingService
    trip_service: TripService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root of the application.  The
    entry-point calls this once at startup; every repository is built
    exactly once here, for the backend ``db`` selected.

    Args:
        db: Connected DatabaseManager (Supabase client and/or local storage).
        config: Application configuration (injected into services that need it).

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    repos = create_repositories(db, get_logger("repositories"))

    # ------------------------------------------------------------------
    # 2. Services
    # ------------------------------------------------------------------
    household_service = HouseholdService(
        households=repos["households"],
        members=repos["members"],
        config=config,
        logger=logger,
    )
    wishlist_service = WishlistService(
        wishlists=repos["wishlists"],
        items=repos["wishlist_items"],
        config=config,
        logger=logger,
    )
    shopping_service = ShoppingService(
        lists=repos["shopping_lists"],
        items=repos["shopping_items"],
        logger=logger,
    )
    trip_service = TripService(
        trips=repos["trips"],
        trip_members=repos["trip_members"],
        packing_items=repos["packing_items"],
        budget_entries=repos["budget_entries"],
        timeline_events=repos["timeline_events"],
        documents=repos["documents"],
        logger=logger,
    )

    logger.info("Services ready (%s).", config.backend_label())
    return ServiceContainer(
        repositories=repos,
        household_service=household_service,
        wishlist_service=wishlist_service,
        shopping_service=shopping_service,
        trip_service=trip_service,
    )
