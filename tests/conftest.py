"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- A deterministic clock, a quiet logger and in-memory storage
- Local repositories wired the way the composition root wires them
- A fake async Supabase client for the remote repositories
"""

import io
import json
import os
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment variables BEFORE any homebase imports.
# Settings are read on first use and must never pick up a developer .env.
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["USE_LOCAL_BACKEND"] = "true"
os.environ["LOCAL_STORE_PATH"] = ":memory:"

from homebase.logger import StructuredLogger  # noqa: E402
from homebase.repositories.factories import (  # noqa: E402
    get_budget_entry_repository,
    get_document_repository,
    get_household_repository,
    get_member_repository,
    get_packing_item_repository,
    get_shopping_item_repository,
    get_shopping_list_repository,
    get_timeline_event_repository,
    get_trip_member_repository,
    get_trip_repository,
    get_wishlist_item_repository,
    get_wishlist_repository,
)
from homebase.storage import InMemoryStorageAdapter  # noqa: E402
from tests.fakes import FakeSupabaseClient  # noqa: E402


class FakeClock:
    """Returns a strictly increasing UTC time, one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(request, log_stream) -> StructuredLogger:
    """A logger writing JSON lines into ``log_stream``.

    Each test gets its own logger name so handlers never leak between tests.
    """
    return StructuredLogger(name=f"test.{request.node.name}", stream=log_stream)


@pytest.fixture
def audit_events(log_stream):
    """Returns the audit events written to ``log_stream`` so far."""

    def read() -> list[dict]:
        entries = [json.loads(line) for line in log_stream.getvalue().splitlines() if line]
        return [entry["extra"]["audit"] for entry in entries if "audit" in entry.get("extra", {})]

    return read


@pytest.fixture
def storage() -> InMemoryStorageAdapter:
    return InMemoryStorageAdapter()


@pytest.fixture
def local_repos(storage, logger, clock) -> dict:
    """Every local repository, sharing one storage adapter."""
    common = {"logger": logger, "storage": storage, "clock": clock}
    members = get_member_repository(True, **common)
    return {
        "households": get_household_repository(True, members=members, **common),
        "members": members,
        "wishlists": get_wishlist_repository(True, members=members, **common),
        "wishlist_items": get_wishlist_item_repository(True, **common),
        "shopping_lists": get_shopping_list_repository(True, **common),
        "shopping_items": get_shopping_item_repository(True, **common),
        "trips": get_trip_repository(True, **common),
        "trip_members": get_trip_member_repository(True, **common),
        "packing_items": get_packing_item_repository(True, **common),
        "budget_entries": get_budget_entry_repository(True, **common),
        "timeline_events": get_timeline_event_repository(True, **common),
        "documents": get_document_repository(True, **common),
    }


@pytest.fixture
def supabase(clock) -> FakeSupabaseClient:
    return FakeSupabaseClient(clock)


@pytest.fixture
def remote_repos(supabase, logger, clock) -> dict:
    """Every Supabase repository, talking to the fake client."""
    common = {"logger": logger, "supabase": supabase, "clock": clock}
    members = get_member_repository(False, **common)
    return {
        "households": get_household_repository(False, **common),
        "members": members,
        "wishlists": get_wishlist_repository(False, members=members, **common),
        "wishlist_items": get_wishlist_item_repository(False, **common),
        "shopping_lists": get_shopping_list_repository(False, **common),
        "shopping_items": get_shopping_item_repository(False, **common),
        "trips": get_trip_repository(False, **common),
        "trip_members": get_trip_member_repository(False, **common),
        "packing_items": get_packing_item_repository(False, **common),
        "budget_entries": get_budget_entry_repository(False, **common),
        "timeline_events": get_timeline_event_repository(False, **common),
        "documents": get_document_repository(False, **common),
    }


@pytest.fixture(params=["local", "remote"])
def repos(request) -> dict:
    """Parametrises a test over both backends."""
    return request.getfixturevalue(f"{request.param}_repos")
