"""
Tests for the generic CRUD engine.

``TestCrudContract`` runs against both backends through the ``repos``
fixture; the remaining classes cover behaviour specific to one engine.
"""

from datetime import date

import pytest

from homebase.models.enums import ShoppingListStatus
from homebase.models.result import ErrorCode
from homebase.models.shopping import CreateShoppingListDto, UpdateShoppingListDto
from homebase.models.trip import CreateTripDto
from homebase.repositories.local_repository import table_key


class TestCrudContract:
    """Behaviour both engines must share."""

    async def test_create_then_find_by_id_round_trips(self, repos):
        """
        Arrange: a trip DTO
        Act: create it, then read it back by id
        Assert: the read record equals the created one
        """
        created = await repos["trips"].create(
            CreateTripDto(name="Rome", start_date=date(2026, 5, 1), created_by="u1"),
        )

        found = await repos["trips"].find_by_id(created.data.id)

        assert created.ok and found.ok
        assert found.data == created.data
        assert found.data.created_at is not None
        assert found.data.updated_at is not None

    async def test_missing_id_is_the_same_not_found_everywhere(self, repos):
        result = await repos["trips"].find_by_id("does-not-exist")

        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.error.message == "Record with id does-not-exist not found"

    async def test_update_and_delete_of_missing_id_fail(self, repos):
        updated = await repos["trips"].update("nope", {"name": "x"})
        deleted = await repos["trips"].delete("nope")

        assert updated.error.code == ErrorCode.NOT_FOUND
        assert deleted.error.code == ErrorCode.NOT_FOUND

    async def test_update_merges_and_refreshes_updated_at(self, repos):
        """``id`` and ``created_at`` never change; ``updated_at`` moves forward."""
        created = await repos["shopping_lists"].create(
            CreateShoppingListDto(household_id="h1", title="Groceries", description="weekly"),
        )

        updated = await repos["shopping_lists"].update(
            created.data.id,
            UpdateShoppingListDto(status=ShoppingListStatus.ARCHIVED),
        )

        assert updated.data.id == created.data.id
        assert updated.data.created_at == created.data.created_at
        assert updated.data.updated_at > created.data.updated_at
        assert updated.data.status == ShoppingListStatus.ARCHIVED
        # Fields the DTO did not set are left alone.
        assert updated.data.description == "weekly"

    async def test_update_ignores_id_and_created_at_in_payload(self, repos):
        created = await repos["trips"].create({"name": "Oslo"})

        updated = await repos["trips"].update(
            created.data.id,
            {"id": "other", "created_at": "2000-01-01T00:00:00+00:00", "name": "Bergen"},
        )

        assert updated.data.id == created.data.id
        assert updated.data.created_at == created.data.created_at
        assert updated.data.name == "Bergen"

    async def test_delete_removes_the_record(self, repos):
        created = await repos["trips"].create({"name": "Lisbon"})

        deleted = await repos["trips"].delete(created.data.id)

        assert deleted.ok
        assert (await repos["trips"].find_by_id(created.data.id)).error.code == ErrorCode.NOT_FOUND

    async def test_create_many_with_no_dtos_is_empty(self, repos):
        result = await repos["packing_items"].create_many([])

        assert result.ok
        assert result.data == []

    async def test_create_many_creates_all(self, repos):
        result = await repos["packing_items"].create_many([
            {"trip_id": "t1", "title": "Passport"},
            {"trip_id": "t1", "title": "Charger"},
        ])

        assert [item.title for item in result.data] == ["Passport", "Charger"]
        assert len({item.id for item in result.data}) == 2

    async def test_find_all_filters_by_membership_and_null(self, repos):
        await repos["trips"].create({"name": "A", "created_by": "u1"})
        await repos["trips"].create({"name": "B", "created_by": "u2"})
        await repos["trips"].create({"name": "C", "created_by": "u3", "end_date": "2026-06-01"})

        by_creator = await repos["trips"].find_all({"created_by": ["u1", "u2"]})
        open_ended = await repos["trips"].find_all({"end_date": None})

        assert [t.name for t in by_creator.data] == ["A", "B"]
        assert [t.name for t in open_ended.data] == ["A", "B"]

    async def test_upsert_creates_then_updates(self, repos):
        created = await repos["trips"].upsert({"name": "Paris"})

        updated = await repos["trips"].upsert({"id": created.data.id, "name": "Nice"})

        assert updated.data.id == created.data.id
        assert updated.data.name == "Nice"
        assert len((await repos["trips"].find_all()).data) == 1


class TestLocalEngine:
    """Behaviour specific to the local store."""

    async def test_caller_supplied_id_is_kept(self, local_repos):
        result = await local_repos["trips"].create({"id": "trip-1", "name": "Rome"})

        assert result.data.id == "trip-1"

    async def test_duplicate_id_is_rejected(self, local_repos):
        await local_repos["trips"].create({"id": "trip-1", "name": "Rome"})

        result = await local_repos["trips"].create({"id": "trip-1", "name": "Again"})

        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert "trip-1" in result.error.message

    async def test_invalid_row_is_a_validation_failure(self, local_repos):
        result = await local_repos["shopping_items"].create(
            {"list_id": "l1", "title": "Milk", "quantity": -1},
        )

        assert result.error.code == ErrorCode.VALIDATION_FAILED

    async def test_corrupt_table_degrades_to_unknown(self, local_repos, storage):
        """A non-array under a table key is reported, never raised."""
        await storage.set(table_key("trips"), {"not": "a list"})

        result = await local_repos["trips"].find_all()

        assert result.error is not None
        assert result.error.code is None
        assert "Corrupt data" in result.error.message

    @pytest.mark.parametrize("operation", ["find_by_id", "find_all", "update"])
    async def test_malformed_stored_row_degrades_to_unknown(self, local_repos, storage, operation):
        """
        Arrange: a stored household row missing its required name
        Act: read it, list it, or update it
        Assert: an uncoded Unknown error naming the missing field
        """
        await storage.set(table_key("households"), [{"id": "h1"}])
        households = local_repos["households"]

        if operation == "find_by_id":
            result = await households.find_by_id("h1")
        elif operation == "find_all":
            result = await households.find_all()
        else:
            result = await households.update("h1", {"slug": "home"})

        assert result.error.code is None
        assert "name" in result.error.message

    async def test_rows_are_stored_under_table_key(self, local_repos, storage):
        created = await local_repos["trips"].create({"name": "Rome"})

        rows = await storage.get("table:trips")

        assert [row["id"] for row in rows] == [created.data.id]
        assert rows[0]["status"] == "planning"

    async def test_transient_email_is_not_persisted(self, local_repos, storage):
        await local_repos["members"].create(
            {"household_id": "h1", "user_id": "u1", "email": "a@b.c"},
        )

        rows = await storage.get("table:members")

        assert "email" not in rows[0]
        assert rows[0]["joined_at"] is not None

    async def test_delete_household_cascades(self, local_repos, storage):
        """Members, lists, wishlists and their items go with the household."""
        household = (await local_repos["households"].create({"name": "Home"})).data
        other = (await local_repos["households"].create({"name": "Other"})).data
        member = (await local_repos["members"].create(
            {"household_id": household.id, "user_id": "u1"},
        )).data
        await local_repos["members"].create({"household_id": other.id, "user_id": "u2"})
        shopping = (await local_repos["shopping_lists"].create(
            {"household_id": household.id, "title": "Food"},
        )).data
        await local_repos["shopping_items"].create({"list_id": shopping.id, "title": "Milk"})
        wishlist = (await local_repos["wishlists"].create({
            "user_id": "u1", "member_id": member.id, "household_id": household.id,
            "title": "Birthday",
        })).data
        await local_repos["wishlist_items"].create({"wishlist_id": wishlist.id, "title": "Book"})

        result = await local_repos["households"].delete(household.id)

        assert result.ok
        assert [m["user_id"] for m in await storage.get("table:members")] == ["u2"]
        assert await storage.get("table:shopping_lists") == []
        assert await storage.get("table:shopping_items") == []
        assert await storage.get("table:wishlists") == []
        assert await storage.get("table:wishlist_items") == []

    async def test_delete_trip_cascades(self, local_repos, storage):
        trip = (await local_repos["trips"].create({"name": "Rome"})).data
        await local_repos["packing_items"].create({"trip_id": trip.id, "title": "Hat"})
        await local_repos["budget_entries"].create(
            {"trip_id": trip.id, "category": "food", "amount": 10},
        )

        await local_repos["trips"].delete(trip.id)

        assert await storage.get("table:packing_items") == []
        assert await storage.get("table:budget_entries") == []


class TestRemoteEngine:
    """Behaviour specific to the Supabase executor."""

    async def test_backend_code_passes_through(self, remote_repos, supabase):
        supabase.fail("trips", "insert", supabase.api_error("permission denied", "42501"))

        result = await remote_repos["trips"].create({"name": "Rome"})

        assert result.error.code == "42501"
        assert result.error.message == "permission denied"

    async def test_uncoded_failure_is_upstream_failure(self, remote_repos, supabase):
        supabase.fail("trips", "select", ConnectionError("network unreachable"))

        result = await remote_repos["trips"].find_all()

        assert result.error.code == ErrorCode.UPSTREAM_FAILURE
        assert result.error.message == "network unreachable"

    async def test_failures_are_logged(self, remote_repos, supabase, log_stream):
        supabase.fail("trips", "select", ConnectionError("network unreachable"))

        await remote_repos["trips"].find_all()

        assert "network unreachable" in log_stream.getvalue()

    async def test_update_stamps_updated_at(self, remote_repos, supabase):
        created = await remote_repos["trips"].create({"name": "Rome"})

        await remote_repos["trips"].update(created.data.id, {"name": "Milan"})

        row = supabase.rows("trips")[0]
        assert row["name"] == "Milan"
        assert row["updated_at"] > row["created_at"]

    @pytest.mark.parametrize("op", ["find_all", "find_by_id"])
    async def test_reads_never_raise(self, remote_repos, supabase, op):
        supabase.fail("trips", "select", RuntimeError("kaboom"))

        repo = remote_repos["trips"]
        result = await (repo.find_all() if op == "find_all" else repo.find_by_id("x"))

        assert not result.ok
