"""
Tests for the wishlist item reservation state machine.
"""

from datetime import datetime, timezone

import pytest

from homebase.models.result import ErrorCode
from homebase.models.wishlist import WishlistItem
from homebase.repositories.reservation import plan_transition

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _item(**overrides) -> WishlistItem:
    return WishlistItem(id="i1", wishlist_id="w1", title="Lego", **overrides)


def _reserved() -> WishlistItem:
    return _item(
        is_reserved=True,
        reserved_by_email="aunt@example.com",
        reserved_by_name="Aunt May",
        reserved_at=NOW,
    )


class TestPlanTransition:
    """The pure transition rule."""

    def test_reserve_sets_all_four_fields(self):
        plan = plan_transition(_item(), True, "  aunt@example.com ", "Aunt May", NOW)

        assert plan.data == {
            "is_reserved": True,
            "reserved_by_email": "aunt@example.com",
            "reserved_by_name": "Aunt May",
            "reserved_at": NOW.isoformat(),
        }

    @pytest.mark.parametrize("email", [None, "", "   "])
    def test_reserve_requires_an_email(self, email):
        plan = plan_transition(_item(), True, email, None, NOW)

        assert plan.error.code == ErrorCode.VALIDATION_FAILED

    def test_reserving_a_reserved_item_fails(self):
        plan = plan_transition(_reserved(), True, "uncle@example.com", None, NOW)

        assert plan.error.code == ErrorCode.VALIDATION_FAILED
        assert plan.error.message == "Item is already reserved"

    def test_release_with_matching_email_clears_everything(self):
        plan = plan_transition(_reserved(), False, "aunt@example.com ", None, NOW)

        assert plan.data == {
            "is_reserved": False,
            "reserved_by_email": None,
            "reserved_by_name": None,
            "reserved_at": None,
        }

    @pytest.mark.parametrize("email", [None, "", "uncle@example.com", "AUNT@example.com"])
    def test_release_with_other_email_is_refused(self, email):
        """Comparison is exact after trimming; case matters."""
        plan = plan_transition(_reserved(), False, email, None, NOW)

        assert plan.error.code == ErrorCode.AUTHORIZATION_MISMATCH


async def _make_item(repos):
    wishlist_id = "w1"
    created = await repos["wishlist_items"].create(
        {"wishlist_id": wishlist_id, "title": "Lego", "price": 49.9},
    )
    assert created.ok, created.error
    return created.data


class TestToggleReservation:
    """Both item repositories."""

    async def test_full_cycle_with_the_right_email(self, repos):
        """
        Arrange: an unreserved item
        Act: reserve with an email, then release with the same email
        Assert: the item is reserved in between and fully cleared at the end
        """
        item = await _make_item(repos)
        items = repos["wishlist_items"]

        reserved = await items.toggle_reservation(item.id, "aunt@example.com", "Aunt May")
        released = await items.toggle_reservation(item.id, "aunt@example.com")

        assert reserved.data.is_reserved
        assert reserved.data.reserved_by_email == "aunt@example.com"
        assert reserved.data.reserved_by_name == "Aunt May"
        assert reserved.data.reserved_at is not None
        assert not released.data.is_reserved
        assert released.data.reserved_by_email is None
        assert released.data.reserved_by_name is None
        assert released.data.reserved_at is None

    async def test_wrong_email_leaves_the_reservation_intact(self, repos):
        item = await _make_item(repos)
        items = repos["wishlist_items"]
        await items.toggle_reservation(item.id, "aunt@example.com", "Aunt May")

        refused = await items.toggle_reservation(item.id, "thief@example.com")
        current = await items.find_by_id(item.id)

        assert refused.error.code == ErrorCode.AUTHORIZATION_MISMATCH
        assert current.data.is_reserved
        assert current.data.reserved_by_email == "aunt@example.com"

    async def test_reserving_without_email_changes_nothing(self, repos):
        item = await _make_item(repos)

        refused = await repos["wishlist_items"].toggle_reservation(item.id, "  ")
        current = await repos["wishlist_items"].find_by_id(item.id)

        assert refused.error.code == ErrorCode.VALIDATION_FAILED
        assert not current.data.is_reserved

    async def test_unknown_item_is_not_found(self, repos):
        result = await repos["wishlist_items"].toggle_reservation("missing", "a@b.c")

        assert result.error.code == ErrorCode.NOT_FOUND

    async def test_audit_entry_never_contains_the_email(self, repos, log_stream, audit_events):
        item = await _make_item(repos)

        await repos["wishlist_items"].toggle_reservation(item.id, "aunt@example.com")

        events = audit_events()
        assert [(e["action"], e["entity_id"]) for e in events] == [("RESERVE", item.id)]
        assert events[0]["user_id"] == "anonymous"
        assert "aunt@example.com" not in log_stream.getvalue()

    async def test_plain_update_cannot_touch_reservation_through_dto(self, repos):
        """``UpdateWishlistItemDto`` has no reservation fields."""
        from homebase.models.wishlist import UpdateWishlistItemDto

        item = await _make_item(repos)

        updated = await repos["wishlist_items"].update(
            item.id, UpdateWishlistItemDto.model_validate({"title": "Duplo", "is_reserved": True}),
        )

        assert updated.data.title == "Duplo"
        assert not updated.data.is_reserved


class TestRemoteReservation:

    async def test_goes_through_the_reservation_function(self, remote_repos, supabase):
        item = await _make_item(remote_repos)

        await remote_repos["wishlist_items"].toggle_reservation(item.id, " aunt@example.com", "May")

        function, params = supabase.rpc_calls[-1]
        assert function == "reserve_wishlist_item"
        assert params == {
            "p_item_id": item.id,
            "p_reserved": True,
            "p_email": "aunt@example.com",
            "p_name": "May",
        }

    async def test_function_failure_is_returned(self, remote_repos, supabase):
        item = await _make_item(remote_repos)

        def reject(params):
            raise supabase.api_error("Email does not match", "P0001")

        supabase.rpc_overrides["reserve_wishlist_item"] = reject

        result = await remote_repos["wishlist_items"].toggle_reservation(item.id, "a@b.c")

        assert result.error.code == "P0001"

    async def test_mismatch_never_reaches_the_server(self, remote_repos, supabase):
        item = await _make_item(remote_repos)
        items = remote_repos["wishlist_items"]
        await items.toggle_reservation(item.id, "aunt@example.com")
        calls_before = len(supabase.rpc_calls)

        await items.toggle_reservation(item.id, "someone@example.com")

        assert len(supabase.rpc_calls) == calls_before
