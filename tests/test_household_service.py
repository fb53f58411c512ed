"""
Tests for HouseholdService, including the default-household guard.
"""

import asyncio
from datetime import date

import pytest

from homebase.config import AppConfig
from homebase.models.enums import MemberRole
from homebase.models.result import ApiError, ErrorCode, Result
from homebase.services.household_service import HouseholdService


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        _env_file=None,
        USE_LOCAL_BACKEND=True,
        DEFAULT_HOUSEHOLD_NAME="Test Household",
        DEFAULT_OWNER_DISPLAY_NAME="Owner",
    )


@pytest.fixture
def service(local_repos, config, logger) -> HouseholdService:
    return HouseholdService(local_repos["households"], local_repos["members"], config, logger)


class SlowHouseholds:
    """Delays ``create_with_owner`` so concurrent callers overlap, and counts calls."""

    def __init__(self, inner, fail_first: bool = False):
        self._inner = inner
        self._fail_first = fail_first
        self.create_calls = 0

    def __getattr__(self, name):
        return getattr(self._inner, name)

    async def create_with_owner(self, name, user_id, display_name=None):
        self.create_calls += 1
        await asyncio.sleep(0.01)
        if self._fail_first and self.create_calls == 1:
            return Result(error=ApiError(message="network down", code=ErrorCode.UPSTREAM_FAILURE))
        return await self._inner.create_with_owner(name, user_id, display_name)


class TestEnsureDefaultHousehold:

    async def test_creates_a_default_household_once(self, service, local_repos):
        result = await service.ensure_default_household("u1", "Jane")

        assert result.data.name == "Test Household"
        owner = (await local_repos["members"].find_active_membership("u1")).data
        assert owner.role == MemberRole.OWNER
        assert owner.display_name == "Jane"

    async def test_existing_household_is_returned_unchanged(self, service, local_repos):
        first = (await local_repos["households"].create_with_owner("Older", "u1")).data
        await local_repos["households"].create_with_owner("Newer", "u1")

        result = await service.ensure_default_household("u1")

        assert result.data == first
        assert len((await local_repos["households"].find_all()).data) == 2

    async def test_concurrent_calls_create_exactly_one(self, local_repos, config, logger):
        """
        Arrange: a slow household repository
        Act: five concurrent ensure calls for the same user
        Assert: one household exists and every caller got it
        """
        households = SlowHouseholds(local_repos["households"])
        service = HouseholdService(households, local_repos["members"], config, logger)

        results = await asyncio.gather(
            *(service.ensure_default_household("u1") for _ in range(5)),
        )

        assert households.create_calls == 1
        assert len({r.data.id for r in results}) == 1
        assert len((await local_repos["households"].find_all()).data) == 1

    async def test_different_users_are_not_serialised_together(self, local_repos, config, logger):
        households = SlowHouseholds(local_repos["households"])
        service = HouseholdService(households, local_repos["members"], config, logger)

        first, second = await asyncio.gather(
            service.ensure_default_household("u1"),
            service.ensure_default_household("u2"),
        )

        assert households.create_calls == 2
        assert first.data.id != second.data.id

    async def test_failure_is_shared_then_released(self, local_repos, config, logger):
        """Concurrent callers share the failure; the next call retries."""
        households = SlowHouseholds(local_repos["households"], fail_first=True)
        service = HouseholdService(households, local_repos["members"], config, logger)

        failed = await asyncio.gather(
            service.ensure_default_household("u1"),
            service.ensure_default_household("u1"),
        )
        retried = await service.ensure_default_household("u1")

        assert all(r.error.message == "network down" for r in failed)
        assert retried.ok
        assert households.create_calls == 2

    async def test_marker_released_after_success(self, service):
        await service.ensure_default_household("u1")
        await asyncio.sleep(0)

        assert service._in_flight == {}

    async def test_creation_is_audited(self, service, audit_events):
        created = await service.ensure_default_household("u1")

        events = audit_events()
        assert [(e["action"], e["entity_type"], e["entity_id"], e["user_id"]) for e in events] == [
            ("CREATE", "Household", created.data.id, "u1"),
        ]


class TestMembers:

    async def test_add_child_returns_the_member(self, service):
        household = (await service.create_household("Home", "u1")).data

        child = await service.add_child(household.id, "Tom", date(2019, 4, 2))

        assert child.data.role == MemberRole.CHILD
        assert child.data.user_id is None
        assert child.data.is_child

    async def test_invite_self_is_refused(self, service):
        household = (await service.create_household("Home", "user-me-example-com")).data

        result = await service.invite_member(
            household.id, "me@example.com", current_user_id="user-me-example-com",
        )

        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert result.error.message == "Cannot add yourself as a member"

    async def test_invite_creates_member_with_email(self, service):
        household = (await service.create_household("Home", "u1")).data

        result = await service.invite_member(household.id, "Jane.Doe@example.com", "u1")

        assert result.data.user_id == "user-Jane-Doe-example-com"
        assert result.data.display_name == "Jane.Doe"
        assert result.data.email == "Jane.Doe@example.com"

    async def test_member_listing_carries_invited_emails(self, service):
        """Invited members list with their email, as they do remotely."""
        household = (await service.create_household("Home", "u1")).data
        await service.invite_member(household.id, "Jane.Doe@example.com", "u1")

        members = await service.list_members(household.id)

        assert [(m.user_id, m.email) for m in members.data] == [
            ("u1", None),
            ("user-Jane-Doe-example-com", "Jane.Doe@example.com"),
        ]

    async def test_remove_member_is_soft(self, service, local_repos):
        household = (await service.create_household("Home", "u1")).data
        invited = (await service.invite_member(household.id, "x@example.com", "u1")).data

        removed = await service.remove_member(invited.id)

        active = await service.list_members(household.id)
        everyone = await service.list_members(household.id, include_inactive=True)
        assert removed.ok
        assert [m.user_id for m in active.data] == ["u1"]
        assert len(everyone.data) == 2
        assert (await local_repos["members"].find_by_id(invited.id)).data.is_active is False

    async def test_households_include_memberships(self, service, local_repos):
        household = (await service.create_household("Home", "u1")).data
        await service.invite_member(household.id, "x@example.com", "u1")

        result = await service.get_households("user-x-example-com")

        assert [h.id for h in result.data] == [household.id]


class TestRemoteMembers:

    async def test_invite_unknown_email(self, remote_repos):
        result = await remote_repos["members"].invite_by_email("h1", "ghost@example.com", "u1")

        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.error.message == "User not found with that email"

    async def test_members_get_their_email(self, remote_repos, supabase):
        supabase.users["jane@example.com"] = "u-jane"
        await remote_repos["members"].invite_by_email("h1", "jane@example.com", "u1")

        members = await remote_repos["members"].find_by_household_id("h1")

        assert [(m.user_id, m.email) for m in members.data] == [("u-jane", "jane@example.com")]

    async def test_create_child_through_function(self, remote_repos, supabase):
        result = await remote_repos["members"].create_child("h1", "Tom", date(2019, 4, 2))

        function, params = supabase.rpc_calls[-1]
        assert function == "create_child_member"
        assert params["p_date_of_birth"] == "2019-04-02"
        assert supabase.rows("members")[0]["id"] == result.data
