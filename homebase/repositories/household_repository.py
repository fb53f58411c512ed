"""
Household and Member Repositories (Supabase).

Household creation goes through the ``create_household_with_owner`` RPC,
which inserts the household and its owner member in one database
transaction.  Member emails live in ``auth.users`` and are resolved with
the ``get_email_by_user_id`` / ``get_user_id_by_email`` functions.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any, Optional

from homebase.models.enums import DeletePolicy, MemberRole
from homebase.models.household import Household, Member
from homebase.models.result import (
    ApiError,
    ErrorCode,
    Result,
    ResultError,
    validation_failure,
)
from homebase.repositories.base_repository import BaseRepository
from homebase.repositories.filters import merge_households
from homebase.utils.audit import log_audit_event

CANNOT_ADD_SELF_MESSAGE = "Cannot add yourself as a member"
USER_NOT_FOUND_MESSAGE = "User not found with that email"
DEFAULT_OWNER_NAME = "Owner"


def user_not_found(details: Any = None) -> ApiError:
    return ApiError(
        message=USER_NOT_FOUND_MESSAGE, code=ErrorCode.NOT_FOUND, details=details,
    )


def cannot_add_self() -> ApiError:
    return validation_failure(CANNOT_ADD_SELF_MESSAGE)


def display_name_from_email(email: str) -> str:
    return email.split("@", 1)[0]


def member_filters(
    household_id: Optional[str] = None,
    user_id: Optional[str] = None,
    include_inactive: bool = False,
) -> dict[str, Any]:
    filters: dict[str, Any] = {}
    if household_id is not None:
        filters["household_id"] = household_id
    if user_id is not None:
        filters["user_id"] = user_id
    if not include_inactive:
        filters["is_active"] = True
    return filters


class SupabaseHouseholdRepository(BaseRepository[Household]):
    """Data access layer for Household entities."""

    TABLE = "households"
    MODEL = Household

    async def find_by_user_id(self, user_id: str) -> Result[list[Household]]:
        """Households the user created or is an active member of, oldest first."""
        async def _op() -> list[Household]:
            created = await self._select({"created_by": user_id})
            memberships = await self._select(
                member_filters(user_id=user_id),
                order_by="joined_at",
                table=SupabaseMemberRepository.TABLE,
                model=Member,
            )
            known = {household.id for household in created}
            joined_ids = [m.household_id for m in memberships if m.household_id not in known]
            joined = await self._select({"id": joined_ids}) if joined_ids else []
            return merge_households(created, joined)

        return await self._query("find_by_user_id", _op)

    async def create_with_owner(
        self,
        name: str,
        user_id: str,
        display_name: Optional[str] = None,
    ) -> Result[Household]:
        """Create a household and its owner member in one server transaction.

        The RPC takes the creator from the session, so *user_id* is only
        used for logging here.
        """
        async def _op() -> str:
            data = await self._rpc(
                "create_household_with_owner",
                {"p_name": name, "p_creator_display_name": display_name or None},
            )
            # Table-returning functions come back as a one-row list.
            if isinstance(data, list):
                data = data[0] if data else None
            if not isinstance(data, Mapping) or not data.get("household_id"):
                raise ResultError(ApiError(
                    message="Failed to create household: RPC returned no data",
                    code=ErrorCode.UPSTREAM_FAILURE,
                ))
            return str(data["household_id"])

        created = await self._query("create_with_owner", _op)
        if created.error is not None:
            return Result(error=created.error)
        self._logger.debug("Household %s created for %s", created.data, user_id)
        return await self.find_by_id(created.data)


class SupabaseMemberRepository(BaseRepository[Member]):
    """Data access layer for Member entities.  Removal is a soft delete."""

    TABLE = "members"
    MODEL = Member
    DELETE_POLICY = DeletePolicy.SOFT

    async def _email_for(self, user_id: str) -> Optional[str]:
        result = await self._query(
            "get_email_by_user_id",
            lambda: self._rpc("get_email_by_user_id", {"lookup_user_id": user_id}),
        )
        return result.data or None

    async def find_by_household_id(
        self, household_id: str, include_inactive: bool = False,
    ) -> Result[list[Member]]:
        """Members of a household ordered by ``joined_at``, emails populated.

        An email that cannot be resolved is left empty.
        """
        result = await self._query(
            "find_by_household_id",
            lambda: self._select(
                member_filters(household_id=household_id, include_inactive=include_inactive),
                order_by="joined_at",
            ),
        )
        if result.error is not None:
            return result

        members: list[Member] = []
        for member in result.data:
            if member.user_id:
                member = member.model_copy(update={"email": await self._email_for(member.user_id)})
            members.append(member)
        return Result(data=members)

    async def find_active_membership(
        self, user_id: str, household_id: Optional[str] = None,
    ) -> Result[Optional[Member]]:
        """The user's earliest active membership, optionally in one household."""
        async def _op() -> Optional[Member]:
            rows = await self._select(
                member_filters(household_id=household_id, user_id=user_id),
                order_by="joined_at",
            )
            return rows[0] if rows else None

        return await self._query("find_active_membership", _op)

    async def create_child(
        self,
        household_id: str,
        name: str,
        date_of_birth: Optional[date] = None,
        avatar_url: Optional[str] = None,
    ) -> Result[str]:
        """Create a member without a login identity.  Returns its id."""
        async def _op() -> str:
            member_id = await self._rpc("create_child_member", {
                "p_household_id": household_id,
                "p_name": name,
                "p_date_of_birth": date_of_birth.isoformat() if date_of_birth else None,
                "p_avatar_url": avatar_url,
            })
            return str(member_id)

        return await self._query("create_child", _op)

    async def invite_by_email(
        self,
        household_id: str,
        email: str,
        current_user_id: Optional[str] = None,
    ) -> Result[Member]:
        lookup = await self._query(
            "get_user_id_by_email",
            lambda: self._rpc("get_user_id_by_email", {"lookup_email": email}),
        )
        if lookup.error is not None:
            return Result(error=user_not_found(lookup.error))
        if not lookup.data:
            return Result(error=user_not_found())

        user_id = str(lookup.data)
        if current_user_id and user_id == current_user_id:
            return Result(error=cannot_add_self())

        created = await self.create({
            "household_id": household_id,
            "user_id": user_id,
            "role": MemberRole.MEMBER,
            "display_name": display_name_from_email(email),
            "invited_by": current_user_id,
        })
        if created.error is not None:
            return created
        return Result(data=created.data.model_copy(update={"email": email}))

    async def soft_delete(self, member_id: str) -> Result[None]:
        """Mark a member inactive.  The row is kept."""
        updated = await self.update(member_id, {"is_active": False})
        if updated.error is not None:
            return Result(error=updated.error)
        log_audit_event(
            self._logger,
            action="REMOVE_MEMBER",
            entity_type="Member",
            entity_id=member_id,
            details={"household_id": updated.data.household_id},
        )
        return Result()
