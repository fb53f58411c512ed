"""
Household and Member Repositories (local store).

Reproduces what the database functions do remotely: the household and
its owner member are created through :class:`AtomicCreator`, invited
users get a deterministic id derived from their email, and removal of a
member only flips ``is_active``.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Any, ClassVar, Optional

from homebase.logger import StructuredLogger
from homebase.models.enums import DeletePolicy, MemberRole
from homebase.models.household import Household, Member
from homebase.models.result import Result
from homebase.repositories.atomic import AtomicCreator
from homebase.repositories.filters import merge_households
from homebase.repositories.household_repository import (
    DEFAULT_OWNER_NAME,
    cannot_add_self,
    display_name_from_email,
    member_filters,
)
from homebase.repositories.local_repository import LocalRepository
from homebase.storage import StorageAdapter
from homebase.utils.audit import log_audit_event
from homebase.utils.general import utc_now
from homebase.utils.string_helpers import local_user_id_for_email, slugify


class LocalMemberRepository(LocalRepository[Member]):
    TABLE = "members"
    MODEL = Member
    DELETE_POLICY = DeletePolicy.SOFT
    TRANSIENT_FIELDS: ClassVar[frozenset[str]] = frozenset({"email"})

    def _prepare_insert(self, row: dict[str, Any], now: str) -> dict[str, Any]:
        row.setdefault("joined_at", now)
        return row

    async def find_by_household_id(
        self, household_id: str, include_inactive: bool = False,
    ) -> Result[list[Member]]:
        """Members ordered by ``joined_at``; invited members carry their email."""

        async def _op() -> list[Member]:
            members = await self._select(
                member_filters(household_id=household_id, include_inactive=include_inactive),
                order_by="joined_at",
            )
            return await self._with_emails(members)

        return await self._guard("find_by_household_id", _op)

    async def find_active_membership(
        self, user_id: str, household_id: Optional[str] = None,
    ) -> Result[Optional[Member]]:
        async def _op() -> Optional[Member]:
            rows = await self._select(
                member_filters(household_id=household_id, user_id=user_id),
                order_by="joined_at",
            )
            return rows[0] if rows else None

        return await self._guard("find_active_membership", _op)

    async def create_child(
        self,
        household_id: str,
        name: str,
        date_of_birth: Optional[date] = None,
        avatar_url: Optional[str] = None,
    ) -> Result[str]:
        created = await self.create({
            "household_id": household_id,
            "user_id": None,
            "role": MemberRole.CHILD,
            "display_name": name,
            "date_of_birth": date_of_birth,
            "avatar_url": avatar_url,
        })
        if created.error is not None:
            return Result(error=created.error)
        return Result(data=created.data.id)

    async def invite_by_email(
        self,
        household_id: str,
        email: str,
        current_user_id: Optional[str] = None,
    ) -> Result[Member]:
        """Add the user behind *email* as a regular member.

        There is no account system locally, so every email resolves to
        ``user-<email with non-alphanumerics replaced by '-'>``.  The email
        is kept in the local user directory for later member listings.
        """
        user_id = local_user_id_for_email(email)
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
        remembered = await self._guard("invite_by_email", lambda: self._remember_email(user_id, email))
        if remembered.error is not None:
            return Result(error=remembered.error)
        return Result(data=created.data.model_copy(update={"email": email}))

    async def soft_delete(self, member_id: str) -> Result[None]:
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


class LocalHouseholdRepository(LocalRepository[Household]):
    TABLE = "households"
    MODEL = Household

    def __init__(
        self,
        storage: StorageAdapter,
        logger: StructuredLogger,
        members: LocalMemberRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(storage, logger, clock)
        self._members = members
        self._creator: AtomicCreator[Household, Member] = AtomicCreator(
            self, members, "household_id", logger,
        )

    async def find_by_user_id(self, user_id: str) -> Result[list[Household]]:
        async def _op() -> list[Household]:
            created = await self._select({"created_by": user_id})
            memberships = await self._select(
                member_filters(user_id=user_id),
                order_by="joined_at",
                table=LocalMemberRepository.TABLE,
                model=Member,
            )
            known = {household.id for household in created}
            joined_ids = [m.household_id for m in memberships if m.household_id not in known]
            joined = await self._select({"id": joined_ids}) if joined_ids else []
            return merge_households(created, joined)

        return await self._guard("find_by_user_id", _op)

    async def _unique_slug(self, name: str) -> str:
        base = slugify(name) or "household"
        taken = {row.get("slug") for row in await self._load()}
        slug, suffix = base, 2
        while slug in taken:
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    async def create_with_owner(
        self,
        name: str,
        user_id: str,
        display_name: Optional[str] = None,
    ) -> Result[Household]:
        slug = await self._guard("create_with_owner", lambda: self._unique_slug(name))
        if slug.error is not None:
            return Result(error=slug.error)

        return await self._creator.create_with_ownership(
            {"name": name, "slug": slug.data, "created_by": user_id},
            {
                "user_id": user_id,
                "role": MemberRole.OWNER,
                "display_name": display_name or DEFAULT_OWNER_NAME,
            },
        )
