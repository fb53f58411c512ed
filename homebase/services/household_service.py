"""
Household Service.

Household onboarding and member management.

The first screen of the app asks for "the user's household" and may do so
from several places at once.  :meth:`HouseholdService.ensure_default_household`
therefore keeps one in-flight task per user: concurrent callers share it
and at most one household is created.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Optional

from homebase.config import AppConfig
from homebase.logger import StructuredLogger
from homebase.models.household import Household, Member
from homebase.models.result import Result
from homebase.repositories.interfaces import HouseholdRepository, MemberRepository
from homebase.services.base_service import BaseService
from homebase.utils.audit import log_audit_event


class HouseholdService(BaseService):
    """
    Service layer for households and their members.

    Delegates all data access to the household and member repositories.
    """

    def __init__(
        self,
        households: HouseholdRepository,
        members: MemberRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._households = households
        self._members = members
        self._config = config
        # user_id -> the task currently resolving that user's default household
        self._in_flight: dict[str, asyncio.Task[Result[Household]]] = {}

    # ------------------------------------------------------------------
    # Households
    # ------------------------------------------------------------------

    async def get_households(self, user_id: str) -> Result[list[Household]]:
        return await self._households.find_by_user_id(user_id)

    async def create_household(
        self,
        name: str,
        user_id: str,
        display_name: Optional[str] = None,
    ) -> Result[Household]:
        """Create a household with *user_id* as its owner member."""
        result = await self._households.create_with_owner(
            name, user_id, display_name or self._config.DEFAULT_OWNER_DISPLAY_NAME,
        )
        if result.error is not None:
            self._log_failure("create_household", result)
            return result

        log_audit_event(
            self._logger,
            action="CREATE",
            entity_type="Household",
            entity_id=result.data.id,
            user_id=user_id,
            details={"name": result.data.name},
        )
        return result

    async def ensure_default_household(
        self,
        user_id: str,
        display_name: Optional[str] = None,
    ) -> Result[Household]:
        """Return the user's household, creating a default one if needed.

        The earliest household the user belongs to is returned unchanged
        when one exists.  A call made while another call for the same user
        is still running awaits that call's outcome instead of creating a
        second household.  The in-flight marker is released once the
        shared task settles, whether it succeeded or not.
        """
        task = self._in_flight.get(user_id)
        if task is None:
            task = asyncio.create_task(self._resolve_default(user_id, display_name))
            self._in_flight[user_id] = task
            task.add_done_callback(lambda done: self._release(user_id, done))
        else:
            self._logger.debug("Joining in-flight household setup for %s", user_id)
        # A cancelled caller must not cancel the task the others wait on.
        return await asyncio.shield(task)

    def _release(self, user_id: str, task: asyncio.Task[Result[Household]]) -> None:
        if self._in_flight.get(user_id) is task:
            del self._in_flight[user_id]

    async def _resolve_default(
        self, user_id: str, display_name: Optional[str],
    ) -> Result[Household]:
        existing = await self._households.find_by_user_id(user_id)
        if existing.error is not None:
            self._log_failure("ensure_default_household", existing)
            return Result(error=existing.error)
        if existing.data:
            return Result(data=existing.data[0])

        self._logger.info("No household for %s, creating the default one", user_id)
        return await self.create_household(
            self._config.DEFAULT_HOUSEHOLD_NAME, user_id, display_name,
        )

    async def delete_household(self, household_id: str, user_id: Optional[str] = None) -> Result[None]:
        result = await self._households.delete(household_id)
        if result.ok:
            log_audit_event(
                self._logger,
                action="DELETE",
                entity_type="Household",
                entity_id=household_id,
                user_id=user_id,
            )
        else:
            self._log_failure("delete_household", result)
        return result

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def list_members(
        self, household_id: str, include_inactive: bool = False,
    ) -> Result[list[Member]]:
        return await self._members.find_by_household_id(household_id, include_inactive)

    async def add_child(
        self,
        household_id: str,
        name: str,
        date_of_birth: Optional[date] = None,
        avatar_url: Optional[str] = None,
    ) -> Result[Member]:
        """Create a child member and return the stored record."""
        created = await self._members.create_child(household_id, name, date_of_birth, avatar_url)
        if created.error is not None:
            self._log_failure("add_child", created)
            return Result(error=created.error)
        return await self._members.find_by_id(created.data)

    async def invite_member(
        self,
        household_id: str,
        email: str,
        current_user_id: Optional[str] = None,
    ) -> Result[Member]:
        result = await self._members.invite_by_email(household_id, email, current_user_id)
        self._log_failure("invite_member", result)
        return result

    async def remove_member(self, member_id: str) -> Result[None]:
        """Soft-delete a member; the row stays for history."""
        return await self._members.soft_delete(member_id)
