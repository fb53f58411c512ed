"""
Atomic Creation Orchestrator.

Creates a parent record and the dependent record that establishes its
ownership as one logical unit.  If the dependent step fails the parent is
deleted again (compensating rollback) so no orphan is left behind.

Rollback is best-effort: a failed compensation is logged and otherwise
ignored, and the caller always receives the dependent step's error.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

from homebase.logger import StructuredLogger
from homebase.models.result import Result
from homebase.repositories.base_repository import to_payload
from homebase.repositories.interfaces import Dto, Repository

TParent = TypeVar("TParent", bound=BaseModel)
TOwner = TypeVar("TOwner", bound=BaseModel)


class AtomicCreator(Generic[TParent, TOwner]):
    """Parent + owner creation with rollback of the parent.

    Parameters
    ----------
    parent_repo:
        Repository creating (and, on failure, deleting) the parent.
    owner_repo:
        Repository creating the dependent ownership record.
    foreign_key:
        Column of the owner record that receives the new parent id.
    logger:
        A ``StructuredLogger`` instance.
    """

    def __init__(
        self,
        parent_repo: Repository[TParent],
        owner_repo: Repository[TOwner],
        foreign_key: str,
        logger: StructuredLogger,
    ) -> None:
        self._parent_repo = parent_repo
        self._owner_repo = owner_repo
        self._foreign_key = foreign_key
        self._logger = logger

    async def create_with_ownership(
        self, parent_dto: Dto, owner_dto: Dto,
    ) -> Result[TParent]:
        parent = await self._parent_repo.create(parent_dto)
        if parent.error is not None or parent.data is None:
            return parent

        parent_id = parent.data.id  # type: ignore[attr-defined]
        owner_payload = {**to_payload(owner_dto), self._foreign_key: parent_id}
        owner = await self._owner_repo.create(owner_payload)
        if owner.error is None:
            return parent

        self._logger.warning(
            "Owner creation failed for %s; rolling back parent: %s",
            parent_id,
            owner.error.message,
        )
        await self._rollback(parent_id)
        return Result(error=owner.error)

    async def _rollback(self, parent_id: str) -> None:
        try:
            result = await self._parent_repo.delete(parent_id)
        except Exception as exc:
            self._logger.error("Rollback of %s raised: %s", parent_id, exc)
            return
        if result.error is not None:
            self._logger.error(
                "Rollback of %s failed: %s", parent_id, result.error.message,
            )
