"""
Reservation State Machine for wishlist items.

An item cycles ``Unreserved -> Reserved -> Unreserved`` with no terminal
state.  The email given when reserving is the only capability that can
release the reservation again; there is no owner bypass.

:func:`plan_transition` is the pure rule.  :class:`ReservationMixin`
adds ``toggle_reservation`` to both item repositories; each engine only
supplies ``_apply_reservation``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from homebase.models.result import (
    Result,
    authorization_mismatch,
    validation_failure,
)
from homebase.models.wishlist import WishlistItem
from homebase.utils.audit import log_audit_event

__all__ = ["ReservationMixin", "plan_transition"]

EMAIL_REQUIRED_MESSAGE = "An email address is required to reserve an item"
ALREADY_RESERVED_MESSAGE = "Item is already reserved"
EMAIL_MISMATCH_MESSAGE = "Email does not match the reservation"


def _clean(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    return email.strip() or None


def plan_transition(
    item: WishlistItem,
    reserve: bool,
    email: Optional[str],
    name: Optional[str],
    now: datetime,
) -> Result[dict[str, Any]]:
    """Compute the field patch for a reserve or release, or the error.

    Reserving needs a non-blank email and an unreserved item.  Releasing
    needs the email on record, compared after trimming surrounding
    whitespace and case-sensitively.  All four reservation fields change
    together.
    """
    supplied = _clean(email)

    if reserve:
        if item.is_reserved:
            return Result(error=validation_failure(ALREADY_RESERVED_MESSAGE))
        if supplied is None:
            return Result(error=validation_failure(EMAIL_REQUIRED_MESSAGE))
        return Result(data={
            "is_reserved": True,
            "reserved_by_email": supplied,
            "reserved_by_name": _clean(name),
            "reserved_at": now.isoformat(),
        })

    if supplied != item.reserved_by_email:
        return Result(error=authorization_mismatch(EMAIL_MISMATCH_MESSAGE))
    return Result(data={
        "is_reserved": False,
        "reserved_by_email": None,
        "reserved_by_name": None,
        "reserved_at": None,
    })


class ReservationMixin:
    """``toggle_reservation`` for a wishlist-item repository.

    Host classes provide ``find_by_id``, ``_clock``, ``_logger`` and
    ``_apply_reservation``.
    """

    async def _apply_reservation(
        self,
        item_id: str,
        reserve: bool,
        patch: dict[str, Any],
        email: Optional[str],
    ) -> Result[WishlistItem]:
        raise NotImplementedError

    async def toggle_reservation(
        self,
        item_id: str,
        email: Optional[str],
        name: Optional[str] = None,
    ) -> Result[WishlistItem]:
        """Reserve an unreserved item, or release a reserved one.

        The direction is read from the stored item, never chosen by the
        caller.
        """
        current = await self.find_by_id(item_id)  # type: ignore[attr-defined]
        if current.error is not None:
            return current

        reserve = not current.data.is_reserved
        plan = plan_transition(current.data, reserve, email, name, self._clock())  # type: ignore[attr-defined]
        if plan.error is not None:
            self._logger.info(  # type: ignore[attr-defined]
                "Reservation change refused for item %s: %s",
                item_id,
                plan.error.code,
            )
            return Result(error=plan.error)

        result = await self._apply_reservation(item_id, reserve, plan.data, _clean(email))
        if result.ok:
            log_audit_event(
                self._logger,  # type: ignore[attr-defined]
                action="RESERVE" if reserve else "RELEASE",
                entity_type="WishlistItem",
                entity_id=item_id,
                details={"wishlist_id": current.data.wishlist_id},
            )
        return result
