"""
Structured Audit Logging Utility.

Every state change that matters to a household (creation, member removal,
reservation transitions) is logged as one structured JSON object.
Provides a Pydantic-validated model and a single function for consistent
audit trail entries.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from homebase.logger import StructuredLogger

__all__ = ["ANONYMOUS_ACTOR", "AuditEvent", "log_audit_event"]

# Scalar type permitted inside the ``details`` mapping.  Kept flat:
# nested structures should be modelled explicitly.
DetailValue = Union[str, int, float, bool, None]

ANONYMOUS_ACTOR: str = "anonymous"
"""Actor recorded for unauthenticated actions (e.g. public reservations)."""


class AuditEvent(BaseModel):
    """Schema-validated representation of a single audit trail entry."""

    timestamp: str
    action: str
    entity_type: str
    entity_id: str
    user_id: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    entity_type: str,
    entity_id: str,
    user_id: Optional[str] = None,
    details: Optional[dict[str, DetailValue]] = None,
) -> None:
    """Log a structured JSON audit event.

    Args:
        logger: The logger instance to write to.
        action: What happened (e.g. ``"CREATE"``, ``"RESERVE"``,
            ``"RELEASE"``, ``"REMOVE_MEMBER"``).
        entity_type: Type of entity affected (e.g. ``"Household"``,
            ``"WishlistItem"``).
        entity_id: Primary key of the affected entity.
        user_id: ID of the user who performed the action.  ``None`` is
            recorded as :data:`ANONYMOUS_ACTOR`.
        details: Optional additional context.  Never put a reservation
            email here: it is the secret that authorises the release.
    """
    event = AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id or ANONYMOUS_ACTOR,
        details=details or {},
    )
    logger.info(
        "AUDIT %s %s %s",
        event.action,
        event.entity_type,
        event.entity_id,
        extra={"audit": event.model_dump(mode="json")},
    )
