"""Shared utility functions and models for the homebase package.

Convenience re-exports so that consumers can import directly from
``homebase.utils`` (e.g. ``from homebase.utils import slugify``).
"""

from homebase.utils.audit import AuditEvent, log_audit_event
from homebase.utils.general import convert_to_json_safe, utc_now
from homebase.utils.string_helpers import (
    generate_share_slug,
    local_user_id_for_email,
    slugify,
)

__all__ = [
    "AuditEvent",
    "convert_to_json_safe",
    "generate_share_slug",
    "local_user_id_for_email",
    "log_audit_event",
    "slugify",
    "utc_now",
]
