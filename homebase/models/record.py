"""
Record Base Model.

Every persisted entity carries a unique ``id``, a ``created_at`` stamp set
once at creation, and an ``updated_at`` stamp refreshed on every update.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Record(BaseModel):
    """Base class for all persisted entities."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
