"""General Utility Functions."""

from __future__ import annotations

import math
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Protocol, Union, runtime_checkable

__all__ = ["convert_to_json_safe", "utc_now"]


JsonSafeType = Union[
    None,
    str,
    int,
    bool,
    float,
    Dict[str, "JsonSafeType"],
    List["JsonSafeType"],
]
"""The set of types that are natively representable in JSON."""


@runtime_checkable
class PydanticLike(Protocol):
    """Protocol for objects that expose a Pydantic-style ``model_dump`` method."""

    def model_dump(self, **kwargs: Any) -> Dict[str, Any]: ...  # noqa: E704


def utc_now() -> datetime:
    """Timezone-aware current time; the default clock of the local store."""
    return datetime.now(timezone.utc)


def convert_to_json_safe(data: Any) -> JsonSafeType:
    """Recursively convert a data structure to JSON-safe types.

    Handles:
    - ``datetime`` / ``date`` objects -> ISO-format strings
    - ``Decimal`` -> ``float``
    - ``float`` NaN / Inf -> ``None``
    - ``Enum`` members -> their value
    - ``uuid.UUID`` -> ``str``
    - Nested dicts, lists and tuples
    - Pydantic models (via ``.model_dump(mode="json")``)
    """
    if data is None:
        return None

    # Enum before str: StrEnum members are str instances too.
    if isinstance(data, Enum):
        return convert_to_json_safe(data.value)

    if isinstance(data, (str, int, bool)):
        return data

    if isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            return None
        return data

    if isinstance(data, Decimal):
        return float(data)

    # datetime MUST be checked before date because datetime is a subclass of date.
    if isinstance(data, datetime):
        return data.isoformat()

    if isinstance(data, date):
        return data.isoformat()

    if isinstance(data, uuid.UUID):
        return str(data)

    if isinstance(data, dict):
        return {str(key): convert_to_json_safe(value) for key, value in data.items()}

    if isinstance(data, (list, tuple, set, frozenset)):
        return [convert_to_json_safe(item) for item in data]

    if isinstance(data, PydanticLike):
        return convert_to_json_safe(data.model_dump(mode="json"))

    # Anything else reaching the serialization boundary is stringified.
    return str(data)
