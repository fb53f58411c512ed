"""
Result Envelope and Error Normalization.

Every repository and service operation returns a :class:`Result` instead
of raising.  Backend-specific failures (postgrest ``APIError``, network
exceptions, corrupt local JSON, arbitrary thrown values) are normalised
into a single :class:`ApiError` shape by :func:`to_api_error`.

Error taxonomy (``ApiError.code``):

- ``not_found``: id absent in the store or table
- ``validation_failed``: rejected input (e.g. reserving without email)
- ``authorization_mismatch``: release attempted with the wrong email
- backend code or ``upstream_failure``: remote failure, code passed through
- ``None``: unknown, uncoded fallback
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")

__all__ = [
    "ApiError",
    "ErrorCode",
    "Result",
    "ResultError",
    "UNKNOWN_ERROR_MESSAGE",
    "authorization_mismatch",
    "not_found",
    "record_not_found",
    "to_api_error",
    "validation_failure",
]

UNKNOWN_ERROR_MESSAGE: str = "An unknown error occurred"


class ErrorCode(StrEnum):
    """Codes assigned by this package.  Remote errors keep their own code."""

    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    AUTHORIZATION_MISMATCH = "authorization_mismatch"
    UPSTREAM_FAILURE = "upstream_failure"


class ApiError(BaseModel):
    """Normalised error carried by a failed :class:`Result`."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    message: str
    code: Optional[str] = None
    details: Any = None


class Result(BaseModel, Generic[T]):
    """
    Standard ``{data, error}`` return envelope.

    Exactly one of ``data`` / ``error`` is set on completion.  Both are
    ``None`` only for a void success (``delete`` and friends).

    Generic over ``T`` so callers can annotate return types precisely
    (e.g. ``Result[list[Household]]``).  Constructing the bare
    ``Result(...)`` form keeps the payload object as-is, which is what the
    repositories do.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: Optional[T] = None
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        """``True`` when the operation completed without an error."""
        return self.error is None

    @classmethod
    def failure(cls, error: object) -> "Result[T]":
        """Build a failed result from any error-like value."""
        return cls(error=to_api_error(error))


class ResultError(Exception):
    """Raised inside an engine operation to end it with a specific error.

    The engine boundary converts it back into a failed :class:`Result`;
    it never escapes a repository.
    """

    def __init__(self, error: ApiError) -> None:
        super().__init__(error.message)
        self.error: ApiError = error


# ---------------------------------------------------------------------------
# Error constructors
# ---------------------------------------------------------------------------

def not_found(message: str) -> ApiError:
    return ApiError(message=message, code=ErrorCode.NOT_FOUND)


def record_not_found(record_id: str) -> ApiError:
    """The NotFound error both engines return for an unknown id."""
    return not_found(f"Record with id {record_id} not found")


def validation_failure(message: str) -> ApiError:
    return ApiError(message=message, code=ErrorCode.VALIDATION_FAILED)


def authorization_mismatch(message: str) -> ApiError:
    return ApiError(message=message, code=ErrorCode.AUTHORIZATION_MISMATCH)


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def to_api_error(error: object, default_code: Optional[str] = None) -> ApiError:
    """Map whatever a backend produced to an :class:`ApiError`.

    Handles, in order:

    1. ``None``               → generic unknown error.
    2. :class:`ApiError` or :class:`ResultError` → the carried error.
    3. Structured backend errors (postgrest ``APIError`` exposes
       ``message`` / ``code`` / ``details`` attributes) → fields passed
       through; a missing code falls back to *default_code*.
    4. Any other exception    → its string form, exception kept in
       ``details``.
    5. A mapping with a ``message`` key (raw PostgREST error payload).
    6. Anything else          → generic unknown error, value in ``details``.

    Parameters
    ----------
    error:
        The caught value.
    default_code:
        Code assigned when the error carries none.  The remote executor
        passes ``ErrorCode.UPSTREAM_FAILURE``; the local engine leaves it
        ``None`` so storage failures surface as Unknown.
    """
    if error is None:
        return ApiError(message=UNKNOWN_ERROR_MESSAGE, code=default_code)

    if isinstance(error, ApiError):
        return error

    if isinstance(error, ResultError):
        return error.error

    if isinstance(error, Exception):
        message = getattr(error, "message", None)
        if isinstance(message, str) and message:
            code = getattr(error, "code", None)
            return ApiError(
                message=message,
                code=str(code) if code else default_code,
                details=getattr(error, "details", None),
            )
        text = str(error)
        return ApiError(
            message=text or UNKNOWN_ERROR_MESSAGE,
            code=default_code,
            details=error,
        )

    if isinstance(error, Mapping) and error.get("message"):
        code = error.get("code")
        return ApiError(
            message=str(error["message"]),
            code=str(code) if code else default_code,
            details=error.get("details"),
        )

    return ApiError(message=UNKNOWN_ERROR_MESSAGE, code=default_code, details=error)
