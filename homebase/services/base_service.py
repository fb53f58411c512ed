"""
Base Service Class.

Minimal base class standardizing the logger pattern for all services.
Services extend this and add their own repository dependencies via __init__.
Repositories are always received as their Protocol type, so a service
never knows which backend it is talking to.
"""

from __future__ import annotations

from homebase.logger import StructuredLogger
from homebase.models.result import Result


class BaseService:
    """Base class for all service classes. Provides a logger."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger

    def _log_failure(self, action: str, result: Result) -> None:
        """Log a failed repository result at warning level."""
        if result.error is not None:
            self._logger.warning(
                "%s failed: %s (code=%s)", action, result.error.message, result.error.code,
            )
