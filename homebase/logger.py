"""
Structured JSON Logging.

Every repository and service receives a :class:`StructuredLogger` by
constructor injection.  Each record is written as one JSON line; fields
passed through ``extra`` are kept as JSON values under the ``extra`` key,
so audit events stay machine-readable.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, TextIO


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger_name, message, extra."""

    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger:
    """Injectable wrapper around a named ``logging.Logger``.

    Log rotation comes from ``AppConfig`` (``LOG_FILE``, ``LOG_MAX_BYTES``,
    ``LOG_BACKUP_COUNT``).  *stream* defaults to stdout; tests pass a
    ``StringIO`` to capture the JSON lines.
    """

    def __init__(
        self,
        name: str = "homebase",
        level: int = logging.INFO,
        stream: Optional[TextIO] = None,
    ) -> None:
        # Lazy import: config logs through the stdlib logger at import time.
        from homebase.config import get_config

        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(level)

        # Reusing a name must not stack handlers.
        if self._logger.handlers:
            return

        formatter = JSONFormatter()
        stream_handler = logging.StreamHandler(stream or sys.stdout)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        cfg = get_config()
        if cfg.LOG_FILE:
            try:
                log_path = Path(cfg.LOG_FILE)
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = RotatingFileHandler(
                    filename=str(log_path),
                    maxBytes=cfg.LOG_MAX_BYTES,
                    backupCount=cfg.LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
            except OSError as exc:
                self._logger.warning(
                    "Could not open log file '%s': %s. Logging to the console only.",
                    cfg.LOG_FILE,
                    exc,
                )
            else:
                file_handler.setFormatter(formatter)
                self._logger.addHandler(file_handler)

    def debug(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.error(msg, *args, **kwargs)


def get_logger(name: str = "homebase") -> StructuredLogger:
    return StructuredLogger(name=name)
