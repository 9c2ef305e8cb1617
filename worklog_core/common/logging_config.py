"""Structured JSON logging with request-scoped context."""
from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

__all__ = [
    "RequestContext",
    "RequestContextFilter",
    "JsonFormatter",
]


class RequestContext:
    """Async-safe holder for the fields stamped on every log record."""

    _request_id: ContextVar[str | None] = ContextVar("log_request_id", default=None)
    _user_id: ContextVar[str | None] = ContextVar("log_user_id", default=None)
    _organization_id: ContextVar[str | None] = ContextVar("log_organization_id", default=None)

    FIELD_NAMES = ("request_id", "user_id", "organization_id")

    @classmethod
    def set(
        cls,
        *,
        request_id: str | None = None,
        user_id: Any = None,
        organization_id: Any = None,
    ) -> None:
        """Set context fields. Only non-None values are updated."""
        if request_id is not None:
            cls._request_id.set(str(request_id))
        if user_id is not None:
            cls._user_id.set(str(user_id))
        if organization_id is not None:
            cls._organization_id.set(str(organization_id))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        ctx: dict[str, str] = {}
        for name in cls.FIELD_NAMES:
            val = getattr(cls, f"_{name}").get()
            if val is not None:
                ctx[name] = val
        return ctx

    @classmethod
    def clear(cls) -> None:
        for name in cls.FIELD_NAMES:
            getattr(cls, f"_{name}").set(None)


class RequestContextFilter(logging.Filter):
    """
    Copies RequestContext fields onto the record so both the JSON and
    the plain-text formatters can reference them.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = RequestContext.get_all()
        for name in RequestContext.FIELD_NAMES:
            if not hasattr(record, name):
                setattr(record, name, ctx.get(name, "-"))
        return True


_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName", "asctime"}


def _default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class JsonFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_default)
