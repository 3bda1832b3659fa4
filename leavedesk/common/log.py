"""Structured logging — explicit per-request context rendered as key=value pairs.

Handlers and services never read the logging context from a global. A
``RequestContext`` is built once per request (see ``get_request_context`` in
``leavedesk.auth.dependencies``) and passed down into every service call,
which binds it to a logger with ``get_logger(__name__, ctx)``.
"""

from __future__ import annotations

import logging
import sys
import uuid
from dataclasses import dataclass, field
from typing import Any, MutableMapping, Optional

from leavedesk.config import settings


@dataclass(frozen=True)
class RequestContext:
    """Identifies one unit of work in log lines."""

    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    actor_id: Optional[str] = None
    actor_email: Optional[str] = None

    def as_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {"request_id": self.request_id}
        if self.actor_id:
            fields["user_id"] = self.actor_id
        if self.actor_email:
            fields["user_email"] = self.actor_email
        return fields

    def with_actor(self, actor_id: str, actor_email: Optional[str] = None) -> "RequestContext":
        return RequestContext(
            request_id=self.request_id,
            actor_id=actor_id,
            actor_email=actor_email,
        )


class ContextLogger(logging.LoggerAdapter):
    """LoggerAdapter that attaches a RequestContext's fields to every record."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any],
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, ctx: Optional[RequestContext] = None, **fields: Any) -> ContextLogger:
    """Return a logger bound to ``ctx`` plus any extra static fields."""
    bound: dict[str, Any] = ctx.as_fields() if ctx else {}
    bound.update(fields)
    return ContextLogger(logging.getLogger(name), bound)


class KeyValueFormatter(logging.Formatter):
    """``2026-03-02T10:00:00 INFO [lms] name request_id=… user_id=… msg="…"``"""

    def __init__(self, app_name: str) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")
        self.app_name = app_name

    def format(self, record: logging.LogRecord) -> str:
        context: dict[str, Any] = getattr(record, "context", {}) or {}
        parts = [
            self.formatTime(record, self.datefmt),
            record.levelname,
            f"[{self.app_name}]",
            record.name,
        ]
        parts.extend(f"{k}={v}" for k, v in context.items())
        parts.append(f'msg="{record.getMessage()}"')
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: Optional[str] = None) -> None:
    """Install the key=value handler on the ``leavedesk`` logger tree."""
    if level is None:
        level = "debug" if settings.ENVIRONMENT == "development" else settings.LOG_LEVEL

    root = logging.getLogger("leavedesk")
    root.setLevel(level.upper())
    if not any(getattr(h, "_leavedesk", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(KeyValueFormatter(settings.APP_NAME))
        handler._leavedesk = True  # type: ignore[attr-defined]
        root.addHandler(handler)
