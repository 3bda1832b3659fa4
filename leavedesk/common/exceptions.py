"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "/errors"

logger = logging.getLogger(__name__)


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ForbiddenException(AppException):
    """403 — actor may not act on this record."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class InvalidStatusTransitionException(AppException):
    """400 — operation not legal in the record's current status."""

    def __init__(self, action: str, current_status: Any) -> None:
        status_value = getattr(current_status, "value", current_status)
        self.action = action
        self.current_status = status_value
        super().__init__(
            status_code=400,
            error_type="invalid-status-transition",
            title="Invalid Status Transition",
            detail=f"invalid status transition: cannot {action} {status_value} request",
            errors={"status": [f"Leave request is already {status_value}."]},
        )


class InvalidRequestException(AppException):
    """400 — business-rule validation failure (date range, comment, ...)."""

    def __init__(self, errors: dict[str, list[str]], detail: Optional[str] = None) -> None:
        super().__init__(
            status_code=400,
            error_type="invalid-request",
            title="Invalid Request",
            detail=detail or "One or more fields failed validation.",
            errors=errors,
        )


class InfrastructureException(AppException):
    """503 — store failure unrelated to business rules."""

    def __init__(self, operation: str, entity_id: Any = None) -> None:
        self.operation = operation
        self.entity_id = entity_id
        target = f" (id '{entity_id}')" if entity_id is not None else ""
        super().__init__(
            status_code=503,
            error_type="infrastructure",
            title="Service Unavailable",
            detail=f"Failed to {operation.replace('_', ' ')}{target}.",
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed path=%s error=%s cause=%r",
            request.url.path, exc.detail, exc.__cause__,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
