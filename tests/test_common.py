"""Common module tests — exception hierarchy, logging, health and config."""

from __future__ import annotations

import logging

from leavedesk.common.constants import LeaveStatus, UserRole
from leavedesk.common.exceptions import (
    ForbiddenException,
    InfrastructureException,
    InvalidRequestException,
    InvalidStatusTransitionException,
    NotFoundException,
)
from leavedesk.common.log import KeyValueFormatter, RequestContext, get_logger
from leavedesk.config import Settings


# ── Exceptions ──────────────────────────────────────────────────────


class TestExceptions:

    def test_not_found(self):
        exc = NotFoundException("LeaveRequest", "abc")
        assert exc.status_code == 404
        assert exc.detail == "LeaveRequest with id 'abc' does not exist."

    def test_forbidden(self):
        exc = ForbiddenException("Access denied")
        assert exc.status_code == 403
        assert exc.error_type == "forbidden"

    def test_invalid_status_transition(self):
        exc = InvalidStatusTransitionException("approve", LeaveStatus.rejected)
        assert exc.status_code == 400
        assert exc.action == "approve"
        assert exc.current_status == "rejected"
        assert exc.detail == "invalid status transition: cannot approve rejected request"

    def test_invalid_request_default_detail(self):
        exc = InvalidRequestException({"comment": ["too short"]})
        assert exc.status_code == 400
        assert exc.detail == "One or more fields failed validation."
        assert exc.errors == {"comment": ["too short"]}

    def test_infrastructure(self):
        exc = InfrastructureException("approve_leave", "abc")
        assert exc.status_code == 503
        assert exc.detail == "Failed to approve leave (id 'abc')."
        assert InfrastructureException("get_leaves").detail == "Failed to get leaves."


# ── Logging ─────────────────────────────────────────────────────────


def _record(logger_name: str = "leavedesk.test", **context) -> logging.LogRecord:
    record = logging.LogRecord(
        logger_name, logging.INFO, __file__, 1, "approve_leave_success leave_id=%s", ("abc",), None,
    )
    record.context = context
    return record


class TestLogging:

    def test_formatter_renders_context(self):
        line = KeyValueFormatter("lms").format(_record(request_id="r1", user_id="mgr-1"))
        assert " INFO [lms] leavedesk.test request_id=r1 user_id=mgr-1 " in line
        assert line.endswith('msg="approve_leave_success leave_id=abc"')

    def test_formatter_without_context(self):
        line = KeyValueFormatter("lms").format(_record())
        assert "[lms] leavedesk.test msg=" in line

    def test_request_context_fields(self):
        ctx = RequestContext(request_id="r1").with_actor("emp-1", "emp1@company.com")
        assert ctx.as_fields() == {
            "request_id": "r1",
            "user_id": "emp-1",
            "user_email": "emp1@company.com",
        }
        assert RequestContext(request_id="r2").as_fields() == {"request_id": "r2"}

    def test_request_ids_are_unique(self):
        assert RequestContext().request_id != RequestContext().request_id

    def test_context_logger_attaches_fields(self, caplog):
        ctx = RequestContext(request_id="r1", actor_id="emp-1")
        log = get_logger("leavedesk.test", ctx, component="email")
        with caplog.at_level(logging.INFO, logger="leavedesk"):
            log.info("email_sent to=%s", "a@b.c")
        record = caplog.records[-1]
        assert record.context == {"request_id": "r1", "user_id": "emp-1", "component": "email"}
        assert record.getMessage() == "email_sent to=a@b.c"


# ── Config ──────────────────────────────────────────────────────────


class TestSettings:

    def test_manager_roles_parsed(self):
        assert Settings(MANAGER_ROLES='["lead"]').manager_roles_list == ["lead"]

    def test_manager_roles_fallback(self):
        assert Settings(MANAGER_ROLES="not json").manager_roles_list == [
            UserRole.manager.value, UserRole.admin.value,
        ]

    def test_smtp_configured(self):
        assert not Settings(SMTP_HOST="").smtp_configured
        assert Settings(SMTP_HOST="smtp.company.test").smtp_configured


# ── Health ──────────────────────────────────────────────────────────


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_versioned_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
