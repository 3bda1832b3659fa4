"""Leave service layer — request lifecycle and business-day accounting.

Business logic:
  - Submission with business-day count (weekends excluded, no zero-day leave)
  - Owner edits and cancellation while a request is pending
  - Reviewer approval / rejection (terminal), re-reading the stored record
  - FIFO pending queue for reviewers, newest-first history for owners

State machine::

    pending ──► approved | rejected | cancelled     (all terminal)

Check order for owner operations is fixed: not found → ownership → status.
Reviewer authority is enforced by the router's role dependency, and outcome
emails are scheduled by the router after the write; neither happens here.
"""

from __future__ import annotations

import contextlib
import uuid
from datetime import date, datetime, timezone
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from leavedesk.common.constants import (
    MIN_REASON_LENGTH,
    MIN_REJECT_COMMENT_LENGTH,
    LeaveStatus,
)
from leavedesk.common.exceptions import (
    ForbiddenException,
    InfrastructureException,
    InvalidRequestException,
    InvalidStatusTransitionException,
    NotFoundException,
)
from leavedesk.common.log import ContextLogger, RequestContext, get_logger
from leavedesk.leave.calendar import business_days_between
from leavedesk.leave.models import LeaveRequest
from leavedesk.leave.repository import LeaveRepository
from leavedesk.leave.schemas import (
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave request operations over a ``LeaveRepository``."""

    def __init__(self, repository: LeaveRepository) -> None:
        self.repo = repository

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _log(ctx: Optional[RequestContext]) -> ContextLogger:
        return get_logger(__name__, ctx)

    @staticmethod
    @contextlib.contextmanager
    def _store_errors(
        log: ContextLogger,
        operation: str,
        request_id: Optional[uuid.UUID] = None,
    ) -> Iterator[None]:
        """Translate store failures into InfrastructureException."""
        try:
            yield
        except SQLAlchemyError as exc:
            log.error(
                "%s_failed reason=store_error leave_id=%s error=%s",
                operation, request_id, exc,
            )
            raise InfrastructureException(operation, request_id) from exc

    @staticmethod
    def _count_days(start_date: date, end_date: date) -> int:
        """Business days for a leave span; raises on empty or inverted ranges."""
        if start_date > end_date:
            raise InvalidRequestException(
                {"end_date": ["End date must be on or after start date."]},
                detail="invalid date range",
            )
        days = business_days_between(start_date, end_date)
        if days <= 0:
            raise InvalidRequestException(
                {"days": ["Leave must include at least one business day."]},
                detail="invalid date range",
            )
        return days

    @staticmethod
    def _check_reason(reason: str) -> None:
        if len(reason.strip()) < MIN_REASON_LENGTH:
            raise InvalidRequestException(
                {"reason": [f"Reason must be at least {MIN_REASON_LENGTH} characters."]}
            )

    @staticmethod
    def _normalize_comment(comment: Optional[str]) -> Optional[str]:
        if comment is None:
            return None
        return comment.strip() or None

    @staticmethod
    def is_owner(record: LeaveRequestOut | LeaveRequest, identity: str) -> bool:
        """True when ``identity`` submitted ``record``."""
        return record.employee_id == identity

    async def _load(
        self,
        request_id: uuid.UUID,
        operation: str,
        log: ContextLogger,
    ) -> LeaveRequest:
        with self._store_errors(log, operation, request_id):
            leave_req = await self.repo.find_by_id(request_id)
        if leave_req is None:
            log.warning("%s_failed reason=not_found leave_id=%s", operation, request_id)
            raise NotFoundException("LeaveRequest", str(request_id))
        return leave_req

    def _require_owner(
        self,
        leave_req: LeaveRequest,
        employee_id: str,
        operation: str,
        log: ContextLogger,
    ) -> None:
        if not self.is_owner(leave_req, employee_id):
            log.warning(
                "%s_failed reason=forbidden leave_id=%s owner=%s requester=%s",
                operation, leave_req.id, leave_req.employee_id, employee_id,
            )
            raise ForbiddenException("Access denied")

    @staticmethod
    def _require_pending(
        leave_req: LeaveRequest,
        action: str,
        operation: str,
        log: ContextLogger,
    ) -> None:
        if leave_req.status != LeaveStatus.pending:
            log.warning(
                "%s_failed reason=invalid_status leave_id=%s status=%s",
                operation, leave_req.id, leave_req.status.value,
            )
            raise InvalidStatusTransitionException(action, leave_req.status)

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    async def create_leave_request(
        self,
        data: LeaveRequestCreate,
        employee_id: str,
        employee_name: str,
        employee_email: str,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> LeaveRequestOut:
        """Submit a new pending request for ``employee_id``."""
        log = self._log(ctx)
        log.debug(
            "create_leave_start leave_type=%s start_date=%s end_date=%s",
            data.leave_type.value, data.start_date, data.end_date,
        )

        self._check_reason(data.reason)
        days = self._count_days(data.start_date, data.end_date)

        now = datetime.now(timezone.utc)
        leave_req = LeaveRequest(
            id=uuid.uuid4(),
            employee_id=employee_id,
            employee_name=employee_name,
            employee_email=employee_email,
            leave_type=data.leave_type,
            reason=data.reason,
            start_date=data.start_date,
            end_date=data.end_date,
            days=days,
            status=LeaveStatus.pending,
            manager_comment=None,
            created_at=now,
            updated_at=now,
        )

        with self._store_errors(log, "create_leave", leave_req.id):
            leave_req = await self.repo.create(leave_req)

        log.info("create_leave_success leave_id=%s days=%d", leave_req.id, leave_req.days)
        return LeaveRequestOut.model_validate(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    async def get_leave_request(
        self,
        request_id: uuid.UUID,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> LeaveRequestOut:
        """Fetch one request. Visibility is checked by the caller via is_owner."""
        log = self._log(ctx)
        leave_req = await self._load(request_id, "get_leave", log)
        return LeaveRequestOut.model_validate(leave_req)

    async def list_by_owner(
        self,
        employee_id: str,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> list[LeaveRequestOut]:
        """All requests of one employee, most recently created first."""
        log = self._log(ctx)
        with self._store_errors(log, "get_leaves"):
            rows = await self.repo.find_by_owner(employee_id)
        log.info("get_leaves_success count=%d", len(rows))
        return [LeaveRequestOut.model_validate(r) for r in rows]

    async def list_pending(
        self,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> list[LeaveRequestOut]:
        """Review queue: pending requests in submission order."""
        log = self._log(ctx)
        with self._store_errors(log, "get_pending_leaves"):
            rows = await self.repo.find_pending()
        log.info("get_pending_leaves_success count=%d", len(rows))
        return [LeaveRequestOut.model_validate(r) for r in rows]

    # ─────────────────────────────────────────────────────────────────
    # Update
    # ─────────────────────────────────────────────────────────────────

    async def update_leave_request(
        self,
        request_id: uuid.UUID,
        employee_id: str,
        data: LeaveRequestUpdate,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> LeaveRequestOut:
        """Edit a pending request owned by ``employee_id``.

        Any subset of leave_type / reason / start_date / end_date may be
        given. Changing a date recomputes ``days``. An empty payload returns
        the stored record without writing.
        """
        log = self._log(ctx)
        log.debug("update_leave_start leave_id=%s", request_id)

        leave_req = await self._load(request_id, "update_leave", log)
        self._require_owner(leave_req, employee_id, "update_leave", log)
        self._require_pending(leave_req, "update", "update_leave", log)

        if data.is_empty():
            return LeaveRequestOut.model_validate(leave_req)

        changes: dict = {}
        if data.leave_type is not None:
            changes["leave_type"] = data.leave_type
        if data.reason is not None:
            self._check_reason(data.reason)
            changes["reason"] = data.reason
        if data.start_date is not None or data.end_date is not None:
            start_date = data.start_date or leave_req.start_date
            end_date = data.end_date or leave_req.end_date
            changes["start_date"] = start_date
            changes["end_date"] = end_date
            changes["days"] = self._count_days(start_date, end_date)

        with self._store_errors(log, "update_leave", request_id):
            updated = await self.repo.update(request_id, changes)

        if updated is None:
            # Status moved on between the read and the guarded write
            current = await self._load(request_id, "update_leave", log)
            raise InvalidStatusTransitionException("update", current.status)

        log.info("update_leave_success leave_id=%s", request_id)
        return LeaveRequestOut.model_validate(updated)

    # ─────────────────────────────────────────────────────────────────
    # Cancel
    # ─────────────────────────────────────────────────────────────────

    async def cancel_leave_request(
        self,
        request_id: uuid.UUID,
        employee_id: str,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> None:
        """Owner withdraws a pending request. No comment is recorded."""
        log = self._log(ctx)
        log.debug("cancel_leave_start leave_id=%s", request_id)

        leave_req = await self._load(request_id, "cancel_leave", log)
        self._require_owner(leave_req, employee_id, "cancel_leave", log)
        self._require_pending(leave_req, "cancel", "cancel_leave", log)

        await self._transition(
            request_id, LeaveStatus.cancelled, None, "cancel", "cancel_leave", log,
        )
        log.info("cancel_leave_success leave_id=%s", request_id)

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    async def approve_leave_request(
        self,
        request_id: uuid.UUID,
        comment: Optional[str] = None,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> LeaveRequestOut:
        """Approve a pending request. The comment is optional."""
        log = self._log(ctx)
        comment = self._normalize_comment(comment)

        leave_req = await self._load(request_id, "approve_leave", log)
        self._require_pending(leave_req, "approve", "approve_leave", log)

        updated = await self._transition(
            request_id, LeaveStatus.approved, comment, "approve", "approve_leave", log,
        )
        log.info("approve_leave_success leave_id=%s", request_id)
        return LeaveRequestOut.model_validate(updated)

    async def reject_leave_request(
        self,
        request_id: uuid.UUID,
        comment: Optional[str],
        *,
        ctx: Optional[RequestContext] = None,
    ) -> LeaveRequestOut:
        """Reject a pending request. A comment of at least 10 characters is required."""
        log = self._log(ctx)
        comment = self._normalize_comment(comment)
        if comment is None:
            log.warning("reject_leave_failed reason=missing_comment leave_id=%s", request_id)
            raise InvalidRequestException(
                {"comment": ["Comment is required for rejection."]},
                detail="Comment is required for rejection",
            )
        if len(comment) < MIN_REJECT_COMMENT_LENGTH:
            log.warning("reject_leave_failed reason=short_comment leave_id=%s", request_id)
            raise InvalidRequestException(
                {"comment": [
                    f"Comment must be at least {MIN_REJECT_COMMENT_LENGTH} characters."
                ]},
                detail=f"Comment must be at least {MIN_REJECT_COMMENT_LENGTH} characters",
            )

        leave_req = await self._load(request_id, "reject_leave", log)
        self._require_pending(leave_req, "reject", "reject_leave", log)

        updated = await self._transition(
            request_id, LeaveStatus.rejected, comment, "reject", "reject_leave", log,
        )
        log.info("reject_leave_success leave_id=%s", request_id)
        return LeaveRequestOut.model_validate(updated)

    async def _transition(
        self,
        request_id: uuid.UUID,
        status: LeaveStatus,
        comment: Optional[str],
        action: str,
        operation: str,
        log: ContextLogger,
    ) -> LeaveRequest:
        """Guarded status write, then re-read the stored record."""
        with self._store_errors(log, operation, request_id):
            applied = await self.repo.update_status(request_id, status, comment)
            current = await self.repo.find_by_id(request_id)

        if current is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        if not applied:
            log.warning(
                "%s_failed reason=lost_race leave_id=%s status=%s",
                operation, request_id, current.status.value,
            )
            raise InvalidStatusTransitionException(action, current.status)
        return current
