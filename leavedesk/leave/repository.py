"""Leave request store — abstract interface and SQLAlchemy implementation.

The service only talks to ``LeaveRepository``; ``SqlAlchemyLeaveRepository``
binds it to an ``AsyncSession``. Writes that change a request after creation
are guarded on ``status = 'pending'`` so two reviewers acting on the same
request cannot both win: the loser's write matches no row and the call
returns ``None``.
"""

from __future__ import annotations

import abc
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.constants import LeaveStatus
from leavedesk.common.log import get_logger
from leavedesk.leave.models import LeaveRequest

# Columns the owner may change while a request is pending
UPDATABLE_FIELDS = frozenset({"leave_type", "reason", "start_date", "end_date", "days"})


class LeaveRepository(abc.ABC):
    """Keyed store of leave requests."""

    @abc.abstractmethod
    async def create(self, leave: LeaveRequest) -> LeaveRequest:
        """Persist a new request and return it as stored."""

    @abc.abstractmethod
    async def find_by_id(self, request_id: uuid.UUID) -> Optional[LeaveRequest]:
        """Return the request or ``None`` when it does not exist."""

    @abc.abstractmethod
    async def find_by_owner(self, employee_id: str) -> Sequence[LeaveRequest]:
        """All requests of one employee, newest first."""

    @abc.abstractmethod
    async def find_pending(self) -> Sequence[LeaveRequest]:
        """All pending requests, oldest first."""

    @abc.abstractmethod
    async def update(
        self, request_id: uuid.UUID, changes: dict[str, Any],
    ) -> Optional[LeaveRequest]:
        """Write owner-editable fields of a pending request."""

    @abc.abstractmethod
    async def update_status(
        self,
        request_id: uuid.UUID,
        status: LeaveStatus,
        comment: Optional[str] = None,
    ) -> bool:
        """Move a pending request to ``status``; ``False`` if it was not pending."""


class SqlAlchemyLeaveRepository(LeaveRepository):
    """``LeaveRepository`` over an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.log = get_logger(__name__, component="repository")

    async def create(self, leave: LeaveRequest) -> LeaveRequest:
        now = datetime.now(timezone.utc)
        if leave.created_at is None:
            leave.created_at = now
        if leave.updated_at is None:
            leave.updated_at = now

        self.db.add(leave)
        try:
            await self.db.flush()
            await self.db.refresh(leave)
        except Exception as exc:
            self.log.error(
                "db_create_failed operation=create_leave leave_id=%s employee_id=%s error=%s",
                leave.id, leave.employee_id, exc,
            )
            raise
        return leave

    async def find_by_id(self, request_id: uuid.UUID) -> Optional[LeaveRequest]:
        try:
            result = await self.db.execute(
                select(LeaveRequest)
                .where(LeaveRequest.id == request_id)
                .execution_options(populate_existing=True)
            )
        except Exception as exc:
            self.log.error(
                "db_query_failed operation=find_by_id leave_id=%s error=%s",
                request_id, exc,
            )
            raise
        return result.scalars().first()

    async def find_by_owner(self, employee_id: str) -> Sequence[LeaveRequest]:
        try:
            result = await self.db.execute(
                select(LeaveRequest)
                .where(LeaveRequest.employee_id == employee_id)
                .order_by(LeaveRequest.created_at.desc())
            )
        except Exception as exc:
            self.log.error(
                "db_query_failed operation=find_by_employee_id employee_id=%s error=%s",
                employee_id, exc,
            )
            raise
        return result.scalars().all()

    async def find_pending(self) -> Sequence[LeaveRequest]:
        try:
            result = await self.db.execute(
                select(LeaveRequest)
                .where(LeaveRequest.status == LeaveStatus.pending)
                .order_by(LeaveRequest.created_at.asc())
            )
        except Exception as exc:
            self.log.error("db_query_failed operation=find_pending error=%s", exc)
            raise
        return result.scalars().all()

    async def update(
        self, request_id: uuid.UUID, changes: dict[str, Any],
    ) -> Optional[LeaveRequest]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        values = dict(changes, updated_at=datetime.now(timezone.utc))
        try:
            result = await self.db.execute(
                update(LeaveRequest)
                .where(
                    LeaveRequest.id == request_id,
                    LeaveRequest.status == LeaveStatus.pending,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        except Exception as exc:
            self.log.error(
                "db_update_failed operation=update_leave leave_id=%s error=%s",
                request_id, exc,
            )
            raise

        if result.rowcount == 0:
            return None
        return await self.find_by_id(request_id)

    async def update_status(
        self,
        request_id: uuid.UUID,
        status: LeaveStatus,
        comment: Optional[str] = None,
    ) -> bool:
        # Empty comment is stored as NULL
        comment_value = comment or None
        try:
            result = await self.db.execute(
                update(LeaveRequest)
                .where(
                    LeaveRequest.id == request_id,
                    LeaveRequest.status == LeaveStatus.pending,
                )
                .values(
                    status=status,
                    manager_comment=comment_value,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
        except Exception as exc:
            self.log.error(
                "db_update_failed operation=update_status leave_id=%s status=%s error=%s",
                request_id, status.value, exc,
            )
            raise
        return result.rowcount > 0
