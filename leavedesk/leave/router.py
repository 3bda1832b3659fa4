"""Leave routers — employee self-service and manager review.

All endpoints require a bearer token. Manager endpoints additionally require
one of ``MANAGER_ROLES``. Outcome emails are queued as background tasks after
approve / reject so delivery never delays or fails the response.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import (
    get_current_user,
    get_request_context,
    require_reviewer,
)
from leavedesk.auth.schemas import CurrentUser
from leavedesk.common.exceptions import ForbiddenException
from leavedesk.common.log import RequestContext, get_logger
from leavedesk.config import settings
from leavedesk.database import get_db
from leavedesk.leave.repository import SqlAlchemyLeaveRepository
from leavedesk.leave.schemas import (
    LeaveApproveRequest,
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
)
from leavedesk.leave.service import LeaveService
from leavedesk.notifications.service import (
    Notifier,
    dispatch_outcome_notification,
    get_notifier,
)

router = APIRouter(prefix="", tags=["leave"])
manager_router = APIRouter(prefix="", tags=["manager"])


def get_leave_service(db: AsyncSession = Depends(get_db)) -> LeaveService:
    return LeaveService(SqlAlchemyLeaveRepository(db))


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=LeaveRequestOut, status_code=201)
async def create_leave(
    body: LeaveRequestCreate,
    user: CurrentUser = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    service: LeaveService = Depends(get_leave_service),
):
    """Submit a leave request for the authenticated employee."""
    return await service.create_leave_request(
        body, user.user_id, user.name, user.email, ctx=ctx,
    )


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=list[LeaveRequestOut])
async def my_leaves(
    user: CurrentUser = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    service: LeaveService = Depends(get_leave_service),
):
    """The authenticated employee's requests, newest first."""
    return await service.list_by_owner(user.user_id, ctx=ctx)


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{request_id}", response_model=LeaveRequestOut)
async def get_leave(
    request_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    service: LeaveService = Depends(get_leave_service),
):
    """A single request, visible to its owner and to reviewers."""
    leave = await service.get_leave_request(request_id, ctx=ctx)
    if not service.is_owner(leave, user.user_id) and not user.has_any_role(
        *settings.manager_roles_list
    ):
        get_logger(__name__, ctx).warning(
            "get_leave_failed reason=forbidden leave_id=%s owner=%s requester=%s",
            request_id, leave.employee_id, user.user_id,
        )
        raise ForbiddenException("Access denied")
    return leave


# ── PUT /{id} ───────────────────────────────────────────────────────

@router.put("/{request_id}", response_model=LeaveRequestOut)
async def update_leave(
    request_id: uuid.UUID,
    body: LeaveRequestUpdate,
    user: CurrentUser = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    service: LeaveService = Depends(get_leave_service),
):
    """Edit a pending request. Omitted fields keep their value."""
    return await service.update_leave_request(request_id, user.user_id, body, ctx=ctx)


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{request_id}", status_code=204)
async def cancel_leave(
    request_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
    service: LeaveService = Depends(get_leave_service),
):
    """Cancel a pending request. The record is kept with status=cancelled."""
    await service.cancel_leave_request(request_id, user.user_id, ctx=ctx)
    return Response(status_code=204)


# ═════════════════════════════════════════════════════════════════════
# Manager review
# ═════════════════════════════════════════════════════════════════════


# ── GET /manager/leave ──────────────────────────────────────────────

@manager_router.get("", response_model=list[LeaveRequestOut])
async def pending_leaves(
    reviewer: CurrentUser = Depends(require_reviewer()),
    ctx: RequestContext = Depends(get_request_context),
    service: LeaveService = Depends(get_leave_service),
):
    """Pending requests in submission order."""
    return await service.list_pending(ctx=ctx)


# ── PUT /manager/leave/{id}/approve ─────────────────────────────────

@manager_router.put("/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_leave(
    request_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    body: Optional[LeaveApproveRequest] = None,
    reviewer: CurrentUser = Depends(require_reviewer()),
    ctx: RequestContext = Depends(get_request_context),
    service: LeaveService = Depends(get_leave_service),
    notifier: Notifier = Depends(get_notifier),
):
    """Approve a pending request and email the employee."""
    leave = await service.approve_leave_request(
        request_id, body.comment if body else None, ctx=ctx,
    )
    background_tasks.add_task(dispatch_outcome_notification, notifier, leave, ctx)
    return leave


# ── PUT /manager/leave/{id}/reject ──────────────────────────────────

@manager_router.put("/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_leave(
    request_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    body: Optional[LeaveRejectRequest] = None,
    reviewer: CurrentUser = Depends(require_reviewer()),
    ctx: RequestContext = Depends(get_request_context),
    service: LeaveService = Depends(get_leave_service),
    notifier: Notifier = Depends(get_notifier),
):
    """Reject a pending request (comment of 10+ characters) and email the employee."""
    leave = await service.reject_leave_request(
        request_id, body.comment if body else None, ctx=ctx,
    )
    background_tasks.add_task(dispatch_outcome_notification, notifier, leave, ctx)
    return leave
