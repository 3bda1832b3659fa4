"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request  → request bodies (write)
  - *Out                          → response bodies (read)

Date checks here are the transport-side guard; the service re-checks the
range and the computed day count.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from leavedesk.common.constants import (
    MAX_COMMENT_LENGTH,
    MAX_REASON_LENGTH,
    MIN_REASON_LENGTH,
    LeaveStatus,
    LeaveType,
)


def _today() -> date:
    return date.today()


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Create / Update
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request."""

    leave_type: LeaveType
    reason: str = Field(
        ...,
        min_length=MIN_REASON_LENGTH,
        max_length=MAX_REASON_LENGTH,
        description="Reason for leave",
    )
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")

    @field_validator("start_date")
    @classmethod
    def start_date_not_past(cls, v: date) -> date:
        if v < _today():
            raise ValueError("Start date cannot be in the past.")
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequestCreate":
        if self.start_date > self.end_date:
            raise ValueError("Start date must be on or before end date.")
        return self


class LeaveRequestUpdate(BaseModel):
    """Partial update of a pending leave request. Omitted fields are kept."""

    leave_type: Optional[LeaveType] = None
    reason: Optional[str] = Field(
        None, min_length=MIN_REASON_LENGTH, max_length=MAX_REASON_LENGTH,
    )
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("start_date")
    @classmethod
    def start_date_not_past(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v < _today():
            raise ValueError("Start date cannot be in the past.")
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequestUpdate":
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise ValueError("Start date must be on or before end date.")
        return self

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


# ═════════════════════════════════════════════════════════════════════
# Leave Approve / Reject
# ═════════════════════════════════════════════════════════════════════


class LeaveApproveRequest(BaseModel):
    """Payload for approving a leave request. The comment is optional."""

    comment: Optional[str] = Field(None, max_length=MAX_COMMENT_LENGTH)


class LeaveRejectRequest(BaseModel):
    """Payload for rejecting a leave request.

    Length is enforced by the service after trimming so that a comment of
    blanks is reported the same way as a short one.
    """

    comment: str = Field("", max_length=MAX_COMMENT_LENGTH)


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: str
    employee_name: str
    employee_email: str
    leave_type: LeaveType
    reason: str
    start_date: date
    end_date: date
    days: int
    status: LeaveStatus
    manager_comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime
