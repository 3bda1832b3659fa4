"""Enums and constants for the leave service — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    admin = "admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    annual = "annual"
    sick = "sick"
    personal = "personal"
    other = "other"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


TERMINAL_STATUSES = frozenset(
    {LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled}
)


# ── Validation limits ───────────────────────────────────────────────

MIN_REASON_LENGTH = 10
MAX_REASON_LENGTH = 1000
MIN_REJECT_COMMENT_LENGTH = 10
MAX_COMMENT_LENGTH = 500

# ── Misc constants ──────────────────────────────────────────────────

REQUEST_ID_HEADER = "X-Request-ID"
