"""Common module — shared enums, errors, logging and rate limiting."""

from leavedesk.common.constants import (
    MIN_REASON_LENGTH,
    MIN_REJECT_COMMENT_LENGTH,
    TERMINAL_STATUSES,
    LeaveStatus,
    LeaveType,
    UserRole,
)
from leavedesk.common.exceptions import (
    AppException,
    ForbiddenException,
    InfrastructureException,
    InvalidRequestException,
    InvalidStatusTransitionException,
    NotFoundException,
    register_exception_handlers,
)
from leavedesk.common.log import RequestContext, configure_logging, get_logger

__all__ = [
    # Constants / Enums
    "LeaveStatus",
    "LeaveType",
    "UserRole",
    "TERMINAL_STATUSES",
    "MIN_REASON_LENGTH",
    "MIN_REJECT_COMMENT_LENGTH",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "InfrastructureException",
    "InvalidRequestException",
    "InvalidStatusTransitionException",
    "NotFoundException",
    "register_exception_handlers",
    # Logging
    "RequestContext",
    "configure_logging",
    "get_logger",
]
