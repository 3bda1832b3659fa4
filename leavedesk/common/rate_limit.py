"""Rate limiting configuration using slowapi.

Module-level Limiter shared by the routers and wired into the app in main.py.
Requests are keyed by client IP; the default limit comes from
``RATE_LIMIT_DEFAULT`` so deployments behind a shared proxy can raise it.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from leavedesk.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
