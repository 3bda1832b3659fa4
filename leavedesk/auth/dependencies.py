"""Auth dependencies — bearer token → CurrentUser, role enforcement.

Tokens are issued by the frontend's identity provider session. Claims are
read without verifying the signature; the gateway in front of this service
is trusted to have done so.
"""

from __future__ import annotations

from typing import Any, Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import JWTError, jwt

from leavedesk.auth.schemas import CurrentUser
from leavedesk.common.constants import REQUEST_ID_HEADER
from leavedesk.common.exceptions import ForbiddenException
from leavedesk.common.log import RequestContext, get_logger
from leavedesk.config import settings

logger = get_logger(__name__)


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authorization header")
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header format")
    return parts[1]


def _claim_str(claims: dict[str, Any], key: str) -> str:
    value = claims.get(key)
    return value if isinstance(value, str) else ""


def user_from_claims(claims: dict[str, Any]) -> CurrentUser:
    """Map token claims (sub, name, email, roles) to a CurrentUser."""
    raw_roles = claims.get("roles")
    roles = [r for r in raw_roles if isinstance(r, str)] if isinstance(raw_roles, list) else []
    return CurrentUser(
        user_id=_claim_str(claims, "sub"),
        name=_claim_str(claims, "name"),
        email=_claim_str(claims, "email"),
        roles=roles,
    )


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(request: Request) -> CurrentUser:
    """Decode the bearer token's claims and return the actor."""
    token = _extract_bearer(request)

    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        logger.warning("auth_failed reason=invalid_token error=%s", exc)
        raise HTTPException(status_code=401, detail="Invalid token")

    user = user_from_claims(claims)
    if not user.user_id:
        logger.warning("auth_failed reason=missing_subject")
        raise HTTPException(status_code=401, detail="Token missing user information")

    request.state.user = user
    return user


async def get_request_context(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
) -> RequestContext:
    """Per-request logging context: incoming request id (or a new one) + actor."""
    request_id = getattr(request.state, "request_id", None) or request.headers.get(
        REQUEST_ID_HEADER
    )
    ctx = RequestContext(request_id=request_id) if request_id else RequestContext()
    return ctx.with_actor(user.user_id, user.email or None)


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: str) -> Callable:
    """Return a FastAPI dependency that admits users holding any of the roles."""

    async def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.has_any_role(*allowed_roles):
            logger.warning(
                "auth_failed reason=insufficient_role user_id=%s roles=%s required=%s",
                user.user_id, user.roles, list(allowed_roles),
            )
            raise ForbiddenException(detail="Insufficient permissions")
        return user

    return _check


def require_reviewer() -> Callable:
    """Role gate for review endpoints, driven by ``MANAGER_ROLES``."""
    return require_role(*settings.manager_roles_list)
