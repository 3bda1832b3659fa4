"""Auth schemas — the identity resolved from a bearer token."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CurrentUser(BaseModel):
    """Authenticated actor: subject, display name, contact address and roles."""

    user_id: str
    name: str = ""
    email: str = ""
    roles: list[str] = Field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, *roles: str) -> bool:
        return any(self.has_role(r) for r in roles)
