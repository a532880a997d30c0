"""Caller identity for API routes.

Authentication happens upstream; the gateway forwards the verified user id
and role set as ``X-User-Id`` and ``X-User-Roles`` headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

ADMIN_ROLE = "ADMIN"


@dataclass(frozen=True)
class Principal:
    user_id: str
    roles: frozenset[str]

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


def current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_roles: str = Header(default=""),
) -> Principal:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    roles = frozenset(role.strip().upper() for role in x_user_roles.split(",") if role.strip())
    return Principal(user_id=x_user_id, roles=roles)


def require_admin(principal: Principal = Depends(current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin only")
    return principal
