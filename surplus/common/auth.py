# surplus/common/auth.py
"""
Actor resolution for every request.

Authentication is done upstream: the gateway in front of this service
verifies the session and forwards the identity as headers.

  - X-User-Id    : integer user id
  - X-User-Role  : CUSTOMER | STORE_OWNER | ADMIN
  - X-Admin-Token: additionally required on /api/admin when ADMIN_TOKEN is set
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from surplus.config import get_settings
from surplus.db.core import get_db
from surplus.db.models import User
from surplus.domain.enums import UserRole
from surplus.users.repository.user_repo import UserRepository


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def get_actor(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> Actor:
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id / X-User-Role",
        )
    try:
        user_id = int(x_user_id)
        role = UserRole(x_user_role.strip().upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Id / X-User-Role",
        )
    return Actor(user_id=user_id, role=role)


def get_current_user(
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
) -> User:
    """Profile row of the caller (provisioned on first request)."""
    return UserRepository(db).ensure(actor.user_id, actor.role)


def require_role(*roles: UserRole):
    allowed = set(roles)

    def _dep(actor: Actor = Depends(get_actor), _user: User = Depends(get_current_user)) -> Actor:
        # ADMIN passes every role gate
        if actor.role not in allowed and not actor.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"role {actor.role.value} is not allowed here",
            )
        return actor

    return _dep


def require_admin(
    actor: Actor = Depends(get_actor),
    _user: User = Depends(get_current_user),
    x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token"),
) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin only")

    expected = get_settings().admin_token
    if expected and x_admin_token != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing X-Admin-Token",
        )
    return actor
