from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from surplus.db.models import User
from surplus.domain.enums import UserRole


class UserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def ensure(self, user_id: int, role: UserRole) -> User:
        """
        Return the local profile row for an identity-provider user,
        creating it on first sight. The role always follows the provider.
        """
        user = self.db.get(User, user_id)
        if user is None:
            self.db.add(User(id=user_id, role=role))
            try:
                self.db.commit()
            except IntegrityError:
                # another request provisioned the same id first
                self.db.rollback()
            user = self.db.get(User, user_id)

        if user.role != role:
            user.role = role
            self.db.commit()
            self.db.refresh(user)
        return user

    def list(self, role: Optional[UserRole] = None, limit: int = 100, offset: int = 0) -> List[User]:
        stmt = select(User).order_by(User.id.asc())
        if role is not None:
            stmt = stmt.where(User.role == role)
        stmt = stmt.offset(max(0, offset)).limit(max(0, limit))
        return list(self.db.execute(stmt).scalars().all())

    def list_ids(self) -> List[int]:
        return list(self.db.execute(select(User.id)).scalars().all())
