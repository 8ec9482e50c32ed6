from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from surplus.db.models import Store
from surplus.domain.enums import StoreCategory, VerificationStatus


class StoreRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, store_id: int) -> Optional[Store]:
        return self.db.get(Store, store_id)

    def add(self, store: Store) -> Store:
        self.db.add(store)
        self.db.flush()
        return store

    def list_public(self, category: Optional[StoreCategory] = None) -> List[Store]:
        """APPROVED and active stores only."""
        stmt = select(Store).where(
            Store.is_active.is_(True),
            Store.verification_status == VerificationStatus.APPROVED,
        )
        if category is not None:
            stmt = stmt.where(Store.category == category)
        stmt = stmt.order_by(Store.name.asc())
        return list(self.db.execute(stmt).scalars().all())

    def list_by_owner(self, owner_id: int) -> List[Store]:
        stmt = select(Store).where(Store.owner_id == owner_id).order_by(Store.id.asc())
        return list(self.db.execute(stmt).scalars().all())

    def list_all(
        self,
        verification_status: Optional[VerificationStatus] = None,
        is_active: Optional[bool] = None,
    ) -> List[Store]:
        stmt = select(Store)
        if verification_status is not None:
            stmt = stmt.where(Store.verification_status == verification_status)
        if is_active is not None:
            stmt = stmt.where(Store.is_active.is_(is_active))
        stmt = stmt.order_by(Store.created_at.desc(), Store.id.desc())
        return list(self.db.execute(stmt).scalars().all())
