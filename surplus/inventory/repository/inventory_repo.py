from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from surplus.db.models import InventoryItem, Store
from surplus.domain.enums import StoreCategory, VerificationStatus


class InventoryRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, item_id: int) -> Optional[InventoryItem]:
        return self.db.get(InventoryItem, item_id)

    def add(self, item: InventoryItem) -> InventoryItem:
        self.db.add(item)
        self.db.flush()
        return item

    def list_reservable(
        self,
        now: datetime,
        store_id: Optional[int] = None,
        category: Optional[StoreCategory] = None,
    ) -> List[InventoryItem]:
        """
        Items a customer can reserve right now:
        offered, inside the window, stock left, store approved and active.
        """
        stmt = (
            select(InventoryItem)
            .join(Store, Store.id == InventoryItem.store_id)
            .options(selectinload(InventoryItem.store))
            .where(
                InventoryItem.is_available.is_(True),
                InventoryItem.available_from <= now,
                InventoryItem.available_until >= now,
                InventoryItem.total_quantity > InventoryItem.reserved_quantity,
                Store.is_active.is_(True),
                Store.verification_status == VerificationStatus.APPROVED,
            )
        )
        if store_id is not None:
            stmt = stmt.where(InventoryItem.store_id == store_id)
        if category is not None:
            stmt = stmt.where(Store.category == category)
        stmt = stmt.order_by(InventoryItem.available_until.asc(), InventoryItem.id.asc())
        return list(self.db.execute(stmt).scalars().all())

    def list_by_owner(self, owner_id: int) -> List[InventoryItem]:
        stmt = (
            select(InventoryItem)
            .join(Store, Store.id == InventoryItem.store_id)
            .where(Store.owner_id == owner_id)
            .order_by(InventoryItem.created_at.desc(), InventoryItem.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())
