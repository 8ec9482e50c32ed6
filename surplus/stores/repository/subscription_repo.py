from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from surplus.db.models import Store, Subscription


class SubscriptionRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: int, store_id: int) -> Optional[Subscription]:
        stmt = select(Subscription).where(
            Subscription.user_id == user_id,
            Subscription.store_id == store_id,
        )
        return self.db.execute(stmt).scalars().first()

    def add(self, user_id: int, store_id: int) -> Subscription:
        row = Subscription(user_id=user_id, store_id=store_id)
        self.db.add(row)
        return row

    def delete(self, row: Subscription) -> None:
        self.db.delete(row)

    def list_subscriber_ids(self, store_id: int) -> List[int]:
        stmt = select(Subscription.user_id).where(Subscription.store_id == store_id)
        return list(self.db.execute(stmt).scalars().all())

    def list_stores_for_user(self, user_id: int) -> List[Store]:
        stmt = (
            select(Store)
            .join(Subscription, Subscription.store_id == Store.id)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())
