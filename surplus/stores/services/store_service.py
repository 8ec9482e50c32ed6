from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from surplus.common.auth import Actor
from surplus.common.errors import NotFound, Unauthorized
from surplus.db.models import Store
from surplus.domain.enums import StoreCategory, VerificationStatus
from surplus.stores.dtos import AdminStoreUpdate, StoreCreate, StoreUpdate
from surplus.stores.repository.store_repo import StoreRepository
from surplus.stores.repository.subscription_repo import SubscriptionRepository

logger = logging.getLogger(__name__)


class StoreService:
    """Store profile CRUD, visibility rules, admin verification, subscriptions."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = StoreRepository(db)
        self.subscriptions = SubscriptionRepository(db)

    # -------------------------------------------------
    # reads
    # -------------------------------------------------
    def get_visible(self, store_id: int, actor: Optional[Actor] = None) -> Store:
        """
        Public detail. Unapproved / inactive stores are visible only to
        their owner and admins.
        """
        store = self.repo.get(store_id)
        if store is None:
            raise NotFound(f"store {store_id} not found")
        if store.accepts_reservations:
            return store
        if actor is not None and (actor.is_admin or actor.user_id == store.owner_id):
            return store
        raise NotFound(f"store {store_id} not found")

    def list_public(self, category: Optional[StoreCategory] = None) -> List[Store]:
        return self.repo.list_public(category)

    def list_mine(self, owner_id: int) -> List[Store]:
        return self.repo.list_by_owner(owner_id)

    def get_owned(self, store_id: int, actor: Actor) -> Store:
        store = self.repo.get(store_id)
        if store is None:
            raise NotFound(f"store {store_id} not found")
        if not actor.is_admin and store.owner_id != actor.user_id:
            raise Unauthorized("not your store")
        return store

    # -------------------------------------------------
    # owner writes
    # -------------------------------------------------
    def create(self, owner_id: int, payload: StoreCreate) -> Store:
        store = Store(
            owner_id=owner_id,
            verification_status=VerificationStatus.PENDING,
            is_active=True,
            **payload.model_dump(),
        )
        self.repo.add(store)
        self.db.commit()
        self.db.refresh(store)
        logger.info("store created id=%s owner=%s", store.id, owner_id)
        return store

    def update(self, store_id: int, payload: StoreUpdate, actor: Actor) -> Store:
        store = self.get_owned(store_id, actor)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(store, field, value)
        self.db.commit()
        self.db.refresh(store)
        return store

    # -------------------------------------------------
    # admin
    # -------------------------------------------------
    def list_all(
        self,
        verification_status: Optional[VerificationStatus] = None,
        is_active: Optional[bool] = None,
    ) -> List[Store]:
        return self.repo.list_all(verification_status, is_active)

    def admin_update(self, store_id: int, payload: AdminStoreUpdate) -> Store:
        store = self.repo.get(store_id)
        if store is None:
            raise NotFound(f"store {store_id} not found")
        data = payload.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in data.items():
            setattr(store, field, value)
        self.db.commit()
        self.db.refresh(store)
        logger.info("store %s updated by admin: %s", store_id, data)
        return store

    # -------------------------------------------------
    # subscriptions
    # -------------------------------------------------
    def subscribe(self, user_id: int, store_id: int) -> bool:
        self.get_visible(store_id)
        if self.subscriptions.get(user_id, store_id) is not None:
            return True
        self.subscriptions.add(user_id, store_id)
        try:
            self.db.commit()
        except IntegrityError:
            # concurrent duplicate; the unique constraint already holds the row
            self.db.rollback()
        return True

    def unsubscribe(self, user_id: int, store_id: int) -> bool:
        row = self.subscriptions.get(user_id, store_id)
        if row is not None:
            self.subscriptions.delete(row)
            self.db.commit()
        return False

    def list_subscribed(self, user_id: int) -> List[Store]:
        return self.subscriptions.list_stores_for_user(user_id)
