# surplus/inventory/services/inventory_service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from surplus.common.auth import Actor
from surplus.common.errors import InvalidRequest, NotFound
from surplus.common.time_utils import as_utc, utcnow
from surplus.db.models import InventoryItem, Store
from surplus.domain.enums import NotificationType, StoreCategory
from surplus.inventory.dtos import InventoryCreate, InventoryUpdate
from surplus.inventory.repository.inventory_repo import InventoryRepository
from surplus.inventory.services.inventory_store import InventoryStore
from surplus.notifications.services.notification_emitter import (
    NotificationEmitter,
    NotificationEvent,
)
from surplus.stores.repository.subscription_repo import SubscriptionRepository
from surplus.stores.services.store_service import StoreService

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Owner-side inventory management and the public listing.

    Quantity changes that touch holds go through InventoryStore; plain
    descriptive fields are updated on the ORM object.
    """

    def __init__(self, db: Session, *, emitter: Optional[NotificationEmitter] = None) -> None:
        self.db = db
        self.repo = InventoryRepository(db)
        self.store = InventoryStore(db)
        self.stores = StoreService(db)
        self.subscriptions = SubscriptionRepository(db)
        self.emitter = emitter or NotificationEmitter(db.get_bind())

    # -------------------------------------------------
    # public
    # -------------------------------------------------
    def list_reservable(
        self,
        store_id: Optional[int] = None,
        category: Optional[StoreCategory] = None,
        now: Optional[datetime] = None,
    ) -> List[InventoryItem]:
        return self.repo.list_reservable(now or utcnow(), store_id=store_id, category=category)

    def get_public(self, item_id: int, actor: Optional[Actor] = None) -> InventoryItem:
        item = self.repo.get(item_id)
        if item is None:
            raise NotFound(f"inventory item {item_id} not found")
        store: Store = item.store
        if store.accepts_reservations:
            return item
        if actor is not None and (actor.is_admin or actor.user_id == store.owner_id):
            return item
        raise NotFound(f"inventory item {item_id} not found")

    # -------------------------------------------------
    # owner
    # -------------------------------------------------
    def _owned_item(self, item_id: int, actor: Actor) -> InventoryItem:
        item = self.repo.get(item_id)
        if item is None:
            raise NotFound(f"inventory item {item_id} not found")
        self.stores.get_owned(item.store_id, actor)
        return item

    def list_mine(self, owner_id: int) -> List[InventoryItem]:
        return self.repo.list_by_owner(owner_id)

    def create(self, payload: InventoryCreate, actor: Actor) -> InventoryItem:
        store = self.stores.get_owned(payload.store_id, actor)

        item = InventoryItem(
            store_id=store.id,
            name=payload.name,
            description=payload.description,
            original_price=payload.original_price,
            unit_price=payload.unit_price,
            total_quantity=payload.total_quantity,
            reserved_quantity=0,
            available_from=as_utc(payload.available_from),
            available_until=as_utc(payload.available_until),
            is_available=payload.total_quantity > 0,
        )
        self.repo.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info("inventory created id=%s store=%s qty=%s", item.id, store.id, item.total_quantity)

        self._announce_new_item(item, store)
        return item

    def _announce_new_item(self, item: InventoryItem, store: Store) -> None:
        if not (store.accepts_reservations and item.is_available):
            return
        subscriber_ids = self.subscriptions.list_subscriber_ids(store.id)
        self.emitter.emit_many(
            NotificationEvent(
                type=NotificationType.INVENTORY_ALERT,
                recipient_id=uid,
                title=f"New at {store.name}",
                content=f"{item.name} is now available for pickup.",
                related_id=item.id,
            )
            for uid in subscriber_ids
        )

    def update(self, item_id: int, payload: InventoryUpdate, actor: Actor) -> InventoryItem:
        item = self._owned_item(item_id, actor)
        data = payload.model_dump(exclude_unset=True)

        start = as_utc(data.get("available_from") or item.available_from)
        end = as_utc(data.get("available_until") or item.available_until)
        if start >= end:
            raise InvalidRequest("available_from must be before available_until")

        original = data.get("original_price", item.original_price)
        price = data.get("unit_price", item.unit_price)
        if price is None:
            raise InvalidRequest("unit_price must not be empty")
        if original is not None and price > original:
            raise InvalidRequest("unit_price must not exceed original_price")

        try:
            total = data.pop("total_quantity", None)
            if total is not None:
                self.store.set_total(item.id, total)

            for field in ("name", "description", "original_price", "unit_price", "is_available"):
                if field in data:
                    setattr(item, field, data[field])
            item.available_from = start
            item.available_until = end
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(item)
        return item

    def disable(self, item_id: int, actor: Actor) -> InventoryItem:
        """
        Soft delete: no new holds. Existing reservations keep their holds
        and can still be confirmed, completed or cancelled.
        """
        item = self._owned_item(item_id, actor)
        item.is_available = False
        self.db.commit()
        self.db.refresh(item)
        logger.info("inventory %s disabled by user=%s", item_id, actor.user_id)
        return item
