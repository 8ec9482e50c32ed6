# surplus/inventory/services/inventory_store.py
"""
InventoryStore

Stock accounting for inventory items.

Responsibilities:
  - try_reserve : hold quantity for a new reservation
  - release     : give a hold back (cancel / reject)
  - commit      : consume a hold on pickup (total and reserved drop together)

Every mutation is a single conditional UPDATE evaluated by the database,
so two requests racing for the last unit cannot both pass the stock check.
Nothing here commits; the caller owns the transaction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, case, update
from sqlalchemy.orm import Session

from surplus.common.errors import (
    Conflict,
    InsufficientStock,
    InvalidRequest,
    NotFound,
    WindowExpired,
)
from surplus.common.time_utils import utcnow, within_window
from surplus.db.models import InventoryItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationHold:
    item_id: int
    store_id: int
    quantity: int
    unit_price: Decimal


class InventoryStore:

    def __init__(self, db: Session) -> None:
        self.db = db

    # -------------------------------------------------
    # reads
    # -------------------------------------------------
    def get_item(self, item_id: int) -> InventoryItem:
        item = self.db.get(InventoryItem, item_id)
        if item is None:
            raise NotFound(f"inventory item {item_id} not found")
        return item

    def _reload(self, item: InventoryItem) -> None:
        # bulk UPDATEs bypass the identity map; pull fresh column values
        self.db.refresh(item)

    # -------------------------------------------------
    # hold
    # -------------------------------------------------
    def try_reserve(
        self,
        item_id: int,
        quantity: int,
        now: Optional[datetime] = None,
    ) -> ReservationHold:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidRequest("quantity must be an integer >= 1")

        now = now or utcnow()
        item = self.get_item(item_id)

        if not item.is_available:
            raise WindowExpired(f"inventory item {item_id} is no longer offered")
        if not within_window(now, item.available_from, item.available_until):
            raise WindowExpired(f"inventory item {item_id} is outside its availability window")

        result = self.db.execute(
            update(InventoryItem)
            .where(
                and_(
                    InventoryItem.id == item_id,
                    InventoryItem.is_available.is_(True),
                    InventoryItem.total_quantity - InventoryItem.reserved_quantity >= quantity,
                )
            )
            .values(
                reserved_quantity=InventoryItem.reserved_quantity + quantity,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

        self._reload(item)
        if result.rowcount != 1:
            logger.info(
                "hold refused item=%s requested=%s available=%s",
                item_id, quantity, item.available_quantity,
            )
            raise InsufficientStock(item_id, quantity, max(item.available_quantity, 0))

        logger.info(
            "hold item=%s qty=%s reserved=%s/%s",
            item_id, quantity, item.reserved_quantity, item.total_quantity,
        )
        return ReservationHold(
            item_id=item.id,
            store_id=item.store_id,
            quantity=quantity,
            unit_price=item.unit_price,
        )

    # -------------------------------------------------
    # release
    # -------------------------------------------------
    def release(self, item_id: int, quantity: int) -> InventoryItem:
        """reserved -= quantity, clamped at 0."""
        if quantity < 1:
            raise InvalidRequest("quantity must be >= 1")
        item = self.get_item(item_id)

        self.db.execute(
            update(InventoryItem)
            .where(InventoryItem.id == item_id)
            .values(
                reserved_quantity=case(
                    (InventoryItem.reserved_quantity >= quantity, InventoryItem.reserved_quantity - quantity),
                    else_=0,
                ),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        self._reload(item)
        logger.info(
            "release item=%s qty=%s reserved=%s/%s",
            item_id, quantity, item.reserved_quantity, item.total_quantity,
        )
        return item

    # -------------------------------------------------
    # commit
    # -------------------------------------------------
    def commit(self, item_id: int, quantity: int) -> InventoryItem:
        """
        Pickup fulfilled: total and reserved both drop by quantity.
        The item is soft-disabled once nothing is left.
        """
        if quantity < 1:
            raise InvalidRequest("quantity must be >= 1")
        item = self.get_item(item_id)

        result = self.db.execute(
            update(InventoryItem)
            .where(
                and_(
                    InventoryItem.id == item_id,
                    InventoryItem.reserved_quantity >= quantity,
                    InventoryItem.total_quantity >= quantity,
                )
            )
            .values(
                total_quantity=InventoryItem.total_quantity - quantity,
                reserved_quantity=InventoryItem.reserved_quantity - quantity,
                is_available=case(
                    (InventoryItem.total_quantity - quantity <= 0, False),
                    else_=InventoryItem.is_available,
                ),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        self._reload(item)
        if result.rowcount != 1:
            raise Conflict(
                f"inventory item {item_id}: hold of {quantity} not found "
                f"(reserved={item.reserved_quantity})"
            )

        logger.info(
            "commit item=%s qty=%s reserved=%s/%s",
            item_id, quantity, item.reserved_quantity, item.total_quantity,
        )
        return item

    # -------------------------------------------------
    # owner adjustments
    # -------------------------------------------------
    def set_total(self, item_id: int, total_quantity: int) -> InventoryItem:
        """
        Owner restock / correction. Total may never drop below live holds.

        An item that sold out (total 0, switched off by commit) is offered
        again when restocked. An item switched off by its owner while stock
        remained stays off.
        """
        if total_quantity < 0:
            raise InvalidRequest("total_quantity must be >= 0")
        item = self.get_item(item_id)

        result = self.db.execute(
            update(InventoryItem)
            .where(
                and_(
                    InventoryItem.id == item_id,
                    InventoryItem.reserved_quantity <= total_quantity,
                )
            )
            .values(
                total_quantity=total_quantity,
                is_available=(
                    case((InventoryItem.total_quantity == 0, True), else_=InventoryItem.is_available)
                    if total_quantity > 0
                    else InventoryItem.is_available
                ),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        self._reload(item)
        if result.rowcount != 1:
            raise InvalidRequest(
                f"total_quantity {total_quantity} is below the reserved quantity {item.reserved_quantity}"
            )
        return item
