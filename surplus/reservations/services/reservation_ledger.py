# surplus/reservations/services/reservation_ledger.py
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, FrozenSet, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from surplus.common.auth import Actor
from surplus.common.errors import (
    Conflict,
    InvalidRequest,
    NotFound,
    StoreUnavailable,
    Unauthorized,
)
from surplus.common.time_utils import as_utc, utcnow, within_window
from surplus.config import get_settings
from surplus.db.models import Reservation, Store
from surplus.domain.enums import NotificationType, ReservationStatus
from surplus.inventory.services.inventory_store import InventoryStore
from surplus.notifications.services.notification_emitter import (
    NotificationEmitter,
    NotificationEvent,
)
from surplus.reservations.domain.status_machine import (
    Party,
    StockEffect,
    plan_transition,
)
from surplus.reservations.repository.reservation_repo import ReservationRepository
from surplus.stores.repository.subscription_repo import SubscriptionRepository
from surplus.users.repository.user_repo import UserRepository

logger = logging.getLogger(__name__)


_RESPONSE_TEXT = {
    ReservationStatus.CONFIRMED: ("Reservation confirmed", "Your reservation for {item} x{qty} was confirmed by {store}."),
    ReservationStatus.REJECTED: ("Reservation declined", "{store} could not accept your reservation for {item} x{qty}."),
    ReservationStatus.COMPLETED: ("Pickup completed", "Thanks for picking up {item} x{qty} at {store}."),
    ReservationStatus.CANCELLED: ("Reservation cancelled", "The reservation for {item} x{qty} at {store} was cancelled."),
}


class ReservationLedger:
    """
    Create / query / transition reservations.

    Each write is one transaction: the stock hold (or release / commit) and
    the reservation row change are committed together or not at all.
    Notifications go out only after the commit.
    """

    def __init__(
        self,
        db: Session,
        *,
        emitter: Optional[NotificationEmitter] = None,
        allow_customer_cancel_confirmed: Optional[bool] = None,
        low_stock_threshold: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        settings = get_settings()
        self.db = db
        self.repo = ReservationRepository(db)
        self.inventory = InventoryStore(db)
        self.users = UserRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.emitter = emitter or NotificationEmitter(db.get_bind())
        self.allow_customer_cancel_confirmed = (
            settings.allow_customer_cancel_confirmed
            if allow_customer_cancel_confirmed is None
            else allow_customer_cancel_confirmed
        )
        self.low_stock_threshold = (
            settings.low_stock_threshold if low_stock_threshold is None else low_stock_threshold
        )
        self.clock = clock

    # -------------------------------------------------
    # create
    # -------------------------------------------------
    def create(
        self,
        customer_id: int,
        item_id: int,
        quantity: int,
        pickup_time: datetime,
        *,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
    ) -> Reservation:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidRequest("quantity must be an integer >= 1")
        if pickup_time is None:
            raise InvalidRequest("pickup_time is required")

        now = self.clock()
        item = self.inventory.get_item(item_id)
        store: Store = item.store

        if not store.accepts_reservations:
            raise StoreUnavailable(f"store {store.id} is not accepting reservations")
        if as_utc(pickup_time) < now:
            raise InvalidRequest("pickup_time is already in the past")
        if not within_window(pickup_time, item.available_from, item.available_until):
            raise InvalidRequest("pickup_time must fall inside the item's availability window")

        customer = self.users.get(customer_id)
        try:
            hold = self.inventory.try_reserve(item_id, quantity, now=now)

            unit_price = Decimal(hold.unit_price)
            reservation = Reservation(
                inventory_id=hold.item_id,
                store_id=hold.store_id,
                customer_id=customer_id,
                quantity=quantity,
                unit_price=unit_price,
                amount=unit_price * quantity,
                pickup_time=as_utc(pickup_time),
                status=ReservationStatus.PENDING,
                customer_name=customer_name or (customer.name if customer else None),
                customer_phone=customer_phone or (customer.phone if customer else None),
            )
            self.repo.add(reservation)
            self.repo.add_log(reservation, None, ReservationStatus.PENDING, customer_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(reservation)
        self.db.refresh(item)
        logger.info(
            "reservation created id=%s item=%s customer=%s qty=%s",
            reservation.id, item_id, customer_id, quantity,
        )

        self.emitter.emit(
            NotificationEvent(
                type=NotificationType.RESERVATION_REQUEST,
                recipient_id=store.owner_id,
                title="New reservation request",
                content=f"{reservation.customer_name or 'A customer'} reserved {item.name} x{quantity}.",
                related_id=reservation.id,
            )
        )
        self._maybe_low_stock_alert(item, store, before=item.available_quantity + quantity)
        return reservation

    def _maybe_low_stock_alert(self, item, store: Store, before: int) -> None:
        after = item.available_quantity
        threshold = self.low_stock_threshold
        if not (before > threshold >= after):
            return
        subscriber_ids = self.subscriptions.list_subscriber_ids(store.id)
        if not subscriber_ids:
            return
        content = (
            f"{item.name} is sold out." if after <= 0
            else f"Only {after} of {item.name} left. Reserve soon!"
        )
        self.emitter.emit_many(
            NotificationEvent(
                type=NotificationType.INVENTORY_ALERT,
                recipient_id=uid,
                title=f"{store.name}: almost gone",
                content=content,
                related_id=item.id,
            )
            for uid in subscriber_ids
        )

    # -------------------------------------------------
    # queries
    # -------------------------------------------------
    def list_by_customer(
        self, customer_id: int, status: Optional[ReservationStatus] = None
    ) -> List[Reservation]:
        return self.repo.list_by_customer(customer_id, status)

    def list_by_store_owner(
        self, owner_id: int, status: Optional[ReservationStatus] = None
    ) -> List[Reservation]:
        return self.repo.list_by_store_owner(owner_id, status)

    def get(self, reservation_id: int, actor: Actor) -> Reservation:
        reservation = self._get_or_404(reservation_id)
        if not self._parties(reservation, actor):
            raise Unauthorized("not your reservation")
        return reservation

    def _get_or_404(self, reservation_id: int) -> Reservation:
        reservation = self.repo.get(reservation_id)
        if reservation is None:
            raise NotFound(f"reservation {reservation_id} not found")
        return reservation

    def _parties(self, reservation: Reservation, actor: Actor) -> FrozenSet[Party]:
        parties = set()
        if reservation.customer_id == actor.user_id:
            parties.add(Party.CUSTOMER)
        if actor.is_admin or reservation.store.owner_id == actor.user_id:
            parties.add(Party.OWNER)
        return frozenset(parties)

    # -------------------------------------------------
    # transitions
    # -------------------------------------------------
    def update_status(
        self,
        reservation_id: int,
        target_status: ReservationStatus,
        actor: Actor,
    ) -> Reservation:
        reservation = self._get_or_404(reservation_id)

        parties = self._parties(reservation, actor)
        if not parties:
            raise Unauthorized("not your reservation")

        plan = plan_transition(
            reservation.status,
            target_status,
            parties,
            allow_customer_cancel_confirmed=self.allow_customer_cancel_confirmed,
        )
        if plan.noop:
            logger.info("reservation %s already %s; nothing to do", reservation_id, target_status.value)
            return reservation

        try:
            reservation.status = plan.target
            # version check happens here, before any stock moves
            self.db.flush()

            if plan.effect == StockEffect.RELEASE:
                self.inventory.release(reservation.inventory_id, reservation.quantity)
            elif plan.effect == StockEffect.COMMIT:
                self.inventory.commit(reservation.inventory_id, reservation.quantity)

            self.repo.add_log(reservation, plan.current, plan.target, actor.user_id)
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            raise Conflict(f"reservation {reservation_id} was modified concurrently; reload and retry")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(reservation)
        logger.info(
            "reservation %s %s -> %s by user=%s",
            reservation_id, plan.current.value, plan.target.value, actor.user_id,
        )
        self._notify_counterparty(reservation, parties)
        return reservation

    def _notify_counterparty(self, reservation: Reservation, parties: FrozenSet[Party]) -> None:
        item = reservation.item
        store = reservation.store

        if Party.OWNER in parties and reservation.customer_id != store.owner_id:
            recipient = reservation.customer_id
            title, template = _RESPONSE_TEXT[reservation.status]
        else:
            recipient = store.owner_id
            title = "Reservation cancelled by customer"
            template = "{customer} cancelled {item} x{qty}."

        self.emitter.emit(
            NotificationEvent(
                type=NotificationType.RESERVATION_RESPONSE,
                recipient_id=recipient,
                title=title,
                content=template.format(
                    item=item.name,
                    qty=reservation.quantity,
                    store=store.name,
                    customer=reservation.customer_name or "A customer",
                ),
                related_id=reservation.id,
            )
        )
