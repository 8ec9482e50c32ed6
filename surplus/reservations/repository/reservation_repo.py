from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from surplus.db.models import Reservation, ReservationStatusLog, Store
from surplus.domain.enums import ReservationStatus


class ReservationRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, reservation_id: int) -> Optional[Reservation]:
        return self.db.get(Reservation, reservation_id)

    def add(self, reservation: Reservation) -> Reservation:
        self.db.add(reservation)
        self.db.flush()
        return reservation

    def add_log(
        self,
        reservation: Reservation,
        from_status: Optional[ReservationStatus],
        to_status: ReservationStatus,
        actor_id: int,
    ) -> ReservationStatusLog:
        log = ReservationStatusLog(
            reservation_id=reservation.id,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
        )
        self.db.add(log)
        return log

    def list_by_customer(
        self,
        customer_id: int,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        stmt = (
            select(Reservation)
            .options(selectinload(Reservation.item), selectinload(Reservation.store))
            .where(Reservation.customer_id == customer_id)
        )
        if status is not None:
            stmt = stmt.where(Reservation.status == status)
        stmt = stmt.order_by(Reservation.created_at.desc(), Reservation.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def list_by_store_owner(
        self,
        owner_id: int,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        owned = select(Store.id).where(Store.owner_id == owner_id)
        stmt = (
            select(Reservation)
            .options(selectinload(Reservation.item), selectinload(Reservation.customer))
            .where(Reservation.store_id.in_(owned))
        )
        if status is not None:
            stmt = stmt.where(Reservation.status == status)
        stmt = stmt.order_by(Reservation.created_at.desc(), Reservation.id.desc())
        return list(self.db.execute(stmt).scalars().all())
