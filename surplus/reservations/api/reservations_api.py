# surplus/reservations/api/reservations_api.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from surplus.common.auth import Actor, get_actor, get_current_user, require_role
from surplus.common.errors import DomainError, to_http_exception
from surplus.db.core import get_db
from surplus.db.models import User
from surplus.domain.enums import ReservationStatus, UserRole, parse_reservation_status
from surplus.reservations.dtos import (
    ReservationCreate,
    ReservationDetailResponse,
    ReservationResponse,
    ReservationStatusUpdate,
)
from surplus.reservations.services.reservation_ledger import ReservationLedger

router = APIRouter(prefix="/api/reservations", tags=["reservations"])


def _status_filter(raw: Optional[str]) -> Optional[ReservationStatus]:
    if raw is None or raw == "":
        return None
    try:
        return parse_reservation_status(raw)
    except ValueError as e:
        raise HTTPException(
            status_code=422,
            detail={"code": "INVALID_REQUEST", "message": str(e)},
        )


# ============================================================
# Customer
# ============================================================

@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    body: ReservationCreate,
    actor: Actor = Depends(require_role(UserRole.CUSTOMER)),
    db: Session = Depends(get_db),
):
    """
    Place a PENDING reservation and hold the stock.

    409 INSUFFICIENT_STOCK / WINDOW_EXPIRED / STORE_UNAVAILABLE when the
    item cannot be held; nothing is written in that case.
    """
    try:
        return ReservationLedger(db).create(
            actor.user_id,
            body.inventory_id,
            body.quantity,
            body.pickup_time,
            customer_name=body.customer_name,
            customer_phone=body.customer_phone,
        )
    except DomainError as e:
        raise to_http_exception(e)


@router.get("/customer", response_model=List[ReservationResponse])
def list_my_reservations(
    status_: Optional[str] = Query(None, alias="status"),
    actor: Actor = Depends(get_actor),
    _user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReservationLedger(db).list_by_customer(actor.user_id, _status_filter(status_))


# ============================================================
# Store owner
# ============================================================

@router.get("/store-owner", response_model=List[ReservationResponse])
def list_store_reservations(
    status_: Optional[str] = Query(None, alias="status"),
    actor: Actor = Depends(require_role(UserRole.STORE_OWNER)),
    db: Session = Depends(get_db),
):
    return ReservationLedger(db).list_by_store_owner(actor.user_id, _status_filter(status_))


# ============================================================
# Detail / transition (customer, owner, admin)
# ============================================================

@router.get("/{reservation_id}", response_model=ReservationDetailResponse)
def get_reservation(
    reservation_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    try:
        return ReservationLedger(db).get(reservation_id, actor)
    except DomainError as e:
        raise to_http_exception(e)


@router.patch("/{reservation_id}", response_model=ReservationResponse)
def update_reservation_status(
    reservation_id: int,
    body: ReservationStatusUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Move a reservation along its lifecycle.

    Sending the status it already has returns 200 with no side effect.
    409 CONFLICT (Retry-After: 0) means someone else changed it first.
    """
    try:
        return ReservationLedger(db).update_status(reservation_id, body.status, actor)
    except DomainError as e:
        raise to_http_exception(e)
