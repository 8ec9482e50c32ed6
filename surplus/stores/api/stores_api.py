# surplus/stores/api/stores_api.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from surplus.common.auth import Actor, get_actor, require_role
from surplus.common.errors import DomainError, to_http_exception
from surplus.db.core import get_db
from surplus.domain.enums import StoreCategory, UserRole
from surplus.stores.dtos import (
    StoreCreate,
    StoreResponse,
    StoreSummary,
    StoreUpdate,
    SubscribedStoresResponse,
    SubscriptionResponse,
)
from surplus.stores.services.store_service import StoreService

router = APIRouter(prefix="/api", tags=["stores"])


# ============================================================
# Public
# ============================================================

@router.get("/stores", response_model=List[StoreResponse])
def list_stores(
    category: Optional[StoreCategory] = Query(None),
    db: Session = Depends(get_db),
):
    """Approved and active stores, name order."""
    return StoreService(db).list_public(category)


@router.get("/stores/mine", response_model=List[StoreResponse])
def list_my_stores(
    actor: Actor = Depends(require_role(UserRole.STORE_OWNER)),
    db: Session = Depends(get_db),
):
    return StoreService(db).list_mine(actor.user_id)


@router.get("/stores/{store_id}", response_model=StoreResponse)
def get_store(store_id: int, db: Session = Depends(get_db)):
    try:
        return StoreService(db).get_visible(store_id)
    except DomainError as e:
        raise to_http_exception(e)


# ============================================================
# Owner
# ============================================================

@router.post("/stores", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
def create_store(
    body: StoreCreate,
    actor: Actor = Depends(require_role(UserRole.STORE_OWNER)),
    db: Session = Depends(get_db),
):
    """New stores start in verification PENDING until an admin approves them."""
    return StoreService(db).create(actor.user_id, body)


@router.patch("/stores/{store_id}", response_model=StoreResponse)
def update_store(
    store_id: int,
    body: StoreUpdate,
    actor: Actor = Depends(require_role(UserRole.STORE_OWNER)),
    db: Session = Depends(get_db),
):
    try:
        return StoreService(db).update(store_id, body, actor)
    except DomainError as e:
        raise to_http_exception(e)


# ============================================================
# Subscriptions (customer)
# ============================================================

@router.post("/stores/{store_id}/subscription", response_model=SubscriptionResponse)
def subscribe_store(
    store_id: int,
    actor: Actor = Depends(require_role(UserRole.CUSTOMER)),
    db: Session = Depends(get_db),
):
    try:
        subscribed = StoreService(db).subscribe(actor.user_id, store_id)
    except DomainError as e:
        raise to_http_exception(e)
    return SubscriptionResponse(store_id=store_id, subscribed=subscribed)


@router.delete("/stores/{store_id}/subscription", response_model=SubscriptionResponse)
def unsubscribe_store(
    store_id: int,
    actor: Actor = Depends(require_role(UserRole.CUSTOMER)),
    db: Session = Depends(get_db),
):
    subscribed = StoreService(db).unsubscribe(actor.user_id, store_id)
    return SubscriptionResponse(store_id=store_id, subscribed=subscribed)


@router.get("/subscriptions", response_model=SubscribedStoresResponse)
def list_subscriptions(
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    stores = StoreService(db).list_subscribed(actor.user_id)
    return SubscribedStoresResponse(
        stores=[StoreSummary.model_validate(s) for s in stores]
    )
