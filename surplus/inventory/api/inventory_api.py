# surplus/inventory/api/inventory_api.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from surplus.common.auth import Actor, require_role
from surplus.common.errors import DomainError, to_http_exception
from surplus.db.core import get_db
from surplus.domain.enums import StoreCategory, UserRole
from surplus.inventory.dtos import (
    InventoryCreate,
    InventoryDetailResponse,
    InventoryResponse,
    InventoryUpdate,
)
from surplus.inventory.services.inventory_service import InventoryService

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

owner_only = require_role(UserRole.STORE_OWNER)


# ============================================================
# Public
# ============================================================

@router.get("", response_model=List[InventoryDetailResponse])
def list_today_inventory(
    store_id: Optional[int] = Query(None),
    category: Optional[StoreCategory] = Query(None),
    db: Session = Depends(get_db),
):
    """Items that can be reserved right now (inside window, stock left)."""
    return InventoryService(db).list_reservable(store_id=store_id, category=category)


@router.get("/mine", response_model=List[InventoryResponse])
def list_my_inventory(
    actor: Actor = Depends(owner_only),
    db: Session = Depends(get_db),
):
    return InventoryService(db).list_mine(actor.user_id)


@router.get("/{inventory_id}", response_model=InventoryDetailResponse)
def get_inventory(inventory_id: int, db: Session = Depends(get_db)):
    try:
        return InventoryService(db).get_public(inventory_id)
    except DomainError as e:
        raise to_http_exception(e)


# ============================================================
# Owner
# ============================================================

@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
def create_inventory(
    body: InventoryCreate,
    actor: Actor = Depends(owner_only),
    db: Session = Depends(get_db),
):
    try:
        return InventoryService(db).create(body, actor)
    except DomainError as e:
        raise to_http_exception(e)


@router.patch("/{inventory_id}", response_model=InventoryResponse)
def update_inventory(
    inventory_id: int,
    body: InventoryUpdate,
    actor: Actor = Depends(owner_only),
    db: Session = Depends(get_db),
):
    try:
        return InventoryService(db).update(inventory_id, body, actor)
    except DomainError as e:
        raise to_http_exception(e)


@router.delete("/{inventory_id}", response_model=InventoryResponse)
def disable_inventory(
    inventory_id: int,
    actor: Actor = Depends(owner_only),
    db: Session = Depends(get_db),
):
    try:
        return InventoryService(db).disable(inventory_id, actor)
    except DomainError as e:
        raise to_http_exception(e)
