# surplus/admin/api/admin_api.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from surplus.common.auth import Actor, require_admin
from surplus.common.errors import DomainError, to_http_exception
from surplus.db.core import get_db
from surplus.domain.enums import UserRole, VerificationStatus
from surplus.notices.dtos import NoticeCreate, NoticeResponse, NoticeUpdate
from surplus.notices.services.notice_service import NoticeService
from surplus.notifications.dtos import DispatchSummary
from surplus.notifications.services.notification_dispatcher import NotificationDispatcher
from surplus.stores.dtos import AdminStoreUpdate, StoreResponse
from surplus.stores.services.store_service import StoreService
from surplus.users.dtos import UserResponse
from surplus.users.repository.user_repo import UserRepository

# every route here requires role ADMIN (+ X-Admin-Token when ADMIN_TOKEN is set)
router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


# ============================================================
# Stores
# ============================================================

@router.get("/stores", response_model=List[StoreResponse])
def admin_list_stores(
    verification_status: Optional[VerificationStatus] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    return StoreService(db).list_all(verification_status, is_active)


@router.patch("/stores/{store_id}", response_model=StoreResponse)
def admin_update_store(
    store_id: int,
    body: AdminStoreUpdate,
    db: Session = Depends(get_db),
):
    """Approve / reject verification, activate / deactivate."""
    try:
        return StoreService(db).admin_update(store_id, body)
    except DomainError as e:
        raise to_http_exception(e)


# ============================================================
# Users
# ============================================================

@router.get("/users", response_model=List[UserResponse])
def admin_list_users(
    role: Optional[UserRole] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return UserRepository(db).list(role=role, limit=limit, offset=offset)


# ============================================================
# Notices
# ============================================================

@router.post("/notices", response_model=NoticeResponse, status_code=status.HTTP_201_CREATED)
def admin_create_notice(
    body: NoticeCreate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return NoticeService(db).create(actor.user_id, body)


@router.patch("/notices/{notice_id}", response_model=NoticeResponse)
def admin_update_notice(
    notice_id: int,
    body: NoticeUpdate,
    db: Session = Depends(get_db),
):
    try:
        return NoticeService(db).update(notice_id, body)
    except DomainError as e:
        raise to_http_exception(e)


@router.delete("/notices/{notice_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_notice(notice_id: int, db: Session = Depends(get_db)):
    try:
        NoticeService(db).delete(notice_id)
    except DomainError as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Notification outbox
# ============================================================

@router.post("/notifications/send-pending", response_model=DispatchSummary)
def admin_send_pending_notifications(
    limit: int = Query(50, gt=0, le=200),
    db: Session = Depends(get_db),
):
    """Push queued notifications to the webhook now instead of waiting for cron."""
    return NotificationDispatcher(db).send_pending(limit=limit)
