# surplus/notifications/api/notifications_api.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from surplus.common.auth import Actor, get_actor, get_current_user
from surplus.db.core import get_db
from surplus.db.models import User
from surplus.notifications.dtos import (
    MarkReadResponse,
    NotificationResponse,
    NotificationSettingsResponse,
    NotificationSettingsUpdate,
)
from surplus.notifications.repository.notification_repo import NotificationRepository
from surplus.notifications.repository.notification_settings_repo import (
    NotificationSettingsRepository,
)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Newest first."""
    return NotificationRepository(db).list_for_user(actor.user_id, unread_only=unread_only, limit=limit)


@router.get("/settings", response_model=NotificationSettingsResponse)
def get_notification_settings(
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Every category is on until the user turns it off."""
    return NotificationSettingsRepository(db).get_or_default(actor.user_id)


@router.put("/settings", response_model=NotificationSettingsResponse)
def update_notification_settings(
    body: NotificationSettingsUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = NotificationSettingsRepository(db).save(user.id, body.model_dump(exclude_none=True))
    db.commit()
    db.refresh(row)
    return row


@router.post("/read-all", response_model=MarkReadResponse)
def mark_all_read(
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    updated = NotificationRepository(db).mark_all_read(actor.user_id)
    db.commit()
    return MarkReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    row = NotificationRepository(db).get(notification_id)
    # someone else's notification looks the same as a missing one
    if row is None or row.user_id != actor.user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if not row.is_read:
        row.is_read = True
        db.commit()
        db.refresh(row)
    return row
