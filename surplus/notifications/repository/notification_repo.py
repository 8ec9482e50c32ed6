from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from surplus.db.models import Notification
from surplus.domain.enums import NotificationType, PushStatus


class NotificationRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(
        self,
        *,
        user_id: int,
        type: NotificationType,
        title: str,
        content: str,
        related_id: Optional[int] = None,
        push_status: Optional[PushStatus] = None,
    ) -> Notification:
        row = Notification(
            user_id=user_id,
            type=type,
            title=title,
            content=content,
            related_id=related_id,
            push_status=push_status,
            push_attempts=0,
        )
        self.db.add(row)
        return row

    def list_for_user(self, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def get(self, notification_id: int) -> Optional[Notification]:
        return self.db.get(Notification, notification_id)

    def mark_all_read(self, user_id: int) -> int:
        result = self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    # -------------------------------------------------
    # webhook outbox
    # -------------------------------------------------
    def list_pending_push(self, limit: int = 50) -> List[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.push_status == PushStatus.PENDING)
            .order_by(Notification.id.asc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def mark_pushed(self, notification_id: int, now: datetime) -> bool:
        """PENDING -> SENT only, so a row drained twice is not reported twice."""
        result = self.db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.push_status == PushStatus.PENDING,
            )
            .values(push_status=PushStatus.SENT, pushed_at=now, push_error=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_push_failed(self, notification_id: int, error: str, *, give_up: bool) -> None:
        self.db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.push_status == PushStatus.PENDING,
            )
            .values(
                push_status=PushStatus.FAILED if give_up else PushStatus.PENDING,
                push_attempts=Notification.push_attempts + 1,
                push_error=error[:1000],
            )
            .execution_options(synchronize_session=False)
        )
