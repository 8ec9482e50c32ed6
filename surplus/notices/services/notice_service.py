from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from surplus.common.errors import NotFound
from surplus.db.models import Notice
from surplus.domain.enums import NotificationType
from surplus.notices.dtos import NoticeCreate, NoticeUpdate
from surplus.notices.repository.notice_repo import NoticeRepository
from surplus.notifications.services.notification_emitter import (
    NotificationEmitter,
    NotificationEvent,
)
from surplus.users.repository.user_repo import UserRepository

logger = logging.getLogger(__name__)


class NoticeService:
    def __init__(self, db: Session, *, emitter: Optional[NotificationEmitter] = None) -> None:
        self.db = db
        self.repo = NoticeRepository(db)
        self.users = UserRepository(db)
        self.emitter = emitter or NotificationEmitter(db.get_bind())

    def list(self, limit: int = 50) -> List[Notice]:
        return self.repo.list(limit)

    def get(self, notice_id: int) -> Notice:
        notice = self.repo.get(notice_id)
        if notice is None:
            raise NotFound(f"notice {notice_id} not found")
        return notice

    def create(self, author_id: int, payload: NoticeCreate) -> Notice:
        """Store the notice, then fan out SYSTEM_NOTICE to every known user."""
        notice = Notice(author_id=author_id, **payload.model_dump())
        self.repo.add(notice)
        self.db.commit()
        self.db.refresh(notice)

        recipients = self.users.list_ids()
        sent = self.emitter.emit_many(
            NotificationEvent(
                type=NotificationType.SYSTEM_NOTICE,
                recipient_id=uid,
                title=notice.title,
                content=notice.content,
                related_id=notice.id,
            )
            for uid in recipients
        )
        logger.info("notice %s published, notified %d/%d users", notice.id, sent, len(recipients))
        return notice

    def update(self, notice_id: int, payload: NoticeUpdate) -> Notice:
        notice = self.get(notice_id)
        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(notice, field, value)
        self.db.commit()
        self.db.refresh(notice)
        return notice

    def delete(self, notice_id: int) -> None:
        notice = self.get(notice_id)
        self.repo.delete(notice)
        self.db.commit()
