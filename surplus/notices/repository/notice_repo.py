from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from surplus.db.models import Notice


class NoticeRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, notice_id: int) -> Optional[Notice]:
        return self.db.get(Notice, notice_id)

    def add(self, notice: Notice) -> Notice:
        self.db.add(notice)
        self.db.flush()
        return notice

    def delete(self, notice: Notice) -> None:
        self.db.delete(notice)

    def list(self, limit: int = 50) -> List[Notice]:
        """Pinned first, then newest."""
        stmt = (
            select(Notice)
            .order_by(Notice.is_pinned.desc(), Notice.created_at.desc(), Notice.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())
