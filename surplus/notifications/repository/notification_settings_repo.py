from __future__ import annotations

from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from surplus.db.models import NotificationSetting
from surplus.domain.enums import NotificationType

# notification type -> NotificationSetting toggle
PREFERENCE_FIELD: Dict[NotificationType, str] = {
    NotificationType.RESERVATION_REQUEST: "reservation_updates",
    NotificationType.RESERVATION_RESPONSE: "reservation_updates",
    NotificationType.INVENTORY_ALERT: "inventory_updates",
    NotificationType.SYSTEM_NOTICE: "system",
}


class NotificationSettingsRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_or_default(self, user_id: int) -> NotificationSetting:
        row = self.db.get(NotificationSetting, user_id)
        if row is None:
            row = NotificationSetting(
                user_id=user_id,
                reservation_updates=True,
                inventory_updates=True,
                system=True,
            )
        return row

    def save(self, user_id: int, values: Dict[str, bool]) -> NotificationSetting:
        row = self.db.get(NotificationSetting, user_id)
        if row is None:
            row = self.get_or_default(user_id)
            self.db.add(row)
        for field, value in values.items():
            setattr(row, field, value)
        return row

    def get_many(self, user_ids: Iterable[int]) -> Dict[int, NotificationSetting]:
        ids = set(user_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(NotificationSetting).where(NotificationSetting.user_id.in_(ids))
        ).scalars()
        return {row.user_id: row for row in rows}

    @staticmethod
    def allows(row: "NotificationSetting | None", type: NotificationType) -> bool:
        if row is None:
            return True
        return bool(getattr(row, PREFERENCE_FIELD[type]))
