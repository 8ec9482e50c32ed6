# surplus/notifications/services/notification_emitter.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

from surplus.config import get_settings
from surplus.domain.enums import NotificationType, PushStatus
from surplus.notifications.repository.notification_repo import NotificationRepository
from surplus.notifications.repository.notification_settings_repo import (
    NotificationSettingsRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    type: NotificationType
    recipient_id: int
    title: str
    content: str
    related_id: Optional[int] = None


class NotificationEmitter:
    """
    Fire-and-forget notification sink.

    Responsibilities:
      - drop events the recipient has switched off (notification_settings)
      - persist an in-app notification row (own session, own commit)
      - queue the row for the webhook (push_status=PENDING) when pushing is on

    Non-responsibilities:
      - HTTP. NotificationDispatcher drains the queue outside the request.

    Called only after the business transaction has committed. Any failure
    here is logged and swallowed so it can never undo a transition.
    """

    def __init__(
        self,
        bind: "Engine | Connection",
        *,
        push_enabled: Optional[bool] = None,
    ) -> None:
        self._bind = bind
        if push_enabled is None:
            settings = get_settings()
            push_enabled = bool((settings.notify_webhook_url or "").strip()) or settings.notify_dry_run
        self._push_enabled = push_enabled

    def emit(self, event: NotificationEvent) -> bool:
        return self.emit_many([event]) == 1

    def emit_many(self, events: Iterable[NotificationEvent]) -> int:
        """Returns how many notifications were stored."""
        events = list(events)
        if not events:
            return 0

        push_status = PushStatus.PENDING if self._push_enabled else None
        try:
            with Session(bind=self._bind) as db:
                prefs = NotificationSettingsRepository(db)
                opted = prefs.get_many(ev.recipient_id for ev in events)
                kept = [ev for ev in events if prefs.allows(opted.get(ev.recipient_id), ev.type)]

                repo = NotificationRepository(db)
                for ev in kept:
                    repo.add(
                        user_id=ev.recipient_id,
                        type=ev.type,
                        title=ev.title,
                        content=ev.content,
                        related_id=ev.related_id,
                        push_status=push_status,
                    )
                db.commit()
        except Exception:
            logger.exception("failed to store %d notification(s)", len(events))
            return 0

        if len(kept) < len(events):
            logger.info("%d notification(s) muted by recipient settings", len(events) - len(kept))
        return len(kept)
