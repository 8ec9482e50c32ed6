# surplus/notifications/services/notification_dispatcher.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from surplus.common.time_utils import utcnow
from surplus.config import get_settings
from surplus.db.models import Notification
from surplus.notifications.external.webhook_client import WebhookClient
from surplus.notifications.repository.notification_repo import NotificationRepository

logger = logging.getLogger(__name__)


def _payload(row: Notification) -> Dict[str, Any]:
    return {
        "notification_id": row.id,
        "type": row.type.value,
        "recipient_id": row.user_id,
        "title": row.title,
        "content": row.content,
        "related_id": row.related_id,
    }


class NotificationDispatcher:
    """
    Drains the webhook outbox.

    Responsibilities:
      - pick notifications with push_status=PENDING, oldest first
      - POST each one to the webhook
      - mark it SENT, or count the attempt (FAILED after notify_max_attempts)

    Non-responsibilities:
      - deciding who gets notified (NotificationEmitter)
      - scheduling (cron/send_pending_notifications.py, admin endpoint)
    """

    def __init__(
        self,
        db: Session,
        *,
        client: Optional[WebhookClient] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        self.db = db
        self.repo = NotificationRepository(db)
        self._client = client
        self.max_attempts = max_attempts or get_settings().notify_max_attempts

    def send_pending(self, limit: int = 50) -> Dict[str, Any]:
        rows = self.repo.list_pending_push(limit)
        summary = {"total_candidates": len(rows), "sent": 0, "failed": 0, "retrying": 0}
        if not rows:
            return summary

        client = self._client or WebhookClient()
        if not (client.is_configured() or client.dry_run):
            logger.warning("%d notification(s) waiting but NOTIFY_WEBHOOK_URL is not set", len(rows))
            return summary

        results: List[Dict[str, Any]] = []
        try:
            for row in rows:
                results.append(self._send_one(client, row, summary))
        finally:
            if self._client is None:
                client.close()

        logger.info(
            "push batch sent=%s retrying=%s failed=%s",
            summary["sent"], summary["retrying"], summary["failed"],
        )
        summary["results"] = results
        return summary

    def _send_one(self, client: WebhookClient, row: Notification, summary: Dict[str, Any]) -> Dict[str, Any]:
        notification_id = row.id
        attempts = int(row.push_attempts or 0)
        try:
            ok = client.post(_payload(row))
            error = None if ok else "webhook returned a non-2xx status"
        except Exception as e:
            logger.exception("notification push raised id=%s", notification_id)
            error = str(e) or type(e).__name__

        if error is None:
            self.repo.mark_pushed(notification_id, utcnow())
            self.db.commit()
            summary["sent"] += 1
            return {"notification_id": notification_id, "result": "SENT", "error": None}

        give_up = attempts + 1 >= self.max_attempts
        self.repo.mark_push_failed(notification_id, error, give_up=give_up)
        self.db.commit()
        if give_up:
            summary["failed"] += 1
            return {"notification_id": notification_id, "result": "FAILED", "error": error}
        summary["retrying"] += 1
        return {"notification_id": notification_id, "result": "RETRY", "error": error}
