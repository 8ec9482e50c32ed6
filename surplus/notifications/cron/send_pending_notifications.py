"""
Cron entry point for the webhook outbox.

- loads .env
- hands a session to NotificationDispatcher.send_pending
- logs the summary

No decisions are made here; run it every minute or so:
    python -m surplus.notifications.cron.send_pending_notifications
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import os

from surplus.db.core import SessionLocal
from surplus.notifications.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger("surplus.cron")


def send_pending_notifications(limit: int = 50):
    db = SessionLocal()
    try:
        return NotificationDispatcher(db).send_pending(limit=limit)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    result = send_pending_notifications(limit=int(os.getenv("NOTIFY_BATCH_SIZE", "50")))
    logger.info("[send_pending_notifications] result: %s", result)
