# surplus/notifications/external/webhook_client.py
"""
Outbound push for notifications (minimal dependency: requests).

- NOTIFY_WEBHOOK_URL : JSON is POSTed here for every queued notification
- NOTIFY_DRY_RUN=1   : log the payload instead of sending

Delivery itself (mobile push, SSE fan-out, ...) is handled by whatever
listens on the webhook. NotificationDispatcher is the only caller.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from surplus.config import get_settings

logger = logging.getLogger(__name__)


class WebhookClient:

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        dry_run: Optional[bool] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        settings = get_settings()
        self.url = (url if url is not None else settings.notify_webhook_url or "").strip()
        self.dry_run = settings.notify_dry_run if dry_run is None else dry_run
        self.timeout = timeout or settings.notify_timeout_seconds
        self._http = session
        self._owns_http = session is None

    def __enter__(self) -> "WebhookClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def is_configured(self) -> bool:
        return bool(self.url)

    def close(self) -> None:
        if self._owns_http and self._http is not None:
            self._http.close()
            self._http = None

    def _session(self) -> requests.Session:
        # opened on the first real send, reused for the rest of the batch
        if self._http is None:
            self._http = requests.Session()
        return self._http

    def post(self, payload: Dict[str, Any]) -> bool:
        """
        Send one payload. Returns True on 2xx.
        Raises requests.RequestException on transport errors; the dispatcher
        records those against the notification.
        """
        if self.dry_run:
            logger.info("[DRY_RUN] would push to=%s payload=%s", self.url or "(no url)", payload)
            return True

        if not self.url:
            return False

        resp = self._session().post(self.url, json=payload, timeout=self.timeout)
        if 200 <= resp.status_code < 300:
            return True
        logger.error("notification push failed status=%s body=%s", resp.status_code, resp.text[:500])
        return False
