# tests/test_notifications.py
"""Webhook outbox, dispatcher, webhook client and per-user notification settings."""
import time
from datetime import timedelta
from types import SimpleNamespace

import pytest
import requests
from sqlalchemy import select

from conftest import ADMIN, CUSTOMER, CUSTOMER_ID, OWNER
from surplus.common.time_utils import utcnow
from surplus.config import get_settings
from surplus.db.models import Notification
from surplus.domain.enums import NotificationType, PushStatus
from surplus.notifications.external import webhook_client
from surplus.notifications.external.webhook_client import WebhookClient
from surplus.notifications.services.notification_dispatcher import NotificationDispatcher
from surplus.notifications.services.notification_emitter import (
    NotificationEmitter,
    NotificationEvent,
)

NOTICE = {"title": "Exam week hours", "content": "Stores close at 21:00."}


class FakeWebhook:
    """Stands in for WebhookClient in dispatcher tests."""

    dry_run = False

    def __init__(self, *, fail_with=None, ok=True):
        self.payloads = []
        self.fail_with = fail_with
        self.ok = ok

    def is_configured(self):
        return True

    def post(self, payload):
        self.payloads.append(payload)
        if self.fail_with is not None:
            raise self.fail_with
        return self.ok

    def close(self):
        pass


class FakeHttp:
    def __init__(self, status_code=204):
        self.posts = []
        self.closed = False
        self.status_code = status_code

    def post(self, url, json, timeout):
        self.posts.append((url, json, timeout))
        return SimpleNamespace(status_code=self.status_code, text="")

    def close(self):
        self.closed = True


@pytest.fixture
def webhook_url(monkeypatch):
    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "http://hooks.example.test/notify")
    get_settings.cache_clear()
    return "http://hooks.example.test/notify"


def _queue_one(engine, recipient_id=CUSTOMER_ID):
    NotificationEmitter(engine, push_enabled=True).emit(
        NotificationEvent(
            type=NotificationType.SYSTEM_NOTICE,
            recipient_id=recipient_id,
            title="Hello",
            content="World",
        )
    )


def _rows(db):
    db.expire_all()
    return db.execute(select(Notification).order_by(Notification.id)).scalars().all()


# ============================================================
# outbox: requests never wait on the webhook
# ============================================================

def test_notice_publish_does_not_wait_for_webhook(client, webhook_url, monkeypatch):
    posted = []

    def slow_post(self, payload):
        time.sleep(0.3)
        posted.append(payload)
        return True

    monkeypatch.setattr(WebhookClient, "post", slow_post)

    started = time.monotonic()
    r = client.post("/api/admin/notices", json=NOTICE, headers=ADMIN)
    elapsed = time.monotonic() - started

    assert r.status_code == 201, r.text
    assert elapsed < 1.0
    assert posted == []

    with client._Session() as db:
        rows = _rows(db)
    assert len(rows) == 5
    assert {n.push_status for n in rows} == {PushStatus.PENDING}

    # drained later, outside the publishing request
    r = client.post("/api/admin/notifications/send-pending", headers=ADMIN)
    assert r.status_code == 200, r.text
    assert r.json()["sent"] == 5
    assert sorted(p["recipient_id"] for p in posted) == [1, 2, 10, 11, 99]

    with client._Session() as db:
        assert {n.push_status for n in _rows(db)} == {PushStatus.SENT}


def test_reservation_request_is_queued_not_pushed(client, webhook_url, monkeypatch):
    def refuse(self, payload):
        raise AssertionError("webhook called inside the request")

    monkeypatch.setattr(WebhookClient, "post", refuse)

    r = client.post(
        "/api/reservations",
        json={
            "inventory_id": client.item_id,
            "quantity": 1,
            "pickup_time": (utcnow() + timedelta(hours=1)).isoformat(),
        },
        headers=CUSTOMER,
    )
    assert r.status_code == 201, r.text

    with client._Session() as db:
        rows = _rows(db)
    assert [(n.user_id, n.push_status) for n in rows] == [(10, PushStatus.PENDING)]


def test_nothing_queued_without_webhook(client):
    client.post("/api/admin/notices", json=NOTICE, headers=ADMIN)

    with client._Session() as db:
        assert {n.push_status for n in _rows(db)} == {None}

    r = client.post("/api/admin/notifications/send-pending", headers=ADMIN)
    assert r.json()["total_candidates"] == 0


# ============================================================
# dispatcher
# ============================================================

def test_dispatcher_marks_sent(db, engine):
    _queue_one(engine)
    hook = FakeWebhook()

    summary = NotificationDispatcher(db, client=hook).send_pending()

    assert summary["sent"] == 1
    assert hook.payloads[0]["recipient_id"] == CUSTOMER_ID
    assert hook.payloads[0]["type"] == "SYSTEM_NOTICE"
    row = _rows(db)[0]
    assert row.push_status == PushStatus.SENT
    assert row.pushed_at is not None

    # already sent; nothing left to pick up
    assert NotificationDispatcher(db, client=hook).send_pending()["total_candidates"] == 0
    assert len(hook.payloads) == 1


def test_dispatcher_retries_then_gives_up(db, engine):
    _queue_one(engine)
    hook = FakeWebhook(fail_with=requests.ConnectionError("connection refused"))
    dispatcher = NotificationDispatcher(db, client=hook, max_attempts=2)

    first = dispatcher.send_pending()
    assert (first["retrying"], first["failed"]) == (1, 0)
    row = _rows(db)[0]
    assert (row.push_status, row.push_attempts) == (PushStatus.PENDING, 1)

    second = dispatcher.send_pending()
    assert (second["retrying"], second["failed"]) == (0, 1)
    row = _rows(db)[0]
    assert (row.push_status, row.push_attempts) == (PushStatus.FAILED, 2)
    assert "connection refused" in row.push_error

    assert dispatcher.send_pending()["total_candidates"] == 0


def test_dispatcher_counts_non_2xx_as_failed_attempt(db, engine):
    _queue_one(engine)
    summary = NotificationDispatcher(db, client=FakeWebhook(ok=False), max_attempts=3).send_pending()
    assert summary["retrying"] == 1
    assert _rows(db)[0].push_attempts == 1


# ============================================================
# webhook client
# ============================================================

def test_webhook_client_opens_no_session_unless_sending(monkeypatch):
    def no_session():
        raise AssertionError("requests.Session opened")

    monkeypatch.setattr(webhook_client.requests, "Session", no_session)

    unset = WebhookClient(url="", dry_run=False)
    assert unset.post({"x": 1}) is False

    dry = WebhookClient(url="http://hooks.example.test/notify", dry_run=True)
    assert dry.post({"x": 1}) is True
    dry.close()


def test_webhook_client_closes_the_session_it_opened(monkeypatch):
    http = FakeHttp()
    monkeypatch.setattr(webhook_client.requests, "Session", lambda: http)

    with WebhookClient(url="http://hooks.example.test/notify", dry_run=False, timeout=2) as hook:
        assert hook.post({"a": 1}) is True
        assert hook.post({"a": 2}) is True

    assert [p[1] for p in http.posts] == [{"a": 1}, {"a": 2}]
    assert http.posts[0][2] == 2
    assert http.closed is True


def test_webhook_client_leaves_injected_session_open():
    http = FakeHttp(status_code=500)
    with WebhookClient(url="http://hooks.example.test/notify", dry_run=False, session=http) as hook:
        assert hook.post({"a": 1}) is False
    assert http.closed is False


# ============================================================
# settings
# ============================================================

def test_settings_default_to_everything_on(client):
    r = client.get("/api/notifications/settings", headers=CUSTOMER)
    assert r.status_code == 200
    assert r.json() == {"reservation_updates": True, "inventory_updates": True, "system": True}


def test_muted_system_notices_are_not_stored(client):
    r = client.put("/api/notifications/settings", json={"system": False}, headers=CUSTOMER)
    assert r.status_code == 200, r.text
    assert r.json() == {"reservation_updates": True, "inventory_updates": True, "system": False}

    client.post("/api/admin/notices", json=NOTICE, headers=ADMIN)

    assert client.get("/api/notifications", headers=CUSTOMER).json() == []
    assert len(client.get("/api/notifications", headers=OWNER).json()) == 1
    assert client.get("/api/notifications/settings", headers=CUSTOMER).json()["system"] is False


def test_muted_reservation_updates_do_not_block_the_reservation(client):
    client.put("/api/notifications/settings", json={"reservation_updates": False}, headers=OWNER)

    r = client.post(
        "/api/reservations",
        json={
            "inventory_id": client.item_id,
            "quantity": 1,
            "pickup_time": (utcnow() + timedelta(hours=1)).isoformat(),
        },
        headers=CUSTOMER,
    )
    assert r.status_code == 201, r.text
    assert client.get("/api/notifications", headers=OWNER).json() == []
    assert len(client.get("/api/reservations/store-owner", headers=OWNER).json()) == 1
