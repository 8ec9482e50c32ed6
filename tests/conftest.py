# tests/conftest.py
from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from surplus.common.time_utils import utcnow
from surplus.config import get_settings
from surplus.db.core import Base, get_db
from surplus.db.models import InventoryItem, Store, User
from surplus.domain.enums import StoreCategory, UserRole, VerificationStatus
from surplus.main import app

CUSTOMER_ID = 1
OTHER_CUSTOMER_ID = 2
OWNER_ID = 10
OTHER_OWNER_ID = 11
ADMIN_ID = 99


def make_item(session, store_id, **overrides) -> InventoryItem:
    """Reservable item: total 5, 300 yen, window open from 1h ago to 3h ahead."""
    now = utcnow()
    values = dict(
        store_id=store_id,
        name="Croissant box",
        description="Assorted croissants baked this morning",
        original_price=Decimal("800"),
        unit_price=Decimal("300"),
        total_quantity=5,
        reserved_quantity=0,
        available_from=now - timedelta(hours=1),
        available_until=now + timedelta(hours=3),
        is_available=True,
    )
    values.update(overrides)
    item = InventoryItem(**values)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def seed(session) -> SimpleNamespace:
    """
    - customers 1 / 2, owners 10 / 11, admin 99
    - store_id         : APPROVED + active, owned by 10
    - pending_store_id : verification PENDING, owned by 11
    - item_id          : total 5 in store_id
    """
    session.add_all([
        User(id=CUSTOMER_ID, role=UserRole.CUSTOMER, name="Mina", phone="010-1111-2222"),
        User(id=OTHER_CUSTOMER_ID, role=UserRole.CUSTOMER, name="Joon"),
        User(id=OWNER_ID, role=UserRole.STORE_OWNER, name="Bakery owner"),
        User(id=OTHER_OWNER_ID, role=UserRole.STORE_OWNER, name="Salad owner"),
        User(id=ADMIN_ID, role=UserRole.ADMIN, name="Admin"),
    ])
    session.commit()

    store = Store(
        owner_id=OWNER_ID,
        name="Morning Bakery",
        address="1 Campus Road",
        category=StoreCategory.BAKERY,
        verification_status=VerificationStatus.APPROVED,
        is_active=True,
    )
    pending_store = Store(
        owner_id=OTHER_OWNER_ID,
        name="Green Bowl",
        address="2 Campus Road",
        category=StoreCategory.SALAD,
        verification_status=VerificationStatus.PENDING,
        is_active=True,
    )
    session.add_all([store, pending_store])
    session.commit()

    item = make_item(session, store.id)
    return SimpleNamespace(
        store_id=store.id,
        pending_store_id=pending_store.id,
        item_id=item.id,
    )


class RecordingEmitter:
    """Stands in for NotificationEmitter in service-level tests."""

    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)
        return True

    def emit_many(self, events):
        events = list(events)
        self.events.extend(events)
        return len(events)


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for key in (
        "ADMIN_TOKEN",
        "NOTIFY_WEBHOOK_URL",
        "NOTIFY_DRY_RUN",
        "ALLOW_CUSTOMER_CANCEL_CONFIRMED",
        "LOW_STOCK_THRESHOLD",
        "NOTIFY_MAX_ATTEMPTS",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine():
    """SQLite in-memory; StaticPool so app and test share one connection."""
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def ids(session_factory):
    session = session_factory()
    try:
        return seed(session)
    finally:
        session.close()


@pytest.fixture
def db(session_factory, ids):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def client(session_factory, ids):
    """
    - get_db replaced with the in-memory session
    - seed ids attached to the client (c.store_id, c.item_id, ...)
    """

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    c = TestClient(app)
    c._Session = session_factory
    c.store_id = ids.store_id
    c.pending_store_id = ids.pending_store_id
    c.item_id = ids.item_id
    try:
        yield c
    finally:
        app.dependency_overrides.clear()


def auth_headers(user_id, role) -> dict:
    return {"X-User-Id": str(user_id), "X-User-Role": role}


CUSTOMER = auth_headers(CUSTOMER_ID, "CUSTOMER")
OTHER_CUSTOMER = auth_headers(OTHER_CUSTOMER_ID, "CUSTOMER")
OWNER = auth_headers(OWNER_ID, "STORE_OWNER")
OTHER_OWNER = auth_headers(OTHER_OWNER_ID, "STORE_OWNER")
ADMIN = auth_headers(ADMIN_ID, "ADMIN")
