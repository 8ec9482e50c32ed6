# tests/test_concurrency.py
"""
Concurrent holds against a file-backed SQLite database.

Each thread gets its own connection; the conditional UPDATE is the only
thing standing between them and an oversell.
"""
import threading
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from conftest import RecordingEmitter, make_item, seed
from surplus.common.errors import InsufficientStock
from surplus.common.time_utils import utcnow
from surplus.db.core import Base, build_engine
from surplus.db.models import InventoryItem, Reservation
from surplus.inventory.services.inventory_store import InventoryStore
from surplus.reservations.services.reservation_ledger import ReservationLedger


@pytest.fixture
def file_sessions(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'concurrency.db'}")
    Base.metadata.create_all(bind=eng)
    Session = sessionmaker(bind=eng, autoflush=False, autocommit=False)
    try:
        yield Session
    finally:
        eng.dispose()


def _run_in_threads(n, target):
    barrier = threading.Barrier(n)
    results = [None] * n

    def worker(i):
        barrier.wait()
        try:
            results[i] = target(i)
        except Exception as e:  # collected and asserted on by the test
            results[i] = e

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def test_last_unit_goes_to_exactly_one_customer(file_sessions):
    setup = file_sessions()
    ids = seed(setup)
    item = make_item(setup, ids.store_id, total_quantity=1)
    item_id = item.id
    setup.close()

    pickup = utcnow() + timedelta(hours=1)

    def reserve(i):
        db = file_sessions()
        try:
            r = ReservationLedger(db, emitter=RecordingEmitter()).create(1 + i, item_id, 1, pickup)
            return r.id
        finally:
            db.close()

    results = _run_in_threads(2, reserve)

    wins = [r for r in results if isinstance(r, int)]
    losses = [r for r in results if isinstance(r, InsufficientStock)]
    assert len(wins) == 1, results
    assert len(losses) == 1, results

    check = file_sessions()
    try:
        row = check.get(InventoryItem, item_id)
        assert (row.total_quantity, row.reserved_quantity) == (1, 1)
        assert check.query(Reservation).filter(Reservation.inventory_id == item_id).count() == 1
    finally:
        check.close()


def test_many_small_holds_never_oversell(file_sessions):
    setup = file_sessions()
    ids = seed(setup)
    item = make_item(setup, ids.store_id, total_quantity=5)
    item_id = item.id
    setup.close()

    def hold(_):
        db = file_sessions()
        try:
            InventoryStore(db).try_reserve(item_id, 1)
            db.commit()
            return True
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    results = _run_in_threads(8, hold)

    assert results.count(True) == 5
    assert all(isinstance(r, InsufficientStock) for r in results if r is not True)

    check = file_sessions()
    try:
        row = check.get(InventoryItem, item_id)
        assert 0 <= row.reserved_quantity <= row.total_quantity
        assert row.reserved_quantity == 5
    finally:
        check.close()
