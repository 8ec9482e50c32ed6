# tests/test_inventory_store.py
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import make_item
from surplus.common.errors import (
    Conflict,
    InsufficientStock,
    InvalidRequest,
    NotFound,
    WindowExpired,
)
from surplus.common.time_utils import utcnow
from surplus.db.models import InventoryItem
from surplus.inventory.services.inventory_store import InventoryStore


def _quantities(db, item_id):
    item = db.get(InventoryItem, item_id)
    db.refresh(item)
    return item.total_quantity, item.reserved_quantity


def test_reserve_then_insufficient(db, ids):
    """total=5: hold 3 succeeds, another 3 fails with only 2 left and changes nothing."""
    store = InventoryStore(db)

    hold = store.try_reserve(ids.item_id, 3)
    db.commit()
    assert hold.quantity == 3
    assert hold.unit_price == Decimal("300")
    assert isinstance(hold.unit_price, Decimal)
    assert _quantities(db, ids.item_id) == (5, 3)

    with pytest.raises(InsufficientStock) as exc:
        store.try_reserve(ids.item_id, 3)
    db.rollback()
    assert exc.value.available == 2
    assert _quantities(db, ids.item_id) == (5, 3)


@pytest.mark.parametrize("qty", [0, -1, True, 1.5])
def test_reserve_rejects_bad_quantity_before_touching_stock(db, ids, qty):
    with pytest.raises(InvalidRequest):
        InventoryStore(db).try_reserve(ids.item_id, qty)
    assert _quantities(db, ids.item_id) == (5, 0)


def test_reserve_unknown_item(db, ids):
    with pytest.raises(NotFound):
        InventoryStore(db).try_reserve(999999, 1)


def test_reserve_outside_window(db, ids):
    past = make_item(
        db,
        ids.store_id,
        available_from=utcnow() - timedelta(hours=5),
        available_until=utcnow() - timedelta(hours=1),
    )
    with pytest.raises(WindowExpired):
        InventoryStore(db).try_reserve(past.id, 1)
    assert _quantities(db, past.id) == (5, 0)


def test_reserve_disabled_item(db, ids):
    off = make_item(db, ids.store_id, is_available=False)
    with pytest.raises(WindowExpired):
        InventoryStore(db).try_reserve(off.id, 1)


def test_release_clamps_at_zero(db, ids):
    store = InventoryStore(db)
    store.try_reserve(ids.item_id, 2)
    store.release(ids.item_id, 5)
    db.commit()
    assert _quantities(db, ids.item_id) == (5, 0)


def test_commit_moves_total_and_reserved_together(db, ids):
    store = InventoryStore(db)
    store.try_reserve(ids.item_id, 2)
    item = store.commit(ids.item_id, 2)
    db.commit()
    assert (item.total_quantity, item.reserved_quantity) == (3, 0)
    assert item.is_available is True


def test_commit_last_units_disables_item(db, ids):
    store = InventoryStore(db)
    store.try_reserve(ids.item_id, 5)
    item = store.commit(ids.item_id, 5)
    db.commit()
    assert (item.total_quantity, item.reserved_quantity) == (0, 0)
    assert item.is_available is False


def test_commit_without_hold_is_conflict(db, ids):
    with pytest.raises(Conflict):
        InventoryStore(db).commit(ids.item_id, 1)
    db.rollback()
    assert _quantities(db, ids.item_id) == (5, 0)


def test_set_total_not_below_reserved(db, ids):
    store = InventoryStore(db)
    store.try_reserve(ids.item_id, 3)
    db.commit()

    with pytest.raises(InvalidRequest):
        store.set_total(ids.item_id, 2)
    db.rollback()

    item = store.set_total(ids.item_id, 3)
    db.commit()
    assert (item.total_quantity, item.reserved_quantity) == (3, 3)
    assert item.available_quantity == 0


def test_restock_puts_sold_out_item_back_on_offer(db, ids):
    store = InventoryStore(db)
    store.try_reserve(ids.item_id, 5)
    store.commit(ids.item_id, 5)
    db.commit()

    item = store.set_total(ids.item_id, 4)
    db.commit()
    assert (item.total_quantity, item.reserved_quantity) == (4, 0)
    assert item.is_available is True

    hold = store.try_reserve(ids.item_id, 2)
    db.commit()
    assert hold.quantity == 2


def test_restock_leaves_owner_disabled_item_off(db, ids):
    off = make_item(db, ids.store_id, is_available=False)
    item = InventoryStore(db).set_total(off.id, 8)
    db.commit()
    assert item.total_quantity == 8
    assert item.is_available is False
