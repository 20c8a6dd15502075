"""Tests for the Excel-backed order store."""

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pandas as pd
import pytest

from order_tracker.core.exceptions import OrderNotFoundError, StorageError
from order_tracker.models import LineItem, Order, OrderStatus

pytestmark = pytest.mark.unit


def make_order(tracking_id: str, name: str = "Asha") -> Order:
    items = [LineItem(name="Tea", qty=2, price=10)]
    return Order(
        tracking_id=tracking_id,
        customer_name=name,
        customer_phone="0123456789",
        items=items,
        total_amount=20,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def read_sheet(store) -> pd.DataFrame:
    return pd.read_excel(store.path, sheet_name=store.sheet_name, dtype=str, keep_default_na=False)


def test_missing_workbook_loads_empty(store):
    assert not store.exists()
    assert store.load_all() == []


def test_append_then_load(store):
    store.append(make_order("TID1"))
    store.append(make_order("TID2", name="Ravi"))

    orders = store.load_all()
    assert [o.tracking_id for o in orders] == ["TID1", "TID2"]
    assert orders[0].customer_phone == "0123456789"  # leading zero kept
    assert orders[0].items == [LineItem(name="Tea", qty=2, price=10)]
    assert orders[1].status is OrderStatus.PENDING


def test_save_all_replaces_collection(store):
    store.append(make_order("TID1"))
    store.save_all([make_order("TID9")])
    assert [o.tracking_id for o in store.load_all()] == ["TID9"]


def test_save_load_round_trip_settles(store):
    legacy = pd.DataFrame([
        {"name": "Old", "phone": "1", "items": '[{"name": "Tea", "qty": 1, "price": 4}]'},
    ])
    store.path.parent.mkdir(parents=True, exist_ok=True)
    legacy.to_excel(store.path, sheet_name=store.sheet_name, index=False)

    store.save_all(store.load_all())
    first = read_sheet(store)
    store.save_all(store.load_all())
    second = read_sheet(store)

    pd.testing.assert_frame_equal(first, second)


def test_legacy_workbook_is_migrated_once(store):
    legacy = pd.DataFrame([
        {
            "name": "Old Customer",
            "phone": 9876543210,
            "items": '[{"name": "Tea", "qty": 2, "price": 10}]',
            "Tracking ID": "TID1",
            "Order Status": "Out for Delivery",
        },
        {"name": "No Id", "phone": "555", "items": "not json"},
    ])
    store.path.parent.mkdir(parents=True, exist_ok=True)
    legacy.to_excel(store.path, sheet_name=store.sheet_name, index=False)

    first = store.load_all()
    second = store.load_all()

    assert [o.tracking_id for o in first] == [o.tracking_id for o in second]
    old, broken = first
    assert old.customer_phone == "9876543210"
    assert old.total_amount == 20
    assert old.status is OrderStatus.OUT_FOR_DELIVERY
    assert broken.tracking_id.startswith("TID")
    assert broken.items == []
    assert broken.status is OrderStatus.PENDING

    assert list(read_sheet(store)["schemaVersion"]) == ["2", "2"]

    lines = store.quarantine_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["record"]["name"] == "No Id"


def test_corrupt_workbook_raises_storage_error(store):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_bytes(b"this is not a workbook")

    with pytest.raises(StorageError):
        store.load_all()
    with pytest.raises(StorageError):
        store.append(make_order("TID1"))
    assert store.path.read_bytes() == b"this is not a workbook"


def test_failed_mutation_writes_nothing(store):
    store.append(make_order("TID1"))
    before = read_sheet(store)

    def fail(orders):
        orders.clear()
        raise OrderNotFoundError("TIDX")

    with pytest.raises(OrderNotFoundError):
        store.update(fail)
    pd.testing.assert_frame_equal(read_sheet(store), before)


def test_concurrent_appends_are_not_lost(store):
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: store.append(make_order(f"TID{i}")), range(16)))

    assert sorted(o.tracking_id for o in store.load_all()) == sorted(f"TID{i}" for i in range(16))


def test_clear(store):
    store.append(make_order("TID1"))
    store.clear()
    assert store.exists()
    assert store.load_all() == []


def test_clear_replaces_unreadable_workbook(store):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_bytes(b"this is not a workbook")

    store.clear()

    assert store.load_all() == []
    store.append(make_order("TID1"))
    assert [o.tracking_id for o in store.load_all()] == ["TID1"]
