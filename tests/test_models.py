"""Unit tests for the order model, status progression and coercion helpers."""

import pytest

from order_tracker.models import (
    LineItem,
    OrderStatus,
    coerce_price,
    coerce_quantity,
    compute_total,
)

pytestmark = pytest.mark.unit


class TestOrderStatusParse:
    @pytest.mark.parametrize(
        "value",
        ["Out for Delivery", "out for delivery", "OUT_FOR_DELIVERY", "OutForDelivery", "out-for-delivery"],
    )
    def test_variants_resolve(self, value):
        assert OrderStatus.parse(value) is OrderStatus.OUT_FOR_DELIVERY

    def test_unknown_is_none(self):
        assert OrderStatus.parse("Shipped") is None
        assert OrderStatus.parse(None) is None
        assert OrderStatus.parse(3) is None

    def test_enum_passes_through(self):
        assert OrderStatus.parse(OrderStatus.DELIVERED) is OrderStatus.DELIVERED


class TestProgression:
    def test_forward_moves_allowed(self):
        assert OrderStatus.PENDING.can_advance_to(OrderStatus.OUT_FOR_DELIVERY)
        assert OrderStatus.OUT_FOR_DELIVERY.can_advance_to(OrderStatus.DELIVERED)

    def test_skipping_a_stage_is_forward(self):
        assert OrderStatus.PENDING.can_advance_to(OrderStatus.DELIVERED)

    def test_repeat_is_allowed(self):
        assert OrderStatus.DELIVERED.can_advance_to(OrderStatus.DELIVERED)

    def test_backwards_rejected(self):
        assert not OrderStatus.DELIVERED.can_advance_to(OrderStatus.PENDING)
        assert not OrderStatus.OUT_FOR_DELIVERY.can_advance_to(OrderStatus.PENDING)


class TestCoercion:
    @pytest.mark.parametrize("raw, expected", [(2, 2), ("3", 3), (2.7, 2), (None, 1), ("abc", 1), (0, 1), (-4, 1), (True, 1)])
    def test_quantity(self, raw, expected):
        assert coerce_quantity(raw) == expected

    @pytest.mark.parametrize("raw, expected", [(10, 10.0), ("12.5", 12.5), (None, 0.0), ("free", 0.0), (-3, 0.0), (float("inf"), 0.0)])
    def test_price(self, raw, expected):
        assert coerce_price(raw) == expected


def test_total_is_sum_of_lines():
    items = [
        LineItem(name="Tea", qty=2, price=10),
        LineItem(name="Laddu", quantity=3, unit_price=1.1),
    ]
    assert compute_total(items) == 23.3


def test_line_item_wire_names():
    item = LineItem(name="Tea", qty=2, price=10)
    assert item.model_dump(by_alias=True) == {"name": "Tea", "qty": 2, "price": 10.0}
