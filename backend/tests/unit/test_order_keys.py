"""
Unit tests for order key allocation.
"""

from decimal import Decimal

from site_scheduler.services.order_keys import (
    OrderKeyExhausted,
    allocate_order_key,
    allocate_order_keys,
    renumbered_keys,
)


def D(value: str) -> Decimal:
    return Decimal(value)


class TestAllocateOrderKey:
    """Single key allocation between neighbors."""

    def test_empty_list_starts_at_one(self):
        assert allocate_order_key(None, None) == D("1.00")

    def test_no_predecessor_steps_back_one(self):
        assert allocate_order_key(None, D("5.00")) == D("4.00")

    def test_no_predecessor_floors_at_zero(self):
        assert allocate_order_key(None, D("0.50")) == D("0.00")

    def test_no_predecessor_below_zero_is_exhausted(self):
        result = allocate_order_key(None, D("0.00"))
        assert isinstance(result, OrderKeyExhausted)
        assert result.next_key == D("0.00")

    def test_no_successor_steps_forward_one(self):
        assert allocate_order_key(D("3.00"), None) == D("4.00")

    def test_midpoint(self):
        assert allocate_order_key(D("1.00"), D("2.00")) == D("1.50")

    def test_midpoint_is_rounded_to_two_decimals(self):
        assert allocate_order_key(D("1.00"), D("1.03")) == D("1.02")

    def test_adjacent_keys_are_exhausted(self):
        result = allocate_order_key(D("1.00"), D("1.01"))
        assert result == OrderKeyExhausted(prev_key=D("1.00"), next_key=D("1.01"))

    def test_last_free_key(self):
        assert allocate_order_key(D("1.00"), D("1.02")) == D("1.01")


class TestAllocateOrderKeys:
    """Several keys side by side."""

    def test_keys_stay_between_neighbors_in_order(self):
        keys = allocate_order_keys(D("1.00"), D("2.00"), 3)
        assert keys == [D("1.50"), D("1.75"), D("1.88")]

    def test_appending_several(self):
        assert allocate_order_keys(D("2.00"), None, 2) == [D("3.00"), D("4.00")]

    def test_exhaustion_midway(self):
        result = allocate_order_keys(D("1.00"), D("1.02"), 2)
        assert isinstance(result, OrderKeyExhausted)


def test_renumbered_keys():
    assert list(renumbered_keys(3)) == [D("1.00"), D("2.00"), D("3.00")]
    assert list(renumbered_keys(0)) == []
