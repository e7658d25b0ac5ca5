"""
Order key allocation.

Tasks are sorted by a two-decimal key. A new task receives a key between its
neighbors so no other task has to be renumbered; when two neighbors are
0.01 apart there is no room left and the location must be renumbered.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Union

from site_scheduler.models.task import quantize_order

KEY_STEP = Decimal("1.00")
FIRST_KEY = Decimal("1.00")
MIN_KEY = Decimal("0.00")


@dataclass(frozen=True)
class OrderKeyExhausted:
    """No distinct two-decimal key exists between the two neighbors."""

    prev_key: Optional[Decimal]
    next_key: Optional[Decimal]


OrderKeyResult = Union[Decimal, OrderKeyExhausted]


def allocate_order_key(
    prev_key: Optional[Decimal],
    next_key: Optional[Decimal],
) -> OrderKeyResult:
    """
    Allocate a key that sorts strictly between two neighbors.

    Args:
        prev_key: Key of the task that will precede the new one (None = first)
        next_key: Key of the task that will follow the new one (None = last)

    Returns:
        The new key, or OrderKeyExhausted when rounding collapses it onto a neighbor
    """
    if prev_key is None and next_key is None:
        return FIRST_KEY

    if prev_key is None:
        key = max(quantize_order(next_key - KEY_STEP), MIN_KEY)
        if key >= next_key:
            return OrderKeyExhausted(prev_key=None, next_key=next_key)
        return key

    if next_key is None:
        return quantize_order(prev_key + KEY_STEP)

    key = quantize_order((prev_key + next_key) / 2)
    if key <= prev_key or key >= next_key:
        return OrderKeyExhausted(prev_key=prev_key, next_key=next_key)
    return key


def allocate_order_keys(
    prev_key: Optional[Decimal],
    next_key: Optional[Decimal],
    count: int,
) -> Union[list[Decimal], OrderKeyExhausted]:
    """
    Allocate consecutive keys for several items inserted side by side.

    Each key is allocated between the previous new key and next_key, so the
    items keep their relative order.
    """
    keys: list[Decimal] = []
    lower = prev_key
    for _ in range(count):
        result = allocate_order_key(lower, next_key)
        if isinstance(result, OrderKeyExhausted):
            return result
        keys.append(result)
        lower = result
    return keys


def renumbered_keys(count: int) -> Iterable[Decimal]:
    """Evenly spaced keys 1.00, 2.00, ... for a full renumbering pass."""
    return (FIRST_KEY + KEY_STEP * i for i in range(count))
