from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def calculate_percentage(value: float, total: float) -> float:
    if total == 0:
        return 0
    return round(value / total * 100, 2)


def format_currency(amount: float) -> str:
    if amount < 0:
        return f"-₩{abs(amount):,.0f}"
    return f"₩{amount:,.0f}"


def group_by(items: Iterable[T], key: Callable[[T], str]) -> dict[str, list[T]]:
    """Group preserving first-seen key order."""
    groups: dict[str, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def sum_amounts(items: Iterable, attr: str = "amount") -> float:
    total = 0
    for item in items:
        value = getattr(item, attr, None)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            total += value
    return total
