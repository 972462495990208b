from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol

from gagyebu.models import (
    CategorySummary,
    DailySummary,
    LedgerRow,
    MonthlySummary,
    Transaction,
    UserExpenseSummary,
)
from gagyebu.utils.dates import DEFAULT_TZ, month_range, parse_year_month
from gagyebu.utils.hash import row_key
from gagyebu.utils.numbers import calculate_percentage, group_by, sum_amounts


EXPENSE_LABEL = "지출"
INCOME_LABEL = "입금"


class Entry(Protocol):
    type: str
    category: str
    amount: float
    date: date
    owner: str


def to_transaction(row: LedgerRow) -> Transaction:
    return Transaction(
        id=row_key({
            "type": row.type,
            "category": row.category,
            "amount": row.amount,
            "date": row.date.isoformat(),
            "description": row.description,
            "card": row.card,
        }),
        type=row.type,
        description=row.description,
        date=row.date,
        amount=row.amount,
        card=row.card,
        category=row.category,
        owner=row.owner,
    )


def filter_month(entries: Iterable[Entry], ym: str | None, tz: str = DEFAULT_TZ) -> list:
    start, end = month_range(ym, tz)
    return [e for e in entries if e.date is not None and start <= e.date < end]


def month_label(ym: str | None, tz: str = DEFAULT_TZ) -> str:
    year, month = parse_year_month(ym, tz)
    return f"{year:04d}-{month:02d}"


def daily_summary(
    rows: Iterable[LedgerRow],
    expense_label: str = EXPENSE_LABEL,
    income_label: str = INCOME_LABEL,
) -> dict[str, DailySummary]:
    daily: dict[str, DailySummary] = {}
    for row in rows:
        key = row.date.isoformat()
        day = daily.get(key)
        if day is None:
            day = daily[key] = DailySummary(date=key)

        if row.type == expense_label:
            day.total_expense += row.amount
        if row.type == income_label:
            day.total_income += row.amount
        day.detail.append(to_transaction(row))

    for day in daily.values():
        day.transaction_count = len(day.detail)
        day.net_income = day.total_income - day.total_expense
    return daily


def month_totals(
    entries: Iterable[Entry],
    ym: str | None = None,
    expense_label: str = EXPENSE_LABEL,
    income_label: str = INCOME_LABEL,
    tz: str = DEFAULT_TZ,
) -> MonthlySummary:
    total_expense = 0
    total_income = 0
    for e in filter_month(entries, ym, tz):
        if e.type == expense_label:
            total_expense += e.amount
        if e.type == income_label:
            total_income += e.amount
    return MonthlySummary(
        month=month_label(ym, tz),
        total_income=total_income,
        total_expense=total_expense,
        net_income=total_income - total_expense,
    )


def month_expense_total(
    entries: Iterable[Entry],
    ym: str | None = None,
    expense_label: str = EXPENSE_LABEL,
    tz: str = DEFAULT_TZ,
) -> float:
    return sum_amounts(e for e in filter_month(entries, ym, tz) if e.type == expense_label)


def _breakdown(entries: list, total: float) -> list[CategorySummary]:
    result = []
    for category, items in group_by(entries, lambda e: e.category).items():
        amount = sum_amounts(items)
        result.append(CategorySummary(
            category=category,
            amount=amount,
            percentage=calculate_percentage(amount, total),
            count=len(items),
        ))
    return result


def category_summary(
    entries: Iterable[Entry],
    ym: str | None = None,
    expense_label: str = EXPENSE_LABEL,
    tz: str = DEFAULT_TZ,
) -> list[CategorySummary]:
    """Expense share per category for the month, largest first."""
    expenses = [e for e in filter_month(entries, ym, tz) if e.type == expense_label]
    total = sum_amounts(expenses)
    return sorted(_breakdown(expenses, total), key=lambda c: c.amount, reverse=True)


def user_expense_summary(
    entries: Iterable[Entry],
    ym: str | None = None,
    expense_label: str = EXPENSE_LABEL,
    tz: str = DEFAULT_TZ,
) -> list[UserExpenseSummary]:
    """Expense per owner; each breakdown's percentages are of that owner's own total."""
    expenses = [e for e in filter_month(entries, ym, tz) if e.type == expense_label]
    result = []
    for user, items in group_by(expenses, lambda e: e.owner).items():
        total = sum_amounts(items)
        result.append(UserExpenseSummary(
            user=user,
            total_amount=total,
            transaction_count=len(items),
            category_breakdown=_breakdown(items, total),
        ))
    return result


def clamp_limit(raw, default: int, upper: int) -> int:
    try:
        n = int(float(raw)) if raw not in (None, "") else default
    except (TypeError, ValueError, OverflowError):
        n = default
    return max(1, min(upper, n))


def recent_items(rows: Iterable[LedgerRow], limit: int = 5) -> list[LedgerRow]:
    ordered = sorted(rows, key=lambda r: r.date, reverse=True)
    return ordered[:limit]


def day_items(
    rows: Iterable[LedgerRow],
    day: date,
    kind: str = "both",
    expense_label: str = EXPENSE_LABEL,
    income_label: str = INCOME_LABEL,
    limit: int = 100,
) -> list[LedgerRow]:
    items = [r for r in rows if r.date == day]
    kind = (kind or "both").lower()
    if kind == "expense":
        items = [r for r in items if r.type == expense_label]
    elif kind == "income":
        items = [r for r in items if r.type == income_label]
    else:
        items = [r for r in items if r.type in (expense_label, income_label)]
    return recent_items(items, limit)
