from datetime import date

from gagyebu.models import LedgerRow
from gagyebu.pipeline.aggregate import (
    category_summary,
    clamp_limit,
    daily_summary,
    day_items,
    month_expense_total,
    month_totals,
    recent_items,
    user_expense_summary,
)
from gagyebu.pipeline.normalize import normalize_rows
from gagyebu.utils.numbers import calculate_percentage


def _row(kind, category, amount, day, owner="회진", description="", card=""):
    return LedgerRow(
        type=kind,
        category=category,
        description=description,
        amount=amount,
        date=day,
        card=card,
        owner=owner,
    )


def _september():
    return [
        _row("지출", "식비", 15000, date(2025, 9, 7), owner="회진", description="점심 식사"),
        _row("지출", "운동", 50000, date(2025, 9, 6), owner="성욱", description="헬스장 회비"),
        _row("입금", "기타", 3000000, date(2025, 9, 1), description="월급"),
        _row("지출", "식비", 35000, date(2025, 9, 7), owner="성욱", description="저녁"),
        _row("지출", "식비", 99999, date(2025, 8, 31)),
        _row("지출", "식비", 1000, date(2025, 10, 1)),
    ]


def test_calculate_percentage_zero_total():
    assert calculate_percentage(123, 0) == 0
    assert calculate_percentage(0, 0) == 0
    assert calculate_percentage(1, 3) == 33.33


def test_month_totals_example():
    rows = [
        _row("지출", "식비", 15000, date(2025, 9, 7)),
        _row("입금", "기타", 3000000, date(2025, 9, 1)),
    ]
    summary = month_totals(rows, "2025-09")
    assert summary.month == "2025-09"
    assert summary.total_expense == 15000
    assert summary.total_income == 3000000
    assert summary.net_income == 2985000


def test_month_totals_respects_month_boundaries():
    summary = month_totals(_september(), "2025-09")
    assert summary.total_expense == 100000
    assert summary.total_income == 3000000

    december = [_row("지출", "식비", 10, date(2025, 12, 31)), _row("지출", "식비", 20, date(2026, 1, 1))]
    assert month_totals(december, "2025-12").total_expense == 10
    assert month_expense_total(december, "2026-01") == 20


def test_month_totals_custom_labels():
    rows = [_row("expense", "식비", 10, date(2025, 9, 1)), _row("지출", "식비", 20, date(2025, 9, 1))]
    assert month_totals(rows, "2025-09", expense_label="expense").total_expense == 10


def test_unparseable_date_row_is_excluded_without_error():
    raw = [
        ["거래 유형", "카테고리", "금액", "날짜"],
        ["지출", "식비", "15000", "2025-09-07"],
        ["지출", "식비", "20000", "N/A"],
    ]
    rows = normalize_rows(raw)
    assert month_totals(rows, "2025-09").total_expense == 15000
    assert list(daily_summary(rows)) == ["2025-09-07"]


def test_daily_summary_groups_by_date():
    daily = daily_summary(_september())

    day = daily["2025-09-07"]
    assert day.total_expense == 50000
    assert day.total_income == 0
    assert day.net_income == -50000
    assert day.transaction_count == 2
    assert [t.description for t in day.detail] == ["점심 식사", "저녁"]
    assert day.detail[0].owner == "회진"

    payday = daily["2025-09-01"]
    assert payday.total_income == 3000000
    assert payday.net_income == 3000000


def test_daily_summary_detail_ids_are_stable():
    first = daily_summary(_september())["2025-09-07"].detail[0].id
    second = daily_summary(_september())["2025-09-07"].detail[0].id
    assert first == second


def test_category_summary_sorted_and_percentages_sum_to_100():
    result = category_summary(_september(), "2025-09")

    # equal amounts keep first-seen order
    assert [c.category for c in result] == ["식비", "운동"]
    assert [c.amount for c in result] == [50000, 50000]
    assert [c.count for c in result] == [2, 1]
    assert abs(sum(c.percentage for c in result) - 100) < 0.05


def test_category_summary_ties_keep_insertion_order():
    rows = [
        _row("지출", "교통비", 100, date(2025, 9, 2)),
        _row("지출", "쇼핑", 100, date(2025, 9, 3)),
        _row("지출", "식비", 300, date(2025, 9, 4)),
    ]
    assert [c.category for c in category_summary(rows, "2025-09")] == ["식비", "교통비", "쇼핑"]


def test_category_summary_empty_month():
    assert category_summary(_september(), "2024-01") == []


def test_user_expense_summary_percentages_relative_to_user_total():
    result = {u.user: u for u in user_expense_summary(_september(), "2025-09")}

    assert result["회진"].total_amount == 15000
    assert result["회진"].transaction_count == 1
    assert result["회진"].category_breakdown[0].percentage == 100

    sungwook = result["성욱"]
    assert sungwook.total_amount == 85000
    breakdown = {c.category: c.percentage for c in sungwook.category_breakdown}
    assert breakdown == {"운동": 58.82, "식비": 41.18}


def test_recent_items_newest_first():
    items = recent_items(_september(), limit=3)
    assert [i.date for i in items] == [date(2025, 10, 1), date(2025, 9, 7), date(2025, 9, 7)]


def test_day_items_filters_by_kind():
    rows = _september()
    day = date(2025, 9, 7)
    assert len(day_items(rows, day)) == 2
    assert len(day_items(rows, day, kind="income")) == 0
    assert len(day_items(rows, date(2025, 9, 1), kind="income")) == 1
    assert len(day_items(rows, day, kind="expense", limit=1)) == 1

    odd = rows + [_row("이체", "기타", 10, day)]
    assert len(day_items(odd, day, kind="both")) == 2


def test_clamp_limit():
    assert clamp_limit(None, 5, 100) == 5
    assert clamp_limit("10", 5, 100) == 10
    assert clamp_limit("500", 5, 100) == 100
    assert clamp_limit("0", 5, 100) == 1
    assert clamp_limit("abc", 5, 100) == 5
    assert clamp_limit("inf", 5, 100) == 5
    assert clamp_limit("1e400", 5, 200) == 5
