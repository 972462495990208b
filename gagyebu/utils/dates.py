from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo


DEFAULT_TZ = "Asia/Seoul"


def now_in(tz: str = DEFAULT_TZ) -> datetime:
    return datetime.now(ZoneInfo(tz))


def today_in(tz: str = DEFAULT_TZ) -> date:
    return now_in(tz).date()


def year_month(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def parse_year_month(ym: str | None, tz: str = DEFAULT_TZ) -> tuple[int, int]:
    """'YYYY-MM' -> (year, month); blank or malformed falls back to the current month."""
    ym = (ym or "").strip()
    if ym:
        try:
            parsed = datetime.strptime(ym, "%Y-%m")
            return parsed.year, parsed.month
        except ValueError:
            pass
    today = today_in(tz)
    return today.year, today.month


def month_range(ym: str | None = None, tz: str = DEFAULT_TZ) -> tuple[date, date]:
    """Half-open [first day, first day of next month) for the month."""
    year, month = parse_year_month(ym, tz)
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return start, end


def resolve_day(target: str | None = None, tz: str = DEFAULT_TZ) -> date:
    target = (target or "").strip()
    if target:
        try:
            return date.fromisoformat(target[:10])
        except ValueError:
            pass
    return today_in(tz)


def month_tab_name(d: date | None = None, tz: str = DEFAULT_TZ) -> str:
    """Ledger tabs are named after the calendar month, e.g. '9월'."""
    d = d or today_in(tz)
    return f"{d.month}월"
