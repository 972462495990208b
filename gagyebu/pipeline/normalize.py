from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence, Union
from zoneinfo import ZoneInfo
import math
import re

from gagyebu.models import LedgerRow
from gagyebu.utils.dates import DEFAULT_TZ


Cell = Union[str, int, float, None]
RawRow = Sequence[Cell]

# Sheets/Excel serial day 0
SERIAL_EPOCH = datetime(1899, 12, 30)

_MONEY_STRIP = re.compile(r"[^\d.\-]")
_DOTTED_DATE = re.compile(r"(\d{4})\.\s*(\d{1,2})\.\s*(\d{1,2})")

DEFAULT_USERS = ("성욱", "회진")
DEFAULT_OWNER = "회진"


@dataclass(frozen=True)
class ColumnMap:
    """0-based column index of each field within a raw sheet row."""

    type: int
    category: int
    amount: int
    date: int
    description: int
    card: int
    note: int | None = None


# 월별 탭(9월 등) A=거래 유형 B=카테고리 C=금액 D=날짜 E=내용 F=결제수단 G=메모
LEDGER_COLUMNS = ColumnMap(type=0, category=1, amount=2, date=3, description=4, card=5, note=6)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_money(value: Cell) -> float | None:
    """'₩50,000' -> 50000. Numbers pass through; anything unparseable is None."""
    if value is None:
        return None
    if _is_number(value):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    cleaned = _MONEY_STRIP.sub("", value)
    if not cleaned:
        return None
    try:
        n = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(n):
        return None
    return int(n) if n.is_integer() else n


def excel_serial_to_date(n: float) -> date:
    return (SERIAL_EPOCH + timedelta(days=n)).date()


def _datetime_to_day(dt: datetime, tz: str) -> date:
    if dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(tz))
    return dt.date()


def parse_any_date(value: Cell, tz: str = DEFAULT_TZ) -> date | None:
    """Calendar day from a sheet cell.

    Tried in order: serial day number, ISO date/datetime, the first ten
    characters as YYYY-MM-DD, then the dotted 'YYYY. M. D' form.
    """
    if value is None or isinstance(value, bool):
        return None
    if _is_number(value):
        if not math.isfinite(value):
            return None
        try:
            return excel_serial_to_date(value)
        except OverflowError:
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # JS toISOString() ends in 'Z', which fromisoformat only accepts from 3.11
    iso = text[:-1] + "+00:00" if text[-1] in "Zz" else text
    try:
        return _datetime_to_day(datetime.fromisoformat(iso), tz)
    except ValueError:
        pass

    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    m = _DOTTED_DATE.search(text)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None
    return None


def determine_owner(card: str, users: Iterable[str] = DEFAULT_USERS, default: str = DEFAULT_OWNER) -> str:
    # TODO: replace with an explicit owner field on the input form
    for user in users:
        if user and user in (card or ""):
            return user
    return default


def _cell(raw: RawRow, idx: int | None) -> Cell:
    if idx is None or idx >= len(raw):
        return None
    return raw[idx]


def _text(value: Cell) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_row(
    raw: RawRow,
    columns: ColumnMap = LEDGER_COLUMNS,
    tz: str = DEFAULT_TZ,
    users: Iterable[str] = DEFAULT_USERS,
    default_owner: str = DEFAULT_OWNER,
) -> LedgerRow | None:
    if not isinstance(raw, (list, tuple)) or not raw:
        return None

    amount = parse_money(_cell(raw, columns.amount))
    day = parse_any_date(_cell(raw, columns.date), tz)
    if amount is None or day is None:
        return None

    card = _text(_cell(raw, columns.card))
    return LedgerRow(
        type=_text(_cell(raw, columns.type)),
        category=_text(_cell(raw, columns.category)),
        description=_text(_cell(raw, columns.description)),
        amount=amount,
        date=day,
        card=card,
        note=_text(_cell(raw, columns.note)),
        owner=determine_owner(card, users, default_owner),
        raw=list(raw),
    )


def normalize_rows(
    rows: Iterable[RawRow],
    columns: ColumnMap = LEDGER_COLUMNS,
    tz: str = DEFAULT_TZ,
    users: Iterable[str] = DEFAULT_USERS,
    default_owner: str = DEFAULT_OWNER,
    skip_header: bool = True,
) -> list[LedgerRow]:
    rows = list(rows)
    if skip_header and rows:
        rows = rows[1:]
    users = tuple(users)
    out = []
    for raw in rows:
        row = normalize_row(raw, columns, tz, users, default_owner)
        if row is not None:
            out.append(row)
    return out


# ── 설정 탭 ──────────────────────────────────────────────


def flatten_values(rows: Iterable[RawRow]) -> list:
    """All truthy cells, row-major."""
    return [cell for row in rows for cell in row if cell]


def parse_payment_methods(rows: Iterable[RawRow]) -> list[str]:
    # first row is the column header
    values = flatten_values(rows)
    return [_text(v) for v in values[1:] if _text(v)]


def parse_category_rows(rows: Iterable[RawRow]) -> list[dict]:
    """설정 탭 D:F -> [{name, id, budget}] (헤더 제외)."""
    rows = list(rows)
    out = []
    for r in rows[1:]:
        if not r:
            continue
        name = _text(_cell(r, 0)) or None
        raw_id = _cell(r, 1)
        raw_budget = _cell(r, 2)
        out.append({
            "name": name,
            "id": parse_money(raw_id) if raw_id not in (None, "") else None,
            "budget": parse_money(raw_budget) if raw_budget not in (None, "") else None,
        })
    return out
