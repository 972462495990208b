from __future__ import annotations

from typing import Sequence

from googleapiclient.discovery import build

from gagyebu.adapters.google_auth import get_credentials

READ_SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
WRITE_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def _col_letter(n: int) -> str:
    # 1-based
    result = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        result = chr(65 + rem) + result
    return result


def _get_service(write: bool = False):
    creds = get_credentials(WRITE_SCOPES if write else READ_SCOPES)
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def quote_sheet_title(title: str) -> str:
    # tab names with spaces, Korean or quotes must be wrapped: it's -> 'it''s'
    escaped = title.replace("'", "''")
    return f"'{escaped}'"


def build_range(sheet_name: str, cell_range: str | None = "") -> str:
    """'<tab>'!<range>, or just '<tab>' to read the whole tab."""
    sheet_ref = quote_sheet_title(sheet_name)
    cell_range = (cell_range or "").strip()
    return f"{sheet_ref}!{cell_range}" if cell_range else sheet_ref


def fetch_values(spreadsheet_id: str, sheet_name: str, cell_range: str | None = "") -> list[list]:
    service = _get_service()
    rng = build_range(sheet_name, cell_range)
    resp = service.spreadsheets().values().get(spreadsheetId=spreadsheet_id, range=rng).execute()
    return resp.get("values", []) or []


def append_row(spreadsheet_id: str, sheet_name: str, values: Sequence) -> dict:
    """Append one row after the last non-empty row of the tab."""
    service = _get_service(write=True)
    resp = service.spreadsheets().values().append(
        spreadsheetId=spreadsheet_id,
        range=quote_sheet_title(sheet_name),
        valueInputOption="USER_ENTERED",
        insertDataOption="INSERT_ROWS",
        body={"values": [list(values)]},
    ).execute()
    return resp.get("updates", {}) or {}


def clear_values(spreadsheet_id: str, sheet_name: str, cell_range: str) -> None:
    service = _get_service(write=True)
    service.spreadsheets().values().clear(
        spreadsheetId=spreadsheet_id,
        range=build_range(sheet_name, cell_range),
        body={},
    ).execute()


def overwrite_values(
    spreadsheet_id: str,
    sheet_name: str,
    start_cell: str,
    values: list[list],
    clear_range: str | None = None,
) -> None:
    """Replace a block wholesale: clear `clear_range` (if given) then write from `start_cell`."""
    if clear_range:
        clear_values(spreadsheet_id, sheet_name, clear_range)
    if not values:
        return

    service = _get_service(write=True)
    width = max(len(r) for r in values) or 1
    start_col = "".join(ch for ch in start_cell if ch.isalpha()).upper() or "A"
    start_row = int("".join(ch for ch in start_cell if ch.isdigit()) or "1")
    end_col = _col_letter(_col_index(start_col) + width - 1)
    end_row = start_row + len(values) - 1
    rng = build_range(sheet_name, f"{start_col}{start_row}:{end_col}{end_row}")
    service.spreadsheets().values().update(
        spreadsheetId=spreadsheet_id,
        range=rng,
        valueInputOption="USER_ENTERED",
        body={"values": values},
    ).execute()


def _col_index(letters: str) -> int:
    # 'A' -> 1, 'AA' -> 27
    n = 0
    for ch in letters:
        n = n * 26 + (ord(ch) - 64)
    return n
