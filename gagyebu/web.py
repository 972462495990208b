from __future__ import annotations

from datetime import datetime

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from gagyebu.adapters import sheets
from gagyebu.config import AppConfig, load_config
from gagyebu.pipeline import aggregate, ledger
from gagyebu.pipeline.normalize import (
    LEDGER_COLUMNS,
    flatten_values,
    normalize_rows,
    parse_category_rows,
)
from gagyebu.state import BudgetState
from gagyebu.store import LocalStore
from gagyebu.utils.dates import month_tab_name, resolve_day
from gagyebu.utils.logging import log_error

sheets_bp = Blueprint("sheets", __name__, url_prefix="/api/sheets")
budget_bp = Blueprint("budget", __name__, url_prefix="/api")


class MissingSpreadsheetId(RuntimeError):
    pass


def _cfg() -> AppConfig:
    return current_app.config["GAGYEBU_CONFIG"]


def _state() -> BudgetState:
    return current_app.extensions["gagyebu_state"]


def _spreadsheet_id() -> str:
    cfg = _cfg()
    if not cfg.spreadsheet_id:
        raise MissingSpreadsheetId("SHEETS_SPREADSHEET_ID missing")
    return cfg.spreadsheet_id


def _arg(name: str, default: str = "") -> str:
    value = request.args.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _sheet_name() -> str:
    return _arg("sheetName") or month_tab_name(tz=_cfg().timezone)


def _fetch_ledger(sheet_name: str) -> tuple[list, list]:
    """(raw values incl. header, normalized data rows) of a month tab."""
    cfg = _cfg()
    values = sheets.fetch_values(_spreadsheet_id(), sheet_name, ledger.LEDGER_RANGE)
    rows = normalize_rows(values, LEDGER_COLUMNS, cfg.timezone, cfg.users, cfg.default_owner)
    return values, rows


def _json_error(message: str, status: int):
    return jsonify({"error": message}), status


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


@sheets_bp.errorhandler(Exception)
@budget_bp.errorhandler(Exception)
def _handle_error(exc: Exception):
    if isinstance(exc, HTTPException):
        return exc
    log_error(f"{request.method} {request.path} failed", exc)
    return _json_error(str(exc) or "unknown", 500)


# ── /api/sheets ───────────────────────────────────────────


@sheets_bp.get("/get")
def get_values():
    sheet_name = _arg("sheetName")
    if not sheet_name:
        return _json_error("sheetName is required", 400)
    cell_range = _arg("range")

    values = sheets.fetch_values(_spreadsheet_id(), sheet_name, cell_range)
    return jsonify({
        "sheet": sheet_name,
        "range": cell_range or "(entire sheet)",
        "values": flatten_values(values),
    })


@sheets_bp.get("/get/category")
def get_categories():
    sheet_name = _arg("sheetName")
    if not sheet_name:
        return _json_error("sheetName is required", 400)
    cell_range = _arg("range")

    values = sheets.fetch_values(_spreadsheet_id(), sheet_name, cell_range)
    return jsonify({
        "sheet": sheet_name,
        "range": cell_range or "(entire sheet)",
        "values": parse_category_rows(values),
    })


@sheets_bp.get("/get/recent")
def get_recent():
    limit = aggregate.clamp_limit(request.args.get("limit"), default=5, upper=100)
    _, rows = _fetch_ledger(_sheet_name())
    items = aggregate.recent_items(rows, limit)
    return jsonify({"items": [r.to_item() for r in items]})


@sheets_bp.get("/get/today")
def get_today():
    cfg = _cfg()
    kind = _arg("type", "both").lower()
    expense_label = _arg("expenseLabel", cfg.expense_label)
    income_label = _arg("incomeLabel", cfg.income_label)
    limit = aggregate.clamp_limit(request.args.get("limit"), default=100, upper=200)

    values, rows = _fetch_ledger(_sheet_name())
    if len(values) <= 1:
        return jsonify({"date": None, "items": []})

    day = resolve_day(_arg("date"), cfg.timezone)
    items = aggregate.day_items(rows, day, kind, expense_label, income_label, limit)
    return jsonify({
        "date": day.isoformat(),
        "count": len(items),
        "items": [r.to_item() for r in items],
        "meta": {"type": kind},
    })


@sheets_bp.get("/get/total/daily")
def get_daily_totals():
    cfg = _cfg()
    _, rows = _fetch_ledger(_sheet_name())
    daily = aggregate.daily_summary(rows, cfg.expense_label, cfg.income_label)
    return jsonify({"daily": {k: v.to_dict() for k, v in daily.items()}})


@sheets_bp.get("/get/total/month")
def get_month_totals():
    cfg = _cfg()
    ym = _arg("ym") or None
    expense_label = _arg("expenseLabel", cfg.expense_label)
    income_label = _arg("incomeLabel", cfg.income_label)

    _, rows = _fetch_ledger(_sheet_name())
    summary = aggregate.month_totals(rows, ym, expense_label, income_label, cfg.timezone)
    return jsonify(summary.to_dict())


@sheets_bp.get("/get/total/month/expense")
def get_month_expense():
    cfg = _cfg()
    sheet_name = _sheet_name()
    ym = _arg("ym") or None
    tz = _arg("tz", cfg.timezone)
    expense_label = _arg("expenseLabel", cfg.expense_label)

    _, rows = _fetch_ledger(sheet_name)
    total = aggregate.month_expense_total(rows, ym, expense_label, tz)
    return jsonify({
        "month": aggregate.month_label(ym, tz),
        "total": total,
        "meta": {"sheet": sheet_name, "tz": tz},
    })


@sheets_bp.post("/append")
def append():
    values = _json_body().get("values")
    if not isinstance(values, list) or not values:
        return _json_error("values required", 400)

    spreadsheet_id = _spreadsheet_id()
    update = sheets.append_row(spreadsheet_id, month_tab_name(tz=_cfg().timezone), values)
    return jsonify({"ok": True, "update": update})


# ── /api (state-backed) ───────────────────────────────────


def _respond(result, ok_status: int = 200, fail_status: int = 500):
    return jsonify(result.to_dict()), ok_status if result.success else fail_status


@budget_bp.get("/transactions")
def list_transactions():
    result = _state().load_transactions(_arg("month") or None)
    return _respond(result)


@budget_bp.post("/transactions")
def create_transaction():
    body = _json_body()
    try:
        tx = ledger.build_transaction_input(body, _cfg())
    except ValueError as exc:
        return _json_error(str(exc), 400)
    return _respond(_state().add_transaction(tx), ok_status=201)


@budget_bp.get("/admin/config")
def read_admin_config():
    return _respond(_state().load_admin_config())


@budget_bp.put("/admin/config")
def update_admin_config():
    try:
        changes, expected = ledger.build_admin_config_changes(_json_body())
    except ValueError as exc:
        return _json_error(str(exc), 400)

    state = _state()
    loaded = state.load_admin_config()
    if not loaded.success:
        return _respond(loaded)

    result = state.update_admin_config(expected_version=expected, **changes)
    if result.error_code == "CONFIG_VERSION_CONFLICT":
        return _respond(result, fail_status=409)
    return _respond(result)


def _view_month() -> str:
    """?month=YYYY-MM for this request only; the saved selection is left alone."""
    month = _arg("month")
    if not month:
        return _state().selected_month
    datetime.strptime(month, "%Y-%m")
    return month


@budget_bp.get("/summary")
def summary():
    try:
        month = _view_month()
    except ValueError:
        return _json_error("month must be YYYY-MM", 400)
    state = _state()
    loaded = state.load_transactions(month)
    if not loaded.success:
        return _respond(loaded)

    monthly = state.monthly_summary(month)
    return jsonify({
        "month": month,
        "monthly": monthly.to_dict() if monthly else None,
        "categories": [c.to_dict() for c in state.category_summary(month)],
        "users": [u.to_dict() for u in state.user_expense_summary(month)],
    })


@budget_bp.get("/analysis")
def analysis():
    try:
        month = _view_month()
    except ValueError:
        return _json_error("month must be YYYY-MM", 400)
    state = _state()
    for result in (state.load_transactions(month), state.load_admin_config()):
        if not result.success:
            return _respond(result)

    analysis_result = state.generate_analysis(month)
    if analysis_result is None:
        return _json_error("분석 결과 생성에 실패했습니다.", 500)
    return jsonify(analysis_result.to_dict())


def create_app(cfg: AppConfig | None = None, store: LocalStore | None = None) -> Flask:
    cfg = cfg or load_config()
    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.config["GAGYEBU_CONFIG"] = cfg
    app.extensions["gagyebu_state"] = BudgetState.create(cfg, store)
    app.register_blueprint(sheets_bp)
    app.register_blueprint(budget_bp)
    return app
