"""
가계부 데이터 접근 계층

거래 저장/조회와 관리 설정 저장/조회를 담당합니다.
SPREADSHEET_ID가 설정되어 있으면 Google Sheets를, 없으면 로컬 JSON 저장소(개발용)를 씁니다.

시트 구성:
  월별 탭 (예: 9월)   A=거래 유형 B=카테고리 C=금액 D=날짜 E=내용 F=결제수단 G=메모
  설정 탭 (설정)      A=결제수단, D:F=카테고리/ID/예산, H=월 예산, I=설정 버전
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path

import yaml

from gagyebu.adapters import sheets
from gagyebu.config import AppConfig
from gagyebu.models import AdminConfig, ApiResponse, Transaction, TransactionInput, EXPENSE, INCOME
from gagyebu.pipeline.aggregate import filter_month, to_transaction
from gagyebu.pipeline.normalize import (
    LEDGER_COLUMNS,
    determine_owner,
    normalize_rows,
    parse_any_date,
    parse_category_rows,
    parse_money,
    parse_payment_methods,
)
from gagyebu.store import ADMIN_CONFIG_KEY, TRANSACTIONS_KEY, LocalStore
from gagyebu.utils.dates import month_range, month_tab_name
from gagyebu.utils.hash import generate_id
from gagyebu.utils.logging import log, log_error


LEDGER_RANGE = "A:G"
SETTINGS_CARDS_RANGE = "A:A"
SETTINGS_CATEGORY_RANGE = "D:F"
SETTINGS_BUDGET_RANGE = "H1:I2"


class ConfigVersionConflict(RuntimeError):
    pass


# ── 기본값 ────────────────────────────────────────────────


FALLBACK_ADMIN_CONFIG = AdminConfig(
    cards=["성욱현금", "회진현금", "회진카카오체크"],
    categories=["식비", "운동", "용돈", "교통비", "쇼핑", "의료비", "기타"],
    monthly_budget=0,
    category_budgets={},
)


def load_default_admin_config(path: Path | None) -> AdminConfig:
    """admin_config.yaml을 읽어 기본 관리 설정으로 사용. 파일이 없으면 내장 기본값."""
    if path is None or not Path(path).exists():
        return replace(FALLBACK_ADMIN_CONFIG)

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return AdminConfig(
        cards=[str(c) for c in raw.get("cards", [])],
        categories=[str(c) for c in raw.get("categories", [])],
        monthly_budget=float(raw.get("monthly_budget", 0) or 0),
        category_budgets={str(k): float(v or 0) for k, v in (raw.get("category_budgets") or {}).items()},
    )


def sample_transactions(cfg: AppConfig) -> list[Transaction]:
    def tx(kind: str, description: str, day: date, amount: float, card: str, category: str) -> Transaction:
        return Transaction(
            id=generate_id(),
            type=kind,
            description=description,
            date=day,
            amount=amount,
            card=card,
            category=category,
            owner=determine_owner(card, cfg.users, cfg.default_owner),
        )

    return [
        tx(cfg.expense_label, "점심 식사", date(2025, 9, 7), 15000, "회진카카오체크", "식비"),
        tx(cfg.expense_label, "헬스장 회비", date(2025, 9, 6), 50000, "성욱현금", "운동"),
        tx(cfg.income_label, "월급", date(2025, 9, 1), 3000000, "회진현금", "기타"),
    ]


# ── 입력 검증 ──────────────────────────────────────────────


def normalize_type(value: str, cfg: AppConfig) -> str:
    """'expense'/'income' or the sheet labels themselves -> the sheet label."""
    value = (value or "").strip()
    if value in (EXPENSE, cfg.expense_label):
        return cfg.expense_label
    if value in (INCOME, cfg.income_label):
        return cfg.income_label
    raise ValueError(f"unknown transaction type: {value!r}")


def build_transaction_input(data: dict, cfg: AppConfig) -> TransactionInput:
    amount = parse_money(data.get("amount"))
    if amount is None or amount <= 0:
        raise ValueError("amount must be a positive number")
    day = parse_any_date(data.get("date"), cfg.timezone)
    if day is None:
        raise ValueError("date is not a valid calendar day")
    return TransactionInput(
        type=normalize_type(str(data.get("type", "")), cfg),
        description=str(data.get("description", "")).strip(),
        date=day,
        amount=amount,
        card=str(data.get("card", "")).strip(),
        category=str(data.get("category", "")).strip(),
    )


def _string_list(value, field_name: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return [v.strip() for v in value if v.strip()]


def _budget(value, field_name: str) -> float:
    if value is None or value == "":
        return 0
    amount = parse_money(value) if isinstance(value, (int, float, str)) else None
    if amount is None or amount < 0:
        raise ValueError(f"{field_name} must be a non-negative number")
    return amount


def build_admin_config_changes(data: dict) -> tuple[dict, int | None]:
    """관리 설정 PUT 본문 -> (AdminConfig 필드 변경분, 기대 버전). 잘못된 값은 ValueError."""
    changes: dict = {}
    if "cards" in data:
        changes["cards"] = _string_list(data["cards"], "cards")
    if "categories" in data:
        changes["categories"] = _string_list(data["categories"], "categories")
    if "monthlyBudget" in data:
        changes["monthly_budget"] = _budget(data["monthlyBudget"], "monthlyBudget")
    if "categoryBudgets" in data:
        budgets = data["categoryBudgets"]
        if budgets is None:
            budgets = {}
        if not isinstance(budgets, dict):
            raise ValueError("categoryBudgets must be an object")
        changes["category_budgets"] = {
            str(name): _budget(value, f"categoryBudgets[{name}]") for name, value in budgets.items()
        }

    version = data.get("version")
    if version is not None:
        if isinstance(version, bool) or not isinstance(version, (int, str)) or not str(version).strip().isdigit():
            raise ValueError("version must be a non-negative integer")
        version = int(version)
    return changes, version


# ── 거래 내역 ──────────────────────────────────────────────


def _store(cfg: AppConfig, store: LocalStore | None) -> LocalStore:
    return store or LocalStore(cfg.local_store_path)


def _stored_transactions(store: LocalStore) -> list[dict]:
    data = store.get(TRANSACTIONS_KEY, [])
    return data if isinstance(data, list) else []


def save_transaction(cfg: AppConfig, tx: TransactionInput, store: LocalStore | None = None) -> ApiResponse:
    try:
        transaction = Transaction(
            id=generate_id(),
            type=tx.type,
            description=tx.description,
            date=tx.date,
            amount=tx.amount,
            card=tx.card,
            category=tx.category,
            owner=determine_owner(tx.card, cfg.users, cfg.default_owner),
        )

        if cfg.use_sheets:
            tab = month_tab_name(tz=cfg.timezone)
            sheets.append_row(cfg.spreadsheet_id, tab, tx.to_sheet_values())
            log(f"appended to sheet tab {tab}: {tx.type} {tx.amount}")
        else:
            local = _store(cfg, store)
            existing = _stored_transactions(local)
            existing.append(transaction.to_dict())
            local.set(TRANSACTIONS_KEY, existing)
            log(f"saved to local store: {tx.type} {tx.amount}")

        return ApiResponse(
            success=True,
            data=transaction,
            message="거래 내역이 성공적으로 저장되었습니다.",
        )
    except Exception as exc:
        log_error("거래 내역 저장 실패", exc)
        return ApiResponse(
            success=False,
            message="거래 내역 저장에 실패했습니다.",
            error_code="SAVE_TRANSACTION_FAILED",
        )


def read_ledger_rows(cfg: AppConfig, sheet_name: str, cell_range: str = LEDGER_RANGE):
    values = sheets.fetch_values(cfg.spreadsheet_id, sheet_name, cell_range)
    return normalize_rows(values, LEDGER_COLUMNS, cfg.timezone, cfg.users, cfg.default_owner)


def _load_local_transactions(store: LocalStore) -> list[Transaction]:
    result = []
    for item in _stored_transactions(store):
        try:
            result.append(Transaction.from_dict(item))
        except (KeyError, TypeError, ValueError) as exc:
            log_error(f"skip malformed stored transaction {item!r}", exc)
    return result


def get_transactions(cfg: AppConfig, month: str | None = None, store: LocalStore | None = None) -> ApiResponse:
    try:
        if cfg.use_sheets:
            start, _ = month_range(month, cfg.timezone)
            rows = read_ledger_rows(cfg, month_tab_name(start))
            transactions = [to_transaction(r) for r in rows]
        else:
            transactions = _load_local_transactions(_store(cfg, store))

        if month:
            transactions = filter_month(transactions, month, cfg.timezone)
        return ApiResponse(success=True, data=transactions)
    except Exception as exc:
        log_error("거래 내역 조회 실패", exc)
        return ApiResponse(
            success=False,
            message="거래 내역 조회에 실패했습니다.",
            error_code="GET_TRANSACTIONS_FAILED",
        )


# ── 관리 설정 ──────────────────────────────────────────────


def load_settings(cfg: AppConfig) -> AdminConfig:
    cards = parse_payment_methods(
        sheets.fetch_values(cfg.spreadsheet_id, cfg.sheet_settings, SETTINGS_CARDS_RANGE)
    )
    category_rows = parse_category_rows(
        sheets.fetch_values(cfg.spreadsheet_id, cfg.sheet_settings, SETTINGS_CATEGORY_RANGE)
    )
    budget_block = sheets.fetch_values(cfg.spreadsheet_id, cfg.sheet_settings, SETTINGS_BUDGET_RANGE)

    monthly_budget = 0
    version = 0
    if len(budget_block) > 1 and budget_block[1]:
        monthly_budget = parse_money(budget_block[1][0]) or 0
        if len(budget_block[1]) > 1:
            version = int(parse_money(budget_block[1][1]) or 0)

    categories = [r["name"] for r in category_rows if r["name"]]
    budgets = {r["name"]: r["budget"] for r in category_rows if r["name"] and r["budget"] is not None}
    return AdminConfig(
        cards=cards,
        categories=categories,
        monthly_budget=monthly_budget,
        category_budgets=budgets,
        version=version,
    )


def _write_settings(cfg: AppConfig, config: AdminConfig) -> None:
    sid = cfg.spreadsheet_id
    tab = cfg.sheet_settings
    sheets.overwrite_values(
        sid, tab, "A1",
        [["결제수단"]] + [[c] for c in config.cards],
        clear_range=SETTINGS_CARDS_RANGE,
    )
    sheets.overwrite_values(
        sid, tab, "D1",
        [["카테고리", "ID", "예산"]] + [
            [name, idx, config.category_budgets.get(name, "")]
            for idx, name in enumerate(config.categories, start=1)
        ],
        clear_range=SETTINGS_CATEGORY_RANGE,
    )
    sheets.overwrite_values(
        sid, tab, "H1",
        [["월예산", "버전"], [config.monthly_budget, config.version]],
    )


def read_admin_config(cfg: AppConfig, store: LocalStore | None = None) -> AdminConfig:
    if cfg.use_sheets:
        return load_settings(cfg)
    stored = _store(cfg, store).get(ADMIN_CONFIG_KEY)
    if isinstance(stored, dict):
        return AdminConfig.from_dict(stored)
    return load_default_admin_config(cfg.admin_config_path)


def get_admin_config(cfg: AppConfig, store: LocalStore | None = None) -> ApiResponse:
    try:
        return ApiResponse(success=True, data=read_admin_config(cfg, store))
    except Exception as exc:
        log_error("관리 설정 조회 실패", exc)
        return ApiResponse(
            success=False,
            message="관리 설정 조회에 실패했습니다.",
            error_code="GET_CONFIG_FAILED",
        )


def save_admin_config(
    cfg: AppConfig,
    config: AdminConfig,
    expected_version: int | None = None,
    store: LocalStore | None = None,
) -> ApiResponse:
    """Overwrite the whole config. A stale `expected_version` is rejected instead of silently overwritten."""
    try:
        current = read_admin_config(cfg, store)
        if expected_version is not None and current.version != expected_version:
            raise ConfigVersionConflict(
                f"config version is {current.version}, expected {expected_version}"
            )

        saved = replace(config, version=current.version + 1)
        if cfg.use_sheets:
            _write_settings(cfg, saved)
        else:
            _store(cfg, store).set(ADMIN_CONFIG_KEY, saved.to_dict())
        log(f"admin config saved (version {saved.version})")

        return ApiResponse(
            success=True,
            data=saved,
            message="관리 설정이 성공적으로 저장되었습니다.",
        )
    except ConfigVersionConflict as exc:
        log_error("관리 설정 저장 충돌", exc)
        return ApiResponse(
            success=False,
            message="다른 곳에서 관리 설정이 변경되었습니다. 새로고침 후 다시 시도하세요.",
            error_code="CONFIG_VERSION_CONFLICT",
        )
    except Exception as exc:
        log_error("관리 설정 저장 실패", exc)
        return ApiResponse(
            success=False,
            message="관리 설정 저장에 실패했습니다.",
            error_code="SAVE_CONFIG_FAILED",
        )


def initialize_sample_data(cfg: AppConfig, store: LocalStore | None = None) -> None:
    """로컬 저장소에 예시 거래 내역과 기본 관리 설정을 채운다 (개발용)."""
    local = _store(cfg, store)
    local.set(TRANSACTIONS_KEY, [t.to_dict() for t in sample_transactions(cfg)])
    config = load_default_admin_config(cfg.admin_config_path)
    local.set(ADMIN_CONFIG_KEY, config.to_dict())
    log(f"sample data written to {local.path}")
