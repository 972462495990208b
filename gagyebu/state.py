from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from gagyebu.config import AppConfig
from gagyebu.models import (
    AdminConfig,
    AnalysisResult,
    ApiResponse,
    CategorySummary,
    MonthlySummary,
    Transaction,
    TransactionInput,
    UserExpenseSummary,
)
from gagyebu.pipeline import aggregate, ledger
from gagyebu.pipeline.analysis import analyze
from gagyebu.store import UI_STATE_KEY, LocalStore
from gagyebu.utils.dates import today_in, year_month
from gagyebu.utils.logging import log_error


@dataclass
class BudgetState:
    """Application state shared by the HTTP handlers and the CLI.

    Fields are a flat record; every mutation goes through a method so the
    selected user/month can be persisted and loads can report failures.
    """

    cfg: AppConfig
    store: LocalStore
    transactions: list[Transaction] = field(default_factory=list)
    admin_config: AdminConfig = field(default_factory=AdminConfig)
    analysis_result: AnalysisResult | None = None
    selected_user: str = ""
    selected_month: str = ""
    is_loading_transactions: bool = False
    is_loading_config: bool = False
    is_loading_analysis: bool = False

    @classmethod
    def create(cls, cfg: AppConfig, store: LocalStore | None = None) -> "BudgetState":
        state = cls(cfg=cfg, store=store or LocalStore(cfg.local_store_path))
        state.selected_user = cfg.default_owner
        state.hydrate()
        return state

    # ── persisted UI state ──

    def hydrate(self) -> None:
        saved = self.store.get(UI_STATE_KEY, {})
        if isinstance(saved, dict):
            self.selected_user = saved.get("selectedUser") or self.selected_user
            self.selected_month = saved.get("selectedMonth") or self.selected_month
        if not self.selected_month:
            self.selected_month = year_month(today_in(self.cfg.timezone))

    def _persist_ui_state(self) -> None:
        try:
            self.store.set(UI_STATE_KEY, {
                "selectedUser": self.selected_user,
                "selectedMonth": self.selected_month,
            })
        except (OSError, ValueError) as exc:
            log_error("UI 상태 저장 실패", exc)

    def set_selected_user(self, user: str) -> None:
        if self.cfg.users and user not in self.cfg.users:
            raise ValueError(f"unknown user: {user!r}")
        self.selected_user = user
        self._persist_ui_state()

    def set_selected_month(self, month: str) -> None:
        datetime.strptime(month, "%Y-%m")
        self.selected_month = month
        self._persist_ui_state()

    # ── loads / writes ──

    def add_transaction(self, tx: TransactionInput) -> ApiResponse:
        result = ledger.save_transaction(self.cfg, tx, self.store)
        if result.success:
            self.transactions = [*self.transactions, result.data]
        return result

    def load_transactions(self, month: str | None = None) -> ApiResponse:
        self.is_loading_transactions = True
        try:
            result = ledger.get_transactions(self.cfg, month, self.store)
            if result.success:
                self.transactions = result.data
            return result
        finally:
            self.is_loading_transactions = False

    def load_admin_config(self) -> ApiResponse:
        self.is_loading_config = True
        try:
            result = ledger.get_admin_config(self.cfg, self.store)
            if result.success:
                self.admin_config = result.data
            return result
        finally:
            self.is_loading_config = False

    def update_admin_config(self, expected_version: int | None = None, **changes: Any) -> ApiResponse:
        """Merge `changes` into the loaded config and save it.

        The save is rejected when the stored version moved past `expected_version`
        (defaults to the version that was loaded).
        """
        current = self.admin_config
        if expected_version is None:
            expected_version = current.version
        updated = replace(current, **changes)
        result = ledger.save_admin_config(self.cfg, updated, expected_version=expected_version, store=self.store)
        if result.success:
            self.admin_config = result.data
        return result

    def initialize_data(self) -> None:
        ledger.initialize_sample_data(self.cfg, self.store)
        self.load_transactions()
        self.load_admin_config()

    # ── computed views ──

    def _month(self, month: str | None) -> str:
        return month or self.selected_month

    def current_month_transactions(self, month: str | None = None) -> list[Transaction]:
        return aggregate.filter_month(self.transactions, self._month(month), self.cfg.timezone)

    def current_month_expenses(self, month: str | None = None) -> list[Transaction]:
        return [t for t in self.current_month_transactions(month) if t.type == self.cfg.expense_label]

    def transactions_by_user(self, user: str) -> list[Transaction]:
        return [t for t in self.current_month_transactions() if t.owner == user]

    def monthly_summary(self, month: str | None = None) -> MonthlySummary | None:
        if not self.current_month_transactions(month):
            return None
        return aggregate.month_totals(
            self.transactions,
            self._month(month),
            self.cfg.expense_label,
            self.cfg.income_label,
            self.cfg.timezone,
        )

    def category_summary(self, month: str | None = None) -> list[CategorySummary]:
        return aggregate.category_summary(
            self.transactions, self._month(month), self.cfg.expense_label, self.cfg.timezone
        )

    def user_expense_summary(self, month: str | None = None) -> list[UserExpenseSummary]:
        return aggregate.user_expense_summary(
            self.transactions, self._month(month), self.cfg.expense_label, self.cfg.timezone
        )

    def generate_analysis(self, month: str | None = None) -> AnalysisResult | None:
        self.is_loading_analysis = True
        try:
            self.analysis_result = analyze(self.current_month_expenses(month), self.admin_config)
        except Exception as exc:
            log_error("분석 결과 생성 실패", exc)
        finally:
            self.is_loading_analysis = False
        return self.analysis_result
