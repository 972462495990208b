"""가계부 도메인 모델.

시트 한 행(LedgerRow), 화면용 거래(Transaction), 관리 설정(AdminConfig),
집계 결과(DailySummary, MonthlySummary, CategorySummary, UserExpenseSummary),
분석 결과(AnalysisResult)와 서비스 응답(ApiResponse)을 정의합니다.

JSON으로 내보낼 때는 프런트엔드 계약에 맞춰 camelCase 키를 씁니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


EXPENSE = "expense"
INCOME = "income"


def _iso(d: date | None) -> str | None:
    return d.isoformat() if d else None


@dataclass
class TransactionInput:
    """입력 폼 한 건. owner/id는 저장 시점에 결정된다."""

    type: str
    description: str
    date: date
    amount: float
    card: str
    category: str

    def to_sheet_values(self) -> list:
        # ledger tab column order: A=type B=category C=amount D=date E=description F=card
        return [
            self.type,
            self.category,
            self.amount,
            self.date.isoformat(),
            self.description,
            self.card,
        ]


@dataclass
class Transaction:
    id: str
    type: str
    description: str
    date: date
    amount: float
    card: str
    category: str
    owner: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "date": _iso(self.date),
            "amount": self.amount,
            "card": self.card,
            "category": self.category,
            "owner": self.owner,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        return cls(
            id=str(data.get("id", "")),
            type=str(data.get("type", "")),
            description=str(data.get("description", "")),
            date=date.fromisoformat(str(data["date"])[:10]),
            amount=float(data.get("amount", 0)),
            card=str(data.get("card", "")),
            category=str(data.get("category", "")),
            owner=str(data.get("owner", "")),
        )


@dataclass
class LedgerRow:
    """정규화된 시트 행. 금액/날짜가 없는 행은 여기까지 오지 않는다."""

    type: str
    category: str
    description: str
    amount: float
    date: date
    card: str = ""
    note: str = ""
    owner: str = ""
    raw: list = field(default_factory=list, repr=False)

    def to_item(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "item": self.category,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "description": self.description,
            "card": self.card,
            "note": self.note,
        }


@dataclass
class AdminConfig:
    cards: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    monthly_budget: float = 0
    category_budgets: dict[str, float] = field(default_factory=dict)
    version: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "cards": list(self.cards),
            "categories": list(self.categories),
            "monthlyBudget": self.monthly_budget,
            "categoryBudgets": dict(self.category_budgets),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AdminConfig":
        budgets = data.get("categoryBudgets", data.get("category_budgets")) or {}
        return cls(
            cards=[str(c) for c in data.get("cards") or []],
            categories=[str(c) for c in data.get("categories") or []],
            monthly_budget=float(data.get("monthlyBudget", data.get("monthly_budget", 0)) or 0),
            category_budgets={str(k): float(v or 0) for k, v in budgets.items()},
            version=int(data.get("version", 0) or 0),
        )


@dataclass
class DailySummary:
    date: str
    total_income: float = 0
    total_expense: float = 0
    net_income: float = 0
    transaction_count: int = 0
    detail: list[Transaction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "totalIncome": self.total_income,
            "totalExpense": self.total_expense,
            "netIncome": self.net_income,
            "transactionCount": self.transaction_count,
            "detail": [t.to_dict() for t in self.detail],
        }


@dataclass
class MonthlySummary:
    month: str
    total_income: float
    total_expense: float
    net_income: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "totalIncome": self.total_income,
            "totalExpense": self.total_expense,
            "netIncome": self.net_income,
        }


@dataclass
class CategorySummary:
    category: str
    amount: float
    percentage: float
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "amount": self.amount,
            "percentage": self.percentage,
            "count": self.count,
        }


@dataclass
class UserExpenseSummary:
    user: str
    total_amount: float
    transaction_count: int
    category_breakdown: list[CategorySummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user,
            "totalAmount": self.total_amount,
            "transactionCount": self.transaction_count,
            "categoryBreakdown": [c.to_dict() for c in self.category_breakdown],
        }


@dataclass
class AnalysisResult:
    overspent_categories: list[str]
    saving_tips: list[str]
    budget_exceeded: float
    monthly_spending_ratio: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "overspentCategories": list(self.overspent_categories),
            "savingTips": list(self.saving_tips),
            "budgetExceeded": self.budget_exceeded,
            "monthlySpendingRatio": self.monthly_spending_ratio,
        }


@dataclass
class ApiResponse:
    success: bool
    data: Any = None
    message: str = ""
    error_code: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        if isinstance(data, list):
            data = [d.to_dict() if hasattr(d, "to_dict") else d for d in data]
        out: dict[str, Any] = {"success": self.success}
        if data is not None:
            out["data"] = data
        if self.message:
            out["message"] = self.message
        if self.error_code:
            out["errorCode"] = self.error_code
        return out
