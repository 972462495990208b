from __future__ import annotations

from typing import Iterable

from gagyebu.models import AdminConfig, AnalysisResult
from gagyebu.utils.numbers import calculate_percentage, group_by, sum_amounts


# 카테고리 예산의 120%를 넘으면 과소비로 본다
OVERSPEND_FACTOR = 1.2


def overspent_categories(expenses: list, category_budgets: dict[str, float]) -> list[str]:
    result = []
    for category, items in group_by(expenses, lambda e: e.category).items():
        budget = category_budgets.get(category) or 0
        if budget > 0 and sum_amounts(items) > budget * OVERSPEND_FACTOR:
            result.append(category)
    return result


def saving_tips(overspent: list[str], total_spent: float, monthly_budget: float) -> list[str]:
    tips = []
    if overspent:
        tips.append(f"{', '.join(overspent)} 카테고리에서 예산을 초과했습니다.")
        tips.append("다음 달에는 해당 카테고리의 지출을 줄여보세요.")
    if total_spent > monthly_budget:
        tips.append(f"이번 달 총 지출이 예산을 {total_spent - monthly_budget:,.0f}원 초과했습니다.")
    return tips


def analyze(expenses: Iterable, config: AdminConfig) -> AnalysisResult:
    """이번 달 지출(지출 유형만)과 관리 설정의 예산을 비교한다."""
    expenses = list(expenses)
    total_spent = sum_amounts(expenses)
    overspent = overspent_categories(expenses, config.category_budgets)

    ratio = 0
    if config.monthly_budget > 0:
        ratio = calculate_percentage(total_spent, config.monthly_budget)

    return AnalysisResult(
        overspent_categories=overspent,
        saving_tips=saving_tips(overspent, total_spent, config.monthly_budget),
        budget_exceeded=max(0, total_spent - config.monthly_budget),
        monthly_spending_ratio=ratio,
    )
