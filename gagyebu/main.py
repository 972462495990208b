"""
가계부 CLI

사용법:
  python -m gagyebu.main serve [--host 0.0.0.0 --port 5000]   # HTTP API 서버
  python -m gagyebu.main summary [--month 2025-09]            # 월별 요약 출력
  python -m gagyebu.main analyze [--month 2025-09]            # 예산 대비 분석
  python -m gagyebu.main seed                                 # 로컬 저장소에 예시 데이터 (개발용)
  python -m gagyebu.main export [--month 2025-09] [--out x.xlsx]  # XLSX 리포트
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from gagyebu.config import AppConfig, load_config
from gagyebu.pipeline import ledger
from gagyebu.state import BudgetState
from gagyebu.utils.logging import log
from gagyebu.utils.numbers import format_currency


def _load_state(cfg: AppConfig, month: str | None) -> BudgetState | None:
    state = BudgetState.create(cfg)
    if month:
        state.set_selected_month(month)
    for result in (state.load_transactions(state.selected_month), state.load_admin_config()):
        if not result.success:
            print(f"ERROR: {result.message} ({result.error_code})")
            return None
    return state


# ── summary ───────────────────────────────────────────────


def summary(state: BudgetState) -> None:
    print(f"=== {state.selected_month} 가계부 요약 ===\n")

    monthly = state.monthly_summary()
    if monthly is None:
        print("거래 내역 없음")
        return

    print(f"총 입금: {format_currency(monthly.total_income):>14}")
    print(f"총 지출: {format_currency(monthly.total_expense):>14}")
    print(f"순수익:  {format_currency(monthly.net_income):>14}\n")

    print("카테고리별 지출:")
    for c in state.category_summary():
        print(f"  {c.category:10s} {format_currency(c.amount):>12}  {c.percentage:6.2f}%  ({c.count}건)")

    print("\n사용자별 지출:")
    for u in state.user_expense_summary():
        print(f"  {u.user}: {format_currency(u.total_amount)} ({u.transaction_count}건)")
        for c in u.category_breakdown:
            print(f"    {c.category:10s} {format_currency(c.amount):>12}  {c.percentage:6.2f}%")


# ── analyze ───────────────────────────────────────────────


def analyze(state: BudgetState) -> bool:
    result = state.generate_analysis()
    if result is None:
        print("ERROR: 분석 결과 생성에 실패했습니다.")
        return False

    print(f"=== {state.selected_month} 지출 분석 ===\n")
    print(f"월 예산:       {format_currency(state.admin_config.monthly_budget)}")
    print(f"예산 대비:     {result.monthly_spending_ratio:.2f}%")
    print(f"초과 금액:     {format_currency(result.budget_exceeded)}")
    if result.overspent_categories:
        print(f"초과 카테고리: {', '.join(result.overspent_categories)}")
    for tip in result.saving_tips:
        print(f"  - {tip}")
    return True


# ── export (XLSX) ─────────────────────────────────────────


def export(state: BudgetState, out_path: Path) -> Path:
    """월 요약/카테고리/거래 내역을 XLSX로 저장"""
    import openpyxl
    from openpyxl.styles import Font, PatternFill

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="263238", end_color="263238", fill_type="solid")

    def _header(ws, labels: list[str]) -> None:
        ws.append(labels)
        for cell in ws[ws.max_row]:
            cell.font = header_font
            cell.fill = header_fill

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "요약"
    _header(ws, ["월", "총 입금", "총 지출", "순수익"])
    monthly = state.monthly_summary()
    if monthly:
        ws.append([monthly.month, monthly.total_income, monthly.total_expense, monthly.net_income])
        for cell in ws[ws.max_row][1:]:
            cell.number_format = "#,##0"

    ws_cat = wb.create_sheet("카테고리")
    _header(ws_cat, ["카테고리", "금액", "비율(%)", "건수"])
    for c in state.category_summary():
        ws_cat.append([c.category, c.amount, c.percentage, c.count])
        ws_cat.cell(row=ws_cat.max_row, column=2).number_format = "#,##0"

    ws_tx = wb.create_sheet("거래 내역")
    _header(ws_tx, ["날짜", "유형", "카테고리", "내용", "금액", "결제수단", "사용자"])
    for t in sorted(state.current_month_transactions(), key=lambda t: t.date):
        ws_tx.append([t.date.isoformat(), t.type, t.category, t.description, t.amount, t.card, t.owner])
        ws_tx.cell(row=ws_tx.max_row, column=5).number_format = "#,##0"

    for sheet, widths in ((ws, [10, 14, 14, 14]), (ws_cat, [14, 14, 10, 8]),
                          (ws_tx, [12, 8, 12, 24, 12, 16, 8])):
        for idx, width in enumerate(widths):
            sheet.column_dimensions[chr(65 + idx)].width = width

    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(out_path)
    log(f"export ok: {out_path}")
    return out_path


# ── CLI ───────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="가계부 (Google Sheets 기반)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
commands:
  serve      HTTP API 서버 실행
  summary    월별 요약
  analyze    예산 대비 지출 분석
  seed       로컬 저장소에 예시 데이터 생성 (SPREADSHEET_ID 미설정 시)
  export     월별 XLSX 리포트
        """,
    )
    parser.add_argument("command", choices=["serve", "summary", "analyze", "seed", "export"])
    parser.add_argument("--month", help="YYYY-MM (기본: 이번 달)")
    parser.add_argument("--out", type=Path, help="export 출력 경로")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=5000)
    parser.add_argument("--debug", action="store_true")

    args = parser.parse_args(argv)
    cfg = load_config()

    if args.command == "serve":
        from gagyebu.web import create_app

        log(f"serve on {args.host}:{args.port} ({'sheets' if cfg.use_sheets else 'local store'})")
        create_app(cfg).run(host=args.host, port=args.port, debug=args.debug)
        return 0

    if args.command == "seed":
        if cfg.use_sheets:
            print("ERROR: seed는 로컬 저장소 전용입니다 (SPREADSHEET_ID 미설정 시)")
            return 1
        try:
            ledger.initialize_sample_data(cfg)
        except (OSError, ValueError) as exc:
            print(f"ERROR: 로컬 저장소에 쓸 수 없습니다: {exc}")
            return 1
        return 0

    try:
        state = _load_state(cfg, args.month)
    except ValueError:
        print(f"ERROR: --month 형식은 YYYY-MM 입니다: {args.month}")
        return 1
    if state is None:
        return 1

    if args.command == "summary":
        summary(state)
        return 0

    if args.command == "analyze":
        return 0 if analyze(state) else 1

    if args.command == "export":
        out = args.out or cfg.data_dir / "exports" / f"gagyebu_{state.selected_month}.xlsx"
        export(state, out)
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
