import logging

from openpyxl import Workbook

from domain.reports import Report

logger = logging.getLogger(__name__)


def report_to_xlsx(report: Report, filepath: str) -> None:
    """Export report view to XLSX: statement, category split and yearly sheets."""
    wb = Workbook()
    currency = report.currency
    ws = wb.active
    if ws is not None:
        ws.title = "Report"
        ws.append([report.statement_title, "", "", "", ""])
        ws.append(["Date", "Type", "Category", "Description", f"Amount ({currency})"])
        for transaction in report.sorted_by_date():
            ws.append(
                [
                    transaction.date.isoformat(),
                    "Expense" if transaction.is_expense else "Income",
                    transaction.category,
                    transaction.description,
                    round(transaction.signed_amount(), 2),
                ]
            )
        ws.append(["TOTAL INCOME", "", "", "", round(report.total_income(), 2)])
        ws.append(["TOTAL EXPENSE", "", "", "", round(report.total_expense(), 2)])
        ws.append(["NET", "", "", "", round(report.net_amount(), 2)])

    bycat_ws = wb.create_sheet(title="By Category", index=1)
    for title, is_expense in (("Expenses", True), ("Income", False)):
        bycat_ws.append([title])
        bycat_ws.append(["Category", f"Amount ({currency})", "Share (%)"])
        for row in report.category_breakdown(is_expense):
            bycat_ws.append([row.category, round(row.amount, 2), round(row.percent, 1)])
        bycat_ws.append([])

    summary_year, monthly_rows = report.monthly_income_expense_rows()
    summary_ws = wb.create_sheet("Yearly Report")
    summary_ws.append([f"Month ({summary_year})", f"Income ({currency})", f"Expense ({currency})"])
    total_income = 0.0
    total_expense = 0.0
    for month_label, income, expense in monthly_rows:
        total_income += income
        total_expense += expense
        summary_ws.append([month_label, round(income, 2), round(expense, 2)])
    summary_ws.append(["TOTAL", round(total_income, 2), round(total_expense, 2)])

    try:
        wb.save(filepath)
    finally:
        wb.close()
    logger.debug("Report exported to %s", filepath)
