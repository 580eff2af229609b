import logging
import os

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import SimpleDocTemplate, Spacer, Table, TableStyle

from domain.reports import Report

logger = logging.getLogger(__name__)

CJK_FONT = "STSong-Light"
TTF_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "DejaVuSans.ttf",
)


def _needs_cjk(rows: list[list[str]]) -> bool:
    return any(ord(ch) > 0x2E7F for row in rows for cell in row for ch in str(cell))


def _register_font(rows: list[list[str]]) -> str:
    """Pick a font able to draw the table text.

    CJK text uses reportlab's built-in CID font; otherwise DejaVuSans is tried
    before falling back to Helvetica.
    """
    if _needs_cjk(rows):
        try:
            pdfmetrics.registerFont(UnicodeCIDFont(CJK_FONT))
            return CJK_FONT
        except (KeyError, ValueError):
            logger.debug("Failed to register CID font %s", CJK_FONT, exc_info=True)
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot")
    candidates = list(TTF_CANDIDATES)
    if windir:
        candidates.insert(0, os.path.join(windir, "Fonts", "DejaVuSans.ttf"))
        candidates.append(os.path.join(windir, "Fonts", "Arial.ttf"))
    for path in candidates:
        if not os.path.exists(path):
            continue
        name = os.path.splitext(os.path.basename(path))[0]
        try:
            pdfmetrics.registerFont(TTFont(name, path))
            return name
        except Exception:
            logger.debug("Failed to register font %s at %s", name, path, exc_info=True)
    logger.warning("No suitable TTF font found; falling back to Helvetica")
    return "Helvetica"


def _table(data: list[list[str]], widths: list[float], font_name: str, right_from: int) -> Table:
    table = Table(data, colWidths=widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("FONT", (0, 0), (-1, -1), font_name),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("ALIGN", (right_from, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("LEFTPADDING", (0, 0), (-1, -1), 6),
                ("RIGHTPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    return table


def report_to_pdf(report: Report, filepath: str) -> None:
    """Export report as PDF tables: statement, category split, monthly totals."""
    currency = report.currency
    statement = [["Date", "Type", "Category", "Description", f"Amount ({currency})"]]
    for transaction in report.sorted_by_date():
        statement.append(
            [
                transaction.date.isoformat(),
                "Expense" if transaction.is_expense else "Income",
                transaction.category,
                transaction.description,
                f"{transaction.signed_amount():.2f}",
            ]
        )
    statement.append(["TOTAL INCOME", "", "", "", f"{report.total_income():.2f}"])
    statement.append(["TOTAL EXPENSE", "", "", "", f"{report.total_expense():.2f}"])
    statement.append(["NET", "", "", "", f"{report.net_amount():.2f}"])

    categories = [["Expense category", f"Amount ({currency})", "Share"]]
    for row in report.category_breakdown(is_expense=True):
        categories.append([row.category, f"{row.amount:.2f}", f"{row.percent:.1f}%"])

    summary_year, monthly_rows = report.monthly_income_expense_rows()
    summary = [[f"Month ({summary_year})", f"Income ({currency})", f"Expense ({currency})"]]
    for month_label, income, expense in monthly_rows:
        summary.append([month_label, f"{income:.2f}", f"{expense:.2f}"])

    if os.path.dirname(filepath):
        os.makedirs(os.path.dirname(filepath), exist_ok=True)

    doc = SimpleDocTemplate(
        filepath,
        pagesize=A4,
        leftMargin=30,
        rightMargin=30,
        topMargin=30,
        bottomMargin=30,
        title=report.statement_title,
    )
    width = A4[0] - 60
    font_name = _register_font(statement + categories)
    elems = [
        _table(statement, [width * r for r in (0.15, 0.12, 0.2, 0.35, 0.18)], font_name, 4),
        Spacer(1, 14),
        _table(categories, [width * r for r in (0.5, 0.3, 0.2)], font_name, 1),
        Spacer(1, 14),
        _table(summary, [width * r for r in (0.3, 0.35, 0.35)], font_name, 1),
    ]
    doc.build(elems)
