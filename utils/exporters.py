import logging
import os

from domain.reports import Report

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "xlsx", "pdf")


def export_report(report: Report, filepath: str, fmt: str = "csv") -> None:
    fmt = (fmt or "csv").lower()
    if os.path.dirname(filepath):
        os.makedirs(os.path.dirname(filepath), exist_ok=True)
    try:
        if fmt == "csv":
            from utils.csv_utils import report_to_csv

            report_to_csv(report, filepath)
        elif fmt in ("xlsx", "xls"):
            from utils.excel_utils import report_to_xlsx

            report_to_xlsx(report, filepath)
        elif fmt == "pdf":
            from utils.pdf_utils import report_to_pdf

            report_to_pdf(report, filepath)
        else:
            raise ValueError(f"Unsupported export format: {fmt}")
    except Exception:
        logger.exception("Failed to export report to %s (%s)", filepath, fmt)
        raise
