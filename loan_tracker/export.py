"""Export helpers for repayment schedules.

Schedules can be written as JSON or CSV for further processing, or rendered
into a paginated PDF statement with matplotlib: a header block describing the
loan, a disclaimer line and the schedule table, one row per payment.
"""

from __future__ import annotations

import csv
import json
import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Sequence

from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from .data_models import Loan, ScheduleEntry
from .utils import format_money

logger = logging.getLogger(__name__)

BRAND = "LoanManager"
DISCLAIMER = (
    "Disclaimer: These calculations are estimates only. Actual bank calculations "
    "may vary due to different interest rate computation methods."
)
TABLE_HEADERS = ["Payment Date", "Amount", "Principal", "Interest", "Remaining Balance", "Status"]
FIRST_PAGE_ROWS = 24
ROWS_PER_PAGE = 36
HEADER_COLOR = "#4f46e5"  # indigo-600


def pdf_filename(loan: Loan) -> str:
    """File name used for downloads, e.g. ``Home_Loan_repayment_schedule.pdf``."""
    stem = re.sub(r"\s+", "_", loan.name)
    return f"{stem}_repayment_schedule.pdf"


def schedule_table_rows(schedule: Sequence[ScheduleEntry]) -> List[List[str]]:
    """Format schedule entries as the text rows of the statement table."""
    return [
        [
            entry.payment_date.strftime("%b %d, %Y"),
            format_money(entry.amount),
            format_money(entry.principal_portion),
            format_money(entry.interest_portion),
            format_money(entry.remaining_balance),
            entry.status.capitalize(),
        ]
        for entry in schedule
    ]


def _header_lines(loan: Loan) -> List[str]:
    return [
        f"Loan Name: {loan.name}",
        f"Principal Amount: {format_money(loan.principal)}",
        f"Interest Rate: {loan.annual_rate}%",
        f"Term: {loan.term} months",
        f"Monthly Payment: {format_money(loan.monthly_installment)}",
    ]


def _draw_table(fig: Figure, rows: List[List[str]], top: float) -> None:
    ax = fig.add_axes([0.06, 0.06, 0.88, top - 0.06])
    ax.axis("off")
    tbl = ax.table(cellText=rows or [[""] * len(TABLE_HEADERS)], colLabels=TABLE_HEADERS, loc="upper center")
    tbl.auto_set_font_size(False)
    tbl.set_fontsize(8)
    tbl.scale(1, 1.25)
    for col in range(len(TABLE_HEADERS)):
        cell = tbl[0, col]
        cell.set_facecolor(HEADER_COLOR)
        cell.get_text().set_color("white")


def export_schedule_pdf(loan: Loan, schedule: Sequence[ScheduleEntry]) -> bytes:
    """Render ``schedule`` into a PDF statement and return its bytes.

    The first page carries the brand, the loan details and the disclaimer
    followed by the start of the table; the remaining rows continue on
    further pages. Every page is numbered at the bottom.
    """
    rows = schedule_table_rows(schedule)
    chunks = [rows[:FIRST_PAGE_ROWS]]
    for start in range(FIRST_PAGE_ROWS, len(rows), ROWS_PER_PAGE):
        chunks.append(rows[start:start + ROWS_PER_PAGE])

    buf = BytesIO()
    with PdfPages(buf, metadata={"Title": f"{loan.name} repayment schedule", "Creator": BRAND}) as pdf:
        for page_number, chunk in enumerate(chunks, start=1):
            fig = Figure(figsize=(8.27, 11.69))  # A4
            top = 0.94
            if page_number == 1:
                fig.text(0.06, 0.95, BRAND, fontsize=20, weight="bold", color=HEADER_COLOR, va="top")
                y = 0.90
                for line in _header_lines(loan):
                    fig.text(0.06, y, line, fontsize=11, va="top")
                    y -= 0.025
                fig.text(0.06, y - 0.01, DISCLAIMER, fontsize=8, color="0.4", va="top", wrap=True)
                top = y - 0.05
            _draw_table(fig, chunk, top)
            fig.text(0.5, 0.02, f"Page {page_number}", fontsize=9, ha="center")
            pdf.savefig(fig)
    logger.debug("Rendered %d schedule rows for loan %s into %d pages", len(rows), loan.id, len(chunks))
    return buf.getvalue()


def write_schedule_pdf(path: Path, loan: Loan, schedule: Sequence[ScheduleEntry]) -> None:
    path.write_bytes(export_schedule_pdf(loan, schedule))
    logger.info("Schedule for loan %s exported to %s", loan.id or loan.name, path)


def loan_to_dict(loan: Loan) -> Dict[str, Any]:
    return {
        "id": loan.id,
        "name": loan.name,
        "type": loan.loan_type,
        "status": loan.status,
        "amount": float(loan.principal),
        "interest_rate": float(loan.annual_rate),
        "term": loan.term,
        "monthly_installment": float(loan.monthly_installment),
        "start_date": loan.start_date.isoformat() if loan.start_date else None,
        "first_payment_date": loan.first_payment_date.isoformat() if loan.first_payment_date else None,
    }


def serialize_schedule(schedule: Sequence[ScheduleEntry]) -> List[Dict[str, Any]]:
    """Convert schedule entries into JSON-serialisable dictionaries."""
    return [
        {
            "period": e.period,
            "date": e.payment_date.isoformat(),
            "amount": float(e.amount),
            "principal": float(e.principal_portion),
            "interest": float(e.interest_portion),
            "remaining_balance": float(e.remaining_balance),
            "status": e.status,
        }
        for e in schedule
    ]


def export_to_json(path: Path, loan: Loan, schedule: Sequence[ScheduleEntry], summary: Dict[str, Any]) -> None:
    """Export loan details, summary and schedule to a JSON file."""
    data = {"loan": loan_to_dict(loan), "summary": summary, "schedule": serialize_schedule(schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.info("Schedule for loan %s exported to %s", loan.id or loan.name, path)


def export_to_csv(path: Path, schedule: Sequence[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Period",
        "Payment_Date",
        "Amount",
        "Principal",
        "Interest",
        "Remaining_Balance",
        "Status",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.period,
                    e.payment_date.isoformat(),
                    float(e.amount),
                    float(e.principal_portion),
                    float(e.interest_portion),
                    float(e.remaining_balance),
                    e.status,
                ]
            )
    logger.info("Schedule exported to %s", path)
