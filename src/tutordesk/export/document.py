"""PDF rendering of financial report snapshots."""

import logging
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas

from tutordesk import config
from tutordesk.export.spreadsheet import GENERAL_EXPENSE_ROWS

logger = logging.getLogger(__name__)

LEFT_MARGIN = 2 * cm
TOP_MARGIN = 2 * cm
BOTTOM_MARGIN = 2 * cm


def _amount(value: Any) -> str:
    return f"{float(value):,.2f}"


class PageWriter:
    """Writes lines top to bottom, starting a new page when the current one is full."""

    def __init__(self, path: Path):
        self.canvas = canvas.Canvas(str(path), pagesize=A4)
        self.width, self.height = A4
        self.y = self.height - TOP_MARGIN

    def _advance(self, step: float) -> None:
        self.y -= step
        if self.y < BOTTOM_MARGIN:
            self.canvas.showPage()
            self.y = self.height - TOP_MARGIN

    def centered(self, text: str, size: int, bold: bool = False) -> None:
        self.canvas.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        self.canvas.drawCentredString(self.width / 2, self.y, text)
        self._advance(size + 6)

    def line(self, text: str, size: int = 12, bold: bool = False, color=colors.black) -> None:
        self.canvas.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        self.canvas.setFillColor(color)
        self.canvas.drawString(LEFT_MARGIN, self.y, text)
        self.canvas.setFillColor(colors.black)
        self._advance(size + 6)

    def gap(self) -> None:
        self._advance(12)

    def save(self) -> None:
        self.canvas.showPage()
        self.canvas.save()


def write_financial_report(
    report_id: int,
    snapshot: dict[str, Any],
    directory: Optional[Path] = None,
    currency: Optional[str] = None,
) -> Path:
    """Render a financial report snapshot as a one-section-per-block PDF.

    Args:
        report_id: Persisted report ID, used in the file name
        snapshot: Report snapshot as stored on the report
        directory: Output directory (defaults to the configured export directory)
        currency: Label printed before amounts (defaults to the configured currency)

    Returns:
        Path of the written .pdf file
    """
    currency = currency or config.default_currency()
    stamp = datetime.now(UTC)
    path = Path(directory or config.export_dir()) / (
        f"financial_report_{report_id}_{stamp.strftime('%Y%m%d%H%M%S%f')}.pdf"
    )

    revenue = snapshot["revenue"]
    expenses = snapshot["expenses"]
    general = expenses["generalExpenses"]
    students = snapshot["studentMetrics"]
    teachers = snapshot["teacherMetrics"]

    def money(label: str, value: Any) -> str:
        return f"{label}: {currency} {_amount(value)}"

    page = PageWriter(path)
    page.centered("Financial Report", 20, bold=True)
    page.centered(f"Period: {snapshot['period']['start']} - {snapshot['period']['end']}", 12)
    page.centered(f"Generated: {stamp.isoformat()}", 12)
    page.gap()

    page.line("REVENUE", 16, bold=True)
    page.line(money("Student Payments - Total", revenue["studentPayments"]["total"]))
    page.line(money("Student Payments - Received", revenue["studentPayments"]["received"]))
    page.line(money("Student Payments - Pending", revenue["studentPayments"]["pending"]))
    page.line(money("Student Payments - Overdue", revenue["studentPayments"]["overdue"]))
    page.line(money("Other Income", revenue["otherIncome"]))
    page.line(money("Total Revenue", revenue["totalRevenue"]), 14, bold=True)
    page.gap()

    page.line("EXPENSES", 16, bold=True)
    page.line(money("Teacher Payments - Total", expenses["teacherPayments"]["total"]))
    page.line(money("Teacher Payments - Paid", expenses["teacherPayments"]["paid"]))
    page.line(money("Teacher Payments - Pending", expenses["teacherPayments"]["pending"]))
    for name in GENERAL_EXPENSE_ROWS:
        page.line(money(f"General Expenses - {name.capitalize()}", general[name]))
    page.line(money("Total Expenses", expenses["totalExpenses"]), 14, bold=True)
    page.gap()

    page.line("NET INCOME", 16, bold=True)
    net_color = colors.green if snapshot["netIncome"] >= 0 else colors.red
    page.line(money("Net Income", snapshot["netIncome"]), 14, color=net_color)
    page.line(f"Profit Margin: {float(snapshot['profitMargin']):.2f}%", 14)
    page.line(f"Status: {snapshot['profitLossStatus'].upper()}", 14)
    page.gap()

    page.line("METRICS", 16, bold=True)
    page.line("Student Metrics:")
    page.line(f"  Total Students: {students['totalStudents']}")
    page.line(f"  Active Students: {students['activeStudents']}")
    page.line(f"  New Students: {students['newStudents']}")
    page.line(money("  Revenue per Student", students["revenuePerStudent"]))
    page.gap()
    page.line("Teacher Metrics:")
    page.line(f"  Total Teachers: {teachers['totalTeachers']}")
    page.line(f"  Active Teachers: {teachers['activeTeachers']}")
    page.line(f"  Total Hours Worked: {float(teachers['totalHoursWorked']):.1f}")
    page.line(money("  Average Hourly Rate", teachers["averageHourlyRate"]))
    page.save()

    logger.info("Wrote report document %s", path)
    return path
