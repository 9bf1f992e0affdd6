"""Excel workbooks for financial reports and accounting views."""

import logging
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from tutordesk import config

logger = logging.getLogger(__name__)

TITLE_FONT = Font(bold=True, size=16)
SECTION_FONT = Font(bold=True)

GENERAL_EXPENSE_ROWS = ("rent", "utilities", "supplies", "marketing", "maintenance", "insurance", "other")


def _timestamp() -> str:
    return datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")


class SheetWriter:
    """Appends rows to the active worksheet of a workbook."""

    def __init__(self, workbook: Workbook, title: str, column_width: int):
        self.ws = workbook.active
        self.ws.title = title
        self.column_width = column_width
        self._bold_rows: list[int] = []

    def title(self, text: str, period: dict[str, Any]) -> None:
        self.ws.append([text])
        self.ws.cell(row=self.ws.max_row, column=1).font = TITLE_FONT
        self.ws.append([f"Period: {period['start']} - {period['end']}"])
        self.ws.append(["Generated:", datetime.now(UTC).isoformat()])
        self.ws.append([])

    def section(self, text: str) -> None:
        self.header([text])

    def header(self, cells: list[str]) -> None:
        self.ws.append(cells)
        self._bold_rows.append(self.ws.max_row)

    def rows(self, rows: Iterable[Iterable[Any]]) -> None:
        for row in rows:
            self.ws.append(list(row))

    def blank(self) -> None:
        self.ws.append([])

    def finish(self) -> None:
        for row in self._bold_rows:
            for cell in self.ws[row]:
                cell.font = SECTION_FONT
        for index in range(1, self.ws.max_column + 1):
            self.ws.column_dimensions[get_column_letter(index)].width = self.column_width


def _save(workbook: Workbook, file_name: str, directory: Optional[Path]) -> Path:
    path = Path(directory or config.export_dir()) / file_name
    workbook.save(path)
    logger.info("Wrote workbook %s", path)
    return path


def write_financial_report(
    report_id: int, snapshot: dict[str, Any], directory: Optional[Path] = None
) -> Path:
    """Render a financial report snapshot as a single summary sheet.

    Args:
        report_id: Persisted report ID, used in the file name
        snapshot: Report snapshot as stored on the report
        directory: Output directory (defaults to the configured export directory)

    Returns:
        Path of the written .xlsx file
    """
    revenue = snapshot["revenue"]
    expenses = snapshot["expenses"]
    general = expenses["generalExpenses"]
    students = snapshot["studentMetrics"]
    teachers = snapshot["teacherMetrics"]

    workbook = Workbook()
    sheet = SheetWriter(workbook, "Financial Summary", column_width=25)
    sheet.title("Financial Report", snapshot["period"])

    sheet.section("REVENUE")
    sheet.rows(
        [
            ("Student Payments - Total", revenue["studentPayments"]["total"]),
            ("Student Payments - Received", revenue["studentPayments"]["received"]),
            ("Student Payments - Pending", revenue["studentPayments"]["pending"]),
            ("Student Payments - Overdue", revenue["studentPayments"]["overdue"]),
            ("Other Income", revenue["otherIncome"]),
            ("Total Revenue", revenue["totalRevenue"]),
        ]
    )
    sheet.blank()

    sheet.section("EXPENSES")
    sheet.rows(
        [
            ("Teacher Payments - Total", expenses["teacherPayments"]["total"]),
            ("Teacher Payments - Paid", expenses["teacherPayments"]["paid"]),
            ("Teacher Payments - Pending", expenses["teacherPayments"]["pending"]),
        ]
    )
    sheet.rows((f"General Expenses - {name.capitalize()}", general[name]) for name in GENERAL_EXPENSE_ROWS)
    sheet.rows(
        [
            ("Total General Expenses", general["total"]),
            ("Total Expenses", expenses["totalExpenses"]),
        ]
    )
    sheet.blank()

    sheet.section("NET INCOME")
    sheet.rows(
        [
            ("Net Income", snapshot["netIncome"]),
            ("Profit Margin (%)", snapshot["profitMargin"]),
            ("Status", snapshot["profitLossStatus"]),
        ]
    )
    sheet.blank()

    sheet.section("METRICS")
    sheet.rows(
        [
            ("Total Students", students["totalStudents"]),
            ("Active Students", students["activeStudents"]),
            ("New Students", students["newStudents"]),
            ("Revenue per Student", students["revenuePerStudent"]),
            ("Total Teachers", teachers["totalTeachers"]),
            ("Active Teachers", teachers["activeTeachers"]),
            ("Total Hours Worked", teachers["totalHoursWorked"]),
            ("Average Hourly Rate", teachers["averageHourlyRate"]),
        ]
    )
    sheet.finish()
    return _save(workbook, f"financial_report_{report_id}_{_timestamp()}.xlsx", directory)


def write_student_revenue(data: dict[str, Any], directory: Optional[Path] = None) -> Path:
    """Render the student accounting view: summary block, then one row per student."""
    totals = data["totals"]
    workbook = Workbook()
    sheet = SheetWriter(workbook, "Student Revenue Report", column_width=15)
    sheet.title("Student Revenue Report", data["period"])

    sheet.section("SUMMARY")
    sheet.rows(
        [
            ("Total Students", data["studentCount"]),
            ("Total Fees", totals["totalFees"]),
            ("Total Paid", totals["totalPaid"]),
            ("Total Pending", totals["totalPending"]),
            ("Total Overdue", totals["totalOverdue"]),
            ("Total Remaining", totals["totalRemaining"]),
        ]
    )
    sheet.blank()

    sheet.section("STUDENT DETAILS")
    sheet.header(["Name", "Email", "Teacher", "Total Fee", "Paid", "Pending", "Overdue", "Remaining", "Payment Count"])
    for row in data["students"]:
        student = row["student"]
        financials = row["financials"]
        teacher = student.get("teacher")
        sheet.rows(
            [
                (
                    student["name"],
                    student["email"],
                    teacher["name"] if teacher else "N/A",
                    financials["estimatedTotalFee"],
                    financials["totalPaid"],
                    financials["totalPending"],
                    financials["totalOverdue"],
                    financials["remainingBalance"],
                    financials["paymentHistory"],
                )
            ]
        )
    sheet.finish()
    return _save(workbook, f"student_revenue_report_{_timestamp()}.xlsx", directory)


def write_teacher_expenses(data: dict[str, Any], directory: Optional[Path] = None) -> Path:
    """Render the teacher accounting view: summary block, then one row per teacher."""
    totals = data["totals"]
    workbook = Workbook()
    sheet = SheetWriter(workbook, "Teacher Expenses Report", column_width=15)
    sheet.title("Teacher Expenses Report", data["period"])

    sheet.section("SUMMARY")
    sheet.rows(
        [
            ("Total Teachers", data["teacherCount"]),
            ("Total Hours", totals["totalHours"]),
            ("Total Earnings", totals["totalEarnings"]),
            ("Total Paid", totals["totalPaid"]),
            ("Total Pending", totals["totalPending"]),
            ("Total Unpaid", totals["totalUnpaid"]),
            ("Total Deficit", totals["totalDeficit"]),
        ]
    )
    sheet.blank()

    sheet.section("TEACHER DETAILS")
    sheet.header(["Name", "Email", "Hours Worked", "Earnings", "Paid", "Pending", "Unpaid", "Status", "Time Entries"])
    sheet.rows(
        (
            row["teacher"]["name"],
            row["teacher"]["email"],
            row["hours"]["totalHours"],
            row["hours"]["totalEarnings"],
            row["payments"]["totalPaid"],
            row["payments"]["totalPending"],
            row["payments"]["unpaidEarnings"],
            "Paid Up" if row["status"]["isPaidUp"] else "Payment Due",
            row["timeEntries"],
        )
        for row in data["teachers"]
    )
    sheet.finish()
    return _save(workbook, f"teacher_expenses_report_{_timestamp()}.xlsx", directory)


def write_cash_flow(data: dict[str, Any], directory: Optional[Path] = None) -> Path:
    """Render the cash flow view: summary block, then one row per period."""
    summary = data["summary"]
    workbook = Workbook()
    sheet = SheetWriter(workbook, "Cash Flow Report", column_width=15)
    sheet.title("Cash Flow Report", data["period"])

    sheet.section("SUMMARY")
    sheet.rows(
        [
            ("Total Inflow", summary["totalInflow"]),
            ("Total Outflow", summary["totalOutflow"]),
            ("Net Cash Flow", summary["netCashFlow"]),
            ("Final Balance", summary["finalBalance"]),
        ]
    )
    sheet.blank()

    sheet.section("CASH FLOW DETAILS")
    sheet.header(
        ["Period", "Inflow", "Outflow", "Net Cash Flow", "Running Total", "Teacher Payments", "General Expenses"]
    )
    sheet.rows(
        (
            item["period"],
            item["inflow"],
            item["outflow"],
            item["netCashFlow"],
            item["runningTotal"],
            item["details"]["teacherPayments"],
            item["details"]["generalExpenses"],
        )
        for item in data["cashFlow"]
    )
    sheet.finish()
    return _save(workbook, f"cash_flow_report_{_timestamp()}.xlsx", directory)
