"""Financial report snapshots and file exports."""

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from tutordesk.database.base import Database
from tutordesk.domain.accounting import AccountingService, aggregation, profit_loss_status
from tutordesk.domain.audit import AuditTrail, paginate
from tutordesk.domain.entities import (
    EXPENSE_APPROVED_FILTER,
    AuditTarget,
    FinancialReport,
    PaymentStatus,
    ReportType,
    Role,
    TeacherPaymentStatus,
    UserStatus,
)
from tutordesk.domain.errors import NotFoundError, ValidationError, not_found
from tutordesk.export import document, spreadsheet
from tutordesk.utils.money import ZERO, percentage, round_money, to_float

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("json", "excel", "pdf")
VIEW_FORMATS = ("json", "excel")


def _check_format(fmt: str, allowed: tuple[str, ...]) -> str:
    fmt = (fmt or "json").lower()
    if fmt not in allowed:
        raise ValidationError(f"Invalid format '{fmt}'. Must be one of: {', '.join(allowed)}")
    return fmt


class ReportingService:
    """Builds, persists and exports financial reports.

    A report is a point-in-time snapshot: it is computed once, stored, and
    afterwards only its archived flag changes.
    """

    def __init__(
        self,
        db: Database,
        audit: Optional[AuditTrail] = None,
        export_dir: Optional[Path] = None,
    ):
        """Initialize reporting service.

        Args:
            db: Database instance
            audit: Optional audit trail
            export_dir: Directory for rendered files (defaults to the configured export directory)
        """
        self.db = db
        self.audit = audit
        self.export_dir = export_dir
        self.accounting = AccountingService(db)

    def build_snapshot(self, start_date: date, end_date: date, today: Optional[date] = None) -> dict[str, Any]:
        """Compute the report body for a date range without persisting it.

        Student payments and teacher payments are selected by payment date,
        general expenses by expense date with the "approved" status filter.
        Total expenses are paid teacher payments plus general expenses.
        """
        today = today or date.today()

        received = self.db.summarize_payments(start_date, end_date, status=PaymentStatus.COMPLETED)["total"]
        pending = self.db.summarize_payments(start_date, end_date, status=PaymentStatus.PENDING)["total"]
        by_student = self.db.get_payment_totals_by_student(start_date, end_date, today)
        overdue = sum((row["overdue"] for row in by_student.values()), ZERO)
        total_revenue = received

        teacher_paid = self.db.summarize_teacher_payments(
            start_date, end_date, status=TeacherPaymentStatus.PAID
        )["total"]
        teacher_pending = sum(
            (
                self.db.summarize_teacher_payments(start_date, end_date, status=status)["total"]
                for status in (TeacherPaymentStatus.PENDING, TeacherPaymentStatus.APPROVED)
            ),
            ZERO,
        )

        general: dict[str, Decimal] = {name: ZERO for name in spreadsheet.GENERAL_EXPENSE_ROWS}
        for row in self.db.get_expenses_by_category(
            start_date=start_date, end_date=end_date, status=EXPENSE_APPROVED_FILTER
        ):
            name = row["category"] if row["category"] in general else "other"
            general[name] += row["total"]
        general_total = sum(general.values(), ZERO)
        total_expenses = teacher_paid + general_total

        net_income = total_revenue - total_expenses
        margin = percentage(net_income, total_revenue) if total_revenue > 0 else 0.0

        student_stats = self.db.get_student_stats()
        active_students = student_stats["active"]
        teachers = self.db.list_users(role=Role.TEACHER)
        worked = self.db.get_time_entry_totals_by_teacher(start_date, end_date)
        hours = sum((row["total_hours"] for row in worked.values()), ZERO)
        earnings = sum((row["total_earnings"] for row in worked.values()), ZERO)

        return {
            "period": {"start": start_date.isoformat(), "end": end_date.isoformat()},
            "revenue": {
                "studentPayments": {
                    "total": to_float(received + pending),
                    "received": to_float(received),
                    "pending": to_float(pending),
                    "overdue": to_float(overdue),
                },
                "otherIncome": 0.0,
                "totalRevenue": to_float(total_revenue),
            },
            "expenses": {
                "teacherPayments": {
                    "total": to_float(teacher_paid + teacher_pending),
                    "paid": to_float(teacher_paid),
                    "pending": to_float(teacher_pending),
                },
                "generalExpenses": dict(
                    {name: to_float(value) for name, value in general.items()}, total=to_float(general_total)
                ),
                "totalExpenses": to_float(total_expenses),
            },
            "netIncome": to_float(net_income),
            "profitMargin": margin,
            "profitLossStatus": profit_loss_status(net_income),
            "studentMetrics": {
                "totalStudents": student_stats["total"],
                "activeStudents": active_students,
                "newStudents": self.db.count_new_students(start_date, end_date),
                "revenuePerStudent": to_float(received / active_students) if active_students else 0.0,
            },
            "teacherMetrics": {
                "totalTeachers": len(teachers),
                "activeTeachers": sum(1 for t in teachers if t.status == UserStatus.APPROVED),
                "totalHoursWorked": float(hours),
                "averageHourlyRate": to_float(earnings / hours) if hours else 0.0,
            },
        }

    @aggregation("financial report", verb="generate")
    def generate_financial_report(
        self,
        start_date: date,
        end_date: date,
        generated_by: Optional[int] = None,
        report_type: "str | ReportType" = ReportType.COMPREHENSIVE,
        fmt: str = "json",
        today: Optional[date] = None,
    ) -> dict[str, Any]:
        """Build, persist and optionally render a financial report.

        Args:
            start_date: Period start (inclusive)
            end_date: Period end (inclusive)
            generated_by: Acting user ID
            report_type: comprehensive, revenue, expenses or profit_loss
            fmt: json, excel or pdf
            today: Reference date for overdue checks

        Returns:
            Dict with ``report`` (FinancialReport), ``file_path`` (None for json) and ``format``

        Raises:
            ValidationError: If the format, report type or range is invalid
            AggregationError: If a database query fails
        """
        fmt = _check_format(fmt, REPORT_FORMATS)
        try:
            report_type = ReportType(report_type)
        except ValueError as e:
            raise ValidationError(f"Invalid report type '{report_type}'") from e
        if start_date > end_date:
            raise ValidationError("Start date must be on or before end date")

        snapshot = self.build_snapshot(start_date, end_date, today)
        report_id = self.db.create_financial_report(
            report_type=report_type.value,
            period_start=start_date,
            period_end=end_date,
            generated_by=generated_by,
            total_revenue=round_money(snapshot["revenue"]["totalRevenue"]),
            total_expenses=round_money(snapshot["expenses"]["totalExpenses"]),
            net_income=round_money(snapshot["netIncome"]),
            profit_margin=round_money(snapshot["profitMargin"]),
            profit_loss_status=snapshot["profitLossStatus"],
            snapshot=snapshot,
        )
        report = self.require_report(report_id)
        logger.info("Generated %s report %s for %s..%s", report_type.value, report_id, start_date, end_date)

        file_path = None
        if fmt == "excel":
            file_path = spreadsheet.write_financial_report(report_id, snapshot, self.export_dir)
        elif fmt == "pdf":
            file_path = document.write_financial_report(report_id, snapshot, self.export_dir)

        if self.audit:
            self.audit.record(
                "report_generated",
                AuditTarget.REPORT,
                report_id,
                user_id=generated_by,
                new={"report_type": report_type, "period_start": start_date, "period_end": end_date, "format": fmt},
            )
        return {"report": report, "file_path": str(file_path) if file_path else None, "format": fmt}

    def generate_student_revenue_report(self, start_date: date, end_date: date, fmt: str = "json") -> dict[str, Any]:
        """Student accounting view, optionally written to a workbook."""
        fmt = _check_format(fmt, VIEW_FORMATS)
        data = self.accounting.get_student_accounting_data(start_date, end_date)
        file_path = spreadsheet.write_student_revenue(data, self.export_dir) if fmt == "excel" else None
        return {"data": data, "file_path": str(file_path) if file_path else None, "format": fmt}

    def generate_teacher_expenses_report(self, start_date: date, end_date: date, fmt: str = "json") -> dict[str, Any]:
        """Teacher accounting view, optionally written to a workbook."""
        fmt = _check_format(fmt, VIEW_FORMATS)
        data = self.accounting.get_teacher_accounting_data(start_date, end_date)
        file_path = spreadsheet.write_teacher_expenses(data, self.export_dir) if fmt == "excel" else None
        return {"data": data, "file_path": str(file_path) if file_path else None, "format": fmt}

    def generate_cash_flow_report(
        self, start_date: date, end_date: date, period: str = "monthly", fmt: str = "json"
    ) -> dict[str, Any]:
        """Cash flow view, optionally written to a workbook."""
        fmt = _check_format(fmt, VIEW_FORMATS)
        data = self.accounting.get_cash_flow_data(start_date, end_date, period)
        file_path = spreadsheet.write_cash_flow(data, self.export_dir) if fmt == "excel" else None
        return {"data": data, "file_path": str(file_path) if file_path else None, "format": fmt}

    def get_saved_reports(
        self,
        page: int = 1,
        limit: int = 10,
        report_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Non-archived reports, newest first.

        Returns:
            Dict with ``reports`` and ``pagination`` {current, pages, total}
        """
        page = max(page, 1)
        filters = {"report_type": report_type, "start_date": start_date, "end_date": end_date}
        reports = self.db.list_financial_reports(**filters, limit=limit, offset=(page - 1) * limit)
        total = self.db.count_financial_reports(**filters)
        return {"reports": reports, "pagination": paginate(page, limit, total)}

    def get_report(self, report_id: int) -> Optional[FinancialReport]:
        """Get report by ID."""
        return self.db.get_financial_report(report_id)

    def require_report(self, report_id: int) -> FinancialReport:
        report = self.db.get_financial_report(report_id)
        if report is None:
            raise NotFoundError(not_found("Report", report_id))
        return report

    def archive_report(self, report_id: int, archived_by: Optional[int] = None) -> FinancialReport:
        """Hide a report from the saved report listing.

        Raises:
            NotFoundError: If the report doesn't exist
        """
        self.require_report(report_id)
        self.db.archive_financial_report(report_id)
        logger.info("Archived report %s", report_id)
        if self.audit:
            self.audit.record(
                "report_archived",
                AuditTarget.REPORT,
                report_id,
                user_id=archived_by,
                previous={"is_archived": False},
                new={"is_archived": True},
            )
        return self.require_report(report_id)
