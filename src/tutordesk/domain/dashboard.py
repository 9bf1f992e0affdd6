"""Dashboard figures for the current week and month."""

from datetime import date, timedelta
from typing import Any, Optional

from dateutil.relativedelta import relativedelta

from tutordesk.database.base import Database
from tutordesk.domain.accounting import aggregation
from tutordesk.domain.entities import ExpenseStatus, PaymentStatus, Role, UserStatus
from tutordesk.domain.errors import NotFoundError, not_found
from tutordesk.utils.money import ZERO, round_money, to_float

RECENT_ENTRY_LIMIT = 5


def month_bounds(today: date) -> tuple[date, date]:
    """First and last day of the calendar month containing ``today``."""
    start = today.replace(day=1)
    return start, start + relativedelta(months=1, days=-1)


def week_bounds(today: date) -> tuple[date, date]:
    """Monday through Sunday of the ISO week containing ``today``."""
    start = today - timedelta(days=today.weekday())
    return start, start + timedelta(days=6)


def relative_day(day: date, today: date) -> str:
    days = (today - day).days
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if 1 < days < 7:
        return f"{days} days ago"
    return day.isoformat()


class DashboardService:
    """Headline counts for the admin and teacher dashboards."""

    def __init__(self, db: Database):
        self.db = db

    @aggregation("dashboard stats")
    def get_dashboard_stats(self, today: Optional[date] = None) -> dict[str, Any]:
        """Center-wide counts plus this month's revenue and hours.

        Monthly revenue is completed student payments dated in the calendar
        month. The pending block counts teachers awaiting approval and
        expenses awaiting review.

        Raises:
            AggregationError: If a database query fails
        """
        today = today or date.today()
        month_start, month_end = month_bounds(today)

        revenue = self.db.summarize_payments(month_start, month_end, status=PaymentStatus.COMPLETED)
        hours = sum(
            (row["total_hours"] for row in self.db.get_time_entry_totals_by_teacher(month_start, month_end).values()),
            ZERO,
        )
        pending_expenses = self.db.summarize_expenses(status=ExpenseStatus.PENDING)

        return {
            "totalTeachers": len(self.db.list_users(role=Role.TEACHER)),
            "totalStudents": self.db.get_student_stats()["total"],
            "monthlyRevenue": to_float(revenue["total"]),
            "monthlyHours": float(hours),
            "pendingActions": {
                "teacherApprovals": len(self.db.list_users(role=Role.TEACHER, status=UserStatus.PENDING)),
                "expenseApprovals": {
                    "count": pending_expenses["count"],
                    "totalAmount": to_float(pending_expenses["total"]),
                },
            },
            "month": f"{today:%Y-%m}",
        }

    @aggregation("teacher dashboard stats")
    def get_teacher_dashboard_stats(self, teacher_id: int, today: Optional[date] = None) -> dict[str, Any]:
        """One teacher's students, hours and earnings, and unsettled payments.

        ``avgRate`` is this month's earnings divided by this month's hours, 0
        without hours. ``pendingPayments`` counts the teacher's own payments
        that are pending or approved but not yet paid, and the pending student
        payments of the teacher's students.

        Raises:
            NotFoundError: If the teacher doesn't exist
            AggregationError: If a database query fails
        """
        today = today or date.today()
        teacher = self.db.get_user(teacher_id)
        if teacher is None or teacher.role != Role.TEACHER:
            raise NotFoundError(not_found("Teacher", teacher_id))

        week = self.db.get_earnings_summary(teacher_id, *week_bounds(today))
        month = self.db.get_earnings_summary(teacher_id, *month_bounds(today))
        teacher_payments = self.db.get_teacher_payment_summary(teacher_id)
        student_payments = self.db.summarize_payments(status=PaymentStatus.PENDING, teacher_id=teacher_id)

        avg_rate = ZERO
        if month["total_hours"]:
            avg_rate = round_money(month["total_earnings"] / month["total_hours"])

        recent = []
        lesson_names: dict[int, str] = {}
        for entry in self.db.list_time_entries(teacher_id=teacher_id)[:RECENT_ENTRY_LIMIT]:
            if entry.lesson_type_id not in lesson_names:
                lesson_type = self.db.get_lesson_type(entry.lesson_type_id)
                lesson_names[entry.lesson_type_id] = lesson_type.name if lesson_type else "Unknown lesson"
            recent.append(
                {
                    "id": entry.id,
                    "lessonType": lesson_names[entry.lesson_type_id],
                    "hours": float(entry.hours_worked),
                    "amount": to_float(entry.total_amount),
                    "date": entry.date.isoformat(),
                    "dateString": relative_day(entry.date, today),
                }
            )

        return {
            "myStudents": self.db.get_student_stats(teacher_id)["total"],
            "weeklyHours": float(week["total_hours"]),
            "monthlyHours": float(month["total_hours"]),
            "monthlyEarnings": to_float(month["total_earnings"]),
            "avgRate": to_float(avg_rate),
            "pendingPayments": {
                "teacherPayments": {
                    "count": teacher_payments["pending"]["count"] + teacher_payments["approved"]["count"],
                    "totalAmount": to_float(
                        teacher_payments["pending"]["total"] + teacher_payments["approved"]["total"]
                    ),
                },
                "studentPayments": {
                    "count": student_payments["count"],
                    "totalAmount": to_float(student_payments["total"]),
                },
            },
            "recentEntries": recent,
            "month": f"{today:%Y-%m}",
        }
