"""Accounting views composed from per-entity aggregation queries.

Every view is a plain JSON-compatible dict: amounts are floats rounded to
cents and dates ISO strings. Amounts are summed as stored, whatever their
currency.
"""

import functools
import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from tutordesk.database.base import Database
from tutordesk.domain.entities import (
    EXPENSE_APPROVED_FILTER,
    PaymentStatus,
    Role,
    StudentStatus,
    TeacherPaymentStatus,
)
from tutordesk.domain.errors import AggregationError
from tutordesk.domain.periods import Period
from tutordesk.utils.money import ZERO, percentage, round_money, to_float

logger = logging.getLogger(__name__)

# Projected fee on top of what was paid and is pending; a placeholder with
# no fee schedule behind it.
ESTIMATED_FEE_MARKUP = Decimal("0.2")

F = TypeVar("F", bound=Callable[..., Any])


def aggregation(view: str, verb: str = "get") -> Callable[[F], F]:
    """Wrap database failures of a view in AggregationError("Failed to <verb> <view>: ...")."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("Failed to %s %s: %s", verb, view, e)
                self.db.rollback()
                raise AggregationError(f"Failed to {verb} {view}: {e}") from e

        return wrapper  # type: ignore[return-value]

    return decorator


def profit_loss_status(net_income: Decimal) -> str:
    if net_income > 0:
        return "profit"
    if net_income < 0:
        return "loss"
    return "breakeven"


def bucket_totals(rows: Iterable[dict[str, Any]], period: Period) -> dict[str, Decimal]:
    """Sum per-date totals into period buckets."""
    buckets: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for row in rows:
        buckets[period.bucket_key(row["date"])] += row["total"]
    return dict(buckets)


def merge_cash_flow(
    inflows: dict[str, Decimal],
    teacher_outflows: dict[str, Decimal],
    expense_outflows: dict[str, Decimal],
) -> dict[str, Any]:
    """Union the period keys of inflows and outflows and accumulate a running total.

    Periods present on only one side still appear, with zero on the other.
    Keys are sorted lexicographically, which is time order for period keys.
    """
    periods = sorted(set(inflows) | set(teacher_outflows) | set(expense_outflows))
    running = ZERO
    entries = []
    total_in = ZERO
    total_out = ZERO
    for key in periods:
        inflow = inflows.get(key, ZERO)
        teacher_out = teacher_outflows.get(key, ZERO)
        expense_out = expense_outflows.get(key, ZERO)
        outflow = teacher_out + expense_out
        net = inflow - outflow
        running += net
        total_in += inflow
        total_out += outflow
        entries.append(
            {
                "period": key,
                "inflow": to_float(inflow),
                "outflow": to_float(outflow),
                "netCashFlow": to_float(net),
                "details": {
                    "teacherPayments": to_float(teacher_out),
                    "generalExpenses": to_float(expense_out),
                },
                "runningTotal": to_float(running),
            }
        )
    return {
        "cashFlow": entries,
        "summary": {
            "totalInflow": to_float(total_in),
            "totalOutflow": to_float(total_out),
            "netCashFlow": to_float(total_in - total_out),
            "finalBalance": to_float(running),
        },
    }


def _period(start_date: date, end_date: date) -> dict[str, str]:
    return {"start": start_date.isoformat(), "end": end_date.isoformat()}


class AccountingService:
    """Read-only financial views over a date range."""

    def __init__(self, db: Database):
        """Initialize accounting service.

        Args:
            db: Database instance
        """
        self.db = db

    @aggregation("student accounting data")
    def get_student_accounting_data(
        self,
        start_date: date,
        end_date: date,
        teacher_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> dict[str, Any]:
        """Payment position of every active student.

        Payments in the range are split into paid (completed), pending and
        overdue (pending and due before today). The estimated total fee is
        paid + pending + 20% of paid; the remaining balance is what of it is
        not yet paid.

        Args:
            start_date: Range start (inclusive, payment date)
            end_date: Range end (inclusive, payment date)
            teacher_id: Optional teacher scope
            today: Reference date for overdue checks

        Returns:
            Dict with ``students``, ``totals``, ``period`` and ``studentCount``

        Raises:
            AggregationError: If a database query fails
        """
        today = today or date.today()
        students = self.db.list_students(teacher_id=teacher_id, status=StudentStatus.ACTIVE)
        payments = self.db.get_payment_totals_by_student(start_date, end_date, today)

        teachers: dict[int, Any] = {}
        rows = []
        totals = defaultdict(lambda: ZERO)
        for student in students:
            if student.teacher_id not in teachers:
                teachers[student.teacher_id] = self.db.get_user(student.teacher_id)
            teacher = teachers[student.teacher_id]

            figures = payments.get(student.id, {})
            paid = figures.get("paid", ZERO)
            pending = figures.get("pending", ZERO)
            overdue = figures.get("overdue", ZERO)
            estimated = round_money(paid + pending + paid * ESTIMATED_FEE_MARKUP)
            remaining = max(ZERO, estimated - paid)

            totals["totalFees"] += estimated
            totals["totalPaid"] += paid
            totals["totalPending"] += pending
            totals["totalOverdue"] += overdue
            totals["totalRemaining"] += remaining

            rows.append(
                {
                    "student": {
                        "id": student.id,
                        "name": student.full_name,
                        "email": student.email,
                        "level": student.level,
                        "enrollmentDate": student.enrollment_date.isoformat(),
                        "teacher": {
                            "id": teacher.id,
                            "name": teacher.full_name,
                            "email": teacher.email,
                        }
                        if teacher
                        else None,
                    },
                    "financials": {
                        "estimatedTotalFee": to_float(estimated),
                        "totalPaid": to_float(paid),
                        "totalPending": to_float(pending),
                        "totalOverdue": to_float(overdue),
                        "remainingBalance": to_float(remaining),
                        "paymentHistory": figures.get("count", 0),
                    },
                }
            )

        keys = ("totalFees", "totalPaid", "totalPending", "totalOverdue", "totalRemaining")
        return {
            "students": rows,
            "totals": {key: to_float(totals[key]) for key in keys},
            "period": _period(start_date, end_date),
            "studentCount": len(rows),
        }

    @aggregation("teacher accounting data")
    def get_teacher_accounting_data(self, start_date: date, end_date: date) -> dict[str, Any]:
        """Earnings against payments for every teacher.

        Earnings come from time entries dated in the range; teacher payments
        are selected by creation date. Paid counts ``paid``; pending counts
        ``pending`` and ``approved``.

        Raises:
            AggregationError: If a database query fails
        """
        teachers = self.db.list_users(role=Role.TEACHER)
        hours = self.db.get_time_entry_totals_by_teacher(start_date, end_date)
        payments = self.db.get_teacher_payment_totals_by_teacher(start_date, end_date)

        rows = []
        totals = defaultdict(lambda: ZERO)
        for teacher in teachers:
            worked = hours.get(teacher.id, {})
            paid_out = payments.get(teacher.id, {})
            total_hours = worked.get("total_hours", ZERO)
            earnings = worked.get("total_earnings", ZERO)
            paid = paid_out.get("paid", ZERO)
            pending = paid_out.get("pending", ZERO)
            unpaid = max(ZERO, earnings - paid - pending)

            totals["totalHours"] += total_hours
            totals["totalEarnings"] += earnings
            totals["totalPaid"] += paid
            totals["totalPending"] += pending
            totals["totalUnpaid"] += unpaid
            totals["totalDeficit"] += unpaid

            rows.append(
                {
                    "teacher": {"id": teacher.id, "name": teacher.full_name, "email": teacher.email},
                    "hours": {"totalHours": float(total_hours), "totalEarnings": to_float(earnings)},
                    "payments": {
                        "totalPaid": to_float(paid),
                        "totalPending": to_float(pending),
                        "unpaidEarnings": to_float(unpaid),
                    },
                    "status": {"isPaidUp": unpaid <= 0, "deficitAmount": to_float(unpaid)},
                    "timeEntries": worked.get("entry_count", 0),
                }
            )

        return {
            "teachers": rows,
            "totals": {
                "totalHours": float(totals["totalHours"]),
                "totalEarnings": to_float(totals["totalEarnings"]),
                "totalPaid": to_float(totals["totalPaid"]),
                "totalPending": to_float(totals["totalPending"]),
                "totalUnpaid": to_float(totals["totalUnpaid"]),
                "totalDeficit": to_float(totals["totalDeficit"]),
            },
            "period": _period(start_date, end_date),
            "teacherCount": len(rows),
        }

    @aggregation("general expenses data")
    def get_general_expenses_data(
        self,
        start_date: date,
        end_date: date,
        category: Optional[str] = None,
        status: str = EXPENSE_APPROVED_FILTER,
    ) -> dict[str, Any]:
        """Expenses in the range with category and monthly roll-ups.

        The default status filter is "approved". Approved expenses are stored
        as "paid", so the default selects nothing unless a status is given.

        Raises:
            AggregationError: If a database query fails
        """
        expenses = self.db.list_expenses(
            status=status, category=category, start_date=start_date, end_date=end_date
        )
        by_category = self.db.get_expenses_by_category(
            start_date=start_date, end_date=end_date, status=status, category=category
        )
        monthly: dict[str, dict[str, Any]] = defaultdict(lambda: {"total": ZERO, "count": 0})
        for row in self.db.get_expense_totals_by_date(start_date, end_date, status=status, category=category):
            bucket = monthly[Period.MONTH.bucket_key(row["date"])]
            bucket["total"] += row["total"]
            bucket["count"] += row["count"]

        total = sum((e.amount for e in expenses), ZERO)
        return {
            "expenses": [
                {
                    "id": e.id,
                    "category": e.category.value,
                    "subcategory": e.subcategory,
                    "amount": to_float(e.amount),
                    "currency": e.currency,
                    "description": e.description,
                    "date": e.date.isoformat(),
                    "status": e.status.value,
                    "submittedBy": e.submitted_by,
                    "approvedBy": e.approved_by,
                }
                for e in expenses
            ],
            "byCategory": [
                {
                    "category": row["category"],
                    "totalAmount": to_float(row["total"]),
                    "count": row["count"],
                    "avgAmount": to_float(row["average"]),
                }
                for row in by_category
            ],
            "monthlyBreakdown": [
                {
                    "period": key,
                    "totalAmount": to_float(monthly[key]["total"]),
                    "count": monthly[key]["count"],
                }
                for key in sorted(monthly)
            ],
            "totals": {"totalAmount": to_float(total), "count": len(expenses)},
            "period": _period(start_date, end_date),
        }

    @aggregation("profit/loss summary")
    def get_profit_loss_summary(self, start_date: date, end_date: date) -> dict[str, Any]:
        """Revenue against expenses for the range.

        Revenue is completed student payments; expenses are paid teacher
        payments plus general expenses filtered on "approved", all by payment
        or expense date.

        Raises:
            AggregationError: If a database query fails
        """
        revenue = self.db.summarize_payments(start_date, end_date, status=PaymentStatus.COMPLETED)
        teacher = self.db.summarize_teacher_payments(start_date, end_date, status=TeacherPaymentStatus.PAID)
        general = self.db.summarize_expenses(start_date, end_date, status=EXPENSE_APPROVED_FILTER)
        breakdown = self.db.get_expenses_by_category(
            start_date=start_date, end_date=end_date, status=EXPENSE_APPROVED_FILTER
        )

        total_revenue = revenue["total"]
        total_expenses = teacher["total"] + general["total"]
        net_income = total_revenue - total_expenses
        margin = percentage(net_income, total_revenue) if total_revenue > 0 else 0.0

        return {
            "period": _period(start_date, end_date),
            "revenue": {
                "studentPayments": to_float(total_revenue),
                "otherIncome": 0.0,
                "total": to_float(total_revenue),
            },
            "expenses": {
                "teacherPayments": to_float(teacher["total"]),
                "generalExpenses": to_float(general["total"]),
                "breakdown": [
                    {"category": row["category"], "total": to_float(row["total"]), "count": row["count"]}
                    for row in breakdown
                ],
                "total": to_float(total_expenses),
            },
            "netIncome": to_float(net_income),
            "profitMargin": margin,
            "status": profit_loss_status(net_income),
            "metrics": {
                "revenueCount": revenue["count"],
                "teacherPaymentCount": teacher["count"],
                "generalExpenseCount": general["count"],
            },
        }

    @aggregation("cash flow data")
    def get_cash_flow_data(
        self, start_date: date, end_date: date, period: "str | Period" = "monthly"
    ) -> dict[str, Any]:
        """Period-bucketed inflows, outflows, net and running total.

        Inflows are completed student payments; outflows are paid teacher
        payments plus general expenses filtered on "approved".

        Raises:
            AggregationError: If a database query fails
        """
        period = Period.parse(period)
        inflows = bucket_totals(
            self.db.get_payment_totals_by_date(start_date, end_date, status=PaymentStatus.COMPLETED), period
        )
        teacher_outflows = bucket_totals(
            self.db.get_teacher_payment_totals_by_date(start_date, end_date, status=TeacherPaymentStatus.PAID),
            period,
        )
        expense_outflows = bucket_totals(
            self.db.get_expense_totals_by_date(start_date, end_date, status=EXPENSE_APPROVED_FILTER), period
        )

        flow = merge_cash_flow(inflows, teacher_outflows, expense_outflows)
        return {
            "cashFlow": flow["cashFlow"],
            "period": _period(start_date, end_date),
            "granularity": period.value,
            "summary": flow["summary"],
        }

    def get_financial_metrics(self, start_date: date, end_date: date) -> dict[str, Any]:
        """Dashboard summary built from the student, teacher, expense and profit/loss views.

        The views run one after another on the same session. A failure in any
        of them propagates; no partial result is returned.

        Raises:
            AggregationError: If any underlying view fails
        """
        student_data = self.get_student_accounting_data(start_date, end_date)
        teacher_data = self.get_teacher_accounting_data(start_date, end_date)
        expense_data = self.get_general_expenses_data(start_date, end_date)
        profit_loss = self.get_profit_loss_summary(start_date, end_date)

        return {
            "revenue": {
                "total": profit_loss["revenue"]["total"],
                "growth": 0,
                "studentCount": student_data["studentCount"],
            },
            "expenses": {
                "total": profit_loss["expenses"]["total"],
                "teacherPayments": profit_loss["expenses"]["teacherPayments"],
                "generalExpenses": profit_loss["expenses"]["generalExpenses"],
                "count": expense_data["totals"]["count"],
            },
            "netIncome": profit_loss["netIncome"],
            "profitMargin": profit_loss["profitMargin"],
            "teachers": {
                "count": teacher_data["teacherCount"],
                "totalHours": teacher_data["totals"]["totalHours"],
                "totalOwed": teacher_data["totals"]["totalUnpaid"],
            },
            "students": {
                "count": student_data["studentCount"],
                "totalOwed": student_data["totals"]["totalRemaining"],
                "overdue": student_data["totals"]["totalOverdue"],
            },
            "period": _period(start_date, end_date),
        }
