"""Tests for accounting views."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from tutordesk.domain.accounting import merge_cash_flow, profit_loss_status
from tutordesk.domain.entities import ExpenseCategory, TeacherPaymentType
from tutordesk.domain.errors import AggregationError

Q1_START = date(2024, 1, 1)
Q1_END = date(2024, 3, 31)


@pytest.fixture
def ledger(payment_service, expense_service, sample_student, sample_teacher, sample_admin):
    """Q1 2024: 100 + 2500 received, 1000 pending and overdue, 500 paid to the teacher, 300 expense."""
    for day, amount in ((date(2024, 2, 5), "100"), (date(2024, 3, 10), "2500")):
        payment_service.create_student_payment(
            student_id=sample_student.id,
            amount=Decimal(amount),
            payment_date=day,
            completed=True,
            created_by=sample_admin.id,
        )
    payment_service.create_student_payment(
        student_id=sample_student.id,
        amount=Decimal("1000"),
        payment_date=date(2024, 3, 12),
        due_date=date(2024, 3, 15),
    )

    teacher_payment = payment_service.create_teacher_payment(
        teacher_id=sample_teacher.id,
        payment_type=TeacherPaymentType.BONUS,
        submitted_by=sample_admin.id,
        amount=Decimal("500"),
        payment_date=date(2024, 3, 20),
    )
    payment_service.approve_teacher_payment(teacher_payment, sample_admin.id)
    payment_service.process_teacher_payment(teacher_payment, sample_admin.id, payment_date=date(2024, 3, 20))

    expense_id = expense_service.create_expense(
        submitted_by=sample_admin.id,
        category=ExpenseCategory.SUPPLIES,
        amount=Decimal("300"),
        description="Printer ink",
        expense_date=date(2024, 3, 5),
    )
    expense_service.approve_expense(expense_id, sample_admin.id)


def test_profit_loss_status():
    assert profit_loss_status(Decimal("1")) == "profit"
    assert profit_loss_status(Decimal("-1")) == "loss"
    assert profit_loss_status(Decimal("0")) == "breakeven"


def test_merge_cash_flow_unions_periods():
    flow = merge_cash_flow({"A": Decimal("100")}, {}, {"B": Decimal("40")})

    assert [entry["period"] for entry in flow["cashFlow"]] == ["A", "B"]
    first, second = flow["cashFlow"]
    assert first["netCashFlow"] == 100.0
    assert first["runningTotal"] == 100.0
    assert second["inflow"] == 0.0
    assert second["outflow"] == 40.0
    assert second["details"] == {"teacherPayments": 0.0, "generalExpenses": 40.0}
    assert second["netCashFlow"] == -40.0
    assert second["runningTotal"] == 60.0
    assert flow["summary"] == {
        "totalInflow": 100.0,
        "totalOutflow": 40.0,
        "netCashFlow": 60.0,
        "finalBalance": 60.0,
    }


def test_merge_cash_flow_empty():
    flow = merge_cash_flow({}, {}, {})
    assert flow["cashFlow"] == []
    assert flow["summary"]["finalBalance"] == 0.0


def test_student_view_without_payments(accounting_service, sample_student):
    data = accounting_service.get_student_accounting_data(Q1_START, Q1_END)

    assert data["studentCount"] == 1
    financials = data["students"][0]["financials"]
    assert financials == {
        "estimatedTotalFee": 0.0,
        "totalPaid": 0.0,
        "totalPending": 0.0,
        "totalOverdue": 0.0,
        "remainingBalance": 0.0,
        "paymentHistory": 0,
    }
    assert data["period"] == {"start": "2024-01-01", "end": "2024-03-31"}


def test_student_view_with_payments(accounting_service, ledger, sample_student):
    data = accounting_service.get_student_accounting_data(Q1_START, Q1_END, today=date(2024, 4, 1))
    row = data["students"][0]

    assert row["student"]["teacher"]["name"] == "Nadia Benali"
    assert row["financials"]["totalPaid"] == 2600.0
    assert row["financials"]["totalPending"] == 1000.0
    assert row["financials"]["totalOverdue"] == 1000.0
    assert row["financials"]["estimatedTotalFee"] == 4120.0
    assert row["financials"]["remainingBalance"] == 1520.0
    assert row["financials"]["paymentHistory"] == 3
    assert data["totals"]["totalPaid"] == 2600.0


def test_teacher_view_compares_earnings_and_payments(
    accounting_service, payment_service, time_entry_service, sample_teacher, sample_lesson_type, sample_admin
):
    today = date.today()
    time_entry_service.log_time(
        teacher_id=sample_teacher.id, lesson_type_id=sample_lesson_type.id, entry_date=today, hours_worked=Decimal("3")
    )
    payment_service.create_teacher_payment(
        teacher_id=sample_teacher.id,
        payment_type=TeacherPaymentType.SALARY,
        submitted_by=sample_admin.id,
        amount=Decimal("1000"),
        payment_date=today,
    )

    data = accounting_service.get_teacher_accounting_data(today - timedelta(days=1), today + timedelta(days=1))
    row = data["teachers"][0]

    assert data["teacherCount"] == 1
    assert row["hours"] == {"totalHours": 3.0, "totalEarnings": 3000.0}
    assert row["payments"] == {"totalPaid": 0.0, "totalPending": 1000.0, "unpaidEarnings": 2000.0}
    assert row["status"] == {"isPaidUp": False, "deficitAmount": 2000.0}
    assert row["timeEntries"] == 1


def test_expenses_view_default_filter_matches_nothing(accounting_service, ledger):
    data = accounting_service.get_general_expenses_data(Q1_START, Q1_END)

    assert data["expenses"] == []
    assert data["totals"] == {"totalAmount": 0.0, "count": 0}


def test_expenses_view_with_paid_status(accounting_service, ledger):
    data = accounting_service.get_general_expenses_data(Q1_START, Q1_END, status="paid")

    assert data["totals"] == {"totalAmount": 300.0, "count": 1}
    assert data["byCategory"] == [
        {"category": "supplies", "totalAmount": 300.0, "count": 1, "avgAmount": 300.0}
    ]
    assert data["monthlyBreakdown"] == [{"period": "2024-03", "totalAmount": 300.0, "count": 1}]


def test_profit_loss_summary(accounting_service, ledger):
    summary = accounting_service.get_profit_loss_summary(Q1_START, Q1_END)

    assert summary["revenue"]["total"] == 2600.0
    assert summary["expenses"]["teacherPayments"] == 500.0
    assert summary["expenses"]["generalExpenses"] == 0.0
    assert summary["expenses"]["total"] == 500.0
    assert summary["netIncome"] == 2100.0
    assert summary["profitMargin"] == 80.77
    assert summary["status"] == "profit"
    assert summary["metrics"] == {"revenueCount": 2, "teacherPaymentCount": 1, "generalExpenseCount": 0}


def test_profit_loss_is_repeatable(accounting_service, ledger):
    first = accounting_service.get_profit_loss_summary(Q1_START, Q1_END)
    assert accounting_service.get_profit_loss_summary(Q1_START, Q1_END) == first


def test_profit_loss_empty_range(accounting_service):
    summary = accounting_service.get_profit_loss_summary(Q1_START, Q1_END)

    assert summary["netIncome"] == 0.0
    assert summary["profitMargin"] == 0.0
    assert summary["status"] == "breakeven"


def test_cash_flow_monthly(accounting_service, ledger):
    data = accounting_service.get_cash_flow_data(Q1_START, Q1_END, "monthly")

    assert data["granularity"] == "month"
    assert [entry["period"] for entry in data["cashFlow"]] == ["2024-02", "2024-03"]
    march = data["cashFlow"][1]
    assert march["inflow"] == 2500.0
    assert march["outflow"] == 500.0
    assert march["netCashFlow"] == 2000.0
    assert march["runningTotal"] == 2100.0
    assert data["summary"]["finalBalance"] == 2100.0


def test_cash_flow_yearly(accounting_service, ledger):
    data = accounting_service.get_cash_flow_data(Q1_START, Q1_END, "yearly")
    assert [entry["period"] for entry in data["cashFlow"]] == ["2024"]


def test_financial_metrics(accounting_service, ledger):
    metrics = accounting_service.get_financial_metrics(Q1_START, Q1_END)

    assert metrics["revenue"]["total"] == 2600.0
    assert metrics["revenue"]["studentCount"] == 1
    assert metrics["netIncome"] == 2100.0
    assert metrics["teachers"]["count"] == 1
    # Approved expenses are stored as paid, so the default filter counts none
    assert metrics["expenses"]["count"] == 0


def test_database_failure_becomes_aggregation_error(accounting_service, temp_db, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(temp_db, "summarize_payments", broken)

    with pytest.raises(AggregationError, match="Failed to get profit/loss summary"):
        accounting_service.get_profit_loss_summary(Q1_START, Q1_END)
    with pytest.raises(AggregationError):
        accounting_service.get_financial_metrics(Q1_START, Q1_END)


def test_metrics_fail_when_expense_view_fails(accounting_service, temp_db, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(temp_db, "list_expenses", broken)

    with pytest.raises(AggregationError, match="Failed to get general expenses data"):
        accounting_service.get_financial_metrics(Q1_START, Q1_END)
