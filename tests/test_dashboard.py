"""Tests for dashboard statistics."""

from datetime import date
from decimal import Decimal

import pytest

from tutordesk.domain.dashboard import month_bounds, week_bounds
from tutordesk.domain.entities import ExpenseCategory, TeacherPaymentType
from tutordesk.domain.errors import NotFoundError

# Thursday
TODAY = date(2024, 3, 14)


@pytest.fixture
def activity(
    time_entry_service,
    payment_service,
    expense_service,
    sample_teacher,
    sample_student,
    sample_lesson_type,
    sample_admin,
):
    for day, hours in ((date(2024, 3, 12), "2"), (date(2024, 3, 4), "1.5"), (date(2024, 2, 28), "1")):
        time_entry_service.log_time(
            teacher_id=sample_teacher.id,
            lesson_type_id=sample_lesson_type.id,
            entry_date=day,
            hours_worked=Decimal(hours),
            today=TODAY,
        )
    payment_service.create_student_payment(
        student_id=sample_student.id,
        amount=Decimal("2500"),
        payment_date=date(2024, 3, 5),
        completed=True,
        created_by=sample_admin.id,
    )
    payment_service.create_student_payment(
        student_id=sample_student.id, amount=Decimal("1000"), payment_date=date(2024, 3, 6)
    )
    payment_service.create_teacher_payment(
        teacher_id=sample_teacher.id,
        payment_type=TeacherPaymentType.SALARY,
        submitted_by=sample_admin.id,
        amount=Decimal("500"),
        payment_date=date(2024, 3, 31),
    )
    expense_service.create_expense(
        submitted_by=sample_admin.id,
        category=ExpenseCategory.RENT,
        amount=Decimal("800"),
        description="March rent",
        expense_date=TODAY,
        today=TODAY,
    )


def test_bounds():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert week_bounds(TODAY) == (date(2024, 3, 11), date(2024, 3, 17))


def test_dashboard_stats_without_data(dashboard_service):
    assert dashboard_service.get_dashboard_stats(today=TODAY) == {
        "totalTeachers": 0,
        "totalStudents": 0,
        "monthlyRevenue": 0.0,
        "monthlyHours": 0.0,
        "pendingActions": {
            "teacherApprovals": 0,
            "expenseApprovals": {"count": 0, "totalAmount": 0.0},
        },
        "month": "2024-03",
    }


def test_dashboard_stats(dashboard_service, teacher_service, activity):
    teacher_service.register("omar@example.com", "Omar", "Saidi", subject="Chemistry")

    stats = dashboard_service.get_dashboard_stats(today=TODAY)

    assert stats["totalTeachers"] == 2
    assert stats["totalStudents"] == 1
    assert stats["monthlyRevenue"] == 2500.0
    assert stats["monthlyHours"] == 3.5
    assert stats["pendingActions"] == {
        "teacherApprovals": 1,
        "expenseApprovals": {"count": 1, "totalAmount": 800.0},
    }


def test_teacher_dashboard_without_data(dashboard_service, sample_teacher):
    stats = dashboard_service.get_teacher_dashboard_stats(sample_teacher.id, today=TODAY)

    assert stats == {
        "myStudents": 0,
        "weeklyHours": 0.0,
        "monthlyHours": 0.0,
        "monthlyEarnings": 0.0,
        "avgRate": 0.0,
        "pendingPayments": {
            "teacherPayments": {"count": 0, "totalAmount": 0.0},
            "studentPayments": {"count": 0, "totalAmount": 0.0},
        },
        "recentEntries": [],
        "month": "2024-03",
    }


def test_teacher_dashboard(dashboard_service, sample_teacher, activity):
    stats = dashboard_service.get_teacher_dashboard_stats(sample_teacher.id, today=TODAY)

    assert stats["myStudents"] == 1
    assert stats["weeklyHours"] == 2.0
    assert stats["monthlyHours"] == 3.5
    assert stats["monthlyEarnings"] == 3500.0
    assert stats["avgRate"] == 1000.0
    assert stats["pendingPayments"] == {
        "teacherPayments": {"count": 1, "totalAmount": 500.0},
        "studentPayments": {"count": 1, "totalAmount": 1000.0},
    }
    assert [(e["date"], e["dateString"]) for e in stats["recentEntries"]] == [
        ("2024-03-12", "2 days ago"),
        ("2024-03-04", "2024-03-04"),
        ("2024-02-28", "2024-02-28"),
    ]
    assert stats["recentEntries"][0]["lessonType"] == "Private lesson"
    assert stats["recentEntries"][0]["amount"] == 2000.0


def test_teacher_dashboard_unknown_teacher(dashboard_service, sample_admin):
    with pytest.raises(NotFoundError, match="Teacher 99 not found"):
        dashboard_service.get_teacher_dashboard_stats(99, today=TODAY)
    with pytest.raises(NotFoundError):
        dashboard_service.get_teacher_dashboard_stats(sample_admin.id, today=TODAY)
