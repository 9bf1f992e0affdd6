"""Tests for teacher payment workflows."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from tutordesk.domain.entities import TeacherPaymentStatus, TeacherPaymentType
from tutordesk.domain.errors import PreconditionError, ValidationError


@pytest.fixture
def hourly_payment(payment_service, sample_teacher, sample_admin):
    payment_id = payment_service.create_teacher_payment(
        teacher_id=sample_teacher.id,
        payment_type=TeacherPaymentType.HOURLY_PAYMENT,
        submitted_by=sample_admin.id,
        hours_worked=Decimal("10"),
        hourly_rate=Decimal("1000"),
        payment_date=date(2024, 5, 31),
    )
    return payment_service.get_teacher_payment(payment_id)


def test_hourly_payment_amount_derived(hourly_payment):
    assert hourly_payment.amount == Decimal("10000.00")
    assert hourly_payment.status == TeacherPaymentStatus.PENDING
    assert hourly_payment.receipt_number is None


def test_hourly_payment_requires_hours(payment_service, sample_teacher, sample_admin):
    with pytest.raises(ValidationError, match="Hours worked is required"):
        payment_service.create_teacher_payment(
            teacher_id=sample_teacher.id,
            payment_type=TeacherPaymentType.HOURLY_PAYMENT,
            submitted_by=sample_admin.id,
            amount=Decimal("500"),
            hourly_rate=Decimal("1000"),
        )


def test_approve_then_process(payment_service, hourly_payment, sample_admin):
    approved = payment_service.approve_teacher_payment(hourly_payment.id, sample_admin.id)
    assert approved.status == TeacherPaymentStatus.APPROVED

    paid = payment_service.process_teacher_payment(
        hourly_payment.id, sample_admin.id, payment_date=date(2024, 6, 2), reference="TRX-1"
    )
    assert paid.status == TeacherPaymentStatus.PAID
    assert paid.receipt_number == "TPY-202406-0001"
    assert paid.reference == "TRX-1"
    assert paid.paid_at is not None


def test_process_requires_approval(payment_service, hourly_payment, sample_admin):
    with pytest.raises(PreconditionError, match="cannot be processed"):
        payment_service.process_teacher_payment(hourly_payment.id, sample_admin.id)


def test_approve_requires_pending(payment_service, hourly_payment, sample_admin):
    payment_service.approve_teacher_payment(hourly_payment.id, sample_admin.id)
    with pytest.raises(PreconditionError, match="not in pending status"):
        payment_service.approve_teacher_payment(hourly_payment.id, sample_admin.id)


def test_teacher_receipts_numbered_per_month(payment_service, sample_teacher, sample_admin):
    receipts = []
    for paid_on in (date(2024, 6, 3), date(2024, 6, 20), date(2024, 7, 1)):
        payment_id = payment_service.create_teacher_payment(
            teacher_id=sample_teacher.id,
            payment_type=TeacherPaymentType.BONUS,
            submitted_by=sample_admin.id,
            amount=Decimal("100"),
            payment_date=paid_on,
        )
        payment_service.approve_teacher_payment(payment_id, sample_admin.id)
        receipts.append(
            payment_service.process_teacher_payment(payment_id, sample_admin.id, payment_date=paid_on).receipt_number
        )

    assert receipts == ["TPY-202406-0001", "TPY-202406-0002", "TPY-202407-0001"]


def test_reject_payment(payment_service, hourly_payment, sample_admin):
    rejected = payment_service.reject_teacher_payment(hourly_payment.id, sample_admin.id, "Hours disputed")

    assert rejected.status == TeacherPaymentStatus.CANCELLED
    assert rejected.rejection_reason == "Hours disputed"
    with pytest.raises(PreconditionError):
        payment_service.reject_teacher_payment(hourly_payment.id, sample_admin.id, "Again")


def test_reject_requires_reason(payment_service, hourly_payment, sample_admin):
    with pytest.raises(ValidationError, match="rejection reason is required"):
        payment_service.reject_teacher_payment(hourly_payment.id, sample_admin.id, "")


def test_generate_from_single_rate_entries(
    payment_service, time_entry_service, sample_teacher, sample_lesson_type, sample_admin
):
    today = date.today()
    for hours in ("1.5", "2"):
        time_entry_service.log_time(
            teacher_id=sample_teacher.id,
            lesson_type_id=sample_lesson_type.id,
            entry_date=today,
            hours_worked=Decimal(hours),
        )
    payment_id = payment_service.generate_payment_from_time_entries(
        sample_teacher.id, today - timedelta(days=7), today, sample_admin.id
    )
    payment = payment_service.get_teacher_payment(payment_id)

    assert payment.payment_type == TeacherPaymentType.HOURLY_PAYMENT
    assert payment.hours_worked == Decimal("3.5")
    assert payment.hourly_rate == Decimal("1000")
    assert payment.amount == Decimal("3500.00")
    assert payment.payment_date == today


def test_generate_from_mixed_rate_entries(
    payment_service, time_entry_service, sample_teacher, sample_lesson_type, sample_admin
):
    today = date.today()
    time_entry_service.log_time(
        teacher_id=sample_teacher.id, lesson_type_id=sample_lesson_type.id, entry_date=today, hours_worked=Decimal("1")
    )
    time_entry_service.log_time(
        teacher_id=sample_teacher.id,
        lesson_type_id=sample_lesson_type.id,
        entry_date=today,
        hours_worked=Decimal("1"),
        hourly_rate=Decimal("1500"),
    )
    payment_id = payment_service.generate_payment_from_time_entries(sample_teacher.id, today, today, sample_admin.id)
    payment = payment_service.get_teacher_payment(payment_id)

    assert payment.payment_type == TeacherPaymentType.OTHER
    assert payment.amount == Decimal("2500.00")


def test_generate_without_entries(payment_service, sample_teacher, sample_admin):
    with pytest.raises(PreconditionError, match="No time entries found"):
        payment_service.generate_payment_from_time_entries(
            sample_teacher.id, date(2024, 1, 1), date(2024, 1, 31), sample_admin.id
        )


def test_teacher_payment_summary(payment_service, hourly_payment, sample_teacher, sample_admin):
    payment_service.approve_teacher_payment(hourly_payment.id, sample_admin.id)
    summary = payment_service.get_teacher_payment_summary(sample_teacher.id)

    assert summary["approved"] == {"total": Decimal("10000.00"), "count": 1}
    assert summary["paid"]["count"] == 0
    assert summary["count"] == 1

    everyone = payment_service.get_all_teachers_payment_summary()
    assert everyone[0]["teacher_name"] == "Nadia Benali"
    assert everyone[0]["total_pending"] == Decimal("10000.00")
    assert everyone[0]["total_paid"] == Decimal("0.00")


def test_overdue_teacher_payments(payment_service, hourly_payment):
    assert payment_service.get_overdue_teacher_payments(today=date(2024, 6, 30)) == []
    overdue = payment_service.get_overdue_teacher_payments(today=date(2024, 7, 1))
    assert [p.id for p in overdue] == [hourly_payment.id]


def test_teacher_payment_history_pagination(payment_service, hourly_payment, sample_teacher):
    history = payment_service.get_teacher_payment_history(sample_teacher.id)

    assert [p.id for p in history["payments"]] == [hourly_payment.id]
    assert history["pagination"]["total"] == 1
