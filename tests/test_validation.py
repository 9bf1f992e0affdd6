"""Tests for whole-record validators."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from tutordesk.domain.entities import (
    AttendanceStatus,
    AuditTarget,
    ExpenseCategory,
    ExpenseStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    RefundInfo,
    TeacherPaymentStatus,
    TeacherPaymentType,
)
from tutordesk.domain.errors import ValidationError
from tutordesk.domain.validation import (
    validate_attendance,
    validate_audit_log,
    validate_expense,
    validate_payment,
    validate_refund,
    validate_teacher_payment,
    validate_time_entry,
)

TODAY = date(2024, 6, 15)


def _payment(**overrides):
    record = {
        "student_id": 1,
        "teacher_id": 2,
        "amount": Decimal("2500"),
        "currency": "DZD",
        "payment_method": PaymentMethod.CASH,
        "payment_type": PaymentType.LESSON_PAYMENT,
        "payment_date": TODAY,
        "status": PaymentStatus.PENDING,
    }
    record.update(overrides)
    return record


def _time_entry(**overrides):
    record = {
        "teacher_id": 1,
        "lesson_type_id": 1,
        "date": TODAY,
        "hours_worked": Decimal("1.5"),
        "hourly_rate": Decimal("1000"),
    }
    record.update(overrides)
    return record


def test_valid_payment_passes():
    validate_payment(_payment(), TODAY)


def test_payment_amount_bounds():
    with pytest.raises(ValidationError, match="at least 0.01"):
        validate_payment(_payment(amount=Decimal("0")), TODAY)
    with pytest.raises(ValidationError, match="cannot exceed"):
        validate_payment(_payment(amount=Decimal("1000000")), TODAY)


def test_payment_date_at_most_one_day_ahead():
    validate_payment(_payment(payment_date=TODAY + timedelta(days=1)), TODAY)
    with pytest.raises(ValidationError, match="more than 1 day in the future"):
        validate_payment(_payment(payment_date=TODAY + timedelta(days=2)), TODAY)


def test_payment_due_date_not_before_payment_date():
    with pytest.raises(ValidationError, match="Due date must be after payment date"):
        validate_payment(_payment(due_date=TODAY - timedelta(days=1)), TODAY)


def test_completed_payment_requires_approval_stamp():
    with pytest.raises(ValidationError) as excinfo:
        validate_payment(_payment(status=PaymentStatus.COMPLETED), TODAY)
    assert "approved_by is required" in excinfo.value.messages
    assert "approved_at is required" in excinfo.value.messages


def test_refunded_payment_requires_refund_details():
    with pytest.raises(ValidationError, match="Refund details are required"):
        validate_payment(_payment(status=PaymentStatus.REFUNDED, approved_by=1, approved_at=TODAY), TODAY)


def test_refund_bounds():
    assert validate_refund(Decimal("100"), TODAY, Decimal("100"), TODAY) == []
    errors = validate_refund(Decimal("100"), TODAY, Decimal("150"), TODAY - timedelta(days=1))
    assert "Refund amount cannot exceed original payment amount" in errors
    assert "Refund date must be on or after payment date" in errors


def test_refund_amount_not_a_number_is_reported():
    errors = validate_refund(Decimal("100"), TODAY, "ten", None)

    assert errors == ["Refund amount must be a number", "Refund date is required"]


def test_payment_with_refund_record_checks_refund_amount():
    refund = RefundInfo(Decimal("3000"), TODAY, "Moved away", "cash")
    with pytest.raises(ValidationError, match="cannot exceed original"):
        validate_payment(
            _payment(status=PaymentStatus.REFUNDED, approved_by=1, approved_at=TODAY, refund=refund), TODAY
        )


def test_validation_reports_every_failed_rule():
    with pytest.raises(ValidationError) as excinfo:
        validate_payment(_payment(currency="XXX", payment_method="barter"), TODAY)
    assert len(excinfo.value.messages) == 2


def test_time_entry_quarter_hours():
    validate_time_entry(_time_entry(hours_worked=Decimal("0.25")), TODAY)
    with pytest.raises(ValidationError, match="15-minute intervals"):
        validate_time_entry(_time_entry(hours_worked=Decimal("1.1")), TODAY)
    with pytest.raises(ValidationError, match="Minimum hours"):
        validate_time_entry(_time_entry(hours_worked=Decimal("0")), TODAY)
    with pytest.raises(ValidationError, match="Maximum hours"):
        validate_time_entry(_time_entry(hours_worked=Decimal("24.25")), TODAY)


def test_time_entry_not_in_future():
    with pytest.raises(ValidationError, match="cannot be in the future"):
        validate_time_entry(_time_entry(date=TODAY + timedelta(days=1)), TODAY)


def test_hourly_teacher_payment_needs_hours_and_rate():
    record = {
        "teacher_id": 1,
        "payment_date": TODAY,
        "submitted_by": 1,
        "amount": Decimal("100"),
        "currency": "DZD",
        "payment_method": PaymentMethod.BANK_TRANSFER,
        "payment_type": TeacherPaymentType.HOURLY_PAYMENT,
        "status": TeacherPaymentStatus.PENDING,
    }
    with pytest.raises(ValidationError) as excinfo:
        validate_teacher_payment(record)
    assert "Hours worked is required for hourly payments" in excinfo.value.messages
    assert "Hourly rate is required for hourly payments" in excinfo.value.messages


def test_expense_amount_two_decimals():
    record = {
        "submitted_by": 1,
        "category": ExpenseCategory.SUPPLIES,
        "amount": 150.005,
        "description": "Markers",
        "date": TODAY,
        "status": ExpenseStatus.PENDING,
    }
    with pytest.raises(ValidationError, match="Amount must have at most 2 decimal places"):
        validate_expense(record, TODAY)


def test_rejected_expense_requires_reason():
    record = {
        "submitted_by": 1,
        "category": ExpenseCategory.RENT,
        "amount": Decimal("100"),
        "description": "Rent",
        "date": TODAY,
        "status": ExpenseStatus.REJECTED,
        "rejected_by": 1,
        "rejected_at": TODAY,
    }
    with pytest.raises(ValidationError, match="rejection_reason is required"):
        validate_expense(record, TODAY)


def test_expense_receipt_url_must_be_http():
    record = {
        "submitted_by": 1,
        "category": ExpenseCategory.RENT,
        "amount": Decimal("100"),
        "description": "Rent",
        "date": TODAY,
        "status": ExpenseStatus.PENDING,
        "receipt_url": "ftp://example.com/r.pdf",
    }
    with pytest.raises(ValidationError, match="valid URL"):
        validate_expense(record, TODAY)


def test_late_attendance_requires_minutes():
    record = {
        "student_id": 1,
        "teacher_id": 1,
        "time_entry_id": 1,
        "lesson_date": TODAY,
        "lesson_type": "Private lesson",
        "status": AttendanceStatus.LATE,
        "duration": 60,
    }
    with pytest.raises(ValidationError, match="Late minutes are required"):
        validate_attendance(record, TODAY)


def test_attendance_duration_quarter_hours():
    record = {
        "student_id": 1,
        "teacher_id": 1,
        "time_entry_id": 1,
        "lesson_date": TODAY,
        "lesson_type": "Private lesson",
        "status": AttendanceStatus.PRESENT,
        "duration": 50,
    }
    with pytest.raises(ValidationError, match="15-minute intervals"):
        validate_attendance(record, TODAY)


def test_audit_log_needs_target_id_unless_system():
    validate_audit_log({"action": "startup", "target_type": AuditTarget.SYSTEM, "target_id": None})
    with pytest.raises(ValidationError, match="target_id is required"):
        validate_audit_log({"action": "x", "target_type": AuditTarget.PAYMENT, "target_id": None})
