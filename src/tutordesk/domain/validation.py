"""Whole-record validators.

Each validator receives the complete candidate record as a mapping (for
updates, the stored record merged with the changes) and raises
``ValidationError`` listing every failed rule. Status-dependent required
fields are checked here against the whole record rather than per field.
"""

import re
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from tutordesk.domain.entities import (
    AttendanceStatus,
    AuditTarget,
    Currency,
    ExpenseCategory,
    ExpenseStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    RecurringFrequency,
    Role,
    StudentStatus,
    TeacherPaymentStatus,
    TeacherPaymentType,
    UserStatus,
)
from tutordesk.domain.errors import ValidationError
from tutordesk.utils.money import has_at_most_two_decimals, to_decimal

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)
CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")

MAX_PAYMENT_AMOUNT = Decimal("999999.99")
TWO_DECIMALS = "Amount must have at most 2 decimal places"


def _is_member(enum_cls: type[Enum], value: Any) -> bool:
    try:
        enum_cls(value)
    except ValueError:
        return False
    return True


def _check_enum(errors: list[str], label: str, enum_cls: type[Enum], value: Any) -> None:
    if value is None or not _is_member(enum_cls, value):
        allowed = ", ".join(m.value for m in enum_cls)
        errors.append(f"{label} must be one of: {allowed}")


def _check_required(errors: list[str], record: Mapping[str, Any], *fields: str) -> None:
    for name in fields:
        value = record.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"{name} is required")


def _check_max_length(errors: list[str], record: Mapping[str, Any], name: str, limit: int) -> None:
    value = record.get(name)
    if value is not None and len(value) > limit:
        errors.append(f"{name} cannot exceed {limit} characters")


def _check_money(
    errors: list[str],
    label: str,
    value: Any,
    minimum: Decimal = Decimal("0"),
    maximum: Optional[Decimal] = None,
) -> None:
    if value is None:
        errors.append(f"{label} is required")
        return
    try:
        amount = to_decimal(value)
    except ValueError:
        errors.append(f"{label} must be a number")
        return
    if amount < minimum:
        if minimum > 0:
            errors.append(f"{label} must be at least {minimum}")
        else:
            errors.append(f"{label} must be positive")
    if maximum is not None and amount > maximum:
        errors.append(f"{label} cannot exceed {maximum:,}")
    if not has_at_most_two_decimals(amount):
        errors.append(TWO_DECIMALS if label == "Amount" else f"{label} must have at most 2 decimal places")


def _raise_if(errors: list[str]) -> None:
    if errors:
        raise ValidationError(errors)


def validate_user(record: Mapping[str, Any]) -> None:
    """Validate a user or teacher record."""
    errors: list[str] = []
    _check_required(errors, record, "first_name", "last_name", "email")
    email = record.get("email")
    if email and not EMAIL_RE.match(email):
        errors.append("Please enter a valid email address")
    _check_enum(errors, "Role", Role, record.get("role"))
    _check_enum(errors, "Status", UserStatus, record.get("status"))
    if record.get("role") == Role.TEACHER and not record.get("subject"):
        errors.append("Subject is required for teachers")
    if record.get("status") == UserStatus.APPROVED and record.get("role") == Role.TEACHER:
        if record.get("approved_at") is None:
            errors.append("approved_at is required for approved teachers")
    _raise_if(errors)


def validate_student(record: Mapping[str, Any]) -> None:
    """Validate a student record, including its balance fields."""
    errors: list[str] = []
    _check_required(errors, record, "teacher_id", "first_name", "last_name", "email", "level")
    email = record.get("email")
    if email and not EMAIL_RE.match(email):
        errors.append("Please enter a valid email address")
    _check_enum(errors, "Status", StudentStatus, record.get("status"))
    _check_money(errors, "Current balance", record.get("current_balance", 0))
    _check_money(errors, "Total paid", record.get("total_paid", 0))
    _check_max_length(errors, record, "notes", 1000)
    _raise_if(errors)


def validate_lesson_type(record: Mapping[str, Any]) -> None:
    """Validate a lesson type (rate card) record."""
    errors: list[str] = []
    _check_required(errors, record, "teacher_id", "name")
    _check_max_length(errors, record, "name", 100)
    _check_money(errors, "Hourly rate", record.get("hourly_rate"))
    currency = record.get("currency")
    if not currency or not CURRENCY_CODE_RE.match(currency):
        errors.append("Currency must be a valid 3-letter currency code")
    _raise_if(errors)


def validate_time_entry(record: Mapping[str, Any], today: Optional[date] = None) -> None:
    """Validate a lesson time entry.

    Raises:
        ValidationError: If the date is in the future or the hours are not
            quarter-hour steps between 0.25 and 24
    """
    today = today or date.today()
    errors: list[str] = []
    _check_required(errors, record, "teacher_id", "lesson_type_id", "date")

    entry_date = record.get("date")
    if entry_date is not None and entry_date > today:
        errors.append("Date cannot be in the future")

    hours = record.get("hours_worked")
    if hours is None:
        errors.append("hours_worked is required")
    else:
        hours = to_decimal(hours)
        if hours < Decimal("0.25"):
            errors.append("Minimum hours is 0.25 (15 minutes)")
        if hours > 24:
            errors.append("Maximum hours per day is 24")
        if hours % Decimal("0.25") != 0:
            errors.append("Hours must be in 15-minute intervals (0.25, 0.5, 0.75, etc.)")

    _check_money(errors, "Hourly rate", record.get("hourly_rate"))
    _check_max_length(errors, record, "description", 500)
    _raise_if(errors)


def validate_attendance(record: Mapping[str, Any], today: Optional[date] = None) -> None:
    """Validate an attendance record."""
    today = today or date.today()
    errors: list[str] = []
    _check_required(errors, record, "student_id", "teacher_id", "time_entry_id", "lesson_date", "lesson_type")
    _check_enum(errors, "Attendance status", AttendanceStatus, record.get("status"))

    lesson_date = record.get("lesson_date")
    if lesson_date is not None and lesson_date > today + timedelta(days=1):
        errors.append("Lesson date cannot be more than 1 day in the future")

    duration = record.get("duration")
    if duration is not None:
        if duration < 0:
            errors.append("Duration must be positive")
        elif duration > 480:
            errors.append("Duration cannot exceed 8 hours (480 minutes)")
        if duration % 15 != 0:
            errors.append("Duration must be in 15-minute intervals")

    late_minutes = record.get("late_minutes")
    if record.get("status") == AttendanceStatus.LATE and late_minutes is None:
        errors.append("Late minutes are required when status is late")
    if late_minutes is not None and not 0 <= late_minutes <= 120:
        errors.append("Late minutes must be between 0 and 120")

    makeup = record.get("makeup_scheduled")
    if makeup is not None and lesson_date is not None and makeup <= lesson_date:
        errors.append("Makeup date must be after the lesson date")
    if record.get("makeup_completed") and record.get("makeup_completed_at") is None:
        errors.append("makeup_completed_at is required when the makeup is completed")
    if record.get("parent_notified") and record.get("parent_notified_at") is None:
        errors.append("parent_notified_at is required when the parent was notified")
    _check_max_length(errors, record, "notes", 500)
    _raise_if(errors)


def validate_refund(
    amount: Any, payment_date: date, refund_amount: Any, refund_date: Optional[date]
) -> list[str]:
    """Return messages for a refund that breaks the amount or date bounds."""
    errors: list[str] = []
    _check_money(errors, "Refund amount", refund_amount)
    if not errors and to_decimal(refund_amount) > to_decimal(amount):
        errors.append("Refund amount cannot exceed original payment amount")
    if refund_date is None:
        errors.append("Refund date is required")
    elif refund_date < payment_date:
        errors.append("Refund date must be on or after payment date")
    return errors


def validate_payment(record: Mapping[str, Any], today: Optional[date] = None) -> None:
    """Validate a student payment record.

    Raises:
        ValidationError: With one message per failed rule
    """
    today = today or date.today()
    errors: list[str] = []
    _check_required(errors, record, "student_id", "teacher_id", "payment_date")
    _check_money(errors, "Amount", record.get("amount"), Decimal("0.01"), MAX_PAYMENT_AMOUNT)
    _check_enum(errors, "Currency", Currency, record.get("currency"))
    _check_enum(errors, "Payment method", PaymentMethod, record.get("payment_method"))
    _check_enum(errors, "Payment type", PaymentType, record.get("payment_type"))
    _check_enum(errors, "Status", PaymentStatus, record.get("status"))
    _check_max_length(errors, record, "reference", 100)
    _check_max_length(errors, record, "notes", 500)
    _check_max_length(errors, record, "academic_period", 50)

    payment_date = record.get("payment_date")
    if payment_date is not None:
        if payment_date > today + timedelta(days=1):
            errors.append("Payment date cannot be more than 1 day in the future")
        due_date = record.get("due_date")
        if due_date is not None and due_date < payment_date:
            errors.append("Due date must be after payment date")

    status = record.get("status")
    if status == PaymentStatus.COMPLETED:
        _check_required(errors, record, "approved_by", "approved_at")
    if status == PaymentStatus.FAILED and record.get("rejection_reason"):
        _check_required(errors, record, "rejected_by", "rejected_at")

    refund = record.get("refund")
    if status == PaymentStatus.REFUNDED and refund is None:
        errors.append("Refund details are required for refunded payments")
    if refund is not None and payment_date is not None and record.get("amount") is not None:
        errors.extend(
            validate_refund(
                record["amount"], payment_date, refund.refund_amount, refund.refund_date
            )
        )
    _raise_if(errors)


def validate_teacher_payment(record: Mapping[str, Any]) -> None:
    """Validate a teacher payment record."""
    errors: list[str] = []
    _check_required(errors, record, "teacher_id", "payment_date", "submitted_by")
    _check_money(errors, "Amount", record.get("amount"), Decimal("0.01"))
    _check_enum(errors, "Currency", Currency, record.get("currency"))
    _check_enum(errors, "Payment method", PaymentMethod, record.get("payment_method"))
    _check_enum(errors, "Payment type", TeacherPaymentType, record.get("payment_type"))
    _check_enum(errors, "Status", TeacherPaymentStatus, record.get("status"))
    _check_max_length(errors, record, "description", 500)
    _check_max_length(errors, record, "notes", 1000)

    if record.get("payment_type") == TeacherPaymentType.HOURLY_PAYMENT:
        hours = record.get("hours_worked")
        rate = record.get("hourly_rate")
        if hours is None or to_decimal(hours) <= 0:
            errors.append("Hours worked is required for hourly payments")
        if rate is None or to_decimal(rate) <= 0:
            errors.append("Hourly rate is required for hourly payments")

    status = record.get("status")
    if status in (TeacherPaymentStatus.APPROVED, TeacherPaymentStatus.PAID):
        _check_required(errors, record, "approved_by", "approved_at")
    if status == TeacherPaymentStatus.PAID:
        _check_required(errors, record, "paid_at")
    if status == TeacherPaymentStatus.CANCELLED and record.get("rejection_reason"):
        _check_required(errors, record, "rejected_by", "rejected_at")
    _raise_if(errors)


def validate_expense(record: Mapping[str, Any], today: Optional[date] = None) -> None:
    """Validate a general expense record.

    Raises:
        ValidationError: E.g. "Amount must have at most 2 decimal places"
    """
    today = today or date.today()
    errors: list[str] = []
    _check_required(errors, record, "submitted_by", "description", "date")
    _check_enum(errors, "Category", ExpenseCategory, record.get("category"))
    _check_money(errors, "Amount", record.get("amount"))
    _check_enum(errors, "Status", ExpenseStatus, record.get("status"))
    _check_max_length(errors, record, "description", 500)
    _check_max_length(errors, record, "subcategory", 100)
    _check_max_length(errors, record, "notes", 1000)

    receipt_url = record.get("receipt_url")
    if receipt_url and not URL_RE.match(receipt_url):
        errors.append("Please provide a valid URL for the receipt")

    expense_date = record.get("date")
    if expense_date is not None and expense_date > today + timedelta(days=30):
        errors.append("Date cannot be more than 30 days in the future")

    status = record.get("status")
    if status == ExpenseStatus.PAID:
        _check_required(errors, record, "approved_by", "approved_at")
    if status == ExpenseStatus.REJECTED:
        _check_required(errors, record, "rejected_by", "rejected_at", "rejection_reason")

    if record.get("is_recurring"):
        _check_enum(errors, "Recurring frequency", RecurringFrequency, record.get("recurring_frequency"))
    _raise_if(errors)


def validate_audit_log(record: Mapping[str, Any]) -> None:
    """Validate an audit log entry before it is written."""
    errors: list[str] = []
    _check_required(errors, record, "action")
    _check_enum(errors, "Target type", AuditTarget, record.get("target_type"))
    if record.get("target_type") != AuditTarget.SYSTEM and record.get("target_id") is None:
        errors.append("target_id is required unless the target is the system")
    _raise_if(errors)
