"""Tests for student payment workflows."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from tutordesk.domain.entities import PaymentMethod, PaymentStatus
from tutordesk.domain.errors import NotFoundError, PreconditionError, ValidationError

PAY_DAY = date(2024, 3, 10)


@pytest.fixture
def pending_payment(payment_service, sample_student):
    payment_id = payment_service.create_student_payment(
        student_id=sample_student.id, amount=Decimal("2500"), payment_date=PAY_DAY
    )
    return payment_service.get_payment(payment_id)


@pytest.fixture
def completed_payment(payment_service, sample_student, sample_admin):
    payment_id = payment_service.create_student_payment(
        student_id=sample_student.id,
        amount=Decimal("2500"),
        payment_date=PAY_DAY,
        completed=True,
        created_by=sample_admin.id,
    )
    return payment_service.get_payment(payment_id)


def test_pending_payment_adds_to_balance(payment_service, student_service, pending_payment, sample_student):
    assert pending_payment.status == PaymentStatus.PENDING
    assert pending_payment.receipt_number is None
    assert pending_payment.teacher_id == sample_student.teacher_id
    assert student_service.get_student(sample_student.id).current_balance == Decimal("2500")


def test_complete_payment_assigns_receipt(payment_service, student_service, pending_payment, sample_admin):
    payment = payment_service.complete_payment(pending_payment.id, sample_admin.id)

    assert payment.status == PaymentStatus.COMPLETED
    assert payment.receipt_number == "RCP-202403-0001"
    assert payment.approved_by == sample_admin.id
    student = student_service.get_student(payment.student_id)
    assert student.total_paid == Decimal("2500")
    assert student.current_balance == Decimal("0")


def test_complete_only_pending(payment_service, completed_payment, sample_admin):
    with pytest.raises(PreconditionError, match="Can only complete pending payments"):
        payment_service.complete_payment(completed_payment.id, sample_admin.id)


def test_receipt_numbers_increase_per_teacher(payment_service, sample_student, sample_admin):
    receipts = []
    for day in (PAY_DAY, PAY_DAY + timedelta(days=40)):
        payment_id = payment_service.create_student_payment(
            student_id=sample_student.id,
            amount=Decimal("100"),
            payment_date=day,
            completed=True,
            created_by=sample_admin.id,
        )
        receipts.append(payment_service.get_payment(payment_id).receipt_number)

    assert receipts == ["RCP-202403-0001", "RCP-202404-0002"]


def test_receipt_sequences_are_separate_per_teacher(
    payment_service, student_service, teacher_service, sample_student, sample_admin
):
    other_teacher = teacher_service.register("omar@example.com", "Omar", "Saidi", subject="Chemistry")
    other_student = student_service.create_student(
        teacher_id=other_teacher, first_name="Lina", last_name="K", email="lina@example.com", level="2"
    )
    first = payment_service.create_student_payment(
        student_id=sample_student.id, amount=Decimal("100"), payment_date=PAY_DAY, completed=True,
        created_by=sample_admin.id,
    )
    second = payment_service.create_student_payment(
        student_id=other_student, amount=Decimal("100"), payment_date=PAY_DAY, completed=True,
        created_by=sample_admin.id,
    )

    assert payment_service.get_payment(first).receipt_number == "RCP-202403-0001"
    assert payment_service.get_payment(second).receipt_number == "RCP-202403-0001"


def test_completing_payments_of_two_teachers(
    payment_service, student_service, teacher_service, pending_payment, sample_admin
):
    other_teacher = teacher_service.register("omar@example.com", "Omar", "Saidi", subject="Chemistry")
    other_student = student_service.create_student(
        teacher_id=other_teacher, first_name="Lina", last_name="K", email="lina@example.com", level="2"
    )
    other_payment = payment_service.create_student_payment(
        student_id=other_student, amount=Decimal("400"), payment_date=PAY_DAY
    )

    first = payment_service.complete_payment(pending_payment.id, sample_admin.id)
    second = payment_service.complete_payment(other_payment, sample_admin.id)

    assert first.receipt_number == second.receipt_number == "RCP-202403-0001"
    assert second.status == PaymentStatus.COMPLETED


def test_completed_payment_requires_approver(payment_service, sample_student):
    with pytest.raises(ValidationError, match="approved_by is required"):
        payment_service.create_student_payment(
            student_id=sample_student.id, amount=Decimal("100"), payment_date=PAY_DAY, completed=True
        )


def test_payment_for_unknown_student(payment_service):
    with pytest.raises(NotFoundError, match="Student 7 not found"):
        payment_service.create_student_payment(student_id=7, amount=Decimal("100"))


def test_refund_payment(payment_service, student_service, completed_payment, sample_admin):
    payment = payment_service.refund_payment(
        completed_payment.id, Decimal("1000"), "Course cancelled", sample_admin.id
    )

    assert payment.status == PaymentStatus.REFUNDED
    assert payment.refund.refund_amount == Decimal("1000")
    assert payment.refund.refund_method == PaymentMethod.CASH.value
    assert payment.receipt_number == completed_payment.receipt_number
    assert payment.net_amount == Decimal("1500")
    assert student_service.get_student(payment.student_id).total_paid == Decimal("1500")


def test_refund_above_amount_leaves_payment_unchanged(payment_service, completed_payment, sample_admin):
    with pytest.raises(ValidationError, match="cannot exceed original payment amount"):
        payment_service.refund_payment(completed_payment.id, Decimal("3000"), "Too much", sample_admin.id)

    assert payment_service.get_payment(completed_payment.id) == completed_payment


def test_refund_before_payment_date_rejected(payment_service, completed_payment, sample_admin):
    with pytest.raises(ValidationError, match="on or after payment date"):
        payment_service.refund_payment(
            completed_payment.id,
            Decimal("100"),
            "Early",
            sample_admin.id,
            refund_date=PAY_DAY - timedelta(days=1),
        )
    assert payment_service.get_payment(completed_payment.id).status == PaymentStatus.COMPLETED


def test_refund_only_completed(payment_service, pending_payment, sample_admin):
    with pytest.raises(PreconditionError, match="Can only refund completed payments"):
        payment_service.refund_payment(pending_payment.id, Decimal("10"), "No", sample_admin.id)


def test_mark_failed_appends_reason_and_releases_balance(
    payment_service, student_service, pending_payment, sample_admin
):
    payment = payment_service.mark_payment_failed(pending_payment.id, "Cheque bounced", sample_admin.id)

    assert payment.status == PaymentStatus.FAILED
    assert payment.notes == "Failed: Cheque bounced"
    assert payment.rejection_reason == "Cheque bounced"
    assert student_service.get_student(payment.student_id).current_balance == Decimal("0")


def test_mark_failed_requires_reason(payment_service, pending_payment, sample_admin):
    with pytest.raises(ValidationError, match="reason is required"):
        payment_service.mark_payment_failed(pending_payment.id, " ", sample_admin.id)


def test_cancel_completed_payment_keeps_balance(payment_service, student_service, completed_payment, sample_admin):
    payment = payment_service.cancel_payment(completed_payment.id, sample_admin.id, "Duplicate")

    assert payment.status == PaymentStatus.CANCELLED
    assert student_service.get_student(payment.student_id).current_balance == Decimal("0")
    with pytest.raises(PreconditionError):
        payment_service.cancel_payment(completed_payment.id, sample_admin.id)


def test_payment_history_and_stats(payment_service, pending_payment, completed_payment, sample_student):
    history = payment_service.get_student_payment_history(sample_student.id, page=1, limit=1)

    assert len(history["payments"]) == 1
    assert history["pagination"] == {"current": 1, "pages": 2, "total": 2}
    statuses = {row["status"]: row["count"] for row in history["summary"]}
    assert statuses == {"completed": 1, "pending": 1}

    stats = payment_service.get_student_payment_stats(sample_student.id)
    assert stats["total_payments"] == 1
    assert stats["total_amount"] == Decimal("2500.00")
    assert stats["payment_methods"] == ["cash"]


def test_payment_stats_without_payments(payment_service, sample_student):
    stats = payment_service.get_student_payment_stats(sample_student.id)
    assert stats["total_payments"] == 0
    assert stats["first_payment_date"] is None


def test_payment_analytics_buckets(payment_service, sample_student, sample_teacher, sample_admin):
    for day, amount in ((date(2024, 1, 5), "100"), (date(2024, 1, 20), "300"), (date(2024, 2, 1), "50")):
        payment_service.create_student_payment(
            student_id=sample_student.id,
            amount=Decimal(amount),
            payment_date=day,
            completed=True,
            created_by=sample_admin.id,
        )
    analytics = payment_service.get_payment_analytics(sample_teacher.id, "month")

    assert [row["period"] for row in analytics] == ["2024-01", "2024-02"]
    assert analytics[0]["totalPayments"] == 2
    assert analytics[0]["totalAmount"] == 400.0
    assert analytics[0]["avgPaymentAmount"] == 200.0


def test_overdue_payments(payment_service, sample_student):
    payment_id = payment_service.create_student_payment(
        student_id=sample_student.id, amount=Decimal("100"), payment_date=PAY_DAY, due_date=PAY_DAY + timedelta(days=5)
    )
    overdue = payment_service.get_overdue_payments(today=PAY_DAY + timedelta(days=10))

    assert [p.id for p in overdue] == [payment_id]
    assert overdue[0].days_overdue(PAY_DAY + timedelta(days=10)) == 5
    assert payment_service.get_overdue_payments(today=PAY_DAY + timedelta(days=5)) == []


def test_pending_items(payment_service, pending_payment):
    pending = payment_service.get_pending_payments("student")
    assert list(pending) == ["student_payments"]
    assert [p.id for p in pending["student_payments"]] == [pending_payment.id]

    with pytest.raises(ValidationError):
        payment_service.get_pending_payments("everything")
