"""Payment domain service: student payments and teacher payments."""

import dataclasses
import logging
from collections import defaultdict
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Optional

from tutordesk import config
from tutordesk.database.base import Database
from tutordesk.domain.audit import AuditTrail, paginate
from tutordesk.domain.entities import (
    AuditTarget,
    ExpenseStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    RefundInfo,
    Role,
    TeacherPayment,
    TeacherPaymentStatus,
    TeacherPaymentType,
)
from tutordesk.domain.errors import NotFoundError, PreconditionError, ValidationError, not_found
from tutordesk.domain.periods import Period
from tutordesk.domain.receipts import (
    STUDENT_RECEIPT_PREFIX,
    TEACHER_RECEIPT_PREFIX,
    format_receipt_number,
    student_receipt_scope,
    teacher_receipt_scope,
)
from tutordesk.domain.validation import validate_payment, validate_refund, validate_teacher_payment
from tutordesk.utils.money import ZERO, round_money, to_decimal, to_float

logger = logging.getLogger(__name__)

PENDING_KINDS = ("all", "teacher", "student", "expense")


def _record(entity: Any) -> dict[str, Any]:
    """Shallow field dict of an entity; nested records stay objects."""
    return {f.name: getattr(entity, f.name) for f in dataclasses.fields(entity)}


def _floored(value: Decimal) -> Decimal:
    return value if value > 0 else ZERO


class PaymentService:
    """Service for student payments, teacher payments and their state machines.

    Student payment: pending -> completed -> refunded; pending|completed ->
    failed|cancelled. Teacher payment: pending -> approved -> paid;
    pending|approved -> cancelled. Receipt numbers are assigned once, on
    first entry into completed or paid.
    """

    def __init__(self, db: Database, audit: Optional[AuditTrail] = None):
        """Initialize payment service.

        Args:
            db: Database instance
            audit: Optional audit trail for state changes
        """
        self.db = db
        self.audit = audit

    def _audit(self, action: str, target: AuditTarget, target_id: int, user_id: Optional[int], **values: Any) -> None:
        if self.audit:
            self.audit.record(action, target, target_id, user_id=user_id, **values)

    # Student payments

    def create_student_payment(
        self,
        student_id: int,
        amount: Decimal,
        payment_date: Optional[date] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        payment_type: PaymentType = PaymentType.LESSON_PAYMENT,
        currency: Optional[str] = None,
        due_date: Optional[date] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        academic_period: Optional[str] = None,
        created_by: Optional[int] = None,
        completed: bool = False,
        today: Optional[date] = None,
    ) -> int:
        """Create a student payment for the student's teacher.

        A pending payment adds its amount to the student's current balance.
        A payment created as completed is stamped as approved by
        ``created_by``, receives a receipt number and adds to total paid.

        Args:
            student_id: Paying student ID
            amount: Amount, 0.01 to 999999.99 with at most 2 decimals
            payment_date: Defaults to today
            payment_method: How the student paid
            payment_type: What the payment is for
            currency: Defaults to the configured currency
            due_date: Optional due date (on or after payment date)
            reference: Optional external reference
            notes: Optional notes
            academic_period: Optional period label
            created_by: Acting user ID
            completed: Create directly in completed status
            today: Reference date for validation

        Returns:
            Payment ID

        Raises:
            NotFoundError: If the student doesn't exist
            ValidationError: If the record is invalid
        """
        student = self.db.get_student(student_id)
        if student is None:
            raise NotFoundError(not_found("Student", student_id))

        payment_date = payment_date or date.today()
        record: dict[str, Any] = {
            "student_id": student_id,
            "teacher_id": student.teacher_id,
            "amount": to_decimal(amount),
            "currency": (currency or config.default_currency()).upper(),
            "payment_method": payment_method,
            "payment_date": payment_date,
            "payment_type": payment_type,
            "status": PaymentStatus.COMPLETED if completed else PaymentStatus.PENDING,
            "due_date": due_date,
            "reference": reference,
            "notes": notes,
            "academic_period": academic_period,
        }
        if completed:
            record["approved_by"] = created_by
            record["approved_at"] = datetime.now(UTC)
        validate_payment(record, today)

        if completed:
            record["receipt_number"] = self._next_student_receipt(student.teacher_id, payment_date)
        payment_id = self.db.create_payment(**record)

        if completed:
            self.db.update_student(student_id, total_paid=student.total_paid + record["amount"])
        else:
            self.db.update_student(student_id, current_balance=student.current_balance + record["amount"])

        logger.info("Created %s payment %s for student %s", record["status"].value, payment_id, student_id)
        self._audit("payment_created", AuditTarget.PAYMENT, payment_id, created_by, new=record)
        return payment_id

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get student payment by ID."""
        return self.db.get_payment(payment_id)

    def require_payment(self, payment_id: int) -> Payment:
        payment = self.db.get_payment(payment_id)
        if payment is None:
            raise NotFoundError(not_found("Payment", payment_id))
        return payment

    def _next_student_receipt(self, teacher_id: int, payment_date: date) -> str:
        sequence = self.db.next_receipt_sequence(student_receipt_scope(teacher_id))
        return format_receipt_number(STUDENT_RECEIPT_PREFIX, payment_date, sequence)

    def _save_payment(self, payment: Payment, changes: dict[str, Any]) -> Payment:
        candidate = _record(payment)
        candidate.update(changes)
        validate_payment(candidate)
        self.db.update_payment(payment.id, **changes)
        return self.require_payment(payment.id)

    def complete_payment(self, payment_id: int, approved_by: int) -> Payment:
        """Complete a pending payment.

        Assigns a receipt number if the payment has none and moves the amount
        from the student's current balance to total paid.

        Args:
            payment_id: Payment ID
            approved_by: Acting user ID

        Returns:
            Updated payment

        Raises:
            NotFoundError: If the payment doesn't exist
            PreconditionError: If the payment is not pending
        """
        payment = self.require_payment(payment_id)
        if payment.status != PaymentStatus.PENDING:
            raise PreconditionError("Can only complete pending payments")

        changes: dict[str, Any] = {
            "status": PaymentStatus.COMPLETED,
            "approved_by": approved_by,
            "approved_at": datetime.now(UTC),
        }
        candidate = _record(payment)
        candidate.update(changes)
        validate_payment(candidate)
        if payment.receipt_number is None:
            changes["receipt_number"] = self._next_student_receipt(payment.teacher_id, payment.payment_date)
        updated = self._save_payment(payment, changes)

        student = self.db.get_student(payment.student_id)
        if student is not None:
            self.db.update_student(
                student.id,
                total_paid=student.total_paid + payment.amount,
                current_balance=_floored(student.current_balance - payment.amount),
            )

        logger.info("Completed payment %s (receipt %s)", payment_id, updated.receipt_number)
        self._audit(
            "payment_completed",
            AuditTarget.PAYMENT,
            payment_id,
            approved_by,
            previous={"status": payment.status, "receipt_number": payment.receipt_number},
            new={"status": updated.status, "receipt_number": updated.receipt_number},
        )
        return updated

    def refund_payment(
        self,
        payment_id: int,
        refund_amount: Decimal,
        reason: str,
        refunded_by: int,
        refund_method: Optional[PaymentMethod] = None,
        refund_date: Optional[date] = None,
    ) -> Payment:
        """Refund a completed payment.

        On any failed rule the payment is left unchanged.

        Args:
            payment_id: Payment ID
            refund_amount: Refunded amount, at most the original amount
            reason: Refund reason
            refunded_by: Acting user ID
            refund_method: Defaults to the original payment method
            refund_date: Defaults to today; must be on or after the payment date

        Returns:
            Updated payment

        Raises:
            NotFoundError: If the payment doesn't exist
            PreconditionError: If the payment is not completed
            ValidationError: If the refund amount or date is out of bounds
        """
        payment = self.require_payment(payment_id)
        if payment.status != PaymentStatus.COMPLETED:
            raise PreconditionError("Can only refund completed payments")

        refund_amount = to_decimal(refund_amount)
        refund_date = refund_date or date.today()
        errors = validate_refund(payment.amount, payment.payment_date, refund_amount, refund_date)
        if errors:
            raise ValidationError(errors)

        method = PaymentMethod(refund_method) if refund_method else payment.payment_method
        refund = RefundInfo(
            refund_amount=refund_amount,
            refund_date=refund_date,
            refund_reason=reason,
            refund_method=method.value,
        )
        candidate = _record(payment)
        candidate.update(status=PaymentStatus.REFUNDED, refund=refund)
        validate_payment(candidate)

        self.db.update_payment(
            payment_id,
            status=PaymentStatus.REFUNDED,
            refund_amount=refund.refund_amount,
            refund_date=refund.refund_date,
            refund_reason=refund.refund_reason,
            refund_method=refund.refund_method,
        )
        student = self.db.get_student(payment.student_id)
        if student is not None:
            self.db.update_student(student.id, total_paid=_floored(student.total_paid - refund_amount))

        logger.info("Refunded %s of payment %s", refund_amount, payment_id)
        self._audit(
            "payment_refunded",
            AuditTarget.PAYMENT,
            payment_id,
            refunded_by,
            previous={"status": payment.status},
            new={"status": PaymentStatus.REFUNDED, "refund": refund},
        )
        return self.require_payment(payment_id)

    def mark_payment_failed(self, payment_id: int, reason: str, rejected_by: int) -> Payment:
        """Mark a pending or completed payment failed, appending the reason to the notes.

        Raises:
            NotFoundError: If the payment doesn't exist
            PreconditionError: If the payment is neither pending nor completed
            ValidationError: If no reason is given
        """
        payment = self.require_payment(payment_id)
        if payment.status not in (PaymentStatus.PENDING, PaymentStatus.COMPLETED):
            raise PreconditionError(f"Payment {payment_id} cannot be marked failed from '{payment.status.value}'")
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to mark a payment failed")

        failure = f"Failed: {reason}"
        changes = {
            "status": PaymentStatus.FAILED,
            "notes": f"{payment.notes}\n\n{failure}" if payment.notes else failure,
            "rejected_by": rejected_by,
            "rejected_at": datetime.now(UTC),
            "rejection_reason": reason,
        }
        updated = self._save_payment(payment, changes)
        self._release_pending_balance(payment)

        logger.info("Payment %s marked failed", payment_id)
        self._audit(
            "payment_failed",
            AuditTarget.PAYMENT,
            payment_id,
            rejected_by,
            previous={"status": payment.status},
            new={"status": updated.status, "rejection_reason": reason},
        )
        return updated

    def cancel_payment(self, payment_id: int, cancelled_by: int, reason: Optional[str] = None) -> Payment:
        """Cancel a pending or completed payment.

        Raises:
            NotFoundError: If the payment doesn't exist
            PreconditionError: If the payment is neither pending nor completed
        """
        payment = self.require_payment(payment_id)
        if payment.status not in (PaymentStatus.PENDING, PaymentStatus.COMPLETED):
            raise PreconditionError(f"Payment {payment_id} cannot be cancelled from '{payment.status.value}'")

        changes: dict[str, Any] = {"status": PaymentStatus.CANCELLED}
        if reason:
            changes.update(rejected_by=cancelled_by, rejected_at=datetime.now(UTC), rejection_reason=reason)
        updated = self._save_payment(payment, changes)
        self._release_pending_balance(payment)

        logger.info("Payment %s cancelled", payment_id)
        self._audit(
            "payment_cancelled",
            AuditTarget.PAYMENT,
            payment_id,
            cancelled_by,
            previous={"status": payment.status},
            new=changes,
        )
        return updated

    def _release_pending_balance(self, payment: Payment) -> None:
        if payment.status != PaymentStatus.PENDING:
            return
        student = self.db.get_student(payment.student_id)
        if student is not None:
            self.db.update_student(
                student.id, current_balance=_floored(student.current_balance - payment.amount)
            )

    def list_payments(
        self,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        status: Optional[PaymentStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Payment]:
        """List student payments by payment date, newest first."""
        return self.db.list_payments(
            student_id=student_id,
            teacher_id=teacher_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
        )

    def get_student_payment_history(
        self,
        student_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[PaymentStatus] = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        """Paged payment history of a student with a per-status summary.

        Returns:
            Dict with ``payments``, ``summary`` [{status, total, count}] and
            ``pagination`` {current, pages, total}
        """
        page = max(page, 1)
        filters = {"student_id": student_id, "status": status, "start_date": start_date, "end_date": end_date}
        payments = self.db.list_payments(**filters, limit=limit, offset=(page - 1) * limit)
        total = self.db.count_payments(**filters)
        summary = [
            row
            for row in self.db.get_payment_status_summary(
                student_id=student_id, start_date=start_date, end_date=end_date
            )
            if status is None or row["status"] == PaymentStatus(status).value
        ]
        return {"payments": payments, "summary": summary, "pagination": paginate(page, limit, total)}

    def get_student_payment_stats(
        self,
        student_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Completed payment statistics for a student; zero-valued when there are none."""
        return self.db.get_student_payment_stats(student_id, start_date, end_date)

    def get_teacher_payment_overview(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Completed payments of a teacher's students grouped by student, largest first."""
        return self.db.get_teacher_payment_overview(teacher_id, start_date, end_date)

    def get_payment_analytics(self, teacher_id: int, period: "str | Period" = Period.MONTH) -> list[dict[str, Any]]:
        """Completed payments of a teacher bucketed by period key, in time order."""
        period = Period.parse(period)
        buckets: dict[str, list[Payment]] = defaultdict(list)
        for payment in self.db.list_payments(teacher_id=teacher_id, status=PaymentStatus.COMPLETED):
            buckets[period.bucket_key(payment.payment_date)].append(payment)

        analytics = []
        for key in sorted(buckets):
            payments = buckets[key]
            total = sum((p.amount for p in payments), ZERO)
            analytics.append(
                {
                    "period": key,
                    "totalPayments": len(payments),
                    "totalAmount": to_float(total),
                    "avgPaymentAmount": to_float(total / len(payments)),
                    "paymentMethods": sorted({p.payment_method.value for p in payments}),
                    "paymentTypes": sorted({p.payment_type.value for p in payments}),
                }
            )
        return analytics

    def get_overdue_payments(self, teacher_id: Optional[int] = None, today: Optional[date] = None) -> list[Payment]:
        """Pending payments past their due date, oldest due date first."""
        return self.db.get_overdue_payments(today or date.today(), teacher_id)

    # Teacher payments

    def create_teacher_payment(
        self,
        teacher_id: int,
        payment_type: TeacherPaymentType,
        submitted_by: int,
        amount: Optional[Decimal] = None,
        payment_date: Optional[date] = None,
        payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER,
        currency: Optional[str] = None,
        hours_worked: Optional[Decimal] = None,
        hourly_rate: Optional[Decimal] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a pending teacher payment.

        For hourly payments, and whenever no amount is given but hours and
        rate are, the amount is hours x rate.

        Args:
            teacher_id: Paid teacher ID
            payment_type: Salary, hourly payment, bonus, ...
            submitted_by: Acting user ID
            amount: Amount (derived for hourly payments)
            payment_date: Defaults to today
            payment_method: Defaults to bank transfer
            currency: Defaults to the configured currency
            hours_worked: Hours (required for hourly payments)
            hourly_rate: Rate (required for hourly payments)
            description: Optional description
            reference: Optional reference
            notes: Optional notes

        Returns:
            Teacher payment ID

        Raises:
            NotFoundError: If the teacher doesn't exist
            ValidationError: If the record is invalid
        """
        teacher = self.db.get_user(teacher_id)
        if teacher is None or teacher.role != Role.TEACHER:
            raise NotFoundError(not_found("Teacher", teacher_id))

        payment_type = TeacherPaymentType(payment_type)
        hours = to_decimal(hours_worked) if hours_worked is not None else None
        rate = to_decimal(hourly_rate) if hourly_rate is not None else None
        if hours and rate and (amount is None or payment_type == TeacherPaymentType.HOURLY_PAYMENT):
            amount = round_money(hours * rate)

        record = {
            "teacher_id": teacher_id,
            "amount": to_decimal(amount) if amount is not None else None,
            "currency": (currency or config.default_currency()).upper(),
            "payment_method": payment_method,
            "payment_date": payment_date or date.today(),
            "payment_type": payment_type,
            "hours_worked": hours,
            "hourly_rate": rate,
            "description": description,
            "reference": reference,
            "status": TeacherPaymentStatus.PENDING,
            "notes": notes,
            "submitted_by": submitted_by,
        }
        validate_teacher_payment(record)

        payment_id = self.db.create_teacher_payment(**record)
        logger.info("Created teacher payment %s for teacher %s", payment_id, teacher_id)
        self._audit("teacher_payment_created", AuditTarget.TEACHER_PAYMENT, payment_id, submitted_by, new=record)
        return payment_id

    def get_teacher_payment(self, payment_id: int) -> Optional[TeacherPayment]:
        """Get teacher payment by ID."""
        return self.db.get_teacher_payment(payment_id)

    def require_teacher_payment(self, payment_id: int) -> TeacherPayment:
        payment = self.db.get_teacher_payment(payment_id)
        if payment is None:
            raise NotFoundError(not_found("Teacher payment", payment_id))
        return payment

    def _save_teacher_payment(self, payment: TeacherPayment, changes: dict[str, Any]) -> TeacherPayment:
        candidate = _record(payment)
        candidate.update(changes)
        validate_teacher_payment(candidate)
        self.db.update_teacher_payment(payment.id, **changes)
        return self.require_teacher_payment(payment.id)

    def approve_teacher_payment(self, payment_id: int, approved_by: int) -> TeacherPayment:
        """Approve a pending teacher payment.

        Raises:
            NotFoundError: If the payment doesn't exist
            PreconditionError: If the payment is not pending
        """
        payment = self.require_teacher_payment(payment_id)
        if payment.status != TeacherPaymentStatus.PENDING:
            raise PreconditionError("Payment is not in pending status")

        changes = {
            "status": TeacherPaymentStatus.APPROVED,
            "approved_by": approved_by,
            "approved_at": datetime.now(UTC),
        }
        updated = self._save_teacher_payment(payment, changes)
        logger.info("Teacher payment %s approved by %s", payment_id, approved_by)
        self._audit(
            "teacher_payment_approved",
            AuditTarget.TEACHER_PAYMENT,
            payment_id,
            approved_by,
            previous={"status": payment.status},
            new=changes,
        )
        return updated

    def process_teacher_payment(
        self,
        payment_id: int,
        processed_by: int,
        payment_date: Optional[date] = None,
        payment_method: Optional[PaymentMethod] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> TeacherPayment:
        """Mark an approved teacher payment paid and assign its receipt number.

        Args:
            payment_id: Teacher payment ID
            processed_by: Acting user ID
            payment_date: Date paid, defaults to today
            payment_method: Optional new payment method
            reference: Optional transaction reference
            notes: Optional notes

        Returns:
            Updated teacher payment

        Raises:
            NotFoundError: If the payment doesn't exist
            PreconditionError: If the payment is not approved
        """
        payment = self.require_teacher_payment(payment_id)
        if payment.status != TeacherPaymentStatus.APPROVED:
            raise PreconditionError("Payment cannot be processed")

        paid_on = payment_date or date.today()
        changes: dict[str, Any] = {
            "status": TeacherPaymentStatus.PAID,
            "payment_date": paid_on,
            "paid_at": datetime.now(UTC),
            "payment_method": payment_method or payment.payment_method,
            "reference": reference or payment.reference,
            "notes": notes or payment.notes,
        }
        candidate = _record(payment)
        candidate.update(changes)
        validate_teacher_payment(candidate)
        if payment.receipt_number is None:
            sequence = self.db.next_receipt_sequence(teacher_receipt_scope(paid_on))
            changes["receipt_number"] = format_receipt_number(TEACHER_RECEIPT_PREFIX, paid_on, sequence)
        updated = self._save_teacher_payment(payment, changes)

        logger.info("Teacher payment %s paid (receipt %s)", payment_id, updated.receipt_number)
        self._audit(
            "teacher_payment_processed",
            AuditTarget.TEACHER_PAYMENT,
            payment_id,
            processed_by,
            previous={"status": payment.status, "receipt_number": payment.receipt_number},
            new={"status": updated.status, "receipt_number": updated.receipt_number},
        )
        return updated

    def reject_teacher_payment(self, payment_id: int, rejected_by: int, reason: str) -> TeacherPayment:
        """Cancel a pending or approved teacher payment.

        Raises:
            NotFoundError: If the payment doesn't exist
            PreconditionError: If the payment is already paid or cancelled
            ValidationError: If no reason is given
        """
        payment = self.require_teacher_payment(payment_id)
        if payment.status not in (TeacherPaymentStatus.PENDING, TeacherPaymentStatus.APPROVED):
            raise PreconditionError(f"Teacher payment {payment_id} cannot be rejected from '{payment.status.value}'")
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")

        changes = {
            "status": TeacherPaymentStatus.CANCELLED,
            "rejected_by": rejected_by,
            "rejected_at": datetime.now(UTC),
            "rejection_reason": reason,
        }
        updated = self._save_teacher_payment(payment, changes)
        logger.info("Teacher payment %s rejected by %s", payment_id, rejected_by)
        self._audit(
            "teacher_payment_rejected",
            AuditTarget.TEACHER_PAYMENT,
            payment_id,
            rejected_by,
            previous={"status": payment.status},
            new=changes,
        )
        return updated

    def generate_payment_from_time_entries(
        self, teacher_id: int, start_date: date, end_date: date, created_by: int
    ) -> int:
        """Create a pending teacher payment covering the teacher's time entries in a range.

        When every entry shares one rate the payment is an hourly payment of
        total hours at that rate; otherwise it is an ``other`` payment of the
        summed entry amounts.

        Raises:
            NotFoundError: If the teacher doesn't exist
            PreconditionError: If there are no time entries in the range
        """
        entries = self.db.list_time_entries(teacher_id=teacher_id, start_date=start_date, end_date=end_date)
        if not entries:
            raise PreconditionError("No time entries found for the specified period")

        total_hours = sum((e.hours_worked for e in entries), ZERO)
        total_amount = sum((e.total_amount for e in entries), ZERO)
        rates = {e.hourly_rate for e in entries}
        description = (
            f"Payment for {total_hours} hours worked from {start_date.isoformat()} to {end_date.isoformat()}"
        )

        if len(rates) == 1:
            return self.create_teacher_payment(
                teacher_id=teacher_id,
                payment_type=TeacherPaymentType.HOURLY_PAYMENT,
                submitted_by=created_by,
                payment_date=end_date,
                currency=entries[0].currency,
                hours_worked=total_hours,
                hourly_rate=rates.pop(),
                description=description,
            )
        return self.create_teacher_payment(
            teacher_id=teacher_id,
            payment_type=TeacherPaymentType.OTHER,
            submitted_by=created_by,
            amount=total_amount,
            payment_date=end_date,
            currency=entries[0].currency,
            description=description,
        )

    def list_teacher_payments(
        self,
        teacher_id: Optional[int] = None,
        status: Optional[TeacherPaymentStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[TeacherPayment]:
        """List teacher payments by creation time, newest first."""
        return self.db.list_teacher_payments(
            teacher_id=teacher_id, status=status, start_date=start_date, end_date=end_date
        )

    def get_teacher_payment_history(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[TeacherPaymentStatus] = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        """Paged payment history of a teacher (creation date range) with a per-status summary."""
        page = max(page, 1)
        filters = {"teacher_id": teacher_id, "status": status, "start_date": start_date, "end_date": end_date}
        payments = self.db.list_teacher_payments(**filters, limit=limit, offset=(page - 1) * limit)
        total = self.db.count_teacher_payments(**filters)
        summary = self.db.get_teacher_payment_status_summary(**filters)
        return {"payments": payments, "summary": summary, "pagination": paginate(page, limit, total)}

    def get_teacher_payment_summary(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Totals and counts per status for one teacher."""
        return self.db.get_teacher_payment_summary(teacher_id, start_date, end_date)

    def get_all_teachers_payment_summary(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[dict[str, Any]]:
        """Paid and outstanding totals per teacher, sorted by teacher name."""
        return self.db.get_all_teachers_payment_summary(start_date, end_date)

    def get_overdue_teacher_payments(self, today: Optional[date] = None) -> list[TeacherPayment]:
        """Pending or approved teacher payments more than 30 days past their payment date."""
        today = today or date.today()
        open_payments = [
            p
            for status in (TeacherPaymentStatus.PENDING, TeacherPaymentStatus.APPROVED)
            for p in self.db.list_teacher_payments(status=status)
        ]
        overdue = [p for p in open_payments if p.is_overdue(today)]
        return sorted(overdue, key=lambda p: (p.payment_date, p.id))

    def get_pending_payments(self, kind: str = "all") -> dict[str, list[Any]]:
        """Items awaiting approval.

        Args:
            kind: all, teacher, student or expense

        Returns:
            Dict with ``teacher_payments``, ``student_payments`` and/or ``expenses``

        Raises:
            ValidationError: If kind is unknown
        """
        if kind not in PENDING_KINDS:
            raise ValidationError(f"Pending payment kind must be one of: {', '.join(PENDING_KINDS)}")

        results: dict[str, list[Any]] = {}
        if kind in ("all", "teacher"):
            results["teacher_payments"] = self.db.list_teacher_payments(status=TeacherPaymentStatus.PENDING)
        if kind in ("all", "student"):
            results["student_payments"] = self.db.list_payments(status=PaymentStatus.PENDING)
        if kind in ("all", "expense"):
            results["expenses"] = self.db.list_expenses(status=ExpenseStatus.PENDING)
        return results
