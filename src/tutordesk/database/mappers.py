"""Mapper functions to convert SQLAlchemy models into domain entities.

Status and category columns are stored as plain strings and come back as
their enum types here.
"""

from decimal import Decimal
from typing import Optional

from tutordesk.domain import entities as domain
from tutordesk.database.models import (
    User as ORMUser,
    Student as ORMStudent,
    LessonType as ORMLessonType,
    TimeEntry as ORMTimeEntry,
    Attendance as ORMAttendance,
    Payment as ORMPayment,
    TeacherPayment as ORMTeacherPayment,
    Expense as ORMExpense,
    AuditLog as ORMAuditLog,
    FinancialReport as ORMFinancialReport,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        email=orm_user.email,
        first_name=orm_user.first_name,
        last_name=orm_user.last_name,
        role=domain.Role(orm_user.role),
        subject=orm_user.subject,
        status=domain.UserStatus(orm_user.status),
        created_at=orm_user.created_at,
        approved_by=orm_user.approved_by,
        approved_at=orm_user.approved_at,
    )


def student_to_domain(orm_student: ORMStudent) -> domain.Student:
    """Convert SQLAlchemy Student model to domain Student entity."""
    return domain.Student(
        id=orm_student.id,
        teacher_id=orm_student.teacher_id,
        first_name=orm_student.first_name,
        last_name=orm_student.last_name,
        email=orm_student.email,
        phone=orm_student.phone,
        level=orm_student.level,
        enrollment_date=orm_student.enrollment_date,
        status=domain.StudentStatus(orm_student.status),
        current_balance=_decimal(orm_student.current_balance),
        total_paid=_decimal(orm_student.total_paid),
        notes=orm_student.notes,
        created_at=orm_student.created_at,
    )


def lesson_type_to_domain(orm_lesson_type: ORMLessonType) -> domain.LessonType:
    """Convert SQLAlchemy LessonType model to domain LessonType entity."""
    return domain.LessonType(
        id=orm_lesson_type.id,
        teacher_id=orm_lesson_type.teacher_id,
        name=orm_lesson_type.name,
        description=orm_lesson_type.description,
        hourly_rate=_decimal(orm_lesson_type.hourly_rate),
        currency=orm_lesson_type.currency,
        is_active=orm_lesson_type.is_active,
        created_at=orm_lesson_type.created_at,
    )


def time_entry_to_domain(orm_entry: ORMTimeEntry) -> domain.TimeEntry:
    """Convert SQLAlchemy TimeEntry model (with its edits) to a domain TimeEntry."""
    history = tuple(
        domain.TimeEntryEdit(
            previous_hours=_decimal(edit.previous_hours),
            previous_amount=_decimal(edit.previous_amount),
            edited_at=edit.edited_at,
            edited_by=edit.edited_by,
        )
        for edit in orm_entry.edits
    )
    return domain.TimeEntry(
        id=orm_entry.id,
        teacher_id=orm_entry.teacher_id,
        lesson_type_id=orm_entry.lesson_type_id,
        student_id=orm_entry.student_id,
        date=orm_entry.date,
        hours_worked=_decimal(orm_entry.hours_worked),
        hourly_rate=_decimal(orm_entry.hourly_rate),
        total_amount=_decimal(orm_entry.total_amount),
        currency=orm_entry.currency,
        description=orm_entry.description,
        created_at=orm_entry.created_at,
        edit_history=history,
    )


def attendance_to_domain(orm_attendance: ORMAttendance) -> domain.Attendance:
    """Convert SQLAlchemy Attendance model to domain Attendance entity."""
    return domain.Attendance(
        id=orm_attendance.id,
        student_id=orm_attendance.student_id,
        teacher_id=orm_attendance.teacher_id,
        time_entry_id=orm_attendance.time_entry_id,
        lesson_date=orm_attendance.lesson_date,
        lesson_type=orm_attendance.lesson_type,
        status=domain.AttendanceStatus(orm_attendance.status),
        duration=orm_attendance.duration,
        notes=orm_attendance.notes,
        late_minutes=orm_attendance.late_minutes,
        makeup_scheduled=orm_attendance.makeup_scheduled,
        makeup_completed=orm_attendance.makeup_completed,
        makeup_completed_at=orm_attendance.makeup_completed_at,
        parent_notified=orm_attendance.parent_notified,
        parent_notified_at=orm_attendance.parent_notified_at,
        created_at=orm_attendance.created_at,
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    refund = None
    if orm_payment.refund_amount is not None:
        refund = domain.RefundInfo(
            refund_amount=_decimal(orm_payment.refund_amount),
            refund_date=orm_payment.refund_date,
            refund_reason=orm_payment.refund_reason,
            refund_method=orm_payment.refund_method,
        )
    return domain.Payment(
        id=orm_payment.id,
        student_id=orm_payment.student_id,
        teacher_id=orm_payment.teacher_id,
        amount=_decimal(orm_payment.amount),
        currency=orm_payment.currency,
        payment_method=domain.PaymentMethod(orm_payment.payment_method),
        payment_date=orm_payment.payment_date,
        payment_type=domain.PaymentType(orm_payment.payment_type),
        status=domain.PaymentStatus(orm_payment.status),
        due_date=orm_payment.due_date,
        reference=orm_payment.reference,
        notes=orm_payment.notes,
        academic_period=orm_payment.academic_period,
        receipt_number=orm_payment.receipt_number,
        created_at=orm_payment.created_at,
        approved_by=orm_payment.approved_by,
        approved_at=orm_payment.approved_at,
        rejected_by=orm_payment.rejected_by,
        rejected_at=orm_payment.rejected_at,
        rejection_reason=orm_payment.rejection_reason,
        refund=refund,
    )


def teacher_payment_to_domain(orm_payment: ORMTeacherPayment) -> domain.TeacherPayment:
    """Convert SQLAlchemy TeacherPayment model to domain TeacherPayment entity."""
    return domain.TeacherPayment(
        id=orm_payment.id,
        teacher_id=orm_payment.teacher_id,
        amount=_decimal(orm_payment.amount),
        currency=orm_payment.currency,
        payment_method=domain.PaymentMethod(orm_payment.payment_method),
        payment_date=orm_payment.payment_date,
        payment_type=domain.TeacherPaymentType(orm_payment.payment_type),
        hours_worked=_decimal(orm_payment.hours_worked),
        hourly_rate=_decimal(orm_payment.hourly_rate),
        description=orm_payment.description,
        reference=orm_payment.reference,
        status=domain.TeacherPaymentStatus(orm_payment.status),
        receipt_number=orm_payment.receipt_number,
        notes=orm_payment.notes,
        submitted_by=orm_payment.submitted_by,
        created_at=orm_payment.created_at,
        approved_by=orm_payment.approved_by,
        approved_at=orm_payment.approved_at,
        paid_at=orm_payment.paid_at,
        rejected_by=orm_payment.rejected_by,
        rejected_at=orm_payment.rejected_at,
        rejection_reason=orm_payment.rejection_reason,
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    frequency = orm_expense.recurring_frequency
    return domain.Expense(
        id=orm_expense.id,
        submitted_by=orm_expense.submitted_by,
        category=domain.ExpenseCategory(orm_expense.category),
        subcategory=orm_expense.subcategory,
        amount=_decimal(orm_expense.amount),
        currency=orm_expense.currency,
        description=orm_expense.description,
        receipt_url=orm_expense.receipt_url,
        date=orm_expense.date,
        status=domain.ExpenseStatus(orm_expense.status),
        is_recurring=orm_expense.is_recurring,
        recurring_frequency=domain.RecurringFrequency(frequency) if frequency else None,
        next_recurring_date=orm_expense.next_recurring_date,
        notes=orm_expense.notes,
        created_at=orm_expense.created_at,
        tags=tuple(orm_expense.tags or ()),
        approved_by=orm_expense.approved_by,
        approved_at=orm_expense.approved_at,
        rejected_by=orm_expense.rejected_by,
        rejected_at=orm_expense.rejected_at,
        rejection_reason=orm_expense.rejection_reason,
    )


def audit_log_to_domain(orm_log: ORMAuditLog) -> domain.AuditLog:
    """Convert SQLAlchemy AuditLog model to domain AuditLog entity."""
    return domain.AuditLog(
        id=orm_log.id,
        user_id=orm_log.user_id,
        action=orm_log.action,
        target_type=domain.AuditTarget(orm_log.target_type),
        target_id=orm_log.target_id,
        previous_values=dict(orm_log.previous_values or {}),
        new_values=dict(orm_log.new_values or {}),
        ip_address=orm_log.ip_address,
        user_agent=orm_log.user_agent,
        details=orm_log.details,
        created_at=orm_log.created_at,
    )


def financial_report_to_domain(orm_report: ORMFinancialReport) -> domain.FinancialReport:
    """Convert SQLAlchemy FinancialReport model to domain FinancialReport entity."""
    return domain.FinancialReport(
        id=orm_report.id,
        report_type=domain.ReportType(orm_report.report_type),
        period_start=orm_report.period_start,
        period_end=orm_report.period_end,
        generated_by=orm_report.generated_by,
        report_date=orm_report.report_date,
        total_revenue=_decimal(orm_report.total_revenue),
        total_expenses=_decimal(orm_report.total_expenses),
        net_income=_decimal(orm_report.net_income),
        profit_margin=_decimal(orm_report.profit_margin),
        profit_loss_status=orm_report.profit_loss_status,
        snapshot=dict(orm_report.snapshot or {}),
        is_archived=orm_report.is_archived,
    )
