"""Domain model entities for tutordesk.

These are pure data classes representing business concepts, independent of
database schema. Services validate candidate records built from these fields
before anything reaches the persistence layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, date, timedelta, UTC
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

EDIT_WINDOW = timedelta(hours=4)
TEACHER_PAYMENT_OVERDUE_AFTER = timedelta(days=30)


def as_utc(value: datetime) -> datetime:
    """Convert to an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"


class UserStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"


class StudentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    MAKEUP = "makeup"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class TeacherPaymentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class ExpenseStatus(str, Enum):
    """Persisted expense statuses.

    Accounting views filter on "approved", which is not part of this set.
    """

    PENDING = "pending"
    PAID = "paid"
    REJECTED = "rejected"


# Status filter used by the expense accounting views; not a stored status.
EXPENSE_APPROVED_FILTER = "approved"


class Currency(str, Enum):
    DZD = "DZD"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"
    TRY = "TRY"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    ONLINE = "online"
    CARD = "card"
    MOBILE_PAYMENT = "mobile_payment"


class PaymentType(str, Enum):
    LESSON_PAYMENT = "lesson_payment"
    REGISTRATION_FEE = "registration_fee"
    MATERIAL_FEE = "material_fee"
    MAKEUP_FEE = "makeup_fee"
    LATE_FEE = "late_fee"
    OTHER = "other"


class TeacherPaymentType(str, Enum):
    SALARY = "salary"
    HOURLY_PAYMENT = "hourly_payment"
    BONUS = "bonus"
    COMMISSION = "commission"
    REIMBURSEMENT = "reimbursement"
    ADVANCE = "advance"
    OTHER = "other"


class ExpenseCategory(str, Enum):
    RENT = "rent"
    UTILITIES = "utilities"
    SUPPLIES = "supplies"
    MARKETING = "marketing"
    MAINTENANCE = "maintenance"
    INSURANCE = "insurance"
    SALARIES = "salaries"
    TRANSPORTATION = "transportation"
    COMMUNICATION = "communication"
    SOFTWARE = "software"
    EQUIPMENT = "equipment"
    TRAINING = "training"
    LEGAL = "legal"
    ACCOUNTING = "accounting"
    OTHER = "other"


class RecurringFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class AuditTarget(str, Enum):
    USER = "user"
    TIME_ENTRY = "timeentry"
    LESSON_TYPE = "lessontype"
    EXPENSE = "expense"
    STUDENT = "student"
    ATTENDANCE = "attendance"
    PAYMENT = "payment"
    TEACHER_PAYMENT = "teacherpayment"
    REPORT = "report"
    SYSTEM = "system"


class ReportType(str, Enum):
    COMPREHENSIVE = "comprehensive"
    REVENUE = "revenue"
    EXPENSES = "expenses"
    PROFIT_LOSS = "profit_loss"


@dataclass(frozen=True)
class User:
    """Application user; teachers are users with role=teacher."""

    id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    subject: Optional[str]
    status: UserStatus
    created_at: datetime
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Student:
    """Student domain entity with running balance fields."""

    id: int
    teacher_id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    level: str
    enrollment_date: date
    status: StudentStatus
    current_balance: Decimal
    total_paid: Decimal
    notes: Optional[str]
    created_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class LessonType:
    """Per-teacher rate card."""

    id: int
    teacher_id: int
    name: str
    description: Optional[str]
    hourly_rate: Decimal
    currency: str
    is_active: bool
    created_at: datetime

    @property
    def formatted_rate(self) -> str:
        return f"{self.currency} {self.hourly_rate:.2f}"


@dataclass(frozen=True)
class TimeEntryEdit:
    """One append-only edit history record of a time entry."""

    previous_hours: Decimal
    previous_amount: Decimal
    edited_at: datetime
    edited_by: Optional[int]


@dataclass(frozen=True)
class TimeEntry:
    """Logged block of lesson hours billed at a snapshot rate."""

    id: int
    teacher_id: int
    lesson_type_id: int
    student_id: Optional[int]
    date: date
    hours_worked: Decimal
    hourly_rate: Decimal
    total_amount: Decimal
    currency: str
    description: Optional[str]
    created_at: datetime
    edit_history: tuple[TimeEntryEdit, ...] = ()

    def can_edit(self, now: Optional[datetime] = None) -> bool:
        """True while the entry is inside its edit window. Naive datetimes are read as UTC."""
        now = now or datetime.now(UTC)
        return as_utc(now) - as_utc(self.created_at) < EDIT_WINDOW


@dataclass(frozen=True)
class Attendance:
    """Per-lesson attendance record."""

    id: int
    student_id: int
    teacher_id: int
    time_entry_id: int
    lesson_date: date
    lesson_type: str
    status: AttendanceStatus
    duration: Optional[int]
    notes: Optional[str]
    late_minutes: Optional[int]
    makeup_scheduled: Optional[date]
    makeup_completed: bool
    makeup_completed_at: Optional[datetime]
    parent_notified: bool
    parent_notified_at: Optional[datetime]
    created_at: datetime

    @property
    def needs_makeup(self) -> bool:
        return self.status == AttendanceStatus.ABSENT and not self.makeup_completed


@dataclass(frozen=True)
class RefundInfo:
    """Refund sub-record of a student payment."""

    refund_amount: Decimal
    refund_date: date
    refund_reason: Optional[str]
    refund_method: Optional[str]


@dataclass(frozen=True)
class Payment:
    """Student payment to the business."""

    id: int
    student_id: int
    teacher_id: int
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    payment_date: date
    payment_type: PaymentType
    status: PaymentStatus
    due_date: Optional[date]
    reference: Optional[str]
    notes: Optional[str]
    academic_period: Optional[str]
    receipt_number: Optional[str]
    created_at: datetime
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    refund: Optional[RefundInfo] = None

    @property
    def formatted_amount(self) -> str:
        return f"{self.currency} {self.amount:.2f}"

    @property
    def net_amount(self) -> Decimal:
        refunded = self.refund.refund_amount if self.refund else Decimal("0")
        return self.amount - refunded

    def is_overdue(self, today: Optional[date] = None) -> bool:
        if self.due_date is None or self.status == PaymentStatus.COMPLETED:
            return False
        return (today or date.today()) > self.due_date

    def days_overdue(self, today: Optional[date] = None) -> int:
        today = today or date.today()
        if not self.is_overdue(today):
            return 0
        return (today - self.due_date).days


@dataclass(frozen=True)
class TeacherPayment:
    """Payment from the business to a teacher."""

    id: int
    teacher_id: int
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    payment_date: date
    payment_type: TeacherPaymentType
    hours_worked: Optional[Decimal]
    hourly_rate: Optional[Decimal]
    description: Optional[str]
    reference: Optional[str]
    status: TeacherPaymentStatus
    receipt_number: Optional[str]
    notes: Optional[str]
    submitted_by: int
    created_at: datetime
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    def is_overdue(self, today: Optional[date] = None) -> bool:
        if self.status in (TeacherPaymentStatus.PAID, TeacherPaymentStatus.CANCELLED):
            return False
        return (today or date.today()) > self.payment_date + TEACHER_PAYMENT_OVERDUE_AFTER


@dataclass(frozen=True)
class Expense:
    """General business expense."""

    id: int
    submitted_by: int
    category: ExpenseCategory
    subcategory: Optional[str]
    amount: Decimal
    currency: str
    description: str
    receipt_url: Optional[str]
    date: date
    status: ExpenseStatus
    is_recurring: bool
    recurring_frequency: Optional[RecurringFrequency]
    next_recurring_date: Optional[date]
    notes: Optional[str]
    created_at: datetime
    tags: tuple[str, ...] = ()
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class AuditLog:
    """Append-only audit record."""

    id: int
    user_id: Optional[int]
    action: str
    target_type: AuditTarget
    target_id: Optional[int]
    previous_values: dict[str, Any]
    new_values: dict[str, Any]
    ip_address: Optional[str]
    user_agent: Optional[str]
    details: Optional[str]
    created_at: datetime

    def changes_summary(self) -> list[dict[str, Any]]:
        """List fields whose values differ between previous and new."""
        changes = []
        keys = list(self.previous_values) + [
            k for k in self.new_values if k not in self.previous_values
        ]
        for key in keys:
            before = self.previous_values.get(key)
            after = self.new_values.get(key)
            if before != after:
                changes.append({"field": key, "from": before, "to": after})
        return changes


@dataclass(frozen=True)
class FinancialReport:
    """Persisted point-in-time financial snapshot."""

    id: int
    report_type: ReportType
    period_start: date
    period_end: date
    generated_by: Optional[int]
    report_date: datetime
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal
    profit_margin: Decimal
    profit_loss_status: str
    snapshot: dict[str, Any] = field(default_factory=dict)
    is_archived: bool = False
