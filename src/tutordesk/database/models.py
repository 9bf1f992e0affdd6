"""SQLAlchemy models for tutordesk database."""

from datetime import datetime, UTC
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

CENT = Decimal("0.01")


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """Application user (admin or teacher)."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, index=True)
    subject = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    students = relationship("Student", back_populates="teacher")
    lesson_types = relationship("LessonType", back_populates="teacher")


class Student(Base):
    """Student model with running balance columns."""

    __tablename__ = "students"

    id = Column(Integer, primary_key=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(30), nullable=True)
    level = Column(String(50), nullable=False)
    enrollment_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="active", index=True)
    current_balance = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_paid = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    teacher = relationship("User", back_populates="students")


class LessonType(Base):
    """Per-teacher rate card; classes share this table."""

    __tablename__ = "lesson_types"

    id = Column(Integer, primary_key=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="DZD")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    teacher = relationship("User", back_populates="lesson_types")


class TimeEntry(Base):
    """Lesson hours record; total_amount is derived on every flush."""

    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    lesson_type_id = Column(Integer, ForeignKey("lesson_types.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=True)
    date = Column(Date, nullable=False, index=True)
    hours_worked = Column(Numeric(5, 2), nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    currency = Column(String(3), nullable=False, default="DZD")
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    edits = relationship(
        "TimeEntryEdit",
        back_populates="time_entry",
        cascade="all, delete-orphan",
        order_by="TimeEntryEdit.id",
    )


class TimeEntryEdit(Base):
    """Append-only edit history of a time entry."""

    __tablename__ = "time_entry_edits"

    id = Column(Integer, primary_key=True)
    time_entry_id = Column(Integer, ForeignKey("time_entries.id"), nullable=False, index=True)
    previous_hours = Column(Numeric(5, 2), nullable=False)
    previous_amount = Column(Numeric(12, 2), nullable=False)
    edited_at = Column(DateTime, default=_now, nullable=False)
    edited_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    time_entry = relationship("TimeEntry", back_populates="edits")


class Attendance(Base):
    """Per-lesson attendance model."""

    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    time_entry_id = Column(Integer, ForeignKey("time_entries.id"), nullable=False)
    lesson_date = Column(Date, nullable=False, index=True)
    lesson_type = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="present")
    duration = Column(Integer, nullable=True)
    notes = Column(String(500), nullable=True)
    late_minutes = Column(Integer, nullable=True)
    makeup_scheduled = Column(Date, nullable=True)
    makeup_completed = Column(Boolean, default=False, nullable=False)
    makeup_completed_at = Column(DateTime, nullable=True)
    parent_notified = Column(Boolean, default=False, nullable=False)
    parent_notified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Payment(Base):
    """Student payment model."""

    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("teacher_id", "receipt_number", name="uq_payments_teacher_receipt"),)

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="DZD")
    payment_method = Column(String(20), nullable=False, default="cash")
    payment_date = Column(Date, nullable=False, index=True)
    payment_type = Column(String(30), nullable=False, default="lesson_payment")
    status = Column(String(20), nullable=False, default="pending", index=True)
    due_date = Column(Date, nullable=True)
    reference = Column(String(100), nullable=True)
    notes = Column(String(500), nullable=True)
    academic_period = Column(String(50), nullable=True)
    receipt_number = Column(String(50), nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=True)
    refund_date = Column(Date, nullable=True)
    refund_reason = Column(String(500), nullable=True)
    refund_method = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class TeacherPayment(Base):
    """Payment from the business to a teacher."""

    __tablename__ = "teacher_payments"

    id = Column(Integer, primary_key=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="DZD")
    payment_method = Column(String(20), nullable=False, default="bank_transfer")
    payment_date = Column(Date, nullable=False, index=True)
    payment_type = Column(String(30), nullable=False)
    hours_worked = Column(Numeric(7, 2), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    description = Column(String(500), nullable=True)
    reference = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    receipt_number = Column(String(50), unique=True, nullable=True)
    notes = Column(String(1000), nullable=True)
    submitted_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    rejected_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False, index=True)


class Expense(Base):
    """General business expense model."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    submitted_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category = Column(String(30), nullable=False, index=True)
    subcategory = Column(String(100), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="DZD")
    description = Column(String(500), nullable=False)
    receipt_url = Column(String(500), nullable=True)
    date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_frequency = Column(String(20), nullable=True)
    next_recurring_date = Column(Date, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class AuditLog(Base):
    """Append-only audit record."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    target_type = Column(String(30), nullable=False)
    target_id = Column(Integer, nullable=True)
    previous_values = Column(JSON, nullable=False, default=dict)
    new_values = Column(JSON, nullable=False, default=dict)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False, index=True)


class FinancialReport(Base):
    """Persisted financial snapshot; only is_archived changes after insert."""

    __tablename__ = "financial_reports"

    id = Column(Integer, primary_key=True)
    report_type = Column(String(30), nullable=False, index=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    generated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    report_date = Column(DateTime, default=_now, nullable=False, index=True)
    total_revenue = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total_expenses = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    net_income = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    profit_margin = Column(Numeric(7, 2), nullable=False, default=Decimal("0"))
    profit_loss_status = Column(String(20), nullable=False)
    snapshot = Column(JSON, nullable=False, default=dict)
    is_archived = Column(Boolean, default=False, nullable=False)


class ReceiptCounter(Base):
    """One monotonically increasing counter per receipt scope."""

    __tablename__ = "receipt_counters"

    id = Column(Integer, primary_key=True)
    scope = Column(String(100), unique=True, nullable=False)
    value = Column(Integer, nullable=False, default=0)


@event.listens_for(TimeEntry, "before_insert")
@event.listens_for(TimeEntry, "before_update")
def _compute_time_entry_total(mapper, connection, target: TimeEntry) -> None:
    hours = Decimal(str(target.hours_worked or 0))
    rate = Decimal(str(target.hourly_rate or 0))
    target.total_amount = (hours * rate).quantize(CENT)


@event.listens_for(TeacherPayment, "before_insert")
@event.listens_for(TeacherPayment, "before_update")
def _compute_hourly_payment_amount(mapper, connection, target: TeacherPayment) -> None:
    if target.payment_type == "hourly_payment" and target.hours_worked and target.hourly_rate:
        hours = Decimal(str(target.hours_worked))
        rate = Decimal(str(target.hourly_rate))
        target.amount = (hours * rate).quantize(CENT)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
