"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from tutordesk.domain.entities import (
    Attendance,
    AuditLog,
    Expense,
    FinancialReport,
    LessonType,
    Payment,
    Student,
    TeacherPayment,
    TimeEntry,
    User,
)


class Database(ABC):
    """Abstract database interface for tutordesk.

    Create methods take the already validated record as keyword arguments and
    return the new row ID. Aggregation methods return plain dictionaries with
    ``Decimal`` money values; a filter matching nothing yields zero-valued
    results rather than ``None``.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes in the current session."""
        pass

    # User operations
    @abstractmethod
    def create_user(self, **fields: Any) -> int:
        """Create a user. Returns user ID."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        pass

    @abstractmethod
    def list_users(self, role: Optional[str] = None, status: Optional[str] = None) -> list[User]:
        """List users ordered by last and first name."""
        pass

    @abstractmethod
    def update_user(self, user_id: int, **changes: Any) -> None:
        """Update user columns."""
        pass

    # Student operations
    @abstractmethod
    def create_student(self, **fields: Any) -> int:
        """Create a student. Returns student ID."""
        pass

    @abstractmethod
    def get_student(self, student_id: int) -> Optional[Student]:
        """Get student by ID."""
        pass

    @abstractmethod
    def get_student_by_email(self, email: str) -> Optional[Student]:
        """Get student by email (case-insensitive)."""
        pass

    @abstractmethod
    def list_students(
        self, teacher_id: Optional[int] = None, status: Optional[str] = None
    ) -> list[Student]:
        """List students, optionally filtered by teacher and status."""
        pass

    @abstractmethod
    def update_student(self, student_id: int, **changes: Any) -> None:
        """Update student columns."""
        pass

    @abstractmethod
    def get_student_stats(self, teacher_id: Optional[int] = None) -> dict[str, int]:
        """Count students by status: total, active, inactive, suspended."""
        pass

    @abstractmethod
    def count_new_students(self, start_date: date, end_date: date) -> int:
        """Count students enrolled within the date range."""
        pass

    # Lesson type operations
    @abstractmethod
    def create_lesson_type(self, **fields: Any) -> int:
        """Create a lesson type. Returns lesson type ID."""
        pass

    @abstractmethod
    def get_lesson_type(self, lesson_type_id: int) -> Optional[LessonType]:
        """Get lesson type by ID."""
        pass

    @abstractmethod
    def lesson_type_name_exists(
        self, teacher_id: int, name: str, exclude_id: Optional[int] = None
    ) -> bool:
        """Check for a lesson type with the same name (case-insensitive) for a teacher."""
        pass

    @abstractmethod
    def list_lesson_types(
        self, teacher_id: Optional[int] = None, active_only: bool = False
    ) -> list[LessonType]:
        """List lesson types ordered by name."""
        pass

    @abstractmethod
    def update_lesson_type(self, lesson_type_id: int, **changes: Any) -> None:
        """Update lesson type columns."""
        pass

    @abstractmethod
    def get_lesson_type_stats(self, teacher_id: Optional[int] = None) -> dict[str, Any]:
        """Lesson type counts and rates: total, active, average_rate, min_rate, max_rate."""
        pass

    # Time entry operations
    @abstractmethod
    def create_time_entry(self, **fields: Any) -> int:
        """Create a time entry. Returns time entry ID."""
        pass

    @abstractmethod
    def get_time_entry(self, entry_id: int) -> Optional[TimeEntry]:
        """Get time entry with its edit history."""
        pass

    @abstractmethod
    def list_time_entries(
        self,
        teacher_id: Optional[int] = None,
        student_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[TimeEntry]:
        """List time entries, newest first."""
        pass

    @abstractmethod
    def update_time_entry(self, entry_id: int, edited_by: Optional[int], **changes: Any) -> None:
        """Update a time entry and append the prior hours/amount to its edit history."""
        pass

    @abstractmethod
    def delete_time_entry(self, entry_id: int) -> None:
        """Delete a time entry."""
        pass

    @abstractmethod
    def get_earnings_summary(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Sum hours and earnings for a teacher: total_hours, total_earnings, entry_count."""
        pass

    @abstractmethod
    def get_time_entry_totals_by_teacher(
        self, start_date: date, end_date: date
    ) -> dict[int, dict[str, Any]]:
        """Per teacher ID: total_hours, total_earnings, entry_count."""
        pass

    # Attendance operations
    @abstractmethod
    def create_attendance(self, **fields: Any) -> int:
        """Create an attendance record. Returns attendance ID."""
        pass

    @abstractmethod
    def get_attendance(self, attendance_id: int) -> Optional[Attendance]:
        """Get attendance record by ID."""
        pass

    @abstractmethod
    def list_attendance(
        self,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Attendance]:
        """List attendance records ordered by lesson date."""
        pass

    @abstractmethod
    def update_attendance(self, attendance_id: int, **changes: Any) -> None:
        """Update attendance columns."""
        pass

    @abstractmethod
    def get_attendance_status_totals(
        self,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Group attendance by status: status, count, total_duration, pending_makeups."""
        pass

    @abstractmethod
    def get_attendance_status_by_student(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Group a teacher's attendance by student and status: student_id, status, count."""
        pass

    # Student payment operations
    @abstractmethod
    def create_payment(self, **fields: Any) -> int:
        """Create a student payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get student payment by ID."""
        pass

    @abstractmethod
    def list_payments(
        self,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Payment]:
        """List student payments by payment date, newest first."""
        pass

    @abstractmethod
    def count_payments(
        self,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        """Count student payments matching the filters."""
        pass

    @abstractmethod
    def update_payment(self, payment_id: int, **changes: Any) -> None:
        """Update student payment columns."""
        pass

    @abstractmethod
    def summarize_payments(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
    ) -> dict[str, Any]:
        """Sum student payments by payment date: total, count."""
        pass

    @abstractmethod
    def get_payment_status_summary(
        self,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Group student payments by status: status, total, count."""
        pass

    @abstractmethod
    def get_student_payment_stats(
        self,
        student_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Completed payment statistics for one student.

        Returns total_payments, total_amount, average_amount,
        first_payment_date, last_payment_date, payment_methods, payment_types.
        """
        pass

    @abstractmethod
    def get_teacher_payment_overview(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Completed payments grouped by student, total descending."""
        pass

    @abstractmethod
    def get_overdue_payments(self, today: date, teacher_id: Optional[int] = None) -> list[Payment]:
        """Pending payments whose due date is before today, oldest due first."""
        pass

    @abstractmethod
    def get_payment_totals_by_student(
        self, start_date: date, end_date: date, today: date
    ) -> dict[int, dict[str, Any]]:
        """Per student ID: completed, pending, overdue totals and payment count."""
        pass

    @abstractmethod
    def get_payment_totals_by_date(
        self,
        start_date: date,
        end_date: date,
        status: Optional[str] = None,
        teacher_id: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Group student payments by payment date: date, total, count."""
        pass

    # Teacher payment operations
    @abstractmethod
    def create_teacher_payment(self, **fields: Any) -> int:
        """Create a teacher payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_teacher_payment(self, payment_id: int) -> Optional[TeacherPayment]:
        """Get teacher payment by ID."""
        pass

    @abstractmethod
    def list_teacher_payments(
        self,
        teacher_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[TeacherPayment]:
        """List teacher payments by creation time, newest first.

        The date range filters on the creation date.
        """
        pass

    @abstractmethod
    def count_teacher_payments(
        self,
        teacher_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        """Count teacher payments matching the filters (creation date range)."""
        pass

    @abstractmethod
    def update_teacher_payment(self, payment_id: int, **changes: Any) -> None:
        """Update teacher payment columns."""
        pass

    @abstractmethod
    def get_teacher_payment_summary(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Totals and counts per status for one teacher, by payment date."""
        pass

    @abstractmethod
    def get_all_teachers_payment_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Per teacher: paid, pending (pending + approved), total, count; sorted by name."""
        pass

    @abstractmethod
    def summarize_teacher_payments(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        """Sum teacher payments by payment date: total, count."""
        pass

    @abstractmethod
    def get_teacher_payment_status_summary(
        self,
        teacher_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Group teacher payments by status (creation date range): status, total, count."""
        pass

    @abstractmethod
    def get_teacher_payment_totals_by_teacher(
        self, start_date: date, end_date: date
    ) -> dict[int, dict[str, Any]]:
        """Per teacher ID, status totals of payments created in the range."""
        pass

    @abstractmethod
    def get_teacher_payment_totals_by_date(
        self, start_date: date, end_date: date, status: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Group teacher payments by payment date: date, total, count."""
        pass

    # Expense operations
    @abstractmethod
    def create_expense(self, **fields: Any) -> int:
        """Create an expense. Returns expense ID."""
        pass

    @abstractmethod
    def get_expense(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID."""
        pass

    @abstractmethod
    def list_expenses(
        self,
        submitted_by: Optional[int] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Expense]:
        """List expenses by date, newest first."""
        pass

    @abstractmethod
    def count_expenses(
        self,
        submitted_by: Optional[int] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        """Count expenses matching the filters."""
        pass

    @abstractmethod
    def update_expense(self, expense_id: int, **changes: Any) -> None:
        """Update expense columns."""
        pass

    @abstractmethod
    def get_expense_stats(
        self,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Expense totals: total_expenses, total_amount, and per-status counts/amounts."""
        pass

    @abstractmethod
    def get_expenses_by_category(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Per category: category, total, count, average; total descending."""
        pass

    @abstractmethod
    def summarize_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
    ) -> dict[str, Any]:
        """Sum expenses: total, count."""
        pass

    @abstractmethod
    def get_expense_totals_by_date(
        self,
        start_date: date,
        end_date: date,
        status: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Group expenses by expense date: date, total, count."""
        pass

    # Audit log operations
    @abstractmethod
    def create_audit_log(self, **fields: Any) -> int:
        """Append an audit log entry. Returns log ID."""
        pass

    @abstractmethod
    def list_audit_logs(
        self,
        user_id: Optional[int] = None,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
        action: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[AuditLog]:
        """List audit logs, newest first."""
        pass

    @abstractmethod
    def count_audit_logs(
        self,
        user_id: Optional[int] = None,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
        action: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        """Count audit logs matching the filters."""
        pass

    # Financial report operations
    @abstractmethod
    def create_financial_report(self, **fields: Any) -> int:
        """Persist a financial report snapshot. Returns report ID."""
        pass

    @abstractmethod
    def get_financial_report(self, report_id: int) -> Optional[FinancialReport]:
        """Get financial report by ID."""
        pass

    @abstractmethod
    def list_financial_reports(
        self,
        report_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_archived: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[FinancialReport]:
        """List reports by report date, newest first."""
        pass

    @abstractmethod
    def count_financial_reports(
        self,
        report_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_archived: bool = False,
    ) -> int:
        """Count reports matching the filters."""
        pass

    @abstractmethod
    def archive_financial_report(self, report_id: int) -> None:
        """Set the archived flag on a report."""
        pass

    # Receipt numbering
    @abstractmethod
    def next_receipt_sequence(self, scope: str) -> int:
        """Atomically increment and return the counter for a receipt scope."""
        pass
