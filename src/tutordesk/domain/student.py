"""Student domain service."""

import logging
from datetime import date
from typing import Any, Optional

from tutordesk.database.base import Database
from tutordesk.domain.audit import AuditTrail
from tutordesk.domain.entities import AuditTarget, Role, Student, StudentStatus
from tutordesk.domain.errors import ConflictError, NotFoundError, ValidationError, not_found
from tutordesk.domain.validation import validate_student
from tutordesk.utils.money import ZERO

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"teacher_id", "first_name", "last_name", "email", "phone", "level", "enrollment_date", "status", "notes"}
)


class StudentService:
    """Service for managing students."""

    def __init__(self, db: Database, audit: Optional[AuditTrail] = None):
        """Initialize student service.

        Args:
            db: Database instance
            audit: Optional audit trail for state changes
        """
        self.db = db
        self.audit = audit

    def create_student(
        self,
        teacher_id: int,
        first_name: str,
        last_name: str,
        email: str,
        level: str,
        phone: Optional[str] = None,
        enrollment_date: Optional[date] = None,
        notes: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> int:
        """Create an active student with zero balances.

        Args:
            teacher_id: Owning teacher ID
            first_name: First name
            last_name: Last name
            email: Unique email address
            level: Course level
            phone: Optional phone number
            enrollment_date: Defaults to today
            notes: Optional notes
            created_by: Acting user ID for the audit trail

        Returns:
            Student ID

        Raises:
            NotFoundError: If the teacher doesn't exist
            ValidationError: If the record is invalid
            ConflictError: If the email is already used
        """
        teacher = self.db.get_user(teacher_id)
        if teacher is None or teacher.role != Role.TEACHER:
            raise NotFoundError(not_found("Teacher", teacher_id))

        record = {
            "teacher_id": teacher_id,
            "first_name": first_name,
            "last_name": last_name,
            "email": email.strip().lower(),
            "phone": phone,
            "level": level,
            "enrollment_date": enrollment_date or date.today(),
            "status": StudentStatus.ACTIVE,
            "current_balance": ZERO,
            "total_paid": ZERO,
            "notes": notes,
        }
        validate_student(record)

        if self.db.get_student_by_email(record["email"]) is not None:
            raise ConflictError(f"Student with email '{record['email']}' already exists")

        student_id = self.db.create_student(**record)
        logger.info("Created student %s for teacher %s", student_id, teacher_id)
        if self.audit:
            self.audit.record("student_created", AuditTarget.STUDENT, student_id, user_id=created_by, new=record)
        return student_id

    def get_student(self, student_id: int) -> Optional[Student]:
        """Get student by ID."""
        return self.db.get_student(student_id)

    def require_student(self, student_id: int) -> Student:
        """Get student or raise NotFoundError."""
        student = self.db.get_student(student_id)
        if student is None:
            raise NotFoundError(not_found("Student", student_id))
        return student

    def list_students(
        self, teacher_id: Optional[int] = None, status: Optional[StudentStatus] = None
    ) -> list[Student]:
        """List students, optionally filtered by teacher and status."""
        return self.db.list_students(teacher_id=teacher_id, status=status)

    def change_status(
        self, student_id: int, status: StudentStatus, changed_by: Optional[int] = None
    ) -> Student:
        """Soft status change (active, inactive, suspended).

        Raises:
            NotFoundError: If the student doesn't exist
            ValueError: If the status is unknown
        """
        student = self.require_student(student_id)
        status = StudentStatus(status)
        if student.status == status:
            return student

        self.db.update_student(student_id, status=status)
        logger.info("Student %s status %s -> %s", student_id, student.status.value, status.value)
        if self.audit:
            self.audit.record(
                "student_status_changed",
                AuditTarget.STUDENT,
                student_id,
                user_id=changed_by,
                previous={"status": student.status},
                new={"status": status},
            )
        return self.require_student(student_id)

    def update_student(self, student_id: int, updated_by: Optional[int] = None, **changes: Any) -> Student:
        """Update a student's profile fields.

        Args:
            student_id: Student ID
            updated_by: Acting user ID for the audit trail
            **changes: Any of teacher_id, first_name, last_name, email, phone,
                level, enrollment_date, status, notes

        Returns:
            The updated student

        Raises:
            NotFoundError: If the student or the new teacher doesn't exist
            ValidationError: If a field is unknown or the updated record is invalid
            ConflictError: If the new email belongs to another student
        """
        student = self.require_student(student_id)
        changes = self._prepare_changes(changes)
        if "email" in changes:
            other = self.db.get_student_by_email(changes["email"])
            if other is not None and other.id != student_id:
                raise ConflictError(f"Student with email '{changes['email']}' already exists")
        return self._apply(student, changes, updated_by)

    def bulk_update_students(
        self, student_ids: list[int], updated_by: Optional[int] = None, **changes: Any
    ) -> dict[str, int]:
        """Apply the same changes to several students.

        Every student is checked before any is written, so one invalid or
        missing student leaves all of them unchanged. Emails are unique and
        cannot be set in bulk.

        Returns:
            Dict with matchedCount and modifiedCount

        Raises:
            ValidationError: If no students or no changes are given, or a record is invalid
            NotFoundError: If a student or the new teacher doesn't exist
        """
        if not student_ids:
            raise ValidationError("Student IDs are required")
        if not changes:
            raise ValidationError("Updates are required")
        if "email" in changes:
            raise ValidationError("Email cannot be updated in bulk")

        changes = self._prepare_changes(changes)
        students = [self.require_student(student_id) for student_id in dict.fromkeys(student_ids)]
        for student in students:
            validate_student({**self._record(student), **changes})

        modified = 0
        for student in students:
            if self._apply(student, changes, updated_by) != student:
                modified += 1
        logger.info("Bulk updated %s of %s students", modified, len(students))
        return {"matchedCount": len(students), "modifiedCount": modified}

    def _prepare_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        unknown = sorted(set(changes) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError([f"Unknown student field '{name}'" for name in unknown])

        changes = dict(changes)
        if changes.get("email") is not None:
            changes["email"] = changes["email"].strip().lower()
        if changes.get("status") is not None:
            changes["status"] = StudentStatus(changes["status"])
        if changes.get("teacher_id") is not None:
            teacher = self.db.get_user(changes["teacher_id"])
            if teacher is None or teacher.role != Role.TEACHER:
                raise NotFoundError(not_found("Teacher", changes["teacher_id"]))
        return changes

    @staticmethod
    def _record(student: Student) -> dict[str, Any]:
        return {name: getattr(student, name) for name in UPDATABLE_FIELDS}

    def _apply(self, student: Student, changes: dict[str, Any], updated_by: Optional[int]) -> Student:
        changes = {k: v for k, v in changes.items() if getattr(student, k) != v}
        if not changes:
            return student

        validate_student({**self._record(student), **changes})
        self.db.update_student(student.id, **changes)
        logger.info("Updated student %s: %s", student.id, ", ".join(sorted(changes)))
        if self.audit:
            self.audit.record(
                "student_updated",
                AuditTarget.STUDENT,
                student.id,
                user_id=updated_by,
                previous={k: getattr(student, k) for k in changes},
                new=changes,
            )
        return self.require_student(student.id)

    def get_student_stats(self, teacher_id: Optional[int] = None) -> dict[str, int]:
        """Student counts by status: total, active, inactive, suspended."""
        return self.db.get_student_stats(teacher_id)
