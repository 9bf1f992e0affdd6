"""Time entry domain service."""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Optional

from tutordesk.database.base import Database
from tutordesk.domain.audit import AuditTrail
from tutordesk.domain.entities import AuditTarget, Role, TimeEntry, UserStatus
from tutordesk.domain.errors import NotFoundError, PreconditionError, not_found
from tutordesk.domain.validation import validate_time_entry
from tutordesk.utils.money import round_money, to_decimal

logger = logging.getLogger(__name__)


class TimeEntryService:
    """Service for logging and editing lesson hours."""

    def __init__(self, db: Database, audit: Optional[AuditTrail] = None):
        """Initialize time entry service.

        Args:
            db: Database instance
            audit: Optional audit trail for state changes
        """
        self.db = db
        self.audit = audit

    def log_time(
        self,
        teacher_id: int,
        lesson_type_id: int,
        entry_date: date,
        hours_worked: Decimal,
        student_id: Optional[int] = None,
        hourly_rate: Optional[Decimal] = None,
        description: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        """Log a block of lesson hours.

        The rate is a snapshot of the lesson type's rate unless given.
        ``total_amount`` is always derived from hours and rate on save.

        Args:
            teacher_id: Teacher ID (must be an approved teacher)
            lesson_type_id: Lesson type ID (must belong to the teacher and be active)
            entry_date: Lesson date, not in the future
            hours_worked: Hours in quarter-hour steps, 0.25 to 24
            student_id: Optional student ID
            hourly_rate: Optional rate override
            description: Optional description
            today: Reference date for validation (defaults to today)

        Returns:
            Time entry ID

        Raises:
            NotFoundError: If the teacher, lesson type or student doesn't exist
            PreconditionError: If the teacher is not approved or the lesson type is inactive
            ValidationError: If the record is invalid
        """
        teacher = self.db.get_user(teacher_id)
        if teacher is None or teacher.role != Role.TEACHER:
            raise NotFoundError(not_found("Teacher", teacher_id))
        if teacher.status != UserStatus.APPROVED:
            raise PreconditionError(f"Teacher {teacher_id} is not approved and cannot log time")

        lesson_type = self.db.get_lesson_type(lesson_type_id)
        if lesson_type is None or lesson_type.teacher_id != teacher_id:
            raise NotFoundError(not_found("Lesson type", lesson_type_id))
        if not lesson_type.is_active:
            raise PreconditionError(f"Lesson type {lesson_type_id} is inactive")

        if student_id is not None and self.db.get_student(student_id) is None:
            raise NotFoundError(not_found("Student", student_id))

        record = {
            "teacher_id": teacher_id,
            "lesson_type_id": lesson_type_id,
            "student_id": student_id,
            "date": entry_date,
            "hours_worked": to_decimal(hours_worked),
            "hourly_rate": to_decimal(hourly_rate if hourly_rate is not None else lesson_type.hourly_rate),
            "currency": lesson_type.currency,
            "description": description,
        }
        validate_time_entry(record, today)

        entry_id = self.db.create_time_entry(**record)
        logger.info("Logged %s h for teacher %s (entry %s)", record["hours_worked"], teacher_id, entry_id)
        if self.audit:
            new = dict(record, total_amount=round_money(record["hours_worked"] * record["hourly_rate"]))
            self.audit.record("time_entry_created", AuditTarget.TIME_ENTRY, entry_id, user_id=teacher_id, new=new)
        return entry_id

    def get_time_entry(self, entry_id: int) -> Optional[TimeEntry]:
        """Get time entry with edit history."""
        return self.db.get_time_entry(entry_id)

    def require_time_entry(self, entry_id: int) -> TimeEntry:
        entry = self.db.get_time_entry(entry_id)
        if entry is None:
            raise NotFoundError(not_found("Time entry", entry_id))
        return entry

    def edit_time_entry(
        self,
        entry_id: int,
        edited_by: int,
        hours_worked: Optional[Decimal] = None,
        entry_date: Optional[date] = None,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TimeEntry:
        """Edit a time entry inside its 4-hour edit window.

        The prior hours and amount are appended to the edit history.

        Args:
            entry_id: Time entry ID
            edited_by: Acting user ID
            hours_worked: Optional new hours
            entry_date: Optional new date
            description: Optional new description
            now: Reference time for the edit window (defaults to now)

        Returns:
            Updated time entry

        Raises:
            NotFoundError: If the entry doesn't exist
            PreconditionError: If the edit window has passed
            ValidationError: If the edited record is invalid
        """
        entry = self.require_time_entry(entry_id)
        if not entry.can_edit(now):
            raise PreconditionError("Time entries can only be edited within 4 hours of creation")

        changes: dict[str, Any] = {}
        if hours_worked is not None:
            changes["hours_worked"] = to_decimal(hours_worked)
        if entry_date is not None:
            changes["date"] = entry_date
        if description is not None:
            changes["description"] = description
        if not changes:
            return entry

        candidate = {
            "teacher_id": entry.teacher_id,
            "lesson_type_id": entry.lesson_type_id,
            "date": entry.date,
            "hours_worked": entry.hours_worked,
            "hourly_rate": entry.hourly_rate,
            "description": entry.description,
        }
        candidate.update(changes)
        validate_time_entry(candidate)

        self.db.update_time_entry(entry_id, edited_by, **changes)
        updated = self.require_time_entry(entry_id)
        logger.info("Edited time entry %s", entry_id)
        if self.audit:
            self.audit.record(
                "time_entry_edited",
                AuditTarget.TIME_ENTRY,
                entry_id,
                user_id=edited_by,
                previous={"hours_worked": entry.hours_worked, "total_amount": entry.total_amount},
                new={"hours_worked": updated.hours_worked, "total_amount": updated.total_amount},
            )
        return updated

    def delete_time_entry(self, entry_id: int, deleted_by: Optional[int] = None) -> None:
        """Delete a time entry.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        entry = self.require_time_entry(entry_id)
        self.db.delete_time_entry(entry_id)
        logger.info("Deleted time entry %s", entry_id)
        if self.audit:
            self.audit.record(
                "time_entry_deleted",
                AuditTarget.TIME_ENTRY,
                entry_id,
                user_id=deleted_by,
                previous={"hours_worked": entry.hours_worked, "total_amount": entry.total_amount},
            )

    def list_time_entries(
        self,
        teacher_id: Optional[int] = None,
        student_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[TimeEntry]:
        """List time entries, newest first."""
        return self.db.list_time_entries(
            teacher_id=teacher_id, student_id=student_id, start_date=start_date, end_date=end_date
        )

    def get_earnings_summary(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Total hours, total earnings and entry count for a teacher.

        Zero matching entries yield zero values.
        """
        return self.db.get_earnings_summary(teacher_id, start_date, end_date)
