"""Attendance domain service."""

import logging
from collections import defaultdict
from dataclasses import asdict
from datetime import date, datetime, UTC
from typing import Any, Optional

from tutordesk.database.base import Database
from tutordesk.domain.audit import AuditTrail
from tutordesk.domain.entities import Attendance, AttendanceStatus, AuditTarget
from tutordesk.domain.errors import NotFoundError, PreconditionError, ValidationError, not_found
from tutordesk.domain.periods import Period
from tutordesk.domain.validation import validate_attendance
from tutordesk.utils.money import percentage

logger = logging.getLogger(__name__)

ATTENDED = (AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.MAKEUP)


class AttendanceService:
    """Service for recording lesson attendance and computing attendance statistics."""

    def __init__(self, db: Database, audit: Optional[AuditTrail] = None):
        """Initialize attendance service.

        Args:
            db: Database instance
            audit: Optional audit trail for state changes
        """
        self.db = db
        self.audit = audit

    def record_attendance(
        self,
        time_entry_id: int,
        student_id: int,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
        duration: Optional[int] = None,
        late_minutes: Optional[int] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        """Record attendance for a student at a logged lesson.

        Teacher, lesson date and lesson type name come from the time entry.
        Duration defaults to the entry's hours in minutes.

        Args:
            time_entry_id: Time entry the lesson was logged under
            student_id: Student ID
            status: Attendance status
            duration: Lesson duration in minutes (multiple of 15)
            late_minutes: Minutes late (required when status is late)
            notes: Optional notes
            today: Reference date for validation

        Returns:
            Attendance ID

        Raises:
            NotFoundError: If the time entry or student doesn't exist
            ValidationError: If the record is invalid
        """
        entry = self.db.get_time_entry(time_entry_id)
        if entry is None:
            raise NotFoundError(not_found("Time entry", time_entry_id))
        if self.db.get_student(student_id) is None:
            raise NotFoundError(not_found("Student", student_id))
        lesson_type = self.db.get_lesson_type(entry.lesson_type_id)

        status = AttendanceStatus(status)
        if duration is None:
            duration = 0 if status == AttendanceStatus.ABSENT else int(entry.hours_worked * 60)

        record = {
            "student_id": student_id,
            "teacher_id": entry.teacher_id,
            "time_entry_id": time_entry_id,
            "lesson_date": entry.date,
            "lesson_type": lesson_type.name if lesson_type else "",
            "status": status,
            "duration": duration,
            "late_minutes": late_minutes,
            "notes": notes,
            "makeup_completed": False,
            "parent_notified": False,
        }
        validate_attendance(record, today)

        attendance_id = self.db.create_attendance(**record)
        logger.info("Recorded %s for student %s (attendance %s)", status.value, student_id, attendance_id)
        if self.audit:
            self.audit.record(
                "attendance_recorded", AuditTarget.ATTENDANCE, attendance_id, user_id=entry.teacher_id, new=record
            )
        return attendance_id

    def get_attendance(self, attendance_id: int) -> Optional[Attendance]:
        """Get attendance record by ID."""
        return self.db.get_attendance(attendance_id)

    def require_attendance(self, attendance_id: int) -> Attendance:
        record = self.db.get_attendance(attendance_id)
        if record is None:
            raise NotFoundError(not_found("Attendance record", attendance_id))
        return record

    def list_attendance(
        self,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> list[Attendance]:
        """List attendance records ordered by lesson date."""
        return self.db.list_attendance(
            student_id=student_id,
            teacher_id=teacher_id,
            start_date=start_date,
            end_date=end_date,
            status=status,
        )

    def _apply(
        self,
        attendance_id: int,
        action: str,
        changes: dict[str, Any],
        acted_by: Optional[int] = None,
    ) -> Attendance:
        record = self.require_attendance(attendance_id)
        candidate = asdict(record)
        candidate.update(changes)
        validate_attendance(candidate)

        self.db.update_attendance(attendance_id, **changes)
        logger.info("Attendance %s: %s", attendance_id, action)
        if self.audit:
            previous = {key: getattr(record, key) for key in changes}
            self.audit.record(
                action, AuditTarget.ATTENDANCE, attendance_id, user_id=acted_by, previous=previous, new=changes
            )
        return self.require_attendance(attendance_id)

    def mark_present(
        self,
        attendance_id: int,
        duration: Optional[int] = None,
        notes: Optional[str] = None,
        acted_by: Optional[int] = None,
    ) -> Attendance:
        """Mark a lesson attended; clears late minutes."""
        record = self.require_attendance(attendance_id)
        changes = {
            "status": AttendanceStatus.PRESENT,
            "duration": duration if duration is not None else record.duration,
            "notes": notes or record.notes,
            "late_minutes": None,
        }
        return self._apply(attendance_id, "attendance_marked_present", changes, acted_by)

    def mark_late(
        self,
        attendance_id: int,
        late_minutes: int,
        duration: Optional[int] = None,
        notes: Optional[str] = None,
        acted_by: Optional[int] = None,
    ) -> Attendance:
        """Mark a lesson attended late.

        Raises:
            ValidationError: If late minutes are outside 0..120
        """
        record = self.require_attendance(attendance_id)
        changes = {
            "status": AttendanceStatus.LATE,
            "late_minutes": late_minutes,
            "duration": duration if duration is not None else record.duration,
            "notes": notes or record.notes,
        }
        return self._apply(attendance_id, "attendance_marked_late", changes, acted_by)

    def mark_absent(
        self,
        attendance_id: int,
        notes: Optional[str] = None,
        makeup_date: Optional[date] = None,
        acted_by: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Attendance:
        """Mark a lesson missed, with duration 0 and an optional makeup date.

        Raises:
            ValidationError: If the makeup date is not in the future
        """
        record = self.require_attendance(attendance_id)
        today = today or date.today()
        if makeup_date is not None and makeup_date <= today:
            raise ValidationError("Makeup date must be in the future")

        changes: dict[str, Any] = {
            "status": AttendanceStatus.ABSENT,
            "duration": 0,
            "notes": notes or record.notes,
            "late_minutes": None,
        }
        if makeup_date is not None:
            changes["makeup_scheduled"] = makeup_date
        return self._apply(attendance_id, "attendance_marked_absent", changes, acted_by)

    def complete_makeup(
        self, attendance_id: int, notes: Optional[str] = None, acted_by: Optional[int] = None
    ) -> Attendance:
        """Record that the makeup lesson took place.

        Raises:
            PreconditionError: If the makeup was already completed
        """
        record = self.require_attendance(attendance_id)
        if record.makeup_completed:
            raise PreconditionError(f"Makeup for attendance {attendance_id} is already completed")
        changes = {
            "makeup_completed": True,
            "makeup_completed_at": datetime.now(UTC),
            "notes": notes or record.notes,
        }
        return self._apply(attendance_id, "attendance_makeup_completed", changes, acted_by)

    def notify_parent(self, attendance_id: int, acted_by: Optional[int] = None) -> Attendance:
        """Flag that the parent was notified; delivery itself happens elsewhere."""
        changes = {"parent_notified": True, "parent_notified_at": datetime.now(UTC)}
        return self._apply(attendance_id, "attendance_parent_notified", changes, acted_by)

    def get_student_attendance_stats(
        self,
        student_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Per-status counts, durations, pending makeups and attendance rate for a student.

        The rate counts present, late and makeup lessons. A student with no
        records gets an all-zero result.
        """
        totals = self.db.get_attendance_status_totals(
            student_id=student_id, start_date=start_date, end_date=end_date
        )
        counts = {status.value: 0 for status in AttendanceStatus}
        total_duration = 0
        pending_makeups = 0
        for row in totals:
            counts[row["status"]] = row["count"]
            total_duration += row["total_duration"]
            pending_makeups += row["pending_makeups"]

        total_lessons = sum(counts.values())
        attended = sum(counts[s.value] for s in ATTENDED)
        return {
            "totalLessons": total_lessons,
            "presentCount": counts["present"],
            "absentCount": counts["absent"],
            "lateCount": counts["late"],
            "makeupCount": counts["makeup"],
            "cancelledCount": counts["cancelled"],
            "totalDuration": total_duration,
            "avgDuration": round(total_duration / total_lessons, 2) if total_lessons else 0,
            "pendingMakeups": pending_makeups,
            "attendanceRate": percentage(attended, total_lessons),
        }

    def get_teacher_attendance_overview(
        self,
        teacher_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Per-student counts for a teacher, highest attendance rate first.

        The rate counts present and late lessons.
        """
        rows = self.db.get_attendance_status_by_student(teacher_id, start_date, end_date)
        by_student: dict[int, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for row in rows:
            by_student[row["student_id"]][row["status"]] += row["count"]

        pending = defaultdict(int)
        for record in self.db.list_attendance(
            teacher_id=teacher_id, start_date=start_date, end_date=end_date, status=AttendanceStatus.ABSENT
        ):
            if not record.makeup_completed:
                pending[record.student_id] += 1

        overview = []
        for student_id, counts in by_student.items():
            student = self.db.get_student(student_id)
            total = sum(counts.values())
            overview.append(
                {
                    "studentId": student_id,
                    "studentName": student.full_name if student else None,
                    "totalLessons": total,
                    "presentCount": counts["present"],
                    "absentCount": counts["absent"],
                    "lateCount": counts["late"],
                    "pendingMakeups": pending[student_id],
                    "attendanceRate": percentage(counts["present"] + counts["late"], total),
                }
            )
        overview.sort(key=lambda item: (-item["attendanceRate"], item["studentId"]))
        return overview

    def get_attendance_patterns(
        self,
        teacher_id: int,
        period: "str | Period" = Period.WEEK,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Attendance counts bucketed by period key, in time order."""
        period = Period.parse(period)
        buckets: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for record in self.db.list_attendance(teacher_id=teacher_id, start_date=start_date, end_date=end_date):
            buckets[period.bucket_key(record.lesson_date)][record.status.value] += 1

        patterns = []
        for key in sorted(buckets):
            counts = buckets[key]
            total = sum(counts.values())
            patterns.append(
                {
                    "period": key,
                    "totalLessons": total,
                    "presentCount": counts["present"],
                    "absentCount": counts["absent"],
                    "lateCount": counts["late"],
                    "attendanceRate": percentage(counts["present"] + counts["late"], total),
                }
            )
        return patterns
