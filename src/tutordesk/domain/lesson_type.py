"""Lesson type (rate card) domain service."""

import logging
from decimal import Decimal
from typing import Any, Optional

from tutordesk import config
from tutordesk.database.base import Database
from tutordesk.domain.audit import AuditTrail
from tutordesk.domain.entities import AuditTarget, LessonType, Role
from tutordesk.domain.errors import ConflictError, NotFoundError, duplicate_lesson_type, not_found
from tutordesk.domain.validation import validate_lesson_type
from tutordesk.utils.money import to_float

logger = logging.getLogger(__name__)


class LessonTypeService:
    """Service for managing per-teacher lesson types."""

    def __init__(self, db: Database, audit: Optional[AuditTrail] = None):
        """Initialize lesson type service.

        Args:
            db: Database instance
            audit: Optional audit trail for state changes
        """
        self.db = db
        self.audit = audit

    def create_lesson_type(
        self,
        teacher_id: int,
        name: str,
        hourly_rate: Decimal,
        currency: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a lesson type.

        Args:
            teacher_id: Owning teacher ID
            name: Name, unique per teacher ignoring case
            hourly_rate: Rate per hour (>= 0)
            currency: 3-letter currency code, defaults to the configured currency
            description: Optional description

        Returns:
            Lesson type ID

        Raises:
            NotFoundError: If the teacher doesn't exist
            ValidationError: If the record is invalid
            ConflictError: If the teacher already has a lesson type with this name
        """
        teacher = self.db.get_user(teacher_id)
        if teacher is None or teacher.role != Role.TEACHER:
            raise NotFoundError(not_found("Teacher", teacher_id))

        record = {
            "teacher_id": teacher_id,
            "name": name.strip(),
            "description": description,
            "hourly_rate": hourly_rate,
            "currency": (currency or config.default_currency()).upper(),
            "is_active": True,
        }
        validate_lesson_type(record)

        if self.db.lesson_type_name_exists(teacher_id, record["name"]):
            raise ConflictError(duplicate_lesson_type(record["name"], teacher_id))

        lesson_type_id = self.db.create_lesson_type(**record)
        logger.info("Created lesson type %s '%s' for teacher %s", lesson_type_id, record["name"], teacher_id)
        if self.audit:
            self.audit.record(
                "lesson_type_created", AuditTarget.LESSON_TYPE, lesson_type_id, user_id=teacher_id, new=record
            )
        return lesson_type_id

    def get_lesson_type(self, lesson_type_id: int) -> Optional[LessonType]:
        """Get lesson type by ID."""
        return self.db.get_lesson_type(lesson_type_id)

    def require_lesson_type(self, lesson_type_id: int) -> LessonType:
        lesson_type = self.db.get_lesson_type(lesson_type_id)
        if lesson_type is None:
            raise NotFoundError(not_found("Lesson type", lesson_type_id))
        return lesson_type

    def list_lesson_types(
        self, teacher_id: Optional[int] = None, active_only: bool = False
    ) -> list[LessonType]:
        """List lesson types ordered by name."""
        return self.db.list_lesson_types(teacher_id=teacher_id, active_only=active_only)

    def update_lesson_type(
        self,
        lesson_type_id: int,
        updated_by: Optional[int] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        hourly_rate: Optional[Decimal] = None,
        currency: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> LessonType:
        """Rename a lesson type or change its rate, currency or active flag.

        Only the arguments that are not None change. Time entries already
        logged keep the rate they were logged with.

        Raises:
            NotFoundError: If the lesson type doesn't exist
            ValidationError: If the updated record is invalid
            ConflictError: If the new name is taken by another of the teacher's lesson types
        """
        lesson_type = self.require_lesson_type(lesson_type_id)

        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name.strip()
        if description is not None:
            changes["description"] = description.strip()
        if hourly_rate is not None:
            changes["hourly_rate"] = hourly_rate
        if currency is not None:
            changes["currency"] = currency.upper()
        if is_active is not None:
            changes["is_active"] = is_active
        changes = {k: v for k, v in changes.items() if getattr(lesson_type, k) != v}
        if not changes:
            return lesson_type

        record = {
            "teacher_id": lesson_type.teacher_id,
            "name": lesson_type.name,
            "hourly_rate": lesson_type.hourly_rate,
            "currency": lesson_type.currency,
            **changes,
        }
        validate_lesson_type(record)
        if "name" in changes and self.db.lesson_type_name_exists(
            lesson_type.teacher_id, changes["name"], exclude_id=lesson_type_id
        ):
            raise ConflictError(duplicate_lesson_type(changes["name"], lesson_type.teacher_id))

        self.db.update_lesson_type(lesson_type_id, **changes)
        logger.info("Updated lesson type %s: %s", lesson_type_id, ", ".join(sorted(changes)))
        if self.audit:
            self.audit.record(
                "lesson_type_updated",
                AuditTarget.LESSON_TYPE,
                lesson_type_id,
                user_id=updated_by,
                previous={k: getattr(lesson_type, k) for k in changes},
                new=changes,
            )
        return self.require_lesson_type(lesson_type_id)

    def get_lesson_type_stats(self, teacher_id: Optional[int] = None) -> dict[str, Any]:
        """Count and rate spread of lesson types, for one teacher or all.

        Rates are averaged over every lesson type, active or not. Without any
        lesson types all values are zero.
        """
        stats = self.db.get_lesson_type_stats(teacher_id)
        return {
            "totalLessonTypes": stats["total"],
            "activeLessonTypes": stats["active"],
            "averageRate": to_float(stats["average_rate"]),
            "minRate": to_float(stats["min_rate"]),
            "maxRate": to_float(stats["max_rate"]),
        }

    def deactivate_lesson_type(self, lesson_type_id: int, deactivated_by: Optional[int] = None) -> LessonType:
        """Mark a lesson type inactive; existing time entries keep their rate snapshot.

        Raises:
            NotFoundError: If the lesson type doesn't exist
        """
        lesson_type = self.require_lesson_type(lesson_type_id)
        if not lesson_type.is_active:
            return lesson_type

        self.db.update_lesson_type(lesson_type_id, is_active=False)
        logger.info("Deactivated lesson type %s", lesson_type_id)
        if self.audit:
            self.audit.record(
                "lesson_type_deactivated",
                AuditTarget.LESSON_TYPE,
                lesson_type_id,
                user_id=deactivated_by,
                previous={"is_active": True},
                new={"is_active": False},
            )
        return self.require_lesson_type(lesson_type_id)
