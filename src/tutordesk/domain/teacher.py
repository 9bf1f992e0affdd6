"""Teacher (user) domain service."""

import logging
from datetime import datetime, UTC
from typing import Optional

from tutordesk.database.base import Database
from tutordesk.domain.audit import AuditTrail
from tutordesk.domain.entities import AuditTarget, Role, User, UserStatus
from tutordesk.domain.errors import (
    ConflictError,
    NotFoundError,
    PreconditionError,
    invalid_transition,
    not_found,
)
from tutordesk.domain.validation import validate_user

logger = logging.getLogger(__name__)


class TeacherService:
    """Service for registering, approving and suspending users."""

    def __init__(self, db: Database, audit: Optional[AuditTrail] = None):
        """Initialize teacher service.

        Args:
            db: Database instance
            audit: Optional audit trail for state changes
        """
        self.db = db
        self.audit = audit

    def register(
        self,
        email: str,
        first_name: str,
        last_name: str,
        role: Role = Role.TEACHER,
        subject: Optional[str] = None,
    ) -> int:
        """Register a user.

        Teachers start as pending and must be approved before they can log
        time. Admins are approved on registration.

        Args:
            email: Email address, stored lowercase
            first_name: First name
            last_name: Last name
            role: admin or teacher
            subject: Taught subject (required for teachers)

        Returns:
            User ID

        Raises:
            ValidationError: If the record is invalid
            ConflictError: If the email is already registered
        """
        role = Role(role)
        status = UserStatus.APPROVED if role == Role.ADMIN else UserStatus.PENDING
        record = {
            "email": email.strip().lower(),
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
            "subject": subject,
            "status": status,
            "approved_at": datetime.now(UTC) if status == UserStatus.APPROVED else None,
        }
        validate_user(record)

        if self.db.get_user_by_email(record["email"]) is not None:
            raise ConflictError(f"User with email '{record['email']}' already exists")

        user_id = self.db.create_user(**record)
        logger.info("Registered %s %s (%s)", role.value, user_id, record["email"])
        if self.audit:
            self.audit.record("user_registered", AuditTarget.USER, user_id, new=record)
        return user_id

    def get_teacher(self, user_id: int) -> Optional[User]:
        """Get a user with the teacher role, or None."""
        user = self.db.get_user(user_id)
        if user is None or user.role != Role.TEACHER:
            return None
        return user

    def require_teacher(self, user_id: int) -> User:
        """Get a teacher or raise NotFoundError."""
        teacher = self.get_teacher(user_id)
        if teacher is None:
            raise NotFoundError(not_found("Teacher", user_id))
        return teacher

    def list_teachers(self, status: Optional[UserStatus] = None) -> list[User]:
        """List teachers, optionally by approval status."""
        return self.db.list_users(role=Role.TEACHER, status=status)

    def approve_teacher(self, user_id: int, approved_by: int) -> User:
        """Approve a pending or suspended teacher.

        Args:
            user_id: Teacher ID
            approved_by: Acting admin ID

        Returns:
            Updated teacher

        Raises:
            NotFoundError: If the teacher doesn't exist
            PreconditionError: If the teacher is already approved
        """
        teacher = self.require_teacher(user_id)
        if teacher.status == UserStatus.APPROVED:
            raise PreconditionError(
                invalid_transition("Teacher", teacher.status.value, UserStatus.APPROVED.value)
            )

        changes = {
            "status": UserStatus.APPROVED,
            "approved_by": approved_by,
            "approved_at": datetime.now(UTC),
        }
        self.db.update_user(user_id, **changes)
        logger.info("Teacher %s approved by %s", user_id, approved_by)
        if self.audit:
            self.audit.record(
                "teacher_approved",
                AuditTarget.USER,
                user_id,
                user_id=approved_by,
                previous={"status": teacher.status},
                new=changes,
            )
        return self.require_teacher(user_id)

    def suspend_teacher(self, user_id: int, suspended_by: int) -> User:
        """Suspend a teacher.

        Raises:
            NotFoundError: If the teacher doesn't exist
            PreconditionError: If the teacher is already suspended
        """
        teacher = self.require_teacher(user_id)
        if teacher.status == UserStatus.SUSPENDED:
            raise PreconditionError(
                invalid_transition("Teacher", teacher.status.value, UserStatus.SUSPENDED.value)
            )

        self.db.update_user(user_id, status=UserStatus.SUSPENDED)
        logger.info("Teacher %s suspended by %s", user_id, suspended_by)
        if self.audit:
            self.audit.record(
                "teacher_suspended",
                AuditTarget.USER,
                user_id,
                user_id=suspended_by,
                previous={"status": teacher.status},
                new={"status": UserStatus.SUSPENDED},
            )
        return self.require_teacher(user_id)
