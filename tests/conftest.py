"""Shared pytest fixtures for tutordesk tests."""

import tempfile
import os
from decimal import Decimal
import pytest

from tutordesk.database.factories import create_sqlite_database
from tutordesk.domain.accounting import AccountingService
from tutordesk.domain.attendance import AttendanceService
from tutordesk.domain.audit import AuditTrail
from tutordesk.domain.dashboard import DashboardService
from tutordesk.domain.entities import Role
from tutordesk.domain.expense import ExpenseService
from tutordesk.domain.lesson_type import LessonTypeService
from tutordesk.domain.payment import PaymentService
from tutordesk.domain.reporting import ReportingService
from tutordesk.domain.student import StudentService
from tutordesk.domain.teacher import TeacherService
from tutordesk.domain.time_entry import TimeEntryService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def audit(temp_db):
    """Audit trail over the temporary database."""
    return AuditTrail(temp_db)


@pytest.fixture
def teacher_service(temp_db, audit):
    return TeacherService(temp_db, audit)


@pytest.fixture
def student_service(temp_db, audit):
    return StudentService(temp_db, audit)


@pytest.fixture
def lesson_type_service(temp_db, audit):
    return LessonTypeService(temp_db, audit)


@pytest.fixture
def time_entry_service(temp_db, audit):
    return TimeEntryService(temp_db, audit)


@pytest.fixture
def attendance_service(temp_db, audit):
    return AttendanceService(temp_db, audit)


@pytest.fixture
def payment_service(temp_db, audit):
    return PaymentService(temp_db, audit)


@pytest.fixture
def expense_service(temp_db, audit):
    return ExpenseService(temp_db, audit)


@pytest.fixture
def accounting_service(temp_db):
    return AccountingService(temp_db)


@pytest.fixture
def dashboard_service(temp_db):
    return DashboardService(temp_db)


@pytest.fixture
def reporting_service(temp_db, audit, tmp_path):
    """Reporting service writing rendered files into a temporary directory."""
    return ReportingService(temp_db, audit, export_dir=tmp_path)


@pytest.fixture
def sample_admin(teacher_service):
    """Create an admin user (approved on registration)."""
    admin_id = teacher_service.register("admin@example.com", "Ada", "Admin", role=Role.ADMIN)
    return teacher_service.db.get_user(admin_id)


@pytest.fixture
def sample_teacher(teacher_service, sample_admin):
    """Create and approve a teacher."""
    teacher_id = teacher_service.register("nadia@example.com", "Nadia", "Benali", subject="Mathematics")
    return teacher_service.approve_teacher(teacher_id, sample_admin.id)


@pytest.fixture
def sample_student(student_service, sample_teacher):
    """Create an active student of the sample teacher."""
    student_id = student_service.create_student(
        teacher_id=sample_teacher.id,
        first_name="Yacine",
        last_name="Haddad",
        email="yacine@example.com",
        level="Terminale",
    )
    return student_service.get_student(student_id)


@pytest.fixture
def sample_lesson_type(lesson_type_service, sample_teacher):
    """Create a lesson type at 1000 per hour."""
    lesson_type_id = lesson_type_service.create_lesson_type(
        teacher_id=sample_teacher.id, name="Private lesson", hourly_rate=Decimal("1000"), currency="DZD"
    )
    return lesson_type_service.get_lesson_type(lesson_type_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
