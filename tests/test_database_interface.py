"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from tutordesk.domain import entities
from tutordesk.domain.errors import ConflictError, NotFoundError


@pytest.fixture
def teacher_id(temp_db):
    return temp_db.create_user(
        email="Teacher@Example.com",
        first_name="Nadia",
        last_name="Benali",
        role=entities.Role.TEACHER,
        subject="Mathematics",
        status=entities.UserStatus.APPROVED,
    )


@pytest.fixture
def lesson_type_id(temp_db, teacher_id):
    return temp_db.create_lesson_type(teacher_id=teacher_id, name="Group", hourly_rate=Decimal("800"))


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_user_returns_domain_model(self, temp_db, teacher_id):
        """Test that get_user returns a domain User entity."""
        user = temp_db.get_user(teacher_id)

        # Verify it's a domain model with enum fields
        assert isinstance(user, entities.User)
        assert user.email == "teacher@example.com"
        assert user.role == entities.Role.TEACHER
        assert user.status == entities.UserStatus.APPROVED
        assert isinstance(user.created_at, datetime)

    def test_get_missing_rows_return_none(self, temp_db):
        """Test that lookups of unknown IDs return None."""
        assert temp_db.get_user(99) is None
        assert temp_db.get_student(99) is None
        assert temp_db.get_payment(99) is None
        assert temp_db.get_expense(99) is None

    def test_update_missing_row_raises(self, temp_db):
        """Test that updating an unknown row raises NotFoundError."""
        with pytest.raises(NotFoundError, match="User 99 not found"):
            temp_db.update_user(99, first_name="Nobody")

    def test_list_users_filters_by_role(self, temp_db, teacher_id):
        """Test that list_users filters on role."""
        temp_db.create_user(
            email="admin@example.com",
            first_name="Ada",
            last_name="Admin",
            role=entities.Role.ADMIN,
            status=entities.UserStatus.APPROVED,
        )

        teachers = temp_db.list_users(role=entities.Role.TEACHER)
        assert [u.id for u in teachers] == [teacher_id]
        assert len(temp_db.list_users()) == 2

    def test_student_returns_decimal_balances(self, temp_db, teacher_id):
        """Test that students come back with Decimal balance fields."""
        student_id = temp_db.create_student(
            teacher_id=teacher_id,
            first_name="Yacine",
            last_name="Haddad",
            email="yacine@example.com",
            level="Terminale",
            enrollment_date=date(2024, 9, 1),
        )

        student = temp_db.get_student(student_id)
        assert isinstance(student, entities.Student)
        assert student.status == entities.StudentStatus.ACTIVE
        assert isinstance(student.current_balance, Decimal)
        assert student.current_balance == Decimal("0")
        assert temp_db.get_student_by_email("YACINE@example.com").id == student_id

    def test_time_entry_total_is_derived(self, temp_db, teacher_id, lesson_type_id):
        """Test that the stored total always equals hours times rate."""
        entry_id = temp_db.create_time_entry(
            teacher_id=teacher_id,
            lesson_type_id=lesson_type_id,
            date=date(2024, 3, 1),
            hours_worked=Decimal("1.25"),
            hourly_rate=Decimal("800"),
            total_amount=Decimal("1"),
        )

        entry = temp_db.get_time_entry(entry_id)
        assert isinstance(entry, entities.TimeEntry)
        assert entry.total_amount == Decimal("1000.00")

        # Updating the hours recomputes the total and records the edit
        temp_db.update_time_entry(entry_id, teacher_id, hours_worked=Decimal("2"))
        entry = temp_db.get_time_entry(entry_id)
        assert entry.total_amount == Decimal("1600.00")
        assert entry.edit_history[0].previous_amount == Decimal("1000.00")

    def test_hourly_teacher_payment_amount_is_derived(self, temp_db, teacher_id):
        """Test that hourly teacher payments store hours times rate."""
        payment_id = temp_db.create_teacher_payment(
            teacher_id=teacher_id,
            amount=Decimal("1"),
            currency="DZD",
            payment_method=entities.PaymentMethod.BANK_TRANSFER,
            payment_date=date(2024, 3, 31),
            payment_type=entities.TeacherPaymentType.HOURLY_PAYMENT,
            hours_worked=Decimal("4"),
            hourly_rate=Decimal("800"),
            status=entities.TeacherPaymentStatus.PENDING,
            submitted_by=teacher_id,
        )

        payment = temp_db.get_teacher_payment(payment_id)
        assert isinstance(payment, entities.TeacherPayment)
        assert payment.amount == Decimal("3200.00")
        assert payment.payment_type == entities.TeacherPaymentType.HOURLY_PAYMENT

    def test_receipt_sequence_per_scope(self, temp_db):
        """Test that receipt counters increase independently per scope."""
        assert temp_db.next_receipt_sequence("teacher:1") == 1
        assert temp_db.next_receipt_sequence("teacher:1") == 2
        assert temp_db.next_receipt_sequence("teacher:2") == 1
        assert temp_db.next_receipt_sequence("teacher:1") == 3

    def test_summaries_are_zero_without_rows(self, temp_db):
        """Test that aggregate helpers return zero values on an empty database."""
        start, end = date(2024, 1, 1), date(2024, 12, 31)

        assert temp_db.summarize_payments(start, end) == {"total": Decimal("0.00"), "count": 0}
        assert temp_db.summarize_expenses(start, end)["total"] == Decimal("0.00")
        assert temp_db.get_payment_totals_by_date(start, end) == []
        assert temp_db.get_expenses_by_category() == []

    def test_receipt_number_unique_per_teacher(self, temp_db, teacher_id):
        """Test that a receipt number may repeat across teachers but not within one."""
        fields = {
            "student_id": 1,
            "amount": Decimal("100"),
            "payment_date": date(2024, 3, 10),
            "status": entities.PaymentStatus.COMPLETED,
            "receipt_number": "RCP-202403-0001",
        }
        temp_db.create_payment(teacher_id=teacher_id, **fields)
        temp_db.create_payment(teacher_id=teacher_id + 1, **fields)

        with pytest.raises(ConflictError, match="Payment could not be saved"):
            temp_db.create_payment(teacher_id=teacher_id, **fields)

        # The session is usable after the failed insert
        assert temp_db.count_payments(teacher_id=teacher_id) == 1
