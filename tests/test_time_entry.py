"""Tests for time entry service."""

from datetime import date, datetime, timedelta, timezone, UTC
from decimal import Decimal

import pytest

from tutordesk.domain.errors import NotFoundError, PreconditionError, ValidationError


def test_log_time_computes_total(time_entry_service, sample_teacher, sample_lesson_type):
    entry_id = time_entry_service.log_time(
        teacher_id=sample_teacher.id,
        lesson_type_id=sample_lesson_type.id,
        entry_date=date.today(),
        hours_worked=Decimal("2.5"),
    )
    entry = time_entry_service.get_time_entry(entry_id)

    assert entry.hourly_rate == Decimal("1000")
    assert entry.total_amount == Decimal("2500.00")
    assert entry.currency == "DZD"
    assert entry.edit_history == ()


def test_log_time_rate_override(time_entry_service, sample_teacher, sample_lesson_type):
    entry_id = time_entry_service.log_time(
        teacher_id=sample_teacher.id,
        lesson_type_id=sample_lesson_type.id,
        entry_date=date.today(),
        hours_worked=Decimal("0.75"),
        hourly_rate=Decimal("1200"),
    )
    assert time_entry_service.get_time_entry(entry_id).total_amount == Decimal("900.00")


def test_log_time_rejects_off_grid_hours(time_entry_service, sample_teacher, sample_lesson_type):
    with pytest.raises(ValidationError, match="15-minute intervals"):
        time_entry_service.log_time(
            teacher_id=sample_teacher.id,
            lesson_type_id=sample_lesson_type.id,
            entry_date=date.today(),
            hours_worked=Decimal("1.2"),
        )


def test_log_time_rejects_future_date(time_entry_service, sample_teacher, sample_lesson_type):
    with pytest.raises(ValidationError, match="future"):
        time_entry_service.log_time(
            teacher_id=sample_teacher.id,
            lesson_type_id=sample_lesson_type.id,
            entry_date=date.today() + timedelta(days=1),
            hours_worked=Decimal("1"),
        )


def test_pending_teacher_cannot_log_time(time_entry_service, teacher_service, lesson_type_service):
    teacher_id = teacher_service.register("new@example.com", "New", "Teacher", subject="French")
    lesson_type_id = lesson_type_service.create_lesson_type(
        teacher_id=teacher_id, name="Group", hourly_rate=Decimal("500")
    )
    with pytest.raises(PreconditionError, match="not approved"):
        time_entry_service.log_time(
            teacher_id=teacher_id, lesson_type_id=lesson_type_id, entry_date=date.today(), hours_worked=Decimal("1")
        )


def test_inactive_lesson_type_cannot_be_used(
    time_entry_service, lesson_type_service, sample_teacher, sample_lesson_type
):
    lesson_type_service.deactivate_lesson_type(sample_lesson_type.id)
    with pytest.raises(PreconditionError, match="inactive"):
        time_entry_service.log_time(
            teacher_id=sample_teacher.id,
            lesson_type_id=sample_lesson_type.id,
            entry_date=date.today(),
            hours_worked=Decimal("1"),
        )


def test_unknown_student_rejected(time_entry_service, sample_teacher, sample_lesson_type):
    with pytest.raises(NotFoundError, match="Student 42 not found"):
        time_entry_service.log_time(
            teacher_id=sample_teacher.id,
            lesson_type_id=sample_lesson_type.id,
            entry_date=date.today(),
            hours_worked=Decimal("1"),
            student_id=42,
        )


def test_edit_within_window_records_history(time_entry_service, sample_teacher, sample_lesson_type, sample_admin):
    entry_id = time_entry_service.log_time(
        teacher_id=sample_teacher.id,
        lesson_type_id=sample_lesson_type.id,
        entry_date=date.today(),
        hours_worked=Decimal("2"),
    )
    updated = time_entry_service.edit_time_entry(entry_id, sample_admin.id, hours_worked=Decimal("1.5"))

    assert updated.total_amount == Decimal("1500.00")
    assert len(updated.edit_history) == 1
    assert updated.edit_history[0].previous_hours == Decimal("2")
    assert updated.edit_history[0].previous_amount == Decimal("2000.00")
    assert updated.edit_history[0].edited_by == sample_admin.id


def test_edit_after_four_hours_rejected(time_entry_service, sample_teacher, sample_lesson_type, sample_admin):
    entry_id = time_entry_service.log_time(
        teacher_id=sample_teacher.id,
        lesson_type_id=sample_lesson_type.id,
        entry_date=date.today(),
        hours_worked=Decimal("2"),
    )
    later = datetime.now(UTC) + timedelta(hours=4, minutes=1)

    with pytest.raises(PreconditionError, match="within 4 hours"):
        time_entry_service.edit_time_entry(entry_id, sample_admin.id, hours_worked=Decimal("1"), now=later)
    assert time_entry_service.get_time_entry(entry_id).hours_worked == Decimal("2")


def test_edit_window_compares_instants_across_timezones(time_entry_service, sample_teacher, sample_lesson_type):
    entry_id = time_entry_service.log_time(
        teacher_id=sample_teacher.id,
        lesson_type_id=sample_lesson_type.id,
        entry_date=date.today(),
        hours_worked=Decimal("1"),
    )
    entry = time_entry_service.get_time_entry(entry_id)
    tokyo = timezone(timedelta(hours=9))

    assert entry.can_edit(datetime.now(tokyo) + timedelta(hours=1))
    assert not entry.can_edit(datetime.now(tokyo) + timedelta(hours=5))
    # Naive values count as UTC
    assert entry.can_edit(datetime.now(UTC).replace(tzinfo=None))


def test_delete_time_entry(time_entry_service, sample_teacher, sample_lesson_type):
    entry_id = time_entry_service.log_time(
        teacher_id=sample_teacher.id,
        lesson_type_id=sample_lesson_type.id,
        entry_date=date.today(),
        hours_worked=Decimal("1"),
    )
    time_entry_service.delete_time_entry(entry_id)

    assert time_entry_service.get_time_entry(entry_id) is None
    with pytest.raises(NotFoundError):
        time_entry_service.delete_time_entry(entry_id)


def test_earnings_summary(time_entry_service, sample_teacher, sample_lesson_type):
    for hours in ("1", "2.25"):
        time_entry_service.log_time(
            teacher_id=sample_teacher.id,
            lesson_type_id=sample_lesson_type.id,
            entry_date=date.today(),
            hours_worked=Decimal(hours),
        )
    summary = time_entry_service.get_earnings_summary(sample_teacher.id)

    assert summary["total_hours"] == Decimal("3.25")
    assert summary["total_earnings"] == Decimal("3250.00")
    assert summary["entry_count"] == 2


def test_earnings_summary_without_entries(time_entry_service, sample_teacher):
    summary = time_entry_service.get_earnings_summary(sample_teacher.id)
    assert summary["total_hours"] == 0
    assert summary["total_earnings"] == 0
    assert summary["entry_count"] == 0
