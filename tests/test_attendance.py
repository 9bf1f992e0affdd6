"""Tests for attendance service."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from tutordesk.domain.entities import AttendanceStatus
from tutordesk.domain.errors import NotFoundError, PreconditionError, ValidationError


@pytest.fixture
def lesson(time_entry_service, sample_teacher, sample_lesson_type, sample_student):
    entry_id = time_entry_service.log_time(
        teacher_id=sample_teacher.id,
        lesson_type_id=sample_lesson_type.id,
        entry_date=date.today(),
        hours_worked=Decimal("1.5"),
        student_id=sample_student.id,
    )
    return time_entry_service.get_time_entry(entry_id)


@pytest.fixture
def second_student(student_service, sample_teacher):
    student_id = student_service.create_student(
        teacher_id=sample_teacher.id, first_name="Amel", last_name="Touati", email="amel@example.com", level="1AS"
    )
    return student_service.get_student(student_id)


def test_record_attendance_defaults(attendance_service, lesson, sample_student, sample_teacher):
    attendance_id = attendance_service.record_attendance(lesson.id, sample_student.id)
    record = attendance_service.get_attendance(attendance_id)

    assert record.status == AttendanceStatus.PRESENT
    assert record.duration == 90
    assert record.teacher_id == sample_teacher.id
    assert record.lesson_date == lesson.date
    assert record.lesson_type == "Private lesson"
    assert not record.parent_notified


def test_absent_record_defaults_to_zero_duration(attendance_service, lesson, sample_student):
    attendance_id = attendance_service.record_attendance(lesson.id, sample_student.id, AttendanceStatus.ABSENT)
    assert attendance_service.get_attendance(attendance_id).duration == 0


def test_late_requires_minutes(attendance_service, lesson, sample_student):
    with pytest.raises(ValidationError, match="Late minutes are required"):
        attendance_service.record_attendance(lesson.id, sample_student.id, AttendanceStatus.LATE)


def test_duration_must_be_quarter_hours(attendance_service, lesson, sample_student):
    with pytest.raises(ValidationError, match="15-minute intervals"):
        attendance_service.record_attendance(lesson.id, sample_student.id, duration=50)


def test_unknown_time_entry(attendance_service, sample_student):
    with pytest.raises(NotFoundError, match="Time entry 404 not found"):
        attendance_service.record_attendance(404, sample_student.id)


def test_mark_late_then_present(attendance_service, lesson, sample_student):
    attendance_id = attendance_service.record_attendance(lesson.id, sample_student.id)

    late = attendance_service.mark_late(attendance_id, 10)
    assert late.status == AttendanceStatus.LATE
    assert late.late_minutes == 10

    present = attendance_service.mark_present(attendance_id)
    assert present.status == AttendanceStatus.PRESENT
    assert present.late_minutes is None


def test_mark_late_limits_minutes(attendance_service, lesson, sample_student):
    attendance_id = attendance_service.record_attendance(lesson.id, sample_student.id)
    with pytest.raises(ValidationError):
        attendance_service.mark_late(attendance_id, 180)


def test_mark_absent_schedules_makeup(attendance_service, lesson, sample_student):
    attendance_id = attendance_service.record_attendance(lesson.id, sample_student.id)
    makeup_on = date.today() + timedelta(days=3)

    absent = attendance_service.mark_absent(attendance_id, notes="Sick", makeup_date=makeup_on)

    assert absent.status == AttendanceStatus.ABSENT
    assert absent.duration == 0
    assert absent.makeup_scheduled == makeup_on
    assert absent.notes == "Sick"


def test_makeup_date_must_be_future(attendance_service, lesson, sample_student):
    attendance_id = attendance_service.record_attendance(lesson.id, sample_student.id)
    with pytest.raises(ValidationError, match="Makeup date must be in the future"):
        attendance_service.mark_absent(attendance_id, makeup_date=date.today())
    assert attendance_service.get_attendance(attendance_id).status == AttendanceStatus.PRESENT


def test_complete_makeup_once(attendance_service, lesson, sample_student):
    attendance_id = attendance_service.record_attendance(lesson.id, sample_student.id, AttendanceStatus.ABSENT)

    done = attendance_service.complete_makeup(attendance_id)
    assert done.makeup_completed
    assert done.makeup_completed_at is not None
    with pytest.raises(PreconditionError, match="already completed"):
        attendance_service.complete_makeup(attendance_id)


def test_notify_parent(attendance_service, lesson, sample_student):
    attendance_id = attendance_service.record_attendance(lesson.id, sample_student.id, AttendanceStatus.ABSENT)
    notified = attendance_service.notify_parent(attendance_id)

    assert notified.parent_notified
    assert notified.parent_notified_at is not None


def test_student_stats(attendance_service, lesson, sample_student):
    attendance_service.record_attendance(lesson.id, sample_student.id)
    attendance_service.record_attendance(lesson.id, sample_student.id, AttendanceStatus.LATE, late_minutes=5)
    attendance_service.record_attendance(lesson.id, sample_student.id, AttendanceStatus.ABSENT)

    stats = attendance_service.get_student_attendance_stats(sample_student.id)

    assert stats["totalLessons"] == 3
    assert stats["presentCount"] == 1
    assert stats["lateCount"] == 1
    assert stats["absentCount"] == 1
    assert stats["totalDuration"] == 180
    assert stats["avgDuration"] == 60
    assert stats["pendingMakeups"] == 1
    assert stats["attendanceRate"] == 66.67


def test_student_stats_without_records(attendance_service, sample_student):
    stats = attendance_service.get_student_attendance_stats(sample_student.id)
    assert stats["totalLessons"] == 0
    assert stats["attendanceRate"] == 0
    assert stats["avgDuration"] == 0


def test_teacher_overview_sorted_by_rate(attendance_service, lesson, sample_student, second_student, sample_teacher):
    attendance_service.record_attendance(lesson.id, sample_student.id, AttendanceStatus.ABSENT)
    attendance_service.record_attendance(lesson.id, sample_student.id)
    attendance_service.record_attendance(lesson.id, second_student.id)

    overview = attendance_service.get_teacher_attendance_overview(sample_teacher.id)

    assert [row["studentName"] for row in overview] == ["Amel Touati", "Yacine Haddad"]
    assert overview[0]["attendanceRate"] == 100.0
    assert overview[1]["attendanceRate"] == 50.0
    assert overview[1]["pendingMakeups"] == 1


def test_attendance_patterns_by_month(attendance_service, lesson, sample_student, sample_teacher):
    attendance_service.record_attendance(lesson.id, sample_student.id)
    attendance_service.record_attendance(lesson.id, sample_student.id, AttendanceStatus.ABSENT)

    patterns = attendance_service.get_attendance_patterns(sample_teacher.id, "month")

    assert patterns == [
        {
            "period": lesson.date.strftime("%Y-%m"),
            "totalLessons": 2,
            "presentCount": 1,
            "absentCount": 1,
            "lateCount": 0,
            "attendanceRate": 50.0,
        }
    ]
