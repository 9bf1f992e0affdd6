"""Attendance commands."""

import click

from tutordesk.cli.date_filters import date_range_options, parse_cli_date, resolve_cli_date_range
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json, echo_table
from tutordesk.domain.attendance import AttendanceService
from tutordesk.domain.entities import AttendanceStatus
from tutordesk.domain.periods import Period


def _service(ctx) -> AttendanceService:
    return AttendanceService(ctx.obj["db"], ctx.obj["audit"])


@click.group()
def attendance_group():
    """Record attendance and view attendance statistics."""
    pass


@attendance_group.command("record")
@click.option("--entry", "time_entry_id", type=int, required=True, help="Time entry ID of the lesson")
@click.option("--student", "student_id", type=int, required=True, help="Student ID")
@click.option(
    "--status",
    type=click.Choice([s.value for s in AttendanceStatus]),
    default=AttendanceStatus.PRESENT.value,
    show_default=True,
)
@click.option("--duration", type=int, help="Duration in minutes (multiple of 15)")
@click.option("--late-minutes", type=int, help="Minutes late (required for late)")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def record_attendance(ctx, time_entry_id, student_id, status, duration, late_minutes, notes):
    """Record a student's attendance at a logged lesson."""
    attendance_id = _service(ctx).record_attendance(
        time_entry_id=time_entry_id,
        student_id=student_id,
        status=AttendanceStatus(status),
        duration=duration,
        late_minutes=late_minutes,
        notes=notes,
    )
    click.echo(f"Recorded {status} (ID: {attendance_id})")


@attendance_group.command("present")
@click.argument("attendance_id", type=int)
@click.option("--duration", type=int, help="Duration in minutes")
@click.option("--notes", help="Notes")
@click.option("--by", "acted_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def mark_present(ctx, attendance_id, duration, notes, acted_by):
    """Mark a lesson attended."""
    _service(ctx).mark_present(attendance_id, duration=duration, notes=notes, acted_by=acted_by)
    click.echo(f"Attendance {attendance_id} marked present")


@attendance_group.command("late")
@click.argument("attendance_id", type=int)
@click.option("--minutes", "late_minutes", type=int, required=True, help="Minutes late (0-120)")
@click.option("--duration", type=int, help="Duration in minutes")
@click.option("--notes", help="Notes")
@click.option("--by", "acted_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def mark_late(ctx, attendance_id, late_minutes, duration, notes, acted_by):
    """Mark a lesson attended late."""
    _service(ctx).mark_late(attendance_id, late_minutes, duration=duration, notes=notes, acted_by=acted_by)
    click.echo(f"Attendance {attendance_id} marked late ({late_minutes} min)")


@attendance_group.command("absent")
@click.argument("attendance_id", type=int)
@click.option("--makeup", "makeup_date", help="Makeup lesson date (must be in the future)")
@click.option("--notes", help="Notes")
@click.option("--by", "acted_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def mark_absent(ctx, attendance_id, makeup_date, notes, acted_by):
    """Mark a lesson missed, optionally scheduling a makeup."""
    _service(ctx).mark_absent(
        attendance_id,
        notes=notes,
        makeup_date=parse_cli_date(ctx, makeup_date, "makeup date"),
        acted_by=acted_by,
    )
    click.echo(f"Attendance {attendance_id} marked absent")


@attendance_group.command("makeup-done")
@click.argument("attendance_id", type=int)
@click.option("--notes", help="Notes")
@click.option("--by", "acted_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def complete_makeup(ctx, attendance_id, notes, acted_by):
    """Record that the makeup lesson took place."""
    _service(ctx).complete_makeup(attendance_id, notes=notes, acted_by=acted_by)
    click.echo(f"Makeup for attendance {attendance_id} completed")


@attendance_group.command("notify-parent")
@click.argument("attendance_id", type=int)
@click.option("--by", "acted_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def notify_parent(ctx, attendance_id, acted_by):
    """Flag that the parent was notified."""
    _service(ctx).notify_parent(attendance_id, acted_by=acted_by)
    click.echo(f"Parent notified for attendance {attendance_id}")


@attendance_group.command("list")
@click.option("--student", "student_id", type=int, help="Filter by student ID")
@click.option("--teacher", "teacher_id", type=int, help="Filter by teacher ID")
@click.option("--status", type=click.Choice([s.value for s in AttendanceStatus]), help="Filter by status")
@date_range_options
@click.pass_context
def list_attendance(ctx, student_id, teacher_id, status, start_date, end_date, period):
    """List attendance records."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    records = _service(ctx).list_attendance(
        student_id=student_id, teacher_id=teacher_id, start_date=start, end_date=end, status=status
    )
    echo_table(
        [
            f"ID: {r.id:4d} | {r.lesson_date} | Student: {r.student_id:3d} | {r.lesson_type:20s} | "
            f"{r.status.value:9s} | {r.duration or 0:3d} min"
            + (" | makeup pending" if r.needs_makeup else "")
            for r in records
        ],
        empty="No attendance records found.",
        title="Attendance",
    )


@attendance_group.command("stats")
@click.argument("student_id", type=int)
@date_range_options
@click.pass_context
def student_stats(ctx, student_id, start_date, end_date, period):
    """Attendance statistics of a student."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(_service(ctx).get_student_attendance_stats(student_id, start, end))


@attendance_group.command("overview")
@click.argument("teacher_id", type=int)
@date_range_options
@click.pass_context
def teacher_overview(ctx, teacher_id, start_date, end_date, period):
    """Per-student attendance overview of a teacher."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(_service(ctx).get_teacher_attendance_overview(teacher_id, start, end))


@attendance_group.command("patterns")
@click.argument("teacher_id", type=int)
@click.option("--by", "group_by", type=click.Choice([p.value for p in Period]), default="week", show_default=True)
@date_range_options
@click.pass_context
def patterns(ctx, teacher_id, group_by, start_date, end_date, period):
    """Attendance counts of a teacher's lessons grouped by day, week, month or year."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(_service(ctx).get_attendance_patterns(teacher_id, group_by, start, end))


def register_commands(cli):
    """Register attendance commands with main CLI."""
    cli.add_command(attendance_group, name="attendance")
