"""Time entry commands."""

import click

from tutordesk.cli.date_filters import date_range_options, parse_cli_date, resolve_cli_date_range
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json, echo_table
from tutordesk.domain.time_entry import TimeEntryService
from tutordesk.utils.money import parse_amount


def _service(ctx) -> TimeEntryService:
    return TimeEntryService(ctx.obj["db"], ctx.obj["audit"])


@click.group()
def time_group():
    """Log and edit lesson hours."""
    pass


@time_group.command("log")
@click.option("--teacher", "teacher_id", type=int, required=True, help="Teacher ID")
@click.option("--lesson-type", "lesson_type_id", type=int, required=True, help="Lesson type ID")
@click.option("--hours", required=True, help="Hours worked in quarter-hour steps (e.g. 1.5)")
@click.option("--date", "entry_date", default="today", show_default=True, help="Lesson date")
@click.option("--student", "student_id", type=int, help="Student ID")
@click.option("--rate", help="Override the lesson type's hourly rate")
@click.option("--description", help="Description")
@click.pass_context
@domain_errors
def log_time(
    ctx,
    teacher_id: int,
    lesson_type_id: int,
    hours: str,
    entry_date: str,
    student_id: int | None,
    rate: str | None,
    description: str | None,
):
    """Log lesson hours for a teacher.

    Examples:
        tutordesk time log --teacher 2 --lesson-type 1 --hours 2.5
        tutordesk time log --teacher 2 --lesson-type 1 --hours 1 --date yesterday --student 4
    """
    entry_id = _service(ctx).log_time(
        teacher_id=teacher_id,
        lesson_type_id=lesson_type_id,
        entry_date=parse_cli_date(ctx, entry_date, "date"),
        hours_worked=parse_amount(hours),
        student_id=student_id,
        hourly_rate=parse_amount(rate) if rate else None,
        description=description,
    )
    entry = _service(ctx).get_time_entry(entry_id)
    click.echo(f"Logged {entry.hours_worked} h = {entry.currency} {entry.total_amount:.2f} (ID: {entry_id})")


@time_group.command("edit")
@click.argument("entry_id", type=int)
@click.option("--by", "edited_by", type=int, required=True, help="Acting user ID")
@click.option("--hours", help="New hours worked")
@click.option("--date", "entry_date", help="New lesson date")
@click.option("--description", help="New description")
@click.pass_context
@domain_errors
def edit_time_entry(
    ctx, entry_id: int, edited_by: int, hours: str | None, entry_date: str | None, description: str | None
):
    """Edit a time entry within 4 hours of logging it."""
    entry = _service(ctx).edit_time_entry(
        entry_id,
        edited_by,
        hours_worked=parse_amount(hours) if hours else None,
        entry_date=parse_cli_date(ctx, entry_date, "date"),
        description=description,
    )
    click.echo(f"Updated time entry {entry_id}: {entry.hours_worked} h = {entry.total_amount:.2f}")


@time_group.command("delete")
@click.argument("entry_id", type=int)
@click.option("--by", "deleted_by", type=int, help="Acting user ID")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
@domain_errors
def delete_time_entry(ctx, entry_id: int, deleted_by: int | None, yes: bool):
    """Delete a time entry."""
    if not yes and not click.confirm(f"Are you sure you want to delete time entry {entry_id}?"):
        click.echo("Deletion cancelled.")
        return
    _service(ctx).delete_time_entry(entry_id, deleted_by)
    click.echo(f"Deleted time entry {entry_id}")


@time_group.command("list")
@click.option("--teacher", "teacher_id", type=int, help="Filter by teacher ID")
@click.option("--student", "student_id", type=int, help="Filter by student ID")
@date_range_options
@click.pass_context
def list_time_entries(ctx, teacher_id, student_id, start_date, end_date, period):
    """List time entries, newest first."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    entries = _service(ctx).list_time_entries(
        teacher_id=teacher_id, student_id=student_id, start_date=start, end_date=end
    )
    echo_table(
        [
            f"ID: {e.id:4d} | {e.date} | Teacher: {e.teacher_id:3d} | {e.hours_worked:>5} h x "
            f"{e.hourly_rate:>8.2f} = {e.currency} {e.total_amount:>9.2f}"
            for e in entries
        ],
        empty="No time entries found.",
        title="Time entries",
    )


@time_group.command("earnings")
@click.argument("teacher_id", type=int)
@date_range_options
@click.pass_context
def earnings(ctx, teacher_id, start_date, end_date, period):
    """Total hours and earnings of a teacher."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(_service(ctx).get_earnings_summary(teacher_id, start, end))


def register_commands(cli):
    """Register time entry commands with main CLI."""
    cli.add_command(time_group, name="time")
