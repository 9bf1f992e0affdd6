"""Student management commands."""

import click

from tutordesk.cli.date_filters import parse_cli_date
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json, echo_table
from tutordesk.domain.entities import StudentStatus
from tutordesk.domain.student import StudentService


def _service(ctx) -> StudentService:
    return StudentService(ctx.obj["db"], ctx.obj["audit"])


@click.group()
def student_group():
    """Manage students."""
    pass


@student_group.command("create")
@click.option("--teacher", "teacher_id", type=int, required=True, help="Teacher ID")
@click.option("--first-name", required=True)
@click.option("--last-name", required=True)
@click.option("--email", required=True)
@click.option("--level", required=True, help="Course level (e.g. A1, B2)")
@click.option("--phone", help="Phone number")
@click.option("--enrolled", help="Enrollment date (defaults to today)")
@click.option("--notes", help="Notes")
@click.option("--by", "created_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def create_student(
    ctx,
    teacher_id: int,
    first_name: str,
    last_name: str,
    email: str,
    level: str,
    phone: str | None,
    enrolled: str | None,
    notes: str | None,
    created_by: int | None,
):
    """Create a student assigned to a teacher.

    Examples:
        tutordesk student create --teacher 2 --first-name Lina --last-name Ouali --email lina@example.com --level B1
    """
    student_id = _service(ctx).create_student(
        teacher_id=teacher_id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        level=level,
        phone=phone,
        enrollment_date=parse_cli_date(ctx, enrolled, "enrollment date"),
        notes=notes,
        created_by=created_by,
    )
    click.echo(f"Created student '{first_name} {last_name}' (ID: {student_id})")


@student_group.command("list")
@click.option("--teacher", "teacher_id", type=int, help="Filter by teacher ID")
@click.option("--status", type=click.Choice([s.value for s in StudentStatus]), help="Filter by status")
@click.pass_context
def list_students(ctx, teacher_id: int | None, status: str | None):
    """List students."""
    students = _service(ctx).list_students(teacher_id=teacher_id, status=status)
    echo_table(
        [
            f"ID: {s.id:3d} | {s.full_name:25s} | {s.level:6s} | {s.status.value:9s} | "
            f"Paid: {s.total_paid:>10.2f} | Balance: {s.current_balance:>10.2f}"
            for s in students
        ],
        empty="No students found.",
        title="Students",
    )


@student_group.command("set-status")
@click.argument("student_id", type=int)
@click.argument("status", type=click.Choice([s.value for s in StudentStatus]))
@click.option("--by", "changed_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def set_status(ctx, student_id: int, status: str, changed_by: int | None):
    """Change a student's status."""
    student = _service(ctx).change_status(student_id, StudentStatus(status), changed_by)
    click.echo(f"Student '{student.full_name}' is now {student.status.value}")


def _profile_options(func):
    """Attach the optional profile field options shared by update commands."""
    for option in reversed(
        [
            click.option("--teacher", "teacher_id", type=int, help="Reassign to teacher ID"),
            click.option("--first-name"),
            click.option("--last-name"),
            click.option("--level", help="Course level"),
            click.option("--phone", help="Phone number"),
            click.option("--enrolled", help="Enrollment date"),
            click.option("--status", type=click.Choice([s.value for s in StudentStatus])),
            click.option("--notes", help="Notes"),
            click.option("--by", "updated_by", type=int, help="Acting user ID"),
        ]
    ):
        func = option(func)
    return func


def _changes(ctx, fields: dict) -> dict:
    enrolled = fields.pop("enrolled", None)
    changes = {key: value for key, value in fields.items() if value is not None}
    if enrolled is not None:
        changes["enrollment_date"] = parse_cli_date(ctx, enrolled, "enrollment date")
    return changes


@student_group.command("update")
@click.argument("student_id", type=int)
@click.option("--email", help="New email address")
@_profile_options
@click.pass_context
@domain_errors
def update_student(ctx, student_id: int, updated_by: int | None, **fields):
    """Update a student's profile.

    Examples:
        tutordesk student update 3 --level B2 --phone 0550123456
    """
    changes = _changes(ctx, fields)
    if not changes:
        click.echo("Nothing to update.")
        return
    student = _service(ctx).update_student(student_id, updated_by=updated_by, **changes)
    click.echo(f"Updated student '{student.full_name}' (ID: {student.id})")


@student_group.command("bulk-update")
@click.argument("student_ids", type=int, nargs=-1, required=True)
@_profile_options
@click.pass_context
@domain_errors
def bulk_update_students(ctx, student_ids: tuple[int, ...], updated_by: int | None, **fields):
    """Apply the same changes to several students.

    Examples:
        tutordesk student bulk-update 3 4 7 --status inactive
    """
    result = _service(ctx).bulk_update_students(list(student_ids), updated_by=updated_by, **_changes(ctx, fields))
    click.echo(f"{result['modifiedCount']} of {result['matchedCount']} student(s) updated")


@student_group.command("stats")
@click.option("--teacher", "teacher_id", type=int, help="Limit to one teacher's students")
@click.pass_context
def student_stats(ctx, teacher_id: int | None):
    """Student counts by status."""
    echo_json(_service(ctx).get_student_stats(teacher_id))


def register_commands(cli):
    """Register student commands with main CLI."""
    cli.add_command(student_group, name="student")
