"""Lesson type (rate card) commands."""

import click

from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json, echo_table
from tutordesk.domain.lesson_type import LessonTypeService
from tutordesk.utils.money import parse_amount


def _service(ctx) -> LessonTypeService:
    return LessonTypeService(ctx.obj["db"], ctx.obj["audit"])


@click.group()
def lesson_type_group():
    """Manage lesson types and their hourly rates."""
    pass


@lesson_type_group.command("create")
@click.argument("name")
@click.option("--teacher", "teacher_id", type=int, required=True, help="Teacher ID")
@click.option("--rate", required=True, help="Hourly rate (e.g. 1000 or 'DZD 1000')")
@click.option("--currency", help="Currency code (defaults to TUTORDESK_DEFAULT_CURRENCY)")
@click.option("--description", help="Description")
@click.pass_context
@domain_errors
def create_lesson_type(
    ctx, name: str, teacher_id: int, rate: str, currency: str | None, description: str | None
):
    """Create a lesson type for a teacher.

    Examples:
        tutordesk lesson-type create "Private lesson" --teacher 2 --rate 1000
    """
    lesson_type_id = _service(ctx).create_lesson_type(
        teacher_id=teacher_id,
        name=name,
        hourly_rate=parse_amount(rate),
        currency=currency,
        description=description,
    )
    click.echo(f"Created lesson type '{name}' (ID: {lesson_type_id})")


@lesson_type_group.command("list")
@click.option("--teacher", "teacher_id", type=int, help="Filter by teacher ID")
@click.option("--active-only", is_flag=True, help="Hide inactive lesson types")
@click.pass_context
def list_lesson_types(ctx, teacher_id: int | None, active_only: bool):
    """List lesson types."""
    lesson_types = _service(ctx).list_lesson_types(teacher_id=teacher_id, active_only=active_only)
    echo_table(
        [
            f"ID: {lt.id:3d} | {lt.name:25s} | {lt.formatted_rate:>14s}/h | Teacher: {lt.teacher_id}"
            + ("" if lt.is_active else " | inactive")
            for lt in lesson_types
        ],
        empty="No lesson types found.",
        title="Lesson types",
    )


@lesson_type_group.command("update")
@click.argument("lesson_type_id", type=int)
@click.option("--name", help="New name (unique per teacher)")
@click.option("--rate", help="New hourly rate")
@click.option("--currency", help="Currency code")
@click.option("--description", help="Description")
@click.option("--active/--inactive", "is_active", default=None, help="Reactivate or deactivate")
@click.option("--by", "updated_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def update_lesson_type(
    ctx,
    lesson_type_id: int,
    name: str | None,
    rate: str | None,
    currency: str | None,
    description: str | None,
    is_active: bool | None,
    updated_by: int | None,
):
    """Rename a lesson type or change its rate.

    Lessons already logged keep the rate they were logged with.

    Examples:
        tutordesk lesson-type update 1 --rate 1200
    """
    lesson_type = _service(ctx).update_lesson_type(
        lesson_type_id,
        updated_by=updated_by,
        name=name,
        description=description,
        hourly_rate=parse_amount(rate) if rate is not None else None,
        currency=currency,
        is_active=is_active,
    )
    click.echo(f"Lesson type {lesson_type.id}: '{lesson_type.name}' at {lesson_type.formatted_rate}/h")


@lesson_type_group.command("stats")
@click.option("--teacher", "teacher_id", type=int, help="Limit to one teacher")
@click.pass_context
def lesson_type_stats(ctx, teacher_id: int | None):
    """Lesson type counts and hourly rate spread."""
    echo_json(_service(ctx).get_lesson_type_stats(teacher_id))


@lesson_type_group.command("deactivate")
@click.argument("lesson_type_id", type=int)
@click.option("--by", "deactivated_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def deactivate_lesson_type(ctx, lesson_type_id: int, deactivated_by: int | None):
    """Deactivate a lesson type."""
    lesson_type = _service(ctx).deactivate_lesson_type(lesson_type_id, deactivated_by)
    click.echo(f"Deactivated lesson type '{lesson_type.name}'")


def register_commands(cli):
    """Register lesson type commands with main CLI."""
    cli.add_command(lesson_type_group, name="lesson-type")
