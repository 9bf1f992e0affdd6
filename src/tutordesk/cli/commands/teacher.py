"""Teacher and user management commands."""

import click

from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_table
from tutordesk.domain.entities import Role, UserStatus
from tutordesk.domain.teacher import TeacherService


def _service(ctx) -> TeacherService:
    return TeacherService(ctx.obj["db"], ctx.obj["audit"])


@click.group()
def teacher_group():
    """Manage teachers and administrators."""
    pass


@teacher_group.command("register")
@click.argument("email")
@click.argument("first_name")
@click.argument("last_name")
@click.option("--subject", help="Subject taught (required for teachers)")
@click.option("--admin", is_flag=True, help="Register an administrator instead of a teacher")
@click.pass_context
@domain_errors
def register_teacher(ctx, email: str, first_name: str, last_name: str, subject: str | None, admin: bool):
    """Register a teacher (pending approval) or an administrator.

    Examples:
        tutordesk teacher register amina@example.com Amina Haddad --subject Math
        tutordesk teacher register boss@example.com Karim Saadi --admin
    """
    role = Role.ADMIN if admin else Role.TEACHER
    user_id = _service(ctx).register(email, first_name, last_name, role=role, subject=subject)
    click.echo(f"Registered {role.value} '{first_name} {last_name}' (ID: {user_id})")


@teacher_group.command("approve")
@click.argument("user_id", type=int)
@click.option("--by", "approved_by", type=int, required=True, help="Approving admin ID")
@click.pass_context
@domain_errors
def approve_teacher(ctx, user_id: int, approved_by: int):
    """Approve a pending teacher."""
    teacher = _service(ctx).approve_teacher(user_id, approved_by)
    click.echo(f"Approved teacher '{teacher.full_name}'")


@teacher_group.command("suspend")
@click.argument("user_id", type=int)
@click.option("--by", "suspended_by", type=int, required=True, help="Acting admin ID")
@click.pass_context
@domain_errors
def suspend_teacher(ctx, user_id: int, suspended_by: int):
    """Suspend a teacher."""
    teacher = _service(ctx).suspend_teacher(user_id, suspended_by)
    click.echo(f"Suspended teacher '{teacher.full_name}'")


@teacher_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in UserStatus]), help="Filter by status")
@click.pass_context
def list_teachers(ctx, status: str | None):
    """List teachers."""
    teachers = _service(ctx).list_teachers(status=status)
    echo_table(
        [
            f"ID: {t.id:3d} | {t.full_name:25s} | {t.email:30s} | {t.subject or '-':12s} | {t.status.value}"
            for t in teachers
        ],
        empty="No teachers found.",
        title="Teachers",
    )


def register_commands(cli):
    """Register teacher commands with main CLI."""
    cli.add_command(teacher_group, name="teacher")
