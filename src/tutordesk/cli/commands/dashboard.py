"""Dashboard commands. Both print JSON."""

import click

from tutordesk.cli.date_filters import parse_cli_date
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json
from tutordesk.domain.dashboard import DashboardService


def _service(ctx) -> DashboardService:
    return DashboardService(ctx.obj["db"])


@click.group()
def dashboard_group():
    """Headline figures for the current week and month."""
    pass


@dashboard_group.command("stats")
@click.option("--as-of", help="Reference date (defaults to today)")
@click.pass_context
@domain_errors
def stats(ctx, as_of: str | None):
    """Center-wide counts, this month's revenue and hours, pending approvals."""
    echo_json(_service(ctx).get_dashboard_stats(today=parse_cli_date(ctx, as_of, "reference date")))


@dashboard_group.command("teacher")
@click.argument("teacher_id", type=int)
@click.option("--as-of", help="Reference date (defaults to today)")
@click.pass_context
@domain_errors
def teacher_stats(ctx, teacher_id: int, as_of: str | None):
    """One teacher's students, hours, earnings and unsettled payments.

    Examples:
        tutordesk dashboard teacher 2 --as-of 2024-03-14
    """
    echo_json(
        _service(ctx).get_teacher_dashboard_stats(teacher_id, today=parse_cli_date(ctx, as_of, "reference date"))
    )


def register_commands(cli):
    """Register dashboard commands with main CLI."""
    cli.add_command(dashboard_group, name="dashboard")
