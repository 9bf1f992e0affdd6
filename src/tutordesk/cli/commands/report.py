"""Financial report commands."""

import click

from tutordesk.cli.date_filters import date_range_options, resolve_accounting_range, resolve_cli_date_range
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json, echo_table
from tutordesk.domain.entities import ReportType
from tutordesk.domain.reporting import REPORT_FORMATS, VIEW_FORMATS, ReportingService


def _service(ctx) -> ReportingService:
    return ReportingService(ctx.obj["db"], ctx.obj["audit"])


def _echo_result(result: dict, key: str) -> None:
    if result["file_path"]:
        click.echo(f"Wrote {result['file_path']}")
    else:
        echo_json(result[key])


@click.group()
def report_group():
    """Generate, list and archive financial reports."""
    pass


@report_group.command("generate")
@click.option(
    "--type", "report_type", type=click.Choice([t.value for t in ReportType]), default="comprehensive",
    show_default=True,
)
@click.option("--format", "fmt", type=click.Choice(REPORT_FORMATS), default="json", show_default=True)
@click.option("--by", "generated_by", type=int, help="Acting user ID")
@date_range_options
@click.pass_context
@domain_errors
def generate_report(ctx, report_type, fmt, generated_by, start_date, end_date, period):
    """Generate and save a financial report snapshot.

    Examples:
        tutordesk report generate --period last-month --format pdf --by 1
        tutordesk report generate --start-date 2024-01-01 --end-date 2024-06-30 --format excel
    """
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    result = _service(ctx).generate_financial_report(
        start, end, generated_by=generated_by, report_type=report_type, fmt=fmt
    )
    report = result["report"]
    click.echo(
        f"Generated report {report.id}: net income {report.net_income:.2f} ({report.profit_loss_status})"
    )
    if result["file_path"]:
        click.echo(f"Wrote {result['file_path']}")


@report_group.command("student-revenue")
@click.option("--format", "fmt", type=click.Choice(VIEW_FORMATS), default="json", show_default=True)
@date_range_options
@click.pass_context
@domain_errors
def student_revenue(ctx, fmt, start_date, end_date, period):
    """Student revenue report."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    _echo_result(_service(ctx).generate_student_revenue_report(start, end, fmt), "data")


@report_group.command("teacher-expenses")
@click.option("--format", "fmt", type=click.Choice(VIEW_FORMATS), default="json", show_default=True)
@date_range_options
@click.pass_context
@domain_errors
def teacher_expenses(ctx, fmt, start_date, end_date, period):
    """Teacher expenses report."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    _echo_result(_service(ctx).generate_teacher_expenses_report(start, end, fmt), "data")


@report_group.command("cash-flow")
@click.option("--format", "fmt", type=click.Choice(VIEW_FORMATS), default="json", show_default=True)
@click.option(
    "--group-by", type=click.Choice(["daily", "weekly", "monthly", "yearly"]), default="monthly", show_default=True
)
@date_range_options
@click.pass_context
@domain_errors
def cash_flow(ctx, fmt, group_by, start_date, end_date, period):
    """Cash flow report."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    _echo_result(_service(ctx).generate_cash_flow_report(start, end, group_by, fmt), "data")


@report_group.command("list")
@click.option("--type", "report_type", type=click.Choice([t.value for t in ReportType]), help="Filter by type")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=10, show_default=True)
@date_range_options
@click.pass_context
def list_reports(ctx, report_type, page, limit, start_date, end_date, period):
    """List saved (non-archived) reports, newest first."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    result = _service(ctx).get_saved_reports(
        page=page, limit=limit, report_type=report_type, start_date=start, end_date=end
    )
    echo_table(
        [
            f"ID: {r.id:4d} | {r.report_type.value:13s} | {r.period_start} .. {r.period_end} | "
            f"net {r.net_income:>12.2f} | {r.profit_loss_status}"
            for r in result["reports"]
        ],
        empty="No reports found.",
        title="Reports",
    )


@report_group.command("show")
@click.argument("report_id", type=int)
@click.pass_context
@domain_errors
def show_report(ctx, report_id):
    """Print a saved report's snapshot."""
    echo_json(_service(ctx).require_report(report_id).snapshot)


@report_group.command("archive")
@click.argument("report_id", type=int)
@click.option("--by", "archived_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def archive_report(ctx, report_id, archived_by):
    """Hide a report from the listing."""
    _service(ctx).archive_report(report_id, archived_by)
    click.echo(f"Archived report {report_id}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
