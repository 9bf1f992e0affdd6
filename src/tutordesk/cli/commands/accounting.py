"""Accounting view commands. All views print JSON."""

import click

from tutordesk.cli.date_filters import date_range_options, resolve_accounting_range
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json
from tutordesk.domain.accounting import AccountingService
from tutordesk.domain.entities import EXPENSE_APPROVED_FILTER, ExpenseCategory, ExpenseStatus


def _service(ctx) -> AccountingService:
    return AccountingService(ctx.obj["db"])


@click.group()
def accounting_group():
    """Financial views over a date range (defaults to the year to date)."""
    pass


@accounting_group.command("students")
@click.option("--teacher", "teacher_id", type=int, help="Only this teacher's students")
@date_range_options
@click.pass_context
@domain_errors
def students(ctx, teacher_id, start_date, end_date, period):
    """Per-student fees, payments and balances."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    echo_json(_service(ctx).get_student_accounting_data(start, end, teacher_id=teacher_id))


@accounting_group.command("teachers")
@date_range_options
@click.pass_context
@domain_errors
def teachers(ctx, start_date, end_date, period):
    """Per-teacher hours, earnings and payment status."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    echo_json(_service(ctx).get_teacher_accounting_data(start, end))


@accounting_group.command("expenses")
@click.option("--category", type=click.Choice([c.value for c in ExpenseCategory]), help="Filter by category")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ExpenseStatus] + [EXPENSE_APPROVED_FILTER]),
    default=EXPENSE_APPROVED_FILTER,
    show_default=True,
)
@date_range_options
@click.pass_context
@domain_errors
def expenses(ctx, category, status, start_date, end_date, period):
    """General expenses with category and monthly breakdowns."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    echo_json(_service(ctx).get_general_expenses_data(start, end, category=category, status=status))


@accounting_group.command("profit-loss")
@date_range_options
@click.pass_context
@domain_errors
def profit_loss(ctx, start_date, end_date, period):
    """Revenue, expenses and net income."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    echo_json(_service(ctx).get_profit_loss_summary(start, end))


@accounting_group.command("cash-flow")
@click.option(
    "--group-by",
    type=click.Choice(["daily", "weekly", "monthly", "yearly"]),
    default="monthly",
    show_default=True,
    help="Bucket granularity",
)
@date_range_options
@click.pass_context
@domain_errors
def cash_flow(ctx, group_by, start_date, end_date, period):
    """Inflows and outflows per period with a running balance."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    echo_json(_service(ctx).get_cash_flow_data(start, end, group_by))


@accounting_group.command("metrics")
@date_range_options
@click.pass_context
@domain_errors
def metrics(ctx, start_date, end_date, period):
    """Dashboard summary of revenue, expenses, teachers and students."""
    start, end = resolve_accounting_range(ctx, start_date, end_date, period)
    echo_json(_service(ctx).get_financial_metrics(start, end))


def register_commands(cli):
    """Register accounting commands with main CLI."""
    cli.add_command(accounting_group, name="accounting")
