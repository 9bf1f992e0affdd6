"""General expense commands."""

import click

from tutordesk.cli.date_filters import date_range_options, parse_cli_date, resolve_cli_date_range
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json, echo_table
from tutordesk.domain.entities import EXPENSE_APPROVED_FILTER, ExpenseCategory, ExpenseStatus, RecurringFrequency
from tutordesk.domain.expense import ExpenseService
from tutordesk.utils.money import parse_amount

STATUS_CHOICES = [s.value for s in ExpenseStatus] + [EXPENSE_APPROVED_FILTER]


def _service(ctx) -> ExpenseService:
    return ExpenseService(ctx.obj["db"], ctx.obj["audit"])


def _line(e) -> str:
    return (
        f"ID: {e.id:4d} | {e.date} | {e.category.value:12s} | {e.currency} {e.amount:>10.2f} | "
        f"{e.status.value:8s} | {e.description}"
    )


@click.group()
def expense_group():
    """Submit and approve general business expenses."""
    pass


@expense_group.command("create")
@click.option("--by", "submitted_by", type=int, required=True, help="Submitting user ID")
@click.option("--category", type=click.Choice([c.value for c in ExpenseCategory]), required=True)
@click.option("--amount", required=True, help="Amount with at most 2 decimal places")
@click.option("--description", required=True, help="Description (up to 500 characters)")
@click.option("--date", "expense_date", help="Expense date (defaults to today, at most 30 days ahead)")
@click.option("--currency", help="Currency code")
@click.option("--subcategory", help="Subcategory")
@click.option("--receipt-url", help="Link to the receipt")
@click.option("--recurring", type=click.Choice([f.value for f in RecurringFrequency]), help="Recurrence")
@click.option("--next-date", "next_recurring", help="Next recurrence date")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def create_expense(
    ctx, submitted_by, category, amount, description, expense_date, currency, subcategory, receipt_url,
    recurring, next_recurring, tags, notes,
):
    """Submit a pending expense.

    Examples:
        tutordesk expense create --by 1 --category rent --amount 45000 --description "June rent"
        tutordesk expense create --by 1 --category utilities --amount 3200 --description "Power" --recurring monthly
    """
    expense_id = _service(ctx).create_expense(
        submitted_by=submitted_by,
        category=ExpenseCategory(category),
        amount=parse_amount(amount),
        description=description,
        expense_date=parse_cli_date(ctx, expense_date, "expense date"),
        currency=currency,
        subcategory=subcategory,
        receipt_url=receipt_url,
        is_recurring=recurring is not None,
        recurring_frequency=RecurringFrequency(recurring) if recurring else None,
        next_recurring=parse_cli_date(ctx, next_recurring, "next recurrence date"),
        tags=tags,
        notes=notes,
    )
    click.echo(f"Submitted expense {expense_id}")


@expense_group.command("approve")
@click.argument("expense_id", type=int)
@click.option("--by", "approved_by", type=int, required=True, help="Approving user ID")
@click.pass_context
@domain_errors
def approve_expense(ctx, expense_id, approved_by):
    """Approve a pending expense (recorded as paid)."""
    expense = _service(ctx).approve_expense(expense_id, approved_by)
    click.echo(f"Expense {expense_id} approved ({expense.status.value})")


@expense_group.command("reject")
@click.argument("expense_id", type=int)
@click.option("--by", "rejected_by", type=int, required=True, help="Acting user ID")
@click.option("--reason", required=True, help="Rejection reason")
@click.pass_context
@domain_errors
def reject_expense(ctx, expense_id, rejected_by, reason):
    """Reject a pending expense."""
    _service(ctx).reject_expense(expense_id, rejected_by, reason)
    click.echo(f"Expense {expense_id} rejected")


@expense_group.command("list")
@click.option("--by", "submitted_by", type=int, help="Filter by submitting user")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Filter by status")
@click.option("--category", type=click.Choice([c.value for c in ExpenseCategory]), help="Filter by category")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@date_range_options
@click.pass_context
def list_expenses(ctx, submitted_by, status, category, page, limit, start_date, end_date, period):
    """List expenses, newest first."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    result = _service(ctx).list_expenses(
        submitted_by=submitted_by,
        status=status,
        category=category,
        start_date=start,
        end_date=end,
        page=page,
        limit=limit,
    )
    echo_table([_line(e) for e in result["expenses"]], empty="No expenses found.", title="Expenses")
    pagination = result["pagination"]
    if pagination["total"]:
        click.echo(f"\nPage {pagination['current']} of {pagination['pages']} ({pagination['total']} expenses)")


@expense_group.command("pending")
@click.option("--category", type=click.Choice([c.value for c in ExpenseCategory]), help="Filter by category")
@click.pass_context
def pending_expenses(ctx, category):
    """Expenses awaiting approval."""
    expenses = _service(ctx).get_pending_expenses(category)
    echo_table([_line(e) for e in expenses], empty="No pending expenses.", title="Pending expenses")


@expense_group.command("stats")
@click.option("--by", "user_id", type=int, help="Filter by submitting user")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Filter by status")
@date_range_options
@click.pass_context
def expense_stats(ctx, user_id, status, start_date, end_date, period):
    """Expense count and total with per-status breakdown."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(_service(ctx).get_expense_stats(user_id=user_id, status=status, start_date=start, end_date=end))


@expense_group.command("by-category")
@click.option("--by", "user_id", type=int, help="Filter by submitting user")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Filter by status")
@click.option("--category", type=click.Choice([c.value for c in ExpenseCategory]), help="Filter by category")
@date_range_options
@click.pass_context
def expenses_by_category(ctx, user_id, status, category, start_date, end_date, period):
    """Expense totals per category, largest first."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(
        _service(ctx).get_expenses_by_category(
            user_id=user_id, status=status, category=category, start_date=start, end_date=end
        )
    )


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
