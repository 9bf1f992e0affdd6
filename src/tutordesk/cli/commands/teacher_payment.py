"""Teacher payment commands."""

import click

from tutordesk.cli.date_filters import date_range_options, parse_cli_date, resolve_cli_date_range
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json, echo_table
from tutordesk.domain.entities import PaymentMethod, TeacherPaymentStatus, TeacherPaymentType
from tutordesk.domain.payment import PaymentService
from tutordesk.utils.money import parse_amount


def _service(ctx) -> PaymentService:
    return PaymentService(ctx.obj["db"], ctx.obj["audit"])


def _line(p) -> str:
    return (
        f"ID: {p.id:4d} | {p.payment_date} | Teacher: {p.teacher_id:3d} | {p.payment_type.value:14s} | "
        f"{p.currency} {p.amount:>10.2f} | {p.status.value:9s} | {p.receipt_number or '-'}"
    )


@click.group()
def teacher_payment_group():
    """Create, approve and pay teacher payments."""
    pass


@teacher_payment_group.command("create")
@click.option("--teacher", "teacher_id", type=int, required=True, help="Teacher ID")
@click.option(
    "--type", "payment_type", type=click.Choice([t.value for t in TeacherPaymentType]), required=True
)
@click.option("--by", "submitted_by", type=int, required=True, help="Submitting user ID")
@click.option("--amount", help="Amount (derived from hours and rate for hourly payments)")
@click.option("--hours", help="Hours worked")
@click.option("--rate", help="Hourly rate")
@click.option("--date", "payment_date", help="Payment date (defaults to today)")
@click.option(
    "--method", type=click.Choice([m.value for m in PaymentMethod]), default="bank_transfer", show_default=True
)
@click.option("--currency", help="Currency code")
@click.option("--description", help="Description")
@click.option("--reference", help="Reference")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def create_teacher_payment(
    ctx, teacher_id, payment_type, submitted_by, amount, hours, rate, payment_date, method, currency,
    description, reference, notes,
):
    """Create a pending teacher payment.

    Examples:
        tutordesk teacher-payment create --teacher 2 --type hourly_payment --hours 10 --rate 1000 --by 1
        tutordesk teacher-payment create --teacher 2 --type bonus --amount 5000 --by 1
    """
    payment_id = _service(ctx).create_teacher_payment(
        teacher_id=teacher_id,
        payment_type=TeacherPaymentType(payment_type),
        submitted_by=submitted_by,
        amount=parse_amount(amount) if amount else None,
        payment_date=parse_cli_date(ctx, payment_date, "payment date"),
        payment_method=PaymentMethod(method),
        currency=currency,
        hours_worked=parse_amount(hours) if hours else None,
        hourly_rate=parse_amount(rate) if rate else None,
        description=description,
        reference=reference,
        notes=notes,
    )
    click.echo(f"Created teacher payment {payment_id}")


@teacher_payment_group.command("generate")
@click.argument("teacher_id", type=int)
@click.option("--by", "created_by", type=int, required=True, help="Acting user ID")
@date_range_options
@click.pass_context
@domain_errors
def generate_payment(ctx, teacher_id, created_by, start_date, end_date, period):
    """Create a pending payment covering a teacher's logged hours in a range."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    if start is None or end is None:
        click.echo("Error: A start and end date (or --period) are required.", err=True)
        ctx.exit(1)
    service = _service(ctx)
    payment_id = service.generate_payment_from_time_entries(teacher_id, start, end, created_by)
    payment = service.get_teacher_payment(payment_id)
    click.echo(f"Created teacher payment {payment_id} for {payment.currency} {payment.amount:.2f}")


@teacher_payment_group.command("approve")
@click.argument("payment_id", type=int)
@click.option("--by", "approved_by", type=int, required=True, help="Approving user ID")
@click.pass_context
@domain_errors
def approve_payment(ctx, payment_id, approved_by):
    """Approve a pending teacher payment."""
    _service(ctx).approve_teacher_payment(payment_id, approved_by)
    click.echo(f"Approved teacher payment {payment_id}")


@teacher_payment_group.command("process")
@click.argument("payment_id", type=int)
@click.option("--by", "processed_by", type=int, required=True, help="Acting user ID")
@click.option("--date", "payment_date", help="Date paid (defaults to the payment date)")
@click.option("--method", type=click.Choice([m.value for m in PaymentMethod]), help="Payment method")
@click.option("--reference", help="Reference")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def process_payment(ctx, payment_id, processed_by, payment_date, method, reference, notes):
    """Mark an approved teacher payment paid."""
    payment = _service(ctx).process_teacher_payment(
        payment_id,
        processed_by,
        payment_date=parse_cli_date(ctx, payment_date, "payment date"),
        payment_method=PaymentMethod(method) if method else None,
        reference=reference,
        notes=notes,
    )
    click.echo(f"Paid teacher payment {payment_id} (receipt {payment.receipt_number})")


@teacher_payment_group.command("reject")
@click.argument("payment_id", type=int)
@click.option("--by", "rejected_by", type=int, required=True, help="Acting user ID")
@click.option("--reason", required=True, help="Rejection reason")
@click.pass_context
@domain_errors
def reject_payment(ctx, payment_id, rejected_by, reason):
    """Reject (cancel) a pending or approved teacher payment."""
    _service(ctx).reject_teacher_payment(payment_id, rejected_by, reason)
    click.echo(f"Rejected teacher payment {payment_id}")


@teacher_payment_group.command("list")
@click.option("--teacher", "teacher_id", type=int, help="Filter by teacher ID")
@click.option("--status", type=click.Choice([s.value for s in TeacherPaymentStatus]), help="Filter by status")
@date_range_options
@click.pass_context
def list_payments(ctx, teacher_id, status, start_date, end_date, period):
    """List teacher payments by creation date, newest first."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    payments = _service(ctx).list_teacher_payments(
        teacher_id=teacher_id, status=status, start_date=start, end_date=end
    )
    echo_table([_line(p) for p in payments], empty="No teacher payments found.", title="Teacher payments")


@teacher_payment_group.command("history")
@click.argument("teacher_id", type=int)
@click.option("--status", type=click.Choice([s.value for s in TeacherPaymentStatus]), help="Filter by status")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@date_range_options
@click.pass_context
def payment_history(ctx, teacher_id, status, page, limit, start_date, end_date, period):
    """Paged payment history of a teacher with a per-status summary."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(
        _service(ctx).get_teacher_payment_history(
            teacher_id, start_date=start, end_date=end, status=status, page=page, limit=limit
        )
    )


@teacher_payment_group.command("summary")
@click.option("--teacher", "teacher_id", type=int, help="One teacher's per-status totals")
@date_range_options
@click.pass_context
def payment_summary(ctx, teacher_id, start_date, end_date, period):
    """Payment totals per teacher, or per status for one teacher."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    service = _service(ctx)
    if teacher_id is not None:
        echo_json(service.get_teacher_payment_summary(teacher_id, start, end))
    else:
        echo_json(service.get_all_teachers_payment_summary(start, end))


@teacher_payment_group.command("overdue")
@click.pass_context
def overdue_payments(ctx):
    """Unpaid teacher payments more than 30 days past their payment date."""
    payments = _service(ctx).get_overdue_teacher_payments()
    echo_table([_line(p) for p in payments], empty="No overdue teacher payments.", title="Overdue teacher payments")


def register_commands(cli):
    """Register teacher payment commands with main CLI."""
    cli.add_command(teacher_payment_group, name="teacher-payment")
