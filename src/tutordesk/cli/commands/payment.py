"""Student payment commands."""

import click

from tutordesk.cli.date_filters import date_range_options, parse_cli_date, resolve_cli_date_range
from tutordesk.cli.error_handling import domain_errors
from tutordesk.cli.output import echo_json, echo_table
from tutordesk.domain.entities import PaymentMethod, PaymentStatus, PaymentType
from tutordesk.domain.payment import PENDING_KINDS, PaymentService
from tutordesk.domain.periods import Period
from tutordesk.utils.money import parse_amount


def _service(ctx) -> PaymentService:
    return PaymentService(ctx.obj["db"], ctx.obj["audit"])


def _payment_line(p) -> str:
    receipt = p.receipt_number or "-"
    return (
        f"ID: {p.id:4d} | {p.payment_date} | Student: {p.student_id:3d} | "
        f"{p.formatted_amount:>14s} | {p.status.value:9s} | {receipt}"
    )


@click.group()
def payment_group():
    """Record and manage student payments."""
    pass


@payment_group.command("create")
@click.option("--student", "student_id", type=int, required=True, help="Student ID")
@click.option("--amount", required=True, help="Amount (e.g. 2500 or 'DZD 2,500.00')")
@click.option("--date", "payment_date", help="Payment date (defaults to today)")
@click.option("--method", type=click.Choice([m.value for m in PaymentMethod]), default="cash", show_default=True)
@click.option(
    "--type", "payment_type", type=click.Choice([t.value for t in PaymentType]), default="lesson_payment",
    show_default=True,
)
@click.option("--currency", help="Currency code (defaults to TUTORDESK_DEFAULT_CURRENCY)")
@click.option("--due", "due_date", help="Due date")
@click.option("--reference", help="External reference")
@click.option("--notes", help="Notes")
@click.option("--academic-period", help="Academic period label")
@click.option("--completed", is_flag=True, help="Record as already completed")
@click.option("--by", "created_by", type=int, help="Acting user ID")
@click.pass_context
@domain_errors
def create_payment(
    ctx, student_id, amount, payment_date, method, payment_type, currency, due_date, reference, notes,
    academic_period, completed, created_by,
):
    """Record a student payment.

    Examples:
        tutordesk payment create --student 4 --amount 2500 --completed --by 1
        tutordesk payment create --student 4 --amount 3000 --due 2024-07-01
    """
    service = _service(ctx)
    payment_id = service.create_student_payment(
        student_id=student_id,
        amount=parse_amount(amount),
        payment_date=parse_cli_date(ctx, payment_date, "payment date"),
        payment_method=PaymentMethod(method),
        payment_type=PaymentType(payment_type),
        currency=currency,
        due_date=parse_cli_date(ctx, due_date, "due date"),
        reference=reference,
        notes=notes,
        academic_period=academic_period,
        created_by=created_by,
        completed=completed,
    )
    payment = service.get_payment(payment_id)
    click.echo(f"Created {payment.status.value} payment {payment_id} ({payment.formatted_amount})")
    if payment.receipt_number:
        click.echo(f"Receipt: {payment.receipt_number}")


@payment_group.command("complete")
@click.argument("payment_id", type=int)
@click.option("--by", "approved_by", type=int, required=True, help="Approving user ID")
@click.pass_context
@domain_errors
def complete_payment(ctx, payment_id, approved_by):
    """Complete a pending payment and issue its receipt."""
    payment = _service(ctx).complete_payment(payment_id, approved_by)
    click.echo(f"Completed payment {payment_id} (receipt {payment.receipt_number})")


@payment_group.command("refund")
@click.argument("payment_id", type=int)
@click.option("--amount", required=True, help="Refund amount (at most the payment amount)")
@click.option("--reason", required=True, help="Refund reason")
@click.option("--by", "refunded_by", type=int, required=True, help="Acting user ID")
@click.option("--method", type=click.Choice([m.value for m in PaymentMethod]), help="Refund method")
@click.option("--date", "refund_date", help="Refund date (defaults to today)")
@click.pass_context
@domain_errors
def refund_payment(ctx, payment_id, amount, reason, refunded_by, method, refund_date):
    """Refund a completed payment."""
    payment = _service(ctx).refund_payment(
        payment_id,
        parse_amount(amount),
        reason,
        refunded_by,
        refund_method=PaymentMethod(method) if method else None,
        refund_date=parse_cli_date(ctx, refund_date, "refund date"),
    )
    click.echo(f"Refunded {payment.refund.refund_amount:.2f} of payment {payment_id}")


@payment_group.command("fail")
@click.argument("payment_id", type=int)
@click.option("--reason", required=True, help="Failure reason")
@click.option("--by", "rejected_by", type=int, required=True, help="Acting user ID")
@click.pass_context
@domain_errors
def fail_payment(ctx, payment_id, reason, rejected_by):
    """Mark a payment failed."""
    _service(ctx).mark_payment_failed(payment_id, reason, rejected_by)
    click.echo(f"Payment {payment_id} marked failed")


@payment_group.command("cancel")
@click.argument("payment_id", type=int)
@click.option("--by", "cancelled_by", type=int, required=True, help="Acting user ID")
@click.option("--reason", help="Cancellation reason")
@click.pass_context
@domain_errors
def cancel_payment(ctx, payment_id, cancelled_by, reason):
    """Cancel a payment."""
    _service(ctx).cancel_payment(payment_id, cancelled_by, reason)
    click.echo(f"Payment {payment_id} cancelled")


@payment_group.command("list")
@click.option("--student", "student_id", type=int, help="Filter by student ID")
@click.option("--teacher", "teacher_id", type=int, help="Filter by teacher ID")
@click.option("--status", type=click.Choice([s.value for s in PaymentStatus]), help="Filter by status")
@date_range_options
@click.pass_context
def list_payments(ctx, student_id, teacher_id, status, start_date, end_date, period):
    """List student payments, newest first."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    payments = _service(ctx).list_payments(
        student_id=student_id, teacher_id=teacher_id, status=status, start_date=start, end_date=end
    )
    echo_table([_payment_line(p) for p in payments], empty="No payments found.", title="Payments")


@payment_group.command("history")
@click.argument("student_id", type=int)
@click.option("--status", type=click.Choice([s.value for s in PaymentStatus]), help="Filter by status")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@date_range_options
@click.pass_context
def payment_history(ctx, student_id, status, page, limit, start_date, end_date, period):
    """Paged payment history of a student with a per-status summary."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(
        _service(ctx).get_student_payment_history(
            student_id, start_date=start, end_date=end, status=status, page=page, limit=limit
        )
    )


@payment_group.command("stats")
@click.argument("student_id", type=int)
@date_range_options
@click.pass_context
def payment_stats(ctx, student_id, start_date, end_date, period):
    """Completed payment statistics of a student."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(_service(ctx).get_student_payment_stats(student_id, start, end))


@payment_group.command("overview")
@click.argument("teacher_id", type=int)
@date_range_options
@click.pass_context
def teacher_overview(ctx, teacher_id, start_date, end_date, period):
    """Completed payments of a teacher's students, grouped by student."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    echo_json(_service(ctx).get_teacher_payment_overview(teacher_id, start, end))


@payment_group.command("analytics")
@click.argument("teacher_id", type=int)
@click.option("--by", "group_by", type=click.Choice([p.value for p in Period]), default="month", show_default=True)
@click.pass_context
def analytics(ctx, teacher_id, group_by):
    """Completed payments of a teacher grouped by day, week, month or year."""
    echo_json(_service(ctx).get_payment_analytics(teacher_id, group_by))


@payment_group.command("overdue")
@click.option("--teacher", "teacher_id", type=int, help="Filter by teacher ID")
@click.pass_context
def overdue_payments(ctx, teacher_id):
    """Pending payments past their due date."""
    payments = _service(ctx).get_overdue_payments(teacher_id)
    echo_table(
        [f"{_payment_line(p)} | due {p.due_date} ({p.days_overdue()} days)" for p in payments],
        empty="No overdue payments.",
        title="Overdue payments",
    )


@payment_group.command("pending")
@click.option("--kind", type=click.Choice(PENDING_KINDS), default="all", show_default=True)
@click.pass_context
@domain_errors
def pending_items(ctx, kind):
    """Teacher payments, student payments and expenses awaiting approval."""
    echo_json(_service(ctx).get_pending_payments(kind))


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group, name="payment")
