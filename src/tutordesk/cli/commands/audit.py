"""Audit log commands."""

import click

from tutordesk.cli.date_filters import date_range_options, resolve_cli_date_range
from tutordesk.cli.output import echo_table
from tutordesk.domain.entities import AuditTarget


@click.group()
def audit_group():
    """Inspect the audit log."""
    pass


@audit_group.command("list")
@click.option("--user", "user_id", type=int, help="Filter by acting user")
@click.option("--target", "target_type", type=click.Choice([t.value for t in AuditTarget]), help="Target type")
@click.option("--target-id", type=int, help="Target ID")
@click.option("--action", help="Action name (e.g. payment_completed)")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@date_range_options
@click.pass_context
def list_logs(ctx, user_id, target_type, target_id, action, page, limit, start_date, end_date, period):
    """List audit log entries, newest first."""
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    trail = ctx.obj["audit"]
    trail.flush()
    result = trail.list_audit_logs(
        user_id=user_id,
        target_type=target_type,
        target_id=target_id,
        action=action,
        start_date=start,
        end_date=end,
        page=page,
        limit=limit,
    )
    rows = []
    for log in result["logs"]:
        changes = ", ".join(c["field"] for c in log.changes_summary())
        rows.append(
            f"{log.created_at:%Y-%m-%d %H:%M} | {log.action:24s} | {log.target_type.value}:{log.target_id} | "
            f"user {log.user_id if log.user_id is not None else '-'}" + (f" | {changes}" if changes else "")
        )
    echo_table(rows, empty="No audit entries found.", title="Audit log")
    pagination = result["pagination"]
    if pagination["total"]:
        click.echo(f"\nPage {pagination['current']} of {pagination['pages']} ({pagination['total']} entries)")


def register_commands(cli):
    """Register audit commands with main CLI."""
    cli.add_command(audit_group, name="audit")
