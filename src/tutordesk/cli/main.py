"""Main CLI entry point."""

import logging

import click

from tutordesk import config
from tutordesk.database.factories import create_sqlite_database
from tutordesk.domain.audit import AuditTrail

# Import and register all commands at module level
from tutordesk.cli.commands import (
    accounting,
    attendance,
    audit,
    dashboard,
    expense,
    lesson_type,
    payment,
    report,
    student,
    teacher,
    teacher_payment,
    time_entry,
)


def _close(db, trail: AuditTrail) -> None:
    trail.flush()
    db.disconnect()


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TUTORDESK_DB_PATH environment variable)",
    envvar=config.DB_PATH_ENV,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides TUTORDESK_LOG_LEVEL environment variable)",
)
@click.version_option(package_name="tutordesk")
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Tutordesk - tutoring center bookkeeping.

    Manage teachers, students, lesson hours, attendance, payments and
    expenses, and produce accounting views and financial reports.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=config.log_level(log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        trail = AuditTrail(db)
        ctx.obj["db"] = db
        ctx.obj["audit"] = trail
        ctx.call_on_close(lambda: _close(db, trail))


# Register all commands
teacher.register_commands(cli)
student.register_commands(cli)
lesson_type.register_commands(cli)
time_entry.register_commands(cli)
attendance.register_commands(cli)
payment.register_commands(cli)
teacher_payment.register_commands(cli)
expense.register_commands(cli)
accounting.register_commands(cli)
report.register_commands(cli)
audit.register_commands(cli)
dashboard.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
