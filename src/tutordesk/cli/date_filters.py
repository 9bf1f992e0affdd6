"""CLI helpers for date range resolution."""

from datetime import date

import click

from tutordesk.utils.date_parser import PERIOD_NAMES, get_date_range, parse_date, year_to_date


def date_range_options(func):
    """Attach --start-date, --end-date and --period to a command."""
    func = click.option(
        "--period",
        type=click.Choice(PERIOD_NAMES),
        help="Named period instead of explicit dates",
    )(func)
    func = click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")(func)
    func = click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")(func)
    return func


def parse_cli_date(ctx, value: str | None, label: str) -> date | None:
    """Parse an optional date option, exiting with an error message when invalid."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None = None,
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from a named period or explicit dates.

    A missing start or end falls back to the matching end of ``default_range``.
    """
    if period and (start_date or end_date):
        click.echo("Error: --period cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    if period:
        return get_date_range(period)

    start = parse_cli_date(ctx, start_date, "start date")
    end = parse_cli_date(ctx, end_date, "end date")
    if default_range is not None:
        start = start or default_range[0]
        end = end or default_range[1]
    if start and end and start > end:
        click.echo("Error: Start date must be on or before end date.", err=True)
        ctx.exit(1)
    return start, end


def resolve_accounting_range(ctx, start_date, end_date, period) -> tuple[date, date]:
    """Date range for accounting views; defaults to the year to date."""
    return resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period, default_range=year_to_date()
    )
