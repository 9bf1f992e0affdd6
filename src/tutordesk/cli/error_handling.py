"""CLI error handling helpers."""

import functools

import click

from tutordesk.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def domain_errors(func):
    """Turn DomainError and ValueError raised by a command into ``Error: ...`` and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (DomainError, ValueError) as e:
            handle_domain_error(click.get_current_context(), e)

    return wrapper
