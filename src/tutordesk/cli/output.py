"""CLI output helpers."""

import json
from typing import Any

import click

from tutordesk.utils.serialization import to_jsonable


def echo_json(data: Any) -> None:
    """Print a view or entity as indented JSON."""
    click.echo(json.dumps(to_jsonable(data), indent=2))


def echo_table(rows: list[str], empty: str, title: str | None = None) -> None:
    """Print preformatted rows under a title, or a message when there are none."""
    if not rows:
        click.echo(empty)
        return
    if title:
        click.echo(f"\n{title}:")
        click.echo("-" * 80)
    for row in rows:
        click.echo(row)
