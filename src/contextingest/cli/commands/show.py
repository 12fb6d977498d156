"""`contextingest show`: print a stored artifact."""

from __future__ import annotations

import json

import click

from contextingest.cli.registry import register_command
from contextingest.core.exceptions import ConfigurationError, StorageError, StorageErrorKind
from contextingest.pipeline import build_storage


@register_command("show")
@click.command("show")
@click.argument("key")
@click.pass_context
def show_cmd(ctx: click.Context, key: str) -> None:
    """Print the artifact stored under KEY (e.g. `notes.txt:related`)."""
    try:
        storage = build_storage()
        data = storage.retrieve(key)
    except StorageError as e:
        click.echo(f"Error: [{e.code}] {e}", err=True)
        ctx.exit(1 if e.kind is StorageErrorKind.NOT_FOUND else 2)
    except ConfigurationError as e:
        click.echo(f"Error: [{e.code}] {e}", err=True)
        ctx.exit(2)

    try:
        click.echo(json.dumps(json.loads(data), indent=2, ensure_ascii=False))
    except (UnicodeDecodeError, json.JSONDecodeError):
        click.echo(data.decode("utf-8", errors="replace"))
