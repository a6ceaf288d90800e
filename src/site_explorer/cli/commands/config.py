"""Configuration inspection commands."""

import click

from site_explorer.cli.context import get_explorer_config
from site_explorer.cli.output import emit_json


@click.group("config")
def config_group() -> None:
    """Inspect the effective configuration."""
    pass


@config_group.command("show")
@click.pass_context
def show_cmd(ctx: click.Context) -> None:
    """Print the effective configuration as JSON (secrets redacted)."""
    emit_json(get_explorer_config(ctx).to_dict())
