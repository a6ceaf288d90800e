"""Access to the configuration carried on the click context."""

import click

from site_explorer.config.explorer import ExplorerConfig, get_config


def get_explorer_config(ctx: click.Context) -> ExplorerConfig:
    """Configuration loaded by the root group, or the global one."""
    obj = ctx.find_root().obj
    if isinstance(obj, ExplorerConfig):
        return obj
    return get_config()
