"""CLI command groups."""

from site_explorer.cli.commands.config import config_group
from site_explorer.cli.commands.license import license_group
from site_explorer.cli.commands.sites import sites

__all__ = [
    "config_group",
    "license_group",
    "sites",
]
