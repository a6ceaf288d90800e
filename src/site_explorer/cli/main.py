"""site-explorer command-line entry point."""

from typing import Optional

import click

from site_explorer import __version__
from site_explorer.cli.commands import config_group, license_group, sites
from site_explorer.config.explorer import ExplorerConfig, set_config
from site_explorer.config.parsing import _parse_log_level


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="TOML config file (overrides the layered lookup).",
)
@click.option("--log-level", help="Override the configured log level.")
@click.version_option(__version__, prog_name="site-explorer")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str]) -> None:
    """Browse the sites you can access and check the tenant license."""
    config = ExplorerConfig.from_env(config_file)
    if log_level:
        config.log_level = _parse_log_level(log_level, config.log_level)
    config.setup_logging()
    set_config(config)
    ctx.obj = config


cli.add_command(sites)
cli.add_command(license_group)
cli.add_command(config_group)


if __name__ == "__main__":
    cli()
