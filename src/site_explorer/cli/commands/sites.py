"""Site directory commands."""

import asyncio

import click

from site_explorer.cli.context import get_explorer_config
from site_explorer.cli.output import emit_json, fail
from site_explorer.core.directory import SiteDirectoryFetcher, sort_sites_alphabetically
from site_explorer.core.errors.base import CategorizedError
from site_explorer.core.urls import get_partial_url


@click.group("sites")
def sites() -> None:
    """Sites the current user can access."""
    pass


@sites.command("list")
@click.option(
    "--partial-urls",
    is_flag=True,
    help="Show site paths instead of full URLs (blank for the root site).",
)
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table.")
@click.pass_context
def list_cmd(ctx: click.Context, partial_urls: bool, as_json: bool) -> None:
    """List accessible sites, sorted by title.

    Each run fetches from the search API; the in-memory cache only lives for
    the duration of one process.

    Examples:
        site-explorer sites list
        site-explorer sites list --partial-urls
        site-explorer sites list --json
    """
    config = get_explorer_config(ctx)
    try:
        session = config.build_session()
    except CategorizedError as exc:
        fail(exc)

    fetcher = SiteDirectoryFetcher(
        session,
        timeout=config.directory.request_timeout,
        cache_ttl=config.directory.cache_ttl_seconds,
        row_limit=config.directory.row_limit,
    )
    try:
        records = asyncio.run(fetcher.get_sites())
    except CategorizedError as exc:
        fail(exc)

    records = sort_sites_alphabetically(records)
    if as_json:
        emit_json([record.to_dict() for record in records])
        return

    if not records:
        click.echo("No sites found.")
        return
    width = max(len(record.title) for record in records)
    for record in records:
        location = record.url
        if partial_urls:
            location = get_partial_url(record.url)
            if location == "/":
                location = ""
        click.echo(f"{record.title:<{width}}  {location}".rstrip())
