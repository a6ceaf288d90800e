"""License status commands."""

import asyncio

import click

from site_explorer.cli.context import get_explorer_config
from site_explorer.cli.output import emit_json, fail
from site_explorer.config.explorer import ExplorerConfig
from site_explorer.core.errors.base import CategorizedError
from site_explorer.core.license import LicenseStatus, LicenseValidator


def _build_validator(config: ExplorerConfig) -> LicenseValidator:
    try:
        session = config.build_session()
    except CategorizedError as exc:
        fail(exc)
    return LicenseValidator(session, config.build_store(), settings=config.license)


def _echo_status(status: LicenseStatus) -> None:
    state = "valid" if status.is_valid else "invalid"
    source = "cache" if status.is_cached else "remote"
    click.echo(f"License: {state} ({source})")
    if status.tier:
        click.echo(f"Tier: {status.tier}")
    if status.features:
        click.echo(f"Features: {', '.join(status.features)}")
    if status.expires_at:
        click.echo(f"Expires: {status.expires_at.isoformat()}")
    if status.error:
        click.echo(f"Error: {status.error}")


@click.group("license")
def license_group() -> None:
    """Tenant license checks."""
    pass


@license_group.command("status")
@click.option("--refresh", is_flag=True, help="Ask the licensing API even if the cache is fresh.")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON.")
@click.pass_context
def status_cmd(ctx: click.Context, refresh: bool, as_json: bool) -> None:
    """Show the authoritative license status (fails open on API errors)."""
    validator = _build_validator(get_explorer_config(ctx))
    status = asyncio.run(validator.get_license_status(force_refresh=refresh))
    if as_json:
        emit_json({"tenant": validator.tenant_id, **status.to_dict()})
    else:
        _echo_status(status)


@license_group.command("quick")
@click.pass_context
def quick_cmd(ctx: click.Context) -> None:
    """Show the cached license status without any network call."""
    validator = _build_validator(get_explorer_config(ctx))
    status = validator.get_quick_cache_status()
    if status is None:
        click.echo("No usable cached license status.")
        ctx.exit(1)
    _echo_status(status)


@license_group.command("clear-cache")
@click.pass_context
def clear_cache_cmd(ctx: click.Context) -> None:
    """Remove the persisted license status for the current tenant."""
    validator = _build_validator(get_explorer_config(ctx))
    validator.clear_cache()
    click.echo(f"Cleared license cache for tenant {validator.tenant_id or 'unknown'}.")
