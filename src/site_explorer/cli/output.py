"""Output helpers shared by CLI commands."""

import json
from typing import Any, NoReturn

import click

from site_explorer.core.errors.base import error_to_dict


def emit_json(data: Any) -> None:
    """Write ``data`` as indented JSON to stdout."""
    click.echo(json.dumps(data, indent=2, default=str))


def fail(exc: BaseException) -> NoReturn:
    """Abort the command with the exception's user-facing message."""
    details = error_to_dict(exc)
    raise click.ClickException(f"{details['message']} [{details['category']}]") from exc
