"""tokenservice CLI entry point."""

from __future__ import annotations

import sys

import botocore.exceptions
import click
from rich.console import Console

from . import manager
from .access import ALL_OPERATIONS, allowed_operations
from .auth import authenticate, optionally_authenticate
from .config import Config
from .errors import (
    ConfigError,
    CredentialVendingError,
    PermissionDeniedError,
    TokenServiceError,
)
from .formatters import get_formatter
from .policy import build_policy, role_session_name
from .repository import load_store

_store_option = click.option(
    "--store",
    required=True,
    envvar="TOKEN_SERVICE_STORE",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with resources and resource settings.",
)
_token_option = click.option(
    "--token",
    default=None,
    envvar="TOKEN_SERVICE_TOKEN",
    help="Bearer token of the caller: a platform JWT or a read-write token.",
)
_output_option = click.option(
    "--output",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)


@click.group()
def main() -> None:
    """Inspect resource permissions and vend scoped AWS credentials.

    Exit code is 0 on success, 1 when the caller is denied, 2 on errors.
    """


@main.command()
@click.argument("resource_id")
@_store_option
@_token_option
@_output_option
def show(resource_id: str, store: str, token: str | None, output: str) -> None:
    """Show RESOURCE_ID as the caller would receive it from the API."""
    err = Console(stderr=True, highlight=False)
    repository, settings_provider = _load_store(store, err)
    try:
        claims = optionally_authenticate(token, _load_config(err)) if token else None
        result = manager.get_resource(repository, settings_provider, claims, resource_id)
    except TokenServiceError as exc:
        _fail(exc, err)

    get_formatter(output, console=Console(highlight=False)).render_resource(result)


@main.command()
@click.argument("resource_id")
@_store_option
@_token_option
@_output_option
@click.option(
    "--operation",
    type=click.Choice(list(ALL_OPERATIONS)),
    default="create-keys",
    show_default=True,
    help="Operation whose decision sets the exit code.",
)
def check(
    resource_id: str, store: str, token: str | None, output: str, operation: str
) -> None:
    """Report which operations the caller may perform on RESOURCE_ID."""
    err = Console(stderr=True, highlight=False)
    repository, _ = _load_store(store, err)
    try:
        claims = optionally_authenticate(token, _load_config(err)) if token else None
        resource = manager.find_resource(repository, resource_id)
    except TokenServiceError as exc:
        _fail(exc, err)

    get_formatter(output, console=Console(highlight=False)).render_access(resource, claims)

    allowed = allowed_operations(resource, claims) if claims is not None else ()
    if operation not in allowed:
        sys.exit(1)


@main.command()
@click.argument("resource_id")
@_store_option
@_output_option
def policy(resource_id: str, store: str, output: str) -> None:
    """Print the session policy credentials for RESOURCE_ID would carry."""
    err = Console(stderr=True, highlight=False)
    repository, settings_provider = _load_store(store, err)
    try:
        resource = manager.find_resource(repository, resource_id)
        settings = settings_provider.get_settings(resource.type, resource.tool)
        document = build_policy(resource, settings)
    except (TokenServiceError, ValueError) as exc:
        _fail(exc, err)

    get_formatter(output, console=Console(highlight=False)).render_policy(
        role_session_name(resource), document
    )


@main.command()
@click.argument("resource_id")
@_store_option
@_token_option
@_output_option
def credentials(resource_id: str, store: str, token: str | None, output: str) -> None:
    """Vend temporary AWS credentials for RESOURCE_ID."""
    err = Console(stderr=True, highlight=False)
    repository, settings_provider = _load_store(store, err)
    config = _load_config(err)

    try:
        claims = authenticate(token, config)
        creds = manager.create_keys(
            repository, settings_provider, claims, resource_id, config
        )
    except PermissionDeniedError as exc:
        err.print(f"[bold red]Denied:[/bold red] {exc}")
        sys.exit(1)
    except CredentialVendingError as exc:
        err.print(f"[bold red]STS error ({exc.error_code}):[/bold red] {exc}")
        if exc.error_code == "AccessDenied":
            err.print(
                "[dim]tokenservice requires sts:AssumeRole on the vending role.[/dim]"
            )
        sys.exit(2)
    except (TokenServiceError, ValueError) as exc:
        _fail(exc, err)
    except botocore.exceptions.BotoCoreError as exc:
        err.print(f"[bold red]AWS error:[/bold red] {exc}")
        sys.exit(2)

    get_formatter(output, console=Console(highlight=False)).render_credentials(creds)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _load_store(path: str, console: Console):
    try:
        return load_store(path)
    except (TokenServiceError, ValueError) as exc:
        _fail(exc, console)


def _load_config(console: Console) -> Config:
    try:
        return Config.from_env()
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        sys.exit(2)


def _fail(exc: Exception, console: Console) -> None:
    status = getattr(exc, "status_code", 400)
    console.print(f"[bold red]Error ({status}):[/bold red] {exc}")
    sys.exit(2)
