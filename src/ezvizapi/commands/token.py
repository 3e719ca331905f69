"""Token commands -- manage the cached access token.

Provides the ``ezviz token`` sub-command group::

    ezviz token refresh   # reuse the cached token or fetch a new one
    ezviz token show      # print the cached token, never hits the network
    ezviz token clear     # delete the cached token
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import typer

from ezvizapi.exceptions import EzvizError
from ezvizapi.models import Credential
from ezvizapi.output import OutputFormat, error, get_output, info, success, suggest

if TYPE_CHECKING:
    from ezvizapi.client import EzvizClient


token_app = typer.Typer(no_args_is_help=True)


def client_from_context(ctx: typer.Context) -> EzvizClient:
    """Build an :class:`~ezvizapi.client.EzvizClient` from the root options.

    Connection settings come from :func:`~ezvizapi.config.resolve_config`
    and the app key/secret from :func:`~ezvizapi.config.resolve_app_credentials`.
    An embedding application can pass its own transport as
    ``ctx.obj["http_client"]`` (an :class:`httpx.Client`); the client then
    uses it and leaves it open. Otherwise the client creates its own.

    Raises:
        typer.Exit: With the error's exit code if credentials or config
            cannot be resolved.
    """
    from ezvizapi.client import EzvizClient
    from ezvizapi.config import resolve_app_credentials, resolve_config

    obj = ctx.obj or {}
    try:
        config = resolve_config(
            cli_host=obj.get("host"),
            cli_verbose=obj.get("verbose"),
            cli_timeout=obj.get("timeout"),
        )
        app_key, app_secret = resolve_app_credentials(obj.get("app_key"), obj.get("app_secret"))
    except EzvizError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    return EzvizClient(app_key, app_secret, config=config, http_client=obj.get("http_client"))


def _print_credential(credential: Credential) -> None:
    output = get_output()
    expires = datetime.fromtimestamp(credential.expires_at / 1000, tz=timezone.utc)
    if output.format == OutputFormat.JSON:
        output.format_response(
            {"accessToken": credential.token, "expireTime": credential.expires_at}
        )
    else:
        output.print_data(credential.token)
    info(f"Expires: {expires.isoformat()}")


@token_app.command("refresh")
def token_refresh(ctx: typer.Context) -> None:
    """Make sure a valid access token is cached and print it.

    A valid cached token is reused without any network call; otherwise a
    new one is requested with the app key and secret.

    Example::

        ezviz token refresh
        EZVIZ_VERBOSE=1 ezviz token refresh
    """
    with client_from_context(ctx) as client:
        try:
            credential = client.refresh_access_token()
        except EzvizError as exc:
            error(str(exc))
            raise typer.Exit(code=exc.exit_code) from None
    _print_credential(credential)


@token_app.command("show")
def token_show(ctx: typer.Context) -> None:
    """Print the cached access token without contacting the API.

    Exits with code 4 when nothing valid is cached.
    """
    with client_from_context(ctx) as client:
        try:
            credential = client.load_cached_token()
        except EzvizError as exc:
            error(str(exc))
            suggest("Fetch one: ezviz token refresh")
            raise typer.Exit(code=exc.exit_code) from None
    _print_credential(credential)


@token_app.command("clear")
def token_clear(ctx: typer.Context) -> None:
    """Delete the cached access token."""
    with client_from_context(ctx) as client:
        client.clear_token()
    success("Cached token removed.")
