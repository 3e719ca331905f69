"""Call command -- send one request to any API path.

JSON responses are printed to stdout in the active output format. Binary
responses (snapshots, clips) need ``--output`` and are written there
unchanged::

    ezviz call lapp/device/list -d '{"pageStart": 0, "pageSize": 10}'
    ezviz call lapp/device/capture -d '{"deviceSerial": "C123"}'
    ezviz call some/binary/path -p id=42 -o frame.jpg
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import typer

from ezvizapi.commands.token import client_from_context
from ezvizapi.exceptions import EzvizError, InvalidUsageError, SerializationError
from ezvizapi.output import error, suggest, warning

if TYPE_CHECKING:
    from ezvizapi.client import EzvizClient


def _parse_params(values: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Expected key=value, got: {item}")
        params[key] = value
    return params


def _parse_body(body: Optional[str]) -> Optional[dict[str, Any]]:
    if body is None:
        return None
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--data is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise InvalidUsageError("--data must be a JSON object")
    return parsed


def _authenticate(client: EzvizClient) -> None:
    """Obtain an access token, tolerating a token cache that cannot be written.

    When the token was issued but could not be cached, it is still active
    for this call; only later processes lose it.

    Raises:
        typer.Exit: With the error's exit code if no token could be obtained.
    """
    try:
        client.refresh_access_token()
    except EzvizError as exc:
        if client.access_token is None:
            error(str(exc))
            raise typer.Exit(code=exc.exit_code) from None
        warning(f"Access token not cached: {exc}")


def call_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="API path, e.g. lapp/device/list."),
    param: list[str] = typer.Option(
        [], "--param", "-p", help="Query parameter as key=value (repeatable)."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request payload as a JSON object."
    ),
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write a binary response to this file."
    ),
    no_auth: bool = typer.Option(
        False, "--no-auth", help="Do not fetch or attach an access token."
    ),
) -> None:
    """Call an API path and print or save the response.

    Unless ``--no-auth`` is given, a valid access token is obtained first
    (cache-first) and attached as ``accessToken``.
    """
    from ezvizapi.client.response import format_api_response
    from ezvizapi.models import StreamResponse

    try:
        params = _parse_params(param)
        payload = _parse_body(data)
    except EzvizError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    with client_from_context(ctx) as client:
        if not no_auth:
            _authenticate(client)
        try:
            if output_file is None:
                response = client.request(path, params=params, payload=payload)
            else:
                with open(output_file, "wb") as sink:
                    response = client.request(
                        path,
                        params=params,
                        payload=payload,
                        response_model=StreamResponse,
                        sink=sink,
                    )
                if not response.content_type:
                    output_file.unlink()
        except EzvizError as exc:
            if output_file is not None and output_file.is_file():
                output_file.unlink()
            error(str(exc))
            if isinstance(exc, SerializationError) and output_file is None:
                suggest("Save binary responses with --output FILE")
            raise typer.Exit(code=exc.exit_code) from None

    format_api_response(response)
