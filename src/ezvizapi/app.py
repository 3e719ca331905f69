"""Typer application factory and CLI entry point for ezvizapi.

The :func:`main` function is the ``ezviz`` console script declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app,
maps :class:`~ezvizapi.exceptions.EzvizError` to its exit code, and writes
a crash log for anything unexpected.

See Also:
    :mod:`ezvizapi.config`: Config and credential resolution.
    :mod:`ezvizapi.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from ezvizapi import __version__
from ezvizapi.commands.call import call_command
from ezvizapi.commands.config import config_app
from ezvizapi.commands.token import token_app
from ezvizapi.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="ezviz",
    help="Call the EZVIZ open platform with a cached access token.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(token_app, name="token", help="Access token management.")
app.add_typer(config_app, name="config", help="Configuration management.")
app.command("call")(call_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ezviz {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    app_key: Optional[str] = typer.Option(
        None, "--app-key", help="App key, or env:VAR / file:PATH / prompt. Default: $EZVIZ_APP_KEY."
    ),
    app_secret: Optional[str] = typer.Option(
        None, "--app-secret", help="App secret, same forms as --app-key. Default: $EZVIZ_APP_SECRET."
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="API host override, e.g. open.ezvizlife.com/api."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Trace requests and responses."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~ezvizapi.output.OutputManager` and stores
    the connection options in ``ctx.obj`` for the sub-commands.
    """
    from ezvizapi.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["app_key"] = app_key
    ctx.obj["app_secret"] = app_secret
    ctx.obj["host"] = host
    ctx.obj["timeout"] = timeout
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from ezvizapi.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``ezviz`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from ezvizapi.exceptions import EzvizError
        from ezvizapi.output import error

        if isinstance(exc, EzvizError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
