"""Config commands -- view and modify the client configuration file.

Provides the ``ezviz config`` sub-command group for reading, updating,
and resetting :class:`~ezvizapi.models.ClientConfig` as stored in the
ezvizapi config directory. Environment variables and CLI flags still
override whatever is stored here.
"""

from __future__ import annotations

import typer

from ezvizapi.exceptions import ConfigError
from ezvizapi.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration.

    Example::

        ezviz config show
        ezviz --json config show
    """
    from ezvizapi.config import get_config_dir, load_config

    try:
        config = load_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key: host, verbose, timeout, dispatch_mode, cache_dir."),
    value: str = typer.Argument(help="Value to set (empty string clears cache_dir)."),
) -> None:
    """Set a configuration value.

    Example::

        ezviz config set host open.ezvizlife.com/api
        ezviz config set dispatch_mode query
    """
    from ezvizapi.config import update_config

    try:
        update_config(key, value)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    success(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults."""
    from ezvizapi.config import save_config
    from ezvizapi.models import ClientConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_config(ClientConfig())
    success("Configuration reset to defaults.")
