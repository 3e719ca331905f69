"""Built-in CLI sub-commands for ezvizapi.

* :mod:`~ezvizapi.commands.token` -- refresh, show and clear the cached token.
* :mod:`~ezvizapi.commands.call` -- generic API call with JSON or binary output.
* :mod:`~ezvizapi.commands.config` -- view and modify the config file.

Each module exports either a :class:`typer.Typer` sub-application or a plain
callback registered directly on the root app.
"""
