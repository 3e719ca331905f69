"""ezvizapi -- a token-caching client for the EZVIZ open platform API.

The client authenticates with an app key/secret pair, keeps the short-lived
access token in a cache that survives restarts, and dispatches calls whose
responses are either JSON envelopes or raw byte streams::

    from ezvizapi import EzvizClient

    with EzvizClient("app-key", "app-secret") as client:
        client.refresh_access_token()      # cache-first
        resp = client.request("lapp/device/list", payload={"pageSize": 10})

Modules:
    client: :class:`EzvizClient` facade and the RPC dispatcher.
    auth: Cache-first credential store.
    cache: Expiring single-record caches (file, memory, diskcache).
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point (``ezviz``).
"""

__version__ = "0.1.0"

from ezvizapi.client import EzvizClient  # noqa: E402

__all__ = ["EzvizClient", "__version__"]
