"""HTTP client module for ezvizapi.

Classes:
    :class:`EzvizClient` -- facade owning credentials, cache and transport.
    :class:`RpcDispatcher` -- one request in, one decoded or streamed
    response out.

Example::

    from ezvizapi.client import EzvizClient

    with EzvizClient(app_key, app_secret) as client:
        client.refresh_access_token()
        resp = client.request("lapp/device/list", payload={"pageStart": 0})
"""

from ezvizapi.client.client import EzvizClient
from ezvizapi.client.dispatcher import RpcDispatcher

__all__ = ["EzvizClient", "RpcDispatcher"]
