"""The :class:`EzvizClient` facade.

Owns the app key/secret, the HTTP transport, the token cache and the active
credential, and composes :class:`~ezvizapi.auth.CredentialStore` with
:class:`~ezvizapi.client.dispatcher.RpcDispatcher`:

- :meth:`EzvizClient.refresh_access_token` -- cache-first token refresh.
- :meth:`EzvizClient.request` -- generic RPC carrying the active token,
  the entry point for higher-level endpoint wrappers.

An instance holds unsynchronised mutable state (the active credential).
Use one client per thread, or synchronise access externally.
"""

from __future__ import annotations

from typing import IO, Any, Mapping, Optional

import httpx

from ezvizapi.auth import CredentialStore
from ezvizapi.cache import ExpiringCache, FileCache
from ezvizapi.client.dispatcher import ResponseT, RpcDispatcher
from ezvizapi.config import token_cache_path
from ezvizapi.models import AccessTokenResponse, APIResponse, ClientConfig, Credential

TOKEN_PATH = "lapp/token/get"


class EzvizClient:
    """Client for the EZVIZ open platform.

    Args:
        app_key: Application key issued by the platform.
        app_secret: Application secret paired with *app_key*.
        config: Host, timeout, dispatch mode and tracing settings.
            Defaults to :class:`~ezvizapi.models.ClientConfig()`.
        cache: Token cache backend. Defaults to a
            :class:`~ezvizapi.cache.FileCache` at
            ``<cache_dir>/ezviz_<app_key>.auth_file``.
        http_client: Transport to use. When omitted the client creates an
            :class:`httpx.Client` with ``config.timeout`` and closes it in
            :meth:`close`; a supplied transport is left open.

    Example::

        with EzvizClient("my-key", "my-secret") as client:
            client.refresh_access_token()
            devices = client.request("lapp/device/list", payload={"pageSize": 10})
    """

    def __init__(
        self,
        app_key: str,
        app_secret: str,
        config: Optional[ClientConfig] = None,
        cache: Optional[ExpiringCache] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._app_key = app_key
        self._app_secret = app_secret
        self._config = config or ClientConfig()
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=self._config.timeout)
        if cache is None:
            cache = FileCache(token_cache_path(app_key, self._config))
        self._store = CredentialStore(cache)
        self._dispatcher = RpcDispatcher(self._http, self._config)

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> EzvizClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP transport if this client created it."""
        if self._owns_http:
            self._http.close()

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    @property
    def app_key(self) -> str:
        return self._app_key

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache(self) -> ExpiringCache:
        return self._store.cache

    @property
    def credential(self) -> Optional[Credential]:
        """The active credential, or ``None`` before the first refresh."""
        return self._store.credential

    @property
    def access_token(self) -> Optional[str]:
        """The active access token, or ``None`` before the first refresh."""
        return self._store.token

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def refresh_access_token(self) -> Credential:
        """Make sure a valid access token is active.

        Reuses the cached token when it has not expired; otherwise calls
        ``lapp/token/get`` with the app key and secret, adopts the new token
        and writes the response to the cache.

        Returns:
            The active credential.

        Raises:
            TransportError, ServerError, APIError, SerializationError: From the
                authentication call, or from writing the new token to the
                cache (the token is still adopted in that case).
        """
        return self._store.refresh(self._fetch_token)

    def load_cached_token(self) -> Credential:
        """Adopt the cached token without touching the network.

        Raises:
            CacheMissError: Nothing cached, or the cached token has expired.
            SerializationError: The cache content is malformed.
        """
        return self._store.load()

    def clear_token(self) -> None:
        """Forget the active token and delete the cached one."""
        self._store.clear()

    def request(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        payload: Optional[Any] = None,
        response_model: type[ResponseT] = APIResponse,  # type: ignore[assignment]
        sink: Optional[IO[bytes]] = None,
    ) -> ResponseT:
        """Call *path*, attaching the active access token if one is held.

        See :meth:`~ezvizapi.client.dispatcher.RpcDispatcher.dispatch` for
        the argument semantics and raised errors.
        """
        return self._dispatcher.dispatch(
            path,
            params=params,
            payload=payload,
            response_model=response_model,
            sink=sink,
            token=self._store.token,
        )

    def _fetch_token(self) -> AccessTokenResponse:
        return self.request(
            TOKEN_PATH,
            payload={"appkey": self._app_key, "appsecret": self._app_secret},
            response_model=AccessTokenResponse,
        )
