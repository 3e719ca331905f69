"""Cache-first access-token lifecycle.

:class:`CredentialStore` wraps an :class:`~ezvizapi.cache.ExpiringCache`
with token semantics. It is either unauthenticated (:attr:`credential` is
``None``) or holds one :class:`~ezvizapi.models.Credential`.

:meth:`CredentialStore.refresh` first tries the cache and only falls back to
the authentication call when the cache has nothing usable. A valid cached
token therefore costs no network round trip, even in a brand-new process.

The store has no locking. Share one instance between threads only with
external synchronisation.

See Also:
    :meth:`ezvizapi.client.EzvizClient.refresh_access_token` -- supplies the
    authentication call.
"""

from __future__ import annotations

from typing import Callable, Optional

from ezvizapi.cache import ExpiringCache
from ezvizapi.exceptions import CacheMissError, SerializationError
from ezvizapi.models import AccessTokenResponse, Credential
from ezvizapi.output import get_output

Authenticator = Callable[[], AccessTokenResponse]


class CredentialStore:
    """Holds the active credential and keeps the token cache in sync.

    Args:
        cache: Backend holding the last :class:`~ezvizapi.models.AccessTokenResponse`.

    Example::

        store = CredentialStore(FileCache("ezviz_key.auth_file"))
        credential = store.refresh(fetch_token)
        assert store.token == credential.token
    """

    def __init__(self, cache: ExpiringCache) -> None:
        self._cache = cache
        self._credential: Optional[Credential] = None

    @property
    def cache(self) -> ExpiringCache:
        """The backing cache."""
        return self._cache

    @property
    def credential(self) -> Optional[Credential]:
        """The adopted credential, or ``None`` while unauthenticated."""
        return self._credential

    @property
    def token(self) -> Optional[str]:
        """Shortcut for ``credential.token``; ``None`` while unauthenticated."""
        if self._credential is None:
            return None
        return self._credential.token

    def load(self) -> Credential:
        """Adopt the cached credential without any network access.

        Returns:
            The cached credential.

        Raises:
            CacheMissError: Nothing cached, or the cached token has expired.
            SerializationError: The cached record is malformed.
        """
        cached = self._cache.get(AccessTokenResponse)
        self._credential = Credential.from_response(cached)
        return self._credential

    def refresh(self, authenticate: Authenticator) -> Credential:
        """Return a usable credential, calling *authenticate* only on a cache miss.

        On a miss the freshly issued token is adopted before it is written
        back to the cache. If that write fails the error is raised, but the
        new token stays active in memory.

        Args:
            authenticate: Performs the authentication call and returns the
                decoded response. Its errors propagate unchanged, and the
                previous credential (if any) is kept.

        Returns:
            The active credential.

        Raises:
            SerializationError: The new record could not be written to the cache.
        """
        output = get_output()
        try:
            credential = self.load()
        except (CacheMissError, SerializationError) as exc:
            output.debug(f"Token cache unusable ({exc}), requesting a new token")
        else:
            output.debug("Using cached access token")
            return credential

        response = authenticate()
        self._credential = Credential.from_response(response)
        self._cache.set(response)
        return self._credential

    def clear(self) -> None:
        """Forget the active credential and remove the cached record."""
        self._credential = None
        self._cache.clear()
