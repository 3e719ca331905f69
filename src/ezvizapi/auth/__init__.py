"""Access-token handling for ezvizapi.

- :class:`CredentialStore` -- cache-first token refresh over an
  :class:`~ezvizapi.cache.ExpiringCache`.
"""

from ezvizapi.auth.credential_store import Authenticator, CredentialStore

__all__ = ["Authenticator", "CredentialStore"]
