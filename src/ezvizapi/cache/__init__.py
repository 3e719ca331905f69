"""Single-slot expiring caches for the access token.

This package provides the :class:`ExpiringCache` capability and three
interchangeable backends:

- :class:`FileCache` -- one JSON file, survives restarts (the default).
- :class:`InMemoryCache` -- process memory only.
- :class:`DiskCache` -- one key inside a :mod:`diskcache` directory.

The caches are consumed by :class:`~ezvizapi.auth.CredentialStore`.
"""

from ezvizapi.cache.base import Expirable, ExpiringCache
from ezvizapi.cache.disk import DiskCache
from ezvizapi.cache.file import FileCache
from ezvizapi.cache.memory import InMemoryCache

__all__ = ["Expirable", "ExpiringCache", "DiskCache", "FileCache", "InMemoryCache"]
