"""Durable token cache stored in a :mod:`diskcache` directory.

Handy when an application already keeps a :class:`diskcache.Cache`
directory for other data: the token record lives under one key in it.
The record's own expiry is authoritative; the diskcache entry is written
without a TTL so that an expired token is reported as
:class:`~ezvizapi.exceptions.CacheExpiredError` rather than vanishing.
"""

from __future__ import annotations

from pathlib import Path

import diskcache
from pydantic import BaseModel

from ezvizapi.cache.base import ExpiringCache, RecordT, decode_record, encode_record
from ezvizapi.exceptions import CacheNotFoundError


class DiskCache(ExpiringCache):
    """Keep one record under *key* in the diskcache at *directory*.

    The underlying :class:`diskcache.Cache` is opened and closed for every
    operation so no handle or lock outlives a call.

    Args:
        directory: The diskcache directory (created if missing).
        key: Name of the slot inside the directory.
    """

    def __init__(self, directory: str | Path, key: str) -> None:
        self._directory = Path(directory).expanduser()
        self._key = key

    def set(self, record: BaseModel) -> None:
        data = encode_record(record)
        with diskcache.Cache(str(self._directory)) as cache:
            cache.set(self._key, data)

    def get(self, record_type: type[RecordT]) -> RecordT:
        with diskcache.Cache(str(self._directory)) as cache:
            raw = cache.get(self._key)
        if raw is None:
            raise CacheNotFoundError(f"No cached record for '{self._key}' in {self._directory}")
        return decode_record(raw, record_type)

    def clear(self) -> None:
        with diskcache.Cache(str(self._directory)) as cache:
            cache.delete(self._key)
