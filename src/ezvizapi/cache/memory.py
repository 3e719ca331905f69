"""Volatile token cache kept in process memory."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from ezvizapi.cache.base import ExpiringCache, RecordT, decode_record, encode_record
from ezvizapi.exceptions import CacheNotFoundError


class InMemoryCache(ExpiringCache):
    """Keep the encoded record in a bytes buffer that dies with the process.

    The record is stored encoded rather than as the model instance, so a
    read goes through the same decoding and expiry checks as the durable
    backends. Useful in tests and for short-lived scripts that must not
    touch the filesystem.
    """

    def __init__(self) -> None:
        self._data: Optional[bytes] = None

    def set(self, record: BaseModel) -> None:
        self._data = encode_record(record)

    def get(self, record_type: type[RecordT]) -> RecordT:
        if self._data is None:
            raise CacheNotFoundError("No record cached in memory")
        return decode_record(self._data, record_type)

    def clear(self) -> None:
        self._data = None
