"""The expiring-cache capability shared by every token cache backend.

An expiring cache holds exactly one record in one named slot. Records are
Pydantic models that also satisfy :class:`Expirable`, i.e. they can report
their own expiry instant in milliseconds since the epoch.

Backends (:class:`~ezvizapi.cache.file.FileCache`,
:class:`~ezvizapi.cache.memory.InMemoryCache`,
:class:`~ezvizapi.cache.disk.DiskCache`) only differ in where the encoded
bytes live. Encoding, decoding and the expiry rule are the module-level
helpers below so that every backend applies them identically.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from ezvizapi.exceptions import CacheExpiredError, SerializationError


@runtime_checkable
class Expirable(Protocol):
    """A record that knows when it stops being valid."""

    def get_expire_time(self) -> int:
        """Return the expiry instant in milliseconds since the epoch."""
        ...


RecordT = TypeVar("RecordT", bound=BaseModel)


class ExpiringCache(ABC):
    """Single-slot store for one :class:`Expirable` record.

    Implementations must raise:

    - :class:`~ezvizapi.exceptions.CacheNotFoundError` from :meth:`get`
      when nothing is stored,
    - :class:`~ezvizapi.exceptions.SerializationError` when the record
      cannot be encoded or the stored bytes cannot be decoded,
    - :class:`~ezvizapi.exceptions.CacheExpiredError` when the decoded
      record is past its expiry.
    """

    @abstractmethod
    def set(self, record: BaseModel) -> None:
        """Encode *record* and replace whatever the slot held."""
        ...

    @abstractmethod
    def get(self, record_type: type[RecordT]) -> RecordT:
        """Decode the stored record as *record_type* and check its expiry."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored record. No-op when the slot is empty."""
        ...


def _now() -> float:
    return time.time()


def encode_record(record: BaseModel) -> bytes:
    """Serialise *record* to compact JSON using its wire aliases."""
    try:
        return record.model_dump_json(by_alias=True).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Cannot encode {type(record).__name__}: {exc}") from exc


def decode_record(raw: bytes, record_type: type[RecordT]) -> RecordT:
    """Validate *raw* JSON into *record_type*, then enforce its expiry."""
    try:
        record = record_type.model_validate_json(raw)
    except ValidationError as exc:
        raise SerializationError(f"Cannot decode cached {record_type.__name__}: {exc}") from exc
    check_expiry(record)
    return record


def check_expiry(record: BaseModel) -> None:
    """Raise :class:`CacheExpiredError` if *record* is at or past its expiry.

    The expiry is stored in milliseconds but compared at whole-second
    resolution: ``int(now) >= expire_time // 1000`` counts as expired.
    """
    if not isinstance(record, Expirable):
        raise SerializationError(f"{type(record).__name__} does not expose get_expire_time()")
    expire_seconds = record.get_expire_time() // 1000
    if int(_now()) >= expire_seconds:
        raise CacheExpiredError("Data is already expired")
