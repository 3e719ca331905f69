"""Durable token cache backed by a single JSON file.

The file holds the record exactly as :meth:`~pydantic.BaseModel.model_dump_json`
produced it (wire aliases, compact separators). Writes go through
:func:`~ezvizapi.config.atomic_write` with ``0o600`` permissions.

Filesystem failures are reported as cache errors: an unreadable file is a
:class:`~ezvizapi.exceptions.CacheMissError`, an unwritable one a
:class:`~ezvizapi.exceptions.SerializationError`.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from ezvizapi.cache.base import ExpiringCache, RecordT, decode_record, encode_record
from ezvizapi.config import atomic_write
from ezvizapi.exceptions import CacheMissError, CacheNotFoundError, SerializationError

_FILE_MODE = 0o600


class FileCache(ExpiringCache):
    """Keep one record in the JSON file at *path*.

    Args:
        path: Location of the cache file. Parent directories are created on
            the first :meth:`set`.

    Example::

        cache = FileCache("~/.cache/ezvizapi/ezviz_myappkey.auth_file")
        cache.set(token_response)
        cached = cache.get(AccessTokenResponse)
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        """The filesystem path of the cache file."""
        return self._path

    def set(self, record: BaseModel) -> None:
        data = encode_record(record)
        try:
            atomic_write(self._path, data, mode=_FILE_MODE)
        except OSError as exc:
            raise SerializationError(f"Cannot write token cache {self._path}: {exc}") from exc

    def get(self, record_type: type[RecordT]) -> RecordT:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            raise CacheNotFoundError(f"No cached record at {self._path}") from None
        except OSError as exc:
            raise CacheMissError(f"Cannot read token cache {self._path}: {exc}") from exc
        return decode_record(raw, record_type)

    def clear(self) -> None:
        if self._path.is_file():
            self._path.unlink()
