"""Tests for the expiring single-record caches."""

from __future__ import annotations

import json
import os
import stat
import time
from pathlib import Path
from typing import Any

import pytest
from pydantic import BaseModel

from ezvizapi.cache import DiskCache, Expirable, ExpiringCache, FileCache, InMemoryCache
from ezvizapi.cache import base as cache_base
from ezvizapi.exceptions import (
    CacheExpiredError,
    CacheMissError,
    CacheNotFoundError,
    SerializationError,
)
from ezvizapi.models import AccessToken, AccessTokenResponse

FUTURE_MS = 1999999999000


def _record(token: str = "TOK", expire_time: int = FUTURE_MS) -> AccessTokenResponse:
    return AccessTokenResponse(
        code="200",
        msg="",
        data=AccessToken(access_token=token, expire_time=expire_time),
    )


class _Opaque(BaseModel):
    """A record holding a value Pydantic cannot serialise."""

    blob: Any = None

    def get_expire_time(self) -> int:
        return FUTURE_MS


class _NoExpiry(BaseModel):
    value: str = "x"


@pytest.fixture(params=["file", "memory", "disk"])
def cache(request: pytest.FixtureRequest, tmp_path: Path) -> ExpiringCache:
    """Each backend in turn; all must honour the same contract."""
    if request.param == "file":
        return FileCache(tmp_path / "ezviz_K.auth_file")
    if request.param == "memory":
        return InMemoryCache()
    return DiskCache(tmp_path / "diskcache", "token")


# ------------------------------------------------------------------ #
# Contract shared by every backend
# ------------------------------------------------------------------ #


class TestContract:
    def test_roundtrip(self, cache: ExpiringCache) -> None:
        record = _record()
        cache.set(record)
        assert cache.get(AccessTokenResponse) == record

    def test_empty_cache_is_not_found(self, cache: ExpiringCache) -> None:
        with pytest.raises(CacheNotFoundError):
            cache.get(AccessTokenResponse)

    def test_not_found_is_a_cache_miss(self, cache: ExpiringCache) -> None:
        with pytest.raises(CacheMissError):
            cache.get(AccessTokenResponse)

    def test_expired_record(self, cache: ExpiringCache) -> None:
        cache.set(_record(expire_time=int(time.time()) * 1000))
        with pytest.raises(CacheExpiredError):
            cache.get(AccessTokenResponse)

    def test_long_expired_record(self, cache: ExpiringCache) -> None:
        cache.set(_record(expire_time=1000))
        with pytest.raises(CacheExpiredError):
            cache.get(AccessTokenResponse)

    def test_overwrite_replaces_record(self, cache: ExpiringCache) -> None:
        cache.set(_record(token="first"))
        cache.set(_record(token="second"))
        loaded = cache.get(AccessTokenResponse)
        assert loaded.data is not None
        assert loaded.data.access_token == "second"

    def test_clear(self, cache: ExpiringCache) -> None:
        cache.set(_record())
        cache.clear()
        with pytest.raises(CacheNotFoundError):
            cache.get(AccessTokenResponse)

    def test_clear_empty_is_noop(self, cache: ExpiringCache) -> None:
        cache.clear()

    def test_unencodable_record(self, cache: ExpiringCache) -> None:
        with pytest.raises(SerializationError):
            cache.set(_Opaque(blob=object()))

    def test_record_without_expiry_cannot_be_read(self, cache: ExpiringCache) -> None:
        cache.set(_NoExpiry())
        with pytest.raises(SerializationError):
            cache.get(_NoExpiry)

    def test_shape_mismatch_is_serialization_error(self, cache: ExpiringCache) -> None:
        class _Strict(BaseModel):
            required_field: int

            def get_expire_time(self) -> int:
                return FUTURE_MS

        cache.set(_record())
        with pytest.raises(SerializationError):
            cache.get(_Strict)


# ------------------------------------------------------------------ #
# Expiry granularity
# ------------------------------------------------------------------ #


class TestExpiryGranularity:
    @pytest.fixture(autouse=True)
    def _frozen_clock(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cache_base, "_now", lambda: 1000.9)

    def test_same_second_is_expired(self) -> None:
        with pytest.raises(CacheExpiredError):
            cache_base.check_expiry(_record(expire_time=1_000_999))

    def test_earlier_second_is_expired(self) -> None:
        with pytest.raises(CacheExpiredError):
            cache_base.check_expiry(_record(expire_time=999_000))

    def test_next_second_is_valid(self) -> None:
        cache_base.check_expiry(_record(expire_time=1_001_000))

    def test_access_token_response_is_expirable(self) -> None:
        assert isinstance(_record(), Expirable)


# ------------------------------------------------------------------ #
# FileCache specifics
# ------------------------------------------------------------------ #


class TestFileCache:
    def test_writes_wire_json(self, tmp_path: Path) -> None:
        cache = FileCache(tmp_path / "ezviz_K.auth_file")
        cache.set(_record())
        assert json.loads(cache.path.read_text(encoding="utf-8")) == {
            "code": "200",
            "msg": "",
            "data": {"accessToken": "TOK", "expireTime": FUTURE_MS},
        }

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        cache = FileCache(tmp_path / "a" / "b" / "token.json")
        cache.set(_record())
        assert cache.path.is_file()

    def test_file_permissions(self, tmp_path: Path) -> None:
        cache = FileCache(tmp_path / "token.json")
        cache.set(_record())
        assert stat.S_IMODE(os.stat(cache.path).st_mode) == 0o600

    def test_no_temp_files_left_behind(self, tmp_path: Path) -> None:
        cache = FileCache(tmp_path / "token.json")
        cache.set(_record())
        cache.set(_record(token="again"))
        assert [p.name for p in tmp_path.iterdir()] == ["token.json"]

    def test_corrupted_file(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        path.write_text("not valid json {{{", encoding="utf-8")
        with pytest.raises(SerializationError):
            FileCache(path).get(AccessTokenResponse)

    def test_unreadable_path_is_cache_miss(self, tmp_path: Path) -> None:
        path = tmp_path / "ezviz_K.auth_file"
        path.mkdir()
        with pytest.raises(CacheMissError, match="Cannot read token cache"):
            FileCache(path).get(AccessTokenResponse)

    def test_unwritable_location_is_serialization_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(SerializationError, match="Cannot write token cache"):
            FileCache(blocker / "tokens" / "ezviz_K.auth_file").set(_record())

    def test_survives_new_instance(self, tmp_path: Path) -> None:
        FileCache(tmp_path / "token.json").set(_record())
        loaded = FileCache(tmp_path / "token.json").get(AccessTokenResponse)
        assert loaded.data is not None
        assert loaded.data.access_token == "TOK"


# ------------------------------------------------------------------ #
# InMemoryCache / DiskCache specifics
# ------------------------------------------------------------------ #


class TestInMemoryCache:
    def test_instances_do_not_share_state(self) -> None:
        first = InMemoryCache()
        first.set(_record())
        with pytest.raises(CacheNotFoundError):
            InMemoryCache().get(AccessTokenResponse)


class TestDiskCache:
    def test_survives_new_instance(self, tmp_path: Path) -> None:
        DiskCache(tmp_path / "dc", "token").set(_record())
        loaded = DiskCache(tmp_path / "dc", "token").get(AccessTokenResponse)
        assert loaded.data is not None
        assert loaded.data.access_token == "TOK"

    def test_keys_are_separate_slots(self, tmp_path: Path) -> None:
        DiskCache(tmp_path / "dc", "one").set(_record(token="one"))
        with pytest.raises(CacheNotFoundError):
            DiskCache(tmp_path / "dc", "two").get(AccessTokenResponse)
