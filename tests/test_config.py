"""Tests for ezvizapi.config -- XDG paths, atomic writes, precedence, credentials."""

from __future__ import annotations

import io
import json
import os
import stat
from pathlib import Path

import pytest

from ezvizapi.config import (
    atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    load_config,
    resolve_app_credentials,
    resolve_config,
    resolve_credential,
    save_config,
    token_cache_path,
    update_config,
)
from ezvizapi.exceptions import ConfigError
from ezvizapi.models import DEFAULT_HOST, ClientConfig, DispatchMode


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_dirs_follow_xdg_env(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "config" / "ezvizapi"
        assert get_cache_dir() == isolated_config / "cache" / "ezvizapi"
        assert get_data_dir() == isolated_config / "data" / "ezvizapi"
        assert get_cache_dir().is_dir()

    def test_fallback_on_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("ezvizapi.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".ezvizapi"
        assert get_cache_dir() == tmp_path / ".ezvizapi" / "cache"
        assert get_data_dir() == tmp_path / ".ezvizapi" / "logs"

    def test_token_cache_path_default(self, isolated_config: Path) -> None:
        assert token_cache_path("KEY") == isolated_config / "cache" / "ezvizapi" / "ezviz_KEY.auth_file"

    def test_token_cache_path_config_override(self, tmp_path: Path) -> None:
        config = ClientConfig(cache_dir=str(tmp_path / "elsewhere"))
        assert token_cache_path("KEY", config) == tmp_path / "elsewhere" / "ezviz_KEY.auth_file"


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        atomic_write(target, b'{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("old", encoding="utf-8")
        atomic_write(target, b"new")
        assert target.read_text(encoding="utf-8") == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]

    def test_applies_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.json"
        atomic_write(target, b"{}", mode=0o600)
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_failure_leaves_no_temp_file(self, tmp_path: Path) -> None:
        target = tmp_path / "taken"
        target.mkdir()
        with pytest.raises(OSError):
            atomic_write(target, b"data")
        assert [p.name for p in tmp_path.iterdir()] == ["taken"]


class TestLoadSave:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        assert load_config() == ClientConfig()

    def test_roundtrip(self, isolated_config: Path) -> None:
        config = ClientConfig(host="open.ezvizlife.com/api", verbose=True, timeout=3.5)
        save_config(config)
        assert load_config() == config

    def test_invalid_json(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{broken", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config()

    def test_invalid_value(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text(
            json.dumps({"timeout": "soon"}), encoding="utf-8"
        )
        with pytest.raises(ConfigError):
            load_config()


class TestUpdateConfig:
    def test_sets_and_saves(self, isolated_config: Path) -> None:
        update_config("host", "open.ezvizlife.com/api")
        assert load_config().host == "open.ezvizlife.com/api"

    def test_coerces_value(self, isolated_config: Path) -> None:
        config = update_config("dispatch_mode", "query")
        assert config.dispatch_mode == DispatchMode.QUERY
        assert update_config("verbose", "true").verbose is True

    def test_empty_clears_optional(self, isolated_config: Path) -> None:
        update_config("cache_dir", "/tmp/tokens")
        assert update_config("cache_dir", "").cache_dir is None

    def test_unknown_key(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown config key"):
            update_config("colour", "blue")

    def test_invalid_value(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError):
            update_config("timeout", "soon")
        assert load_config().timeout == ClientConfig().timeout


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.host == DEFAULT_HOST
        assert config.verbose is False

    def test_env_over_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_config(ClientConfig(host="file.example/api", timeout=5))
        monkeypatch.setenv("EZVIZ_HOST", "env.example/api")
        config = resolve_config()
        assert config.host == "env.example/api"
        assert config.timeout == 5

    def test_cli_over_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EZVIZ_HOST", "env.example/api")
        monkeypatch.setenv("EZVIZ_TIMEOUT", "7")
        config = resolve_config(cli_host="cli.example/api", cli_timeout=2.0)
        assert config.host == "cli.example/api"
        assert config.timeout == 2.0

    @pytest.mark.parametrize("value,expected", [("1", True), ("TRUE", True), ("on", True), ("0", False), ("no", False)])
    def test_verbose_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool
    ) -> None:
        monkeypatch.setenv("EZVIZ_VERBOSE", value)
        assert resolve_config().verbose is expected

    def test_cli_verbose(self, isolated_config: Path) -> None:
        assert resolve_config(cli_verbose=True).verbose is True

    def test_dispatch_mode_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EZVIZ_DISPATCH_MODE", "query")
        assert resolve_config().dispatch_mode == DispatchMode.QUERY

    def test_invalid_env_timeout(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EZVIZ_TIMEOUT", "soon")
        with pytest.raises(ConfigError):
            resolve_config()


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_SECRET", "s3cret")
        assert resolve_credential("env:MY_SECRET") == "s3cret"

    def test_env_source_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MY_SECRET", raising=False)
        with pytest.raises(ConfigError, match="MY_SECRET"):
            resolve_credential("env:MY_SECRET")

    def test_file_source(self, tmp_path: Path) -> None:
        secret = tmp_path / "secret.txt"
        secret.write_text("  s3cret\n", encoding="utf-8")
        assert resolve_credential(f"file:{secret}") == "s3cret"

    def test_file_source_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'absent'}")

    def test_prompt_without_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        with pytest.raises(ConfigError, match="TTY"):
            resolve_credential("prompt")

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("vault:secret/ezviz")


class TestResolveAppCredentials:
    def test_cli_values(self, isolated_config: Path) -> None:
        assert resolve_app_credentials("K", "S") == ("K", "S")

    def test_env_values(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EZVIZ_APP_KEY", "K")
        monkeypatch.setenv("EZVIZ_APP_SECRET", "S")
        assert resolve_app_credentials() == ("K", "S")

    def test_descriptor_values(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        secret = isolated_config / "secret.txt"
        secret.write_text("S\n", encoding="utf-8")
        monkeypatch.setenv("VAULT_KEY", "K")
        assert resolve_app_credentials("env:VAULT_KEY", f"file:{secret}") == ("K", "S")

    def test_missing_key(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="EZVIZ_APP_KEY"):
            resolve_app_credentials(None, "S")

    def test_missing_secret(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EZVIZ_APP_KEY", "K")
        with pytest.raises(ConfigError, match="EZVIZ_APP_SECRET"):
            resolve_app_credentials()
