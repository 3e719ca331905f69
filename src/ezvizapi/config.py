"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for ezvizapi:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.ezvizapi/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Client config** -- A single :class:`~ezvizapi.models.ClientConfig`
  JSON file (host override, verbose tracing, timeout, dispatch mode).
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the config file into the effective settings.
* **Credential resolution** -- :func:`resolve_app_credentials` finds the
  app key and secret from CLI flags or env vars, each of which may point
  at another source (``env:``, ``file:``, ``prompt``).

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`), shared with the token file cache.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from ezvizapi.exceptions import ConfigError
from ezvizapi.models import ClientConfig

_APP_NAME = "ezvizapi"
_CONFIG_FILENAME = "config.json"

ENV_APP_KEY = "EZVIZ_APP_KEY"
ENV_APP_SECRET = "EZVIZ_APP_SECRET"
ENV_HOST = "EZVIZ_HOST"
ENV_VERBOSE = "EZVIZ_VERBOSE"
ENV_TIMEOUT = "EZVIZ_TIMEOUT"
ENV_DISPATCH_MODE = "EZVIZ_DISPATCH_MODE"

_TRUTHY = {"1", "true", "yes", "on"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/ezvizapi/`` (default ``~/.config/ezvizapi/``).
    On macOS/Windows: ``~/.ezvizapi/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory (token cache files), creating it if necessary.

    Deleting it only costs one extra authentication call.

    On Linux/BSD: ``$XDG_CACHE_HOME/ezvizapi/`` (default ``~/.cache/ezvizapi/``).
    On macOS/Windows: ``~/.ezvizapi/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/ezvizapi/`` (default ``~/.local/share/ezvizapi/``).
    On macOS/Windows: ``~/.ezvizapi/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def token_cache_path(app_key: str, config: Optional[ClientConfig] = None) -> Path:
    """Return the token cache file for *app_key*: ``<cache_dir>/ezviz_<app_key>.auth_file``.

    ``config.cache_dir`` takes precedence over the XDG cache directory.
    """
    if config is not None and config.cache_dir:
        base = Path(config.cache_dir).expanduser()
    else:
        base = get_cache_dir()
    return base / f"ezviz_{app_key}.auth_file"


# --- Atomic file writes ---


def atomic_write(path: Path, data: bytes, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.

    Args:
        path: Destination file. Parent directories are created.
        data: The bytes to write.
        mode: Permission bits applied to the file before it is renamed into
            place, e.g. ``0o600`` for credentials. ``None`` keeps the
            temp-file default.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Client config ---


def _config_path() -> Path:
    """Path to the config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_config() -> ClientConfig:
    """Load the client configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~ezvizapi.models.ClientConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _config_path()
    if not path.is_file():
        return ClientConfig()
    try:
        text = path.read_text(encoding="utf-8")
        return ClientConfig.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ClientConfig) -> None:
    """Persist the client configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_config_path(), (json.dumps(data, indent=2) + "\n").encode("utf-8"))


def update_config(key: str, value: str) -> ClientConfig:
    """Set one field of the stored config from its string form and save it.

    Args:
        key: A :class:`~ezvizapi.models.ClientConfig` field name.
        value: The new value; coerced by Pydantic validation.

    Returns:
        The saved configuration.

    Raises:
        ConfigError: Unknown key or a value that fails validation.
    """
    if key not in ClientConfig.model_fields:
        known = ", ".join(sorted(ClientConfig.model_fields))
        raise ConfigError(f"Unknown config key '{key}'. Known keys: {known}")
    data: dict[str, Any] = load_config().model_dump(mode="json")
    data[key] = None if value == "" else value
    try:
        config = ClientConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid value for '{key}': {exc}") from exc
    save_config(config)
    return config


# --- Precedence resolution ---


def resolve_config(
    cli_host: Optional[str] = None,
    cli_verbose: Optional[bool] = None,
    cli_timeout: Optional[float] = None,
) -> ClientConfig:
    """Resolve the client config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_host``, ``cli_verbose``, ``cli_timeout``)
        2. Environment variables (``EZVIZ_HOST``, ``EZVIZ_VERBOSE``,
           ``EZVIZ_TIMEOUT``, ``EZVIZ_DISPATCH_MODE``)
        3. Config file (``~/.config/ezvizapi/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the config file or an environment value is invalid.
    """
    config = load_config()
    overrides: dict[str, Any] = {}

    env_host = os.environ.get(ENV_HOST)
    if env_host:
        overrides["host"] = env_host
    env_verbose = os.environ.get(ENV_VERBOSE)
    if env_verbose:
        overrides["verbose"] = env_verbose.strip().lower() in _TRUTHY
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        overrides["timeout"] = env_timeout
    env_mode = os.environ.get(ENV_DISPATCH_MODE)
    if env_mode:
        overrides["dispatch_mode"] = env_mode

    if cli_host is not None:
        overrides["host"] = cli_host
    if cli_verbose:
        overrides["verbose"] = True
    if cli_timeout is not None:
        overrides["timeout"] = cli_timeout

    if not overrides:
        return config
    try:
        return ClientConfig.model_validate({**config.model_dump(), **overrides})
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration override: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigError(f"Unknown credential source format: {source}")


def _is_source_descriptor(value: str) -> bool:
    return value.startswith(("env:", "file:")) or value == "prompt"


def _resolve_value(cli_value: Optional[str], env_var: str, label: str) -> str:
    value = cli_value if cli_value is not None else os.environ.get(env_var)
    if not value:
        raise ConfigError(f"No {label} configured: pass it explicitly or set {env_var}")
    if _is_source_descriptor(value):
        return resolve_credential(value)
    return value


def resolve_app_credentials(
    cli_app_key: Optional[str] = None,
    cli_app_secret: Optional[str] = None,
) -> tuple[str, str]:
    """Return ``(app_key, app_secret)`` from CLI values or the environment.

    Each value is taken from the CLI argument first, then from
    ``EZVIZ_APP_KEY`` / ``EZVIZ_APP_SECRET``. A value that is itself a
    source descriptor (``env:``, ``file:``, ``prompt``) is resolved through
    :func:`resolve_credential`; anything else is used literally.

    Raises:
        ConfigError: If either value is missing or its source can't be resolved.
    """
    app_key = _resolve_value(cli_app_key, ENV_APP_KEY, "app key")
    app_secret = _resolve_value(cli_app_secret, ENV_APP_SECRET, "app secret")
    return app_key, app_secret
