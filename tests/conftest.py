"""Shared test fixtures for ezvizapi.

Provides isolated config/cache directories, output-state management, a
canned token response, and a factory for mock HTTP transports. These
fixtures are discovered by pytest and available to every test module.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from ezvizapi.output import OutputFormat, OutputManager, reset_output, set_output


TOKEN_DOCUMENT: dict[str, Any] = {
    "code": "200",
    "msg": "",
    "data": {"accessToken": "TOK", "expireTime": 1999999999000},
}


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When CliRunner redirects those streams and the test
    finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and token caches to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path, clears all EZVIZ_* environment variables,
    and changes the working directory to tmp_path.
    """
    monkeypatch.setattr("ezvizapi.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "EZVIZ_APP_KEY",
        "EZVIZ_APP_SECRET",
        "EZVIZ_HOST",
        "EZVIZ_VERBOSE",
        "EZVIZ_TIMEOUT",
        "EZVIZ_DISPATCH_MODE",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def token_document() -> dict[str, Any]:
    """The token endpoint's success body, as a fresh dict per test."""
    return {**TOKEN_DOCUMENT, "data": dict(TOKEN_DOCUMENT["data"])}


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    """Return a factory building an ``httpx.Client`` around a request handler.

    Every client built by the factory is closed after the test.
    """
    clients: list[httpx.Client] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _factory
    for client in clients:
        client.close()
