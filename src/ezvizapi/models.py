"""Canonical Pydantic models shared across all ezvizapi modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration** -- persisted as JSON in the user's config directory:
    :class:`DispatchMode` and :class:`ClientConfig`.

**Wire responses** -- decoded from (or synthesised for) API responses:
    :class:`APIResponse`, :class:`StreamResponse`, :class:`AccessToken`,
    and :class:`AccessTokenResponse`.

**Credentials** -- the in-memory token held by the credential store:
    :class:`Credential`.

Wire models keep the API's camelCase names as aliases, so
``model_dump_json(by_alias=True)`` reproduces the exact document the server
sent. That document is what the token cache stores on disk.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ezvizapi.exceptions import APIError

DEFAULT_HOST = "open.ys7.com/api"
DEFAULT_TIMEOUT = 10.0
SUCCESS_CODE = "200"


# --- Configuration ---


class DispatchMode(str, enum.Enum):
    """How the dispatcher turns a request payload into an HTTP request.

    ``JSON_BODY`` sends a non-empty payload as a JSON POST body and issues a
    plain GET otherwise. ``QUERY`` always POSTs and folds the payload into
    the query string, leaving the body empty.
    """

    JSON_BODY = "json_body"
    QUERY = "query"


class ClientConfig(BaseModel):
    """Settings for :class:`~ezvizapi.client.EzvizClient`.

    Loaded and saved by :func:`~ezvizapi.config.load_config` and
    :func:`~ezvizapi.config.save_config`; environment variables and CLI
    flags are layered on top by :func:`~ezvizapi.config.resolve_config`.

    Example::

        ClientConfig(host="open.ezvizlife.com/api", verbose=True)
    """

    host: str = Field(default=DEFAULT_HOST, description="API host and base path, without scheme")
    verbose: bool = Field(default=False, description="Trace requests and responses to stderr")
    timeout: float = Field(default=DEFAULT_TIMEOUT, description="Request timeout in seconds")
    dispatch_mode: DispatchMode = Field(
        default=DispatchMode.JSON_BODY,
        description="json_body: GET or JSON POST; query: always POST with query values",
    )
    cache_dir: Optional[str] = Field(
        default=None, description="Directory for the token cache file (default: XDG cache dir)"
    )


# --- Wire responses ---


class APIResponse(BaseModel):
    """Structured response envelope: ``{"code": ..., "msg": ...}``.

    Subclasses add a typed ``data`` field. Every response shape reports its
    own domain errors through :meth:`check_error`, which the dispatcher calls
    after decoding (JSON) or after streaming (binary).

    Unknown fields are kept (``extra="allow"``) so a generic call still
    carries the server's ``data`` block.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    code: str = ""
    msg: str = ""

    @field_validator("code", "msg", mode="before")
    @classmethod
    def _as_string(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, int):
            return str(value)
        return value

    def check_error(self) -> None:
        """Raise :class:`~ezvizapi.exceptions.APIError` unless ``code`` is ``"200"``."""
        if self.code != SUCCESS_CODE:
            raise APIError(self.code, self.msg)

    @classmethod
    def from_stream(cls, content_type: str, size: int) -> APIResponse:
        """Build the response for a body that was streamed into a sink.

        A non-JSON body carries no ``code`` of its own; reaching this point
        means the server answered HTTP 200, so the envelope reports success.
        """
        return cls(code=SUCCESS_CODE)


class StreamResponse(APIResponse):
    """Response for binary endpoints (snapshots, clips) written to a sink.

    Attributes:
        content_type: The ``Content-Type`` the server declared.
        size: Number of bytes copied into the sink.
    """

    content_type: str = ""
    size: int = 0

    @classmethod
    def from_stream(cls, content_type: str, size: int) -> StreamResponse:
        return cls(code=SUCCESS_CODE, content_type=content_type, size=size)


class AccessToken(BaseModel):
    """The ``data`` block of the token endpoint response."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(default="", alias="accessToken")
    expire_time: int = Field(default=0, alias="expireTime", description="Expiry in ms since epoch")


class AccessTokenResponse(APIResponse):
    """Response of ``lapp/token/get``; also the record kept in the token cache."""

    data: Optional[AccessToken] = None

    def get_expire_time(self) -> int:
        """Return the expiry instant in milliseconds since the epoch (0 if absent)."""
        if self.data is None:
            return 0
        return self.data.expire_time


# --- Credentials ---


class Credential(BaseModel):
    """An adopted access token. Replaced wholesale on refresh, never mutated."""

    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: int = Field(description="Expiry in ms since epoch")

    @classmethod
    def from_response(cls, response: AccessTokenResponse) -> Credential:
        data = response.data or AccessToken()
        return cls(token=data.access_token, expires_at=data.expire_time)
