"""Content-negotiating RPC dispatch over :mod:`httpx`.

:class:`RpcDispatcher` turns ``(path, params, payload)`` into one HTTP
request and turns the answer into a response model:

1. **URL** -- ``https://<host>/<path>?<query>`` with the query keys sorted.
2. **Token** -- the caller's access token is added as ``accessToken`` unless
   the params already carry one.
3. **Method and body** -- chosen by :class:`~ezvizapi.models.DispatchMode`:
   ``json_body`` sends a non-empty payload as a JSON POST and otherwise
   issues a GET; ``query`` always POSTs with the payload in the query string.
4. **Status** -- anything but HTTP 200 raises
   :class:`~ezvizapi.exceptions.ServerError` before the body is looked at.
5. **Content type** -- an ``application/json`` body is decoded into the
   response model; any other body is streamed unchanged into the caller's
   sink. Either way the model then reports its own domain error through
   :meth:`~ezvizapi.models.APIResponse.check_error`.

No retries are attempted: the first error is the one raised.
"""

from __future__ import annotations

import json
from typing import IO, Any, Mapping, Optional, TypeVar
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from ezvizapi.exceptions import SerializationError, ServerError, TransportError
from ezvizapi.models import APIResponse, ClientConfig, DispatchMode
from ezvizapi.output import get_output

JSON_CONTENT_TYPE = "application/json"
ACCESS_TOKEN_PARAM = "accessToken"

ResponseT = TypeVar("ResponseT", bound=APIResponse)


class RpcDispatcher:
    """Send one request per :meth:`dispatch` call and decode or stream the answer.

    Args:
        http_client: The transport. Its timeout bounds every call.
        config: Host, dispatch mode and tracing flag.

    Example::

        dispatcher = RpcDispatcher(httpx.Client(timeout=10), ClientConfig())
        response = dispatcher.dispatch("lapp/device/list", params={"pageSize": 10},
                                       token="at.xxx")
    """

    def __init__(self, http_client: httpx.Client, config: ClientConfig) -> None:
        self._http = http_client
        self._config = config

    @property
    def mode(self) -> DispatchMode:
        """The dispatch mode fixed at construction."""
        return self._config.dispatch_mode

    def build_url(self, path: str, params: Mapping[str, Any]) -> str:
        """Return ``https://<host>/<path>?<query>`` for *path* and *params*."""
        host = self._config.host.strip("/")
        url = f"https://{host}/{path.lstrip('/')}"
        if params:
            url = f"{url}?{urlencode(sorted((k, _query_value(v)) for k, v in params.items()))}"
        return url

    def dispatch(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        payload: Optional[Any] = None,
        response_model: type[ResponseT] = APIResponse,  # type: ignore[assignment]
        sink: Optional[IO[bytes]] = None,
        token: Optional[str] = None,
    ) -> ResponseT:
        """Send the request and return the decoded (or streamed) response.

        Args:
            path: API path relative to the host, e.g. ``"lapp/token/get"``.
            params: Query parameters.
            payload: Request data (dict or Pydantic model). Empty means none.
            response_model: Model a JSON body is validated into; its
                :meth:`~ezvizapi.models.APIResponse.from_stream` builds the
                result for a streamed body.
            sink: Writable binary stream receiving a non-JSON body.
            token: Access token to inject as ``accessToken``.

        Returns:
            An instance of *response_model* whose ``check_error()`` passed.

        Raises:
            TransportError: Network failure or timeout.
            ServerError: HTTP status other than 200.
            SerializationError: Payload not encodable, JSON body not decodable,
                or a non-JSON body with no sink to receive it.
            APIError: The response reported a non-success ``code``.
        """
        query: dict[str, Any] = dict(params or {})
        if token and not query.get(ACCESS_TOKEN_PARAM):
            query[ACCESS_TOKEN_PARAM] = token

        data = _payload_dict(payload)
        body: Optional[bytes] = None
        headers: dict[str, str] = {}
        if self.mode == DispatchMode.QUERY:
            method = "POST"
            if data:
                query.update(data)
        elif data:
            method = "POST"
            body = _encode_json(data)
            headers["Content-Type"] = JSON_CONTENT_TYPE
        else:
            method = "GET"

        url = self.build_url(path, query)
        if body is not None:
            self._trace(f"url: {url} request: {body.decode('utf-8')}")
        else:
            self._trace(f"url: {url}")

        try:
            with self._http.stream(method, url, content=body, headers=headers) as response:
                if response.status_code != 200:
                    raise ServerError(
                        f"Server error: {response.status_code} {response.reason_phrase}",
                        status_code=response.status_code,
                    )
                content_type = response.headers.get("content-type", "")
                self._trace(f"url: {url} response content type: {content_type}")
                if content_type.startswith(JSON_CONTENT_TYPE):
                    content = response.read()
                    self._trace(content.decode("utf-8", errors="replace"))
                    result = _decode_json(content, response_model)
                else:
                    result = self._stream_into(response, content_type, response_model, sink)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        result.check_error()
        return result

    def _stream_into(
        self,
        response: httpx.Response,
        content_type: str,
        response_model: type[ResponseT],
        sink: Optional[IO[bytes]],
    ) -> ResponseT:
        if sink is None:
            raise SerializationError(
                f"Response has content type '{content_type or 'unknown'}' "
                "but no sink was supplied to receive it"
            )
        size = 0
        for chunk in response.iter_bytes():
            sink.write(chunk)
            size += len(chunk)
        return response_model.from_stream(content_type, size)  # type: ignore[return-value]

    def _trace(self, message: str) -> None:
        if self._config.verbose:
            get_output().trace(message)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _payload_dict(payload: Any) -> dict[str, Any]:
    if payload is None:
        return {}
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(payload, Mapping):
        return dict(payload)
    raise SerializationError(f"Unsupported payload type: {type(payload).__name__}")


def _encode_json(data: dict[str, Any]) -> bytes:
    try:
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Cannot encode request payload: {exc}") from exc


def _decode_json(content: bytes, response_model: type[ResponseT]) -> ResponseT:
    try:
        return response_model.model_validate_json(content)
    except ValidationError as exc:
        raise SerializationError(
            f"Cannot decode response as {response_model.__name__}: {exc}"
        ) from exc
