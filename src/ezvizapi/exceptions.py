"""Exception hierarchy for ezvizapi.

All exceptions inherit from :class:`EzvizError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`ezvizapi.exit_codes`.
The CLI entry point in :func:`ezvizapi.app.main` catches ``EzvizError``
and exits with the matching code.

Subclass hierarchy::

    EzvizError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigError             (exit 1)
    +-- SerializationError      (exit 1)
    +-- CacheMissError          (exit 4)
    |   +-- CacheNotFoundError
    |   +-- CacheExpiredError
    +-- TransportError          (exit 6)
    +-- ServerError             (exit 5)
    +-- APIError                (exit 3)

Only the credential store recovers from an error locally: any
:class:`SerializationError` or :class:`CacheMissError` raised by a cache
makes it fall through to a live authentication call.
"""

from __future__ import annotations

from typing import Optional

from ezvizapi.exit_codes import (
    EXIT_API_ERROR,
    EXIT_CACHE_MISS,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SERVER_ERROR,
)


class EzvizError(Exception):
    """Base exception for all ezvizapi errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(EzvizError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(EzvizError):
    """Raised for configuration problems (missing app key, invalid config JSON)."""

    exit_code = EXIT_GENERIC_FAILURE


class SerializationError(EzvizError):
    """Raised when a record or payload cannot be encoded or decoded."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheMissError(EzvizError):
    """Raised when a cache holds no usable record."""

    exit_code = EXIT_CACHE_MISS


class CacheNotFoundError(CacheMissError):
    """Raised when nothing has been stored in the cache slot yet."""


class CacheExpiredError(CacheMissError):
    """Raised when the stored record decoded fine but is past its expiry."""


class TransportError(EzvizError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class ServerError(EzvizError):
    """Raised when the API answers with any HTTP status other than 200.

    Args:
        message: Error description including the status line.
        status_code: The HTTP status code returned by the server.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class APIError(EzvizError):
    """Raised when an HTTP 200 response reports a non-success domain code.

    Args:
        code: The ``code`` field of the response body (e.g. ``"10002"``).
        msg: The ``msg`` field of the response body.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, code: str, msg: str):
        super().__init__(f"{code}: {msg}")
        self.code = code
        self.msg = msg
