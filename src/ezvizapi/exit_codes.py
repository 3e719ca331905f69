"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~ezvizapi.exceptions.EzvizError` subclass.
Shell wrappers can inspect the exit code to tell an expired cache from a
rejected app key without parsing stderr.

Example::

    $ ezviz token show
    $ echo $?
    4   # EXIT_CACHE_MISS -- no valid token cached yet
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_API_ERROR = 3
"""The API answered HTTP 200 but reported a domain error code (e.g. a bad app key)."""

EXIT_CACHE_MISS = 4
"""No cached credential was found, or the cached credential has expired."""

EXIT_SERVER_ERROR = 5
"""The remote API answered with a non-200 HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
