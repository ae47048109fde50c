"""Exception hierarchy for hatx.

All exceptions inherit from :class:`HatxError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`hatx.exit_codes`.
Library callers catch the specific kinds; the command line catches
``HatxError`` and exits with the matching code.

Subclass hierarchy::

    HatxError (exit 1)
    +-- ConfigurationError      (exit 3)
    +-- ValidationError         (exit 2)
    +-- TransportError          (exit 1)
        +-- ClientError         (exit 7)
        |   +-- NotFoundError   (exit 4)
        +-- ServerError         (exit 5)
        +-- ConnectionError_    (exit 6)
        +-- ResponseFormatError (exit 8)

Failures raised by the transport are never cached; see
:meth:`hatx.cache.pool.CachePool.resolve`.
"""

from __future__ import annotations

from typing import Optional

from hatx.exit_codes import (
    EXIT_CLIENT_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_INPUT,
    EXIT_NOT_FOUND,
    EXIT_RESPONSE_ERROR,
    EXIT_SERVER_ERROR,
)


class HatxError(Exception):
    """Base exception for all hatx errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(HatxError):
    """Raised at construction when mandatory configuration is missing or invalid."""

    exit_code = EXIT_CONFIG_ERROR


class ValidationError(HatxError):
    """Raised before any cache or network work when a required input is empty.

    Not to be confused with :class:`pydantic.ValidationError`, which only
    surfaces from malformed response bodies and is wrapped in
    :class:`ResponseFormatError`.
    """

    exit_code = EXIT_INVALID_INPUT


class TransportError(HatxError):
    """Base class for every failure surfaced by the transport.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the failed response, when there was one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ClientError(TransportError):
    """Raised when the API rejects a request with an HTTP 4xx status."""

    exit_code = EXIT_CLIENT_ERROR


class NotFoundError(ClientError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(TransportError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(TransportError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ResponseFormatError(TransportError):
    """Raised when a response body cannot be decoded or does not match the expected shape."""

    exit_code = EXIT_RESPONSE_ERROR
