"""Exception types raised by the DeviceDB SDK.

Three kinds of failure reach callers:

- transport failures (``requests.RequestException``) propagate unchanged;
- protocol failures (any status other than 200) raise :class:`ServerError` or
  :class:`UnexpectedResponseError` carrying the decoded response body;
- validation failures raise :class:`ValidationError` before a request is sent.
"""

from __future__ import annotations

from typing import Any


class DeviceDBError(Exception):
    """Base exception for DeviceDB client failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
        self.body = body


class ValidationError(DeviceDBError):
    """Raised when caller input is rejected before any request is issued."""


class ConfigurationError(DeviceDBError):
    """Raised when the client configuration is unusable."""


class ServerError(DeviceDBError):
    """Raised for HTTP 5xx responses."""


class UnexpectedResponseError(DeviceDBError):
    """Raised when the server returns any other status than 200."""


class ResponseParseError(DeviceDBError):
    """Raised when a successful response or stream line cannot be parsed."""


__all__ = [
    "ConfigurationError",
    "DeviceDBError",
    "ResponseParseError",
    "ServerError",
    "UnexpectedResponseError",
    "ValidationError",
]
