"""Error types and failure classification for precognitive requests."""

from __future__ import annotations

from typing import Any

import httpx

PROTOCOL_VIOLATION_MESSAGE = (
    "Did not receive a Precognition response. "
    "Ensure you have the Precognition middleware in place for the route."
)


class PrecognitionError(RuntimeError):
    """Base error for precognition client failures."""


class ProtocolViolationError(PrecognitionError):
    """Raised when a response lacks the `Precognition: true` marker header."""

    def __init__(self, response: httpx.Response | None = None) -> None:
        self.response = response
        super().__init__(PROTOCOL_VIOLATION_MESSAGE)


class ConfigError(PrecognitionError):
    """Raised on invalid runtime configuration or request options."""


class RequestCancelledError(httpx.RequestError):
    """Raised when an in-flight request is aborted via its signal or cancel token."""


def is_cancel(error: BaseException) -> bool:
    return isinstance(error, RequestCancelledError)


def is_not_server_generated(error: BaseException) -> bool:
    """Return True when the error did not come from a server response.

    Such errors skip marker validation and status dispatch and are re-raised
    to the caller unchanged.
    """
    if not isinstance(error, httpx.HTTPError):
        return True
    if is_cancel(error):
        return True
    response: Any = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    return not isinstance(status, int)
