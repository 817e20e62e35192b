"""Custom exceptions for the narration gateway core library."""

from typing import Any


class NarrationError(Exception):
    """Base exception for all narration errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidRequestError(NarrationError):
    """Raised before any network call when required input is missing."""

    pass


class ConfigurationError(NarrationError):
    """Raised when a required upstream credential or URL is not configured."""

    pass


class UpstreamError(NarrationError):
    """Base class for upstream-related errors.

    Carries the upstream HTTP status code and the best-effort parsed body so
    the failure can be classified where it is first observed.
    """

    def __init__(
        self,
        message: str,
        upstream: str | None = None,
        status_code: int | None = None,
        body: Any = None,
    ):
        self.upstream = upstream
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class UpstreamUnreachableError(UpstreamError):
    """Raised when the upstream server is unreachable."""

    pass


class UpstreamTimeoutError(UpstreamError):
    """Raised when a request to the upstream server times out."""

    pass


class PlaybackStateError(NarrationError):
    """Raised when a playback command is issued in a state that cannot accept it."""

    pass
