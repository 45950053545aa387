"""
Errors raised by the upstream client.

Both kinds are recoverable at the request boundary: the users handler
catches UpstreamError and reports str(error) to the caller.
"""


class UpstreamError(Exception):
    """Base class for upstream failures. str(error) is never empty."""

    def __init__(self, message: str):
        super().__init__(message or self.__class__.__name__)


class UpstreamTransportError(UpstreamError):
    """The request failed: connection refused, DNS failure, timeout, ..."""


class UpstreamDecodeError(UpstreamError):
    """The upstream answered, but the body is not a JSON array of users."""
