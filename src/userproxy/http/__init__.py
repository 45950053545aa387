"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Translates between raw bytes on a connection and the request/response
objects handlers work with.

    request.py       bytes → HTTPRequest (RequestParser, HTTPParseError)
    response.py      HTTPResponse → bytes (ResponseBuilder, helpers)
    router.py        (method, path) → handler
    status_codes.py  HTTPStatus enum with reason phrases

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    JSON_CONTENT_TYPE,
    ok,
    not_found,
    method_not_allowed,
    internal_error,
)
from .router import Router, Route, normalize_path
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "JSON_CONTENT_TYPE",
    "ok",
    "not_found",
    "method_not_allowed",
    "internal_error",

    # Routing
    "Router",
    "Route",
    "normalize_path",

    # Status codes
    "HTTPStatus",
]
