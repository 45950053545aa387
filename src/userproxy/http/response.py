"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

HTTPResponse is the value every handler returns; ResponseBuilder is the
fluent way to make one:

    response = (ResponseBuilder()
        .status(HTTPStatus.OK)
        .json({"status": "ok"})
        .build())

Serialization happens once, at the edge, in HTTPResponse.to_bytes():

    HTTP/1.1 200 OK\r\n
    Content-Type: application/json\r\n
    Content-Length: 16\r\n                ← added automatically
    Date: Mon, 19 Oct 2026 10:00:00 GMT\r\n
    Server: userproxy/1.0\r\n
    \r\n
    {"status": "ok"}

=============================================================================
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict, Union

from .status_codes import HTTPStatus


JSON_CONTENT_TYPE = "application/json"


@dataclass
class HTTPResponse:
    """An HTTP response waiting to be written to the client."""

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def json(self) -> Any:
        """Decode the body as JSON. Used by tests and access logging."""
        return json.loads(self.body.decode("utf-8"))

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header, returning self for chaining."""
        self.headers[name] = value
        return self

    def set_content_type(self, content_type: str) -> "HTTPResponse":
        return self.set_header("Content-Type", content_type)

    def to_bytes(self, server_name: str = "userproxy/1.0") -> bytes:
        """
        Serialize to wire format.

        Content-Length, Date and Server are filled in when the handler did
        not set them. The headers dict itself is left untouched.
        """
        fields = {
            "Content-Length": str(len(self.body)),
            "Date": format_http_date(datetime.now(timezone.utc)),
            "Server": server_name,
        }
        fields.update(self.headers)

        head = self.status_line + "\r\n"
        head += "".join(f"{name}: {value}\r\n" for name, value in fields.items())
        return (head + "\r\n").encode("utf-8") + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Every method but build() returns self:

        ResponseBuilder().status(HTTPStatus.NOT_FOUND).json({"error": "x"}).build()
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a raw body. Strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Serialize data as the JSON body and set the JSON content type.

        Compact separators, so a health check body is exactly {"status":"ok"}.
        ensure_ascii=False keeps non-ASCII names from upstream readable
        instead of \\u-escaped.
        """
        self._body = json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        self._headers["Content-Type"] = JSON_CONTENT_TYPE
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    RFC 7231 IMF-fixdate, e.g. "Mon, 19 Oct 2026 10:00:00 GMT".

    Naive datetimes are taken to be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def ok(data: Any) -> HTTPResponse:
    """200 OK with a JSON body."""
    return ResponseBuilder().status(HTTPStatus.OK).json(data).build()


def not_found(message: str = "Not Found") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).json({"error": message}).build()


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """
    405 Method Not Allowed.

    RFC 7231 requires the Allow header listing the methods the path accepts.
    """
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .json({"error": "Method Not Allowed", "allowed": allowed_methods})
        .build())


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return (ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .json({"error": message})
        .build())
