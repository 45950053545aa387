"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the bytes framed by a Connection into an HTTPRequest.

    GET /users?page=1 HTTP/1.1\r\n        request line
    Host: localhost:7000\r\n              headers, names lowercased
    Connection: keep-alive\r\n
    \r\n                                  end of head
    [body]                                Content-Length bytes

Only GET routes exist, so a body is sliced off by Content-Length to keep
keep-alive framing honest and is otherwise ignored.

    problem                                     status
    ──────────────────────────────────────────  ──────
    head or body incomplete, bad request line   400
    unknown method                              405
    more than max_request_size bytes            413
    version other than HTTP/1.0 or HTTP/1.1     505

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple
from urllib.parse import parse_qs, unquote, urlsplit


class HTTPParseError(Exception):
    """A request that cannot be served, with the status to answer it with."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Header names are lowercase, so lookups are case-insensitive without
    normalising on every access.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = b""

    client_address: Tuple[str, int] = ("", 0)

    @property
    def user_agent(self) -> str:
        return self.get_header("user-agent")

    @property
    def is_keep_alive(self) -> bool:
        """HTTP/1.1 stays open unless told to close; HTTP/1.0 the reverse."""
        token = self.get_header("connection").lower()
        if self.version == "HTTP/1.0":
            return token == "keep-alive"
        return token != "close"

    def get_header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default=None):
        """First value of a query parameter."""
        values = self.query_params.get(name)
        return values[0] if values else default


class RequestParser:
    """
    Stateless parser; one instance is shared by every worker thread.

        request = RequestParser().parse(raw, ("127.0.0.1", 50123))
    """

    METHODS = frozenset({
        "GET", "HEAD", "POST", "PUT", "PATCH",
        "DELETE", "OPTIONS", "TRACE", "CONNECT",
    })
    VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    # METHOD SP request-target SP HTTP-version
    REQUEST_LINE = re.compile(r"([A-Z]+) (\S+) (HTTP/\d\.\d)")

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(self, data: bytes, client_address: Tuple[str, int] = ("", 0)) -> HTTPRequest:
        """
        Parse one framed request.

        Raises:
            HTTPParseError: The request is malformed or unsupported.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request of {len(data)} bytes exceeds {self.max_request_size}",
                status_code=413,
            )

        head, terminator, rest = data.partition(b"\r\n\r\n")
        if not terminator:
            raise HTTPParseError("Incomplete request: no header terminator")

        request_line, *header_lines = head.decode("utf-8", errors="replace").split("\r\n")
        method, target, version = self._split_request_line(request_line)
        headers = self._collect_headers(header_lines)

        length = headers.get("content-length", "0")
        if not length.isdigit():
            raise HTTPParseError(f"Invalid Content-Length: {length!r}")
        length = int(length)
        if len(rest) < length:
            raise HTTPParseError(f"Incomplete body: {len(rest)} of {length} bytes")

        url = urlsplit(target)
        return HTTPRequest(
            method=method,
            path=unquote(url.path) or "/",
            version=version,
            headers=headers,
            query_params=parse_qs(url.query, keep_blank_values=True),
            body=rest[:length],
            client_address=client_address,
        )

    def _split_request_line(self, line: str) -> Tuple[str, str, str]:
        match = self.REQUEST_LINE.fullmatch(line)
        if match is None:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()
        if method not in self.METHODS:
            raise HTTPParseError(f"Unknown method: {method}", status_code=405)
        if version not in self.VERSIONS:
            raise HTTPParseError(f"HTTP version {version} not supported", status_code=505)
        return method, target, version

    @staticmethod
    def _collect_headers(lines: List[str]) -> Dict[str, str]:
        """Lowercase names; repeats joined with ", "; lines without a colon dropped."""
        headers: Dict[str, str] = {}
        for line in lines:
            name, colon, value = line.partition(":")
            name = name.strip().lower()
            if not colon or not name:
                continue
            value = value.strip()
            headers[name] = f"{headers[name]}, {value}" if name in headers else value
        return headers
