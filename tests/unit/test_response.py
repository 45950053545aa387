"""
Unit tests for HTTP response building.
"""

import json
from datetime import datetime, timezone

from userproxy.http.response import (
    HTTPResponse,
    ResponseBuilder,
    HTTPStatus,
    JSON_CONTENT_TYPE,
    ok,
    not_found,
    method_not_allowed,
    internal_error,
    format_http_date,
)


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        response = HTTPResponse(status=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status=HTTPStatus.METHOD_NOT_ALLOWED)
        assert response.status_line == "HTTP/1.1 405 Method Not Allowed"

    def test_to_bytes_includes_headers(self):
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert b"Server: userproxy/1.0\r\n" in result
        assert b"Date: " in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_to_bytes_keeps_explicit_headers(self):
        response = HTTPResponse(headers={"Server": "custom"}, body=b"")

        result = response.to_bytes(server_name="ignored")

        assert b"Server: custom\r\n" in result
        assert b"ignored" not in result

    def test_to_bytes_does_not_mutate_headers(self):
        response = HTTPResponse(body=b"{}")
        response.to_bytes()

        assert response.headers == {}

    def test_set_content_type_chains(self):
        response = HTTPResponse().set_content_type(JSON_CONTENT_TYPE).set_header("X-A", "1")

        assert response.headers == {"Content-Type": "application/json", "X-A": "1"}


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_json_sets_body_and_content_type(self):
        response = ResponseBuilder().json({"status": "ok"}).build()

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "application/json"
        assert json.loads(response.body) == {"status": "ok"}

    def test_json_is_compact(self):
        response = ResponseBuilder().json({"err": "decode users: bad", "ids": [1, 2]}).build()

        assert response.body == b'{"err":"decode users: bad","ids":[1,2]}'

    def test_json_keeps_non_ascii(self):
        response = ResponseBuilder().json({"name": "Zoë"}).build()

        assert "Zoë".encode("utf-8") in response.body

    def test_body_encodes_strings(self):
        response = ResponseBuilder().body("héllo").build()

        assert response.body == "héllo".encode("utf-8")

    def test_close_connection(self):
        response = ResponseBuilder().close_connection().build()

        assert response.headers["Connection"] == "close"


class TestConvenienceFunctions:
    """Tests for response helpers."""

    def test_ok(self):
        response = ok([1, 2])

        assert response.status == HTTPStatus.OK
        assert response.json == [1, 2]

    def test_ok_with_none_is_json_null(self):
        assert ok(None).body == b"null"

    def test_not_found(self):
        response = not_found()

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {"error": "Not Found"}

    def test_method_not_allowed(self):
        response = method_not_allowed(["GET"])

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET"

    def test_internal_error(self):
        response = internal_error()

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.headers["Content-Type"] == "application/json"
        assert response.json == {"error": "Internal Server Error"}


def test_format_http_date():
    dt = datetime(2026, 10, 19, 8, 5, 3, tzinfo=timezone.utc)

    assert format_http_date(dt) == "Mon, 19 Oct 2026 08:05:03 GMT"
