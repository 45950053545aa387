"""
Unit tests for the middleware pipeline and built-in middleware.
"""

import json
import logging

import pytest

from userproxy.http.request import HTTPRequest
from userproxy.http.response import HTTPResponse, ResponseBuilder, HTTPStatus, ok
from userproxy.http.router import Router
from userproxy.middleware import (
    Middleware,
    MiddlewarePipeline,
    JSONContentTypeMiddleware,
    LoggingMiddleware,
)


def make_request(path: str = "/", method: str = "GET") -> HTTPRequest:
    return HTTPRequest(
        method=method,
        path=path,
        headers={"user-agent": "pytest"},
        client_address=("10.0.0.1", 40000),
    )


class Recorder(Middleware):
    """Appends its label to a shared list before and after next()."""

    def __init__(self, label: str, calls: list):
        self.label = label
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.label}:in")
        response = next(request)
        self.calls.append(f"{self.label}:out")
        return response


class TestMiddlewarePipeline:

    def test_first_added_is_outermost(self):
        calls = []
        pipeline = MiddlewarePipeline().use(Recorder("a", calls), Recorder("b", calls))

        def handler(request):
            calls.append("handler")
            return ok({})

        pipeline.wrap(handler)(make_request())

        assert calls == ["a:in", "b:in", "handler", "b:out", "a:out"]

    def test_empty_pipeline_returns_handler_response(self):
        response = MiddlewarePipeline().wrap(lambda request: ok([1]))(make_request())

        assert response.json == [1]

    def test_len_and_iter(self):
        first, second = JSONContentTypeMiddleware(), LoggingMiddleware()
        pipeline = MiddlewarePipeline().add(first).add(second)

        assert len(pipeline) == 2
        assert list(pipeline) == [first, second]
        assert first.name == "JSONContentTypeMiddleware"


class TestJSONContentTypeMiddleware:

    def test_sets_content_type(self):
        middleware = JSONContentTypeMiddleware()

        response = middleware(make_request(), lambda request: HTTPResponse(body=b"{}"))

        assert response.headers["Content-Type"] == "application/json"

    def test_overrides_handler_content_type(self):
        middleware = JSONContentTypeMiddleware()

        def handler(request):
            return ResponseBuilder().header("Content-Type", "text/plain").body("x").build()

        response = middleware(make_request(), handler)

        assert response.headers["Content-Type"] == "application/json"

    def test_applies_to_router_404_and_405(self):
        router = Router()
        router.add_route("/", lambda request: ok({}))
        handler = MiddlewarePipeline().add(JSONContentTypeMiddleware()).wrap(router.handle)

        not_found = handler(make_request("/missing"))
        not_allowed = handler(make_request("/", method="POST"))

        assert not_found.status == HTTPStatus.NOT_FOUND
        assert not_found.headers["Content-Type"] == "application/json"
        assert not_allowed.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert not_allowed.headers["Content-Type"] == "application/json"

    def test_handler_exception_propagates(self):
        middleware = JSONContentTypeMiddleware()

        def handler(request):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            middleware(make_request(), handler)


class TestLoggingMiddleware:

    def test_text_access_line(self, caplog):
        caplog.set_level(logging.INFO, logger="userproxy.access")
        middleware = LoggingMiddleware()

        response = middleware(make_request("/users"), lambda request: ok([]))

        assert len(response.headers["X-Request-ID"]) == 8
        [record] = caplog.records
        assert record.name == "userproxy.access"
        assert '10.0.0.1 - - [' in record.getMessage()
        assert '"GET /users" 200 2 ' in record.getMessage()

    def test_json_access_line(self, caplog):
        caplog.set_level(logging.INFO, logger="userproxy.access")
        middleware = LoggingMiddleware(log_format="json")

        response = middleware(make_request("/"), lambda request: ok({"status": "ok"}))

        entry = json.loads(caplog.records[0].getMessage())
        assert entry["request_id"] == response.headers["X-Request-ID"]
        assert entry["path"] == "/"
        assert entry["status"] == 200
        assert entry["user_agent"] == "pytest"

    def test_skip_paths(self, caplog):
        caplog.set_level(logging.INFO, logger="userproxy.access")
        middleware = LoggingMiddleware(skip_paths=["/"])

        response = middleware(make_request("/"), lambda request: ok({}))

        assert "X-Request-ID" in response.headers
        assert caplog.records == []

    def test_request_id_can_be_disabled(self):
        middleware = LoggingMiddleware(include_request_id=False)

        response = middleware(make_request(), lambda request: ok({}))

        assert "X-Request-ID" not in response.headers

    def test_logs_and_reraises_errors(self, caplog):
        caplog.set_level(logging.INFO, logger="userproxy.access")
        middleware = LoggingMiddleware()

        def handler(request):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            middleware(make_request("/users"), handler)

        [record] = caplog.records
        assert record.levelno == logging.ERROR
        assert "RuntimeError: boom" in record.getMessage()

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError):
            LoggingMiddleware(log_format="xml")
