"""
Unit tests for the health and users handlers.
"""

from unittest import mock

from userproxy.handlers import health_check, UsersHandler, error_payload, HEALTH_PAYLOAD
from userproxy.http.request import HTTPRequest
from userproxy.http.response import HTTPStatus
from userproxy.upstream import (
    UpstreamClient,
    UpstreamDecodeError,
    UpstreamTransportError,
    UserRecord,
)


def make_request(path: str) -> HTTPRequest:
    return HTTPRequest(method="GET", path=path)


class TestHealthCheck:

    def test_payload(self):
        response = health_check(make_request("/"))

        assert response.status == HTTPStatus.OK
        assert response.json == {"status": "ok"}
        assert response.headers["Content-Type"] == "application/json"

    def test_payload_is_not_shared(self):
        health_check(make_request("/")).json["status"] = "changed"

        assert HEALTH_PAYLOAD == {"status": "ok"}


class TestUsersHandler:

    def test_returns_users_in_order(self, mock_client):
        response = UsersHandler(mock_client).handle(make_request("/users"))

        assert response.status == HTTPStatus.OK
        assert response.json == [
            {"id": 1, "name": "Leanne Graham", "username": "Bret", "email": "Sincere@april.biz"},
            {"id": 2, "name": "Ervin Howell", "username": "Antonette", "email": "Shanna@melissa.tv"},
        ]
        mock_client.fetch_users.assert_called_once_with()

    def test_empty_list(self):
        client = mock.Mock(spec=UpstreamClient)
        client.fetch_users.return_value = []

        response = UsersHandler(client).handle(make_request("/users"))

        assert response.json == []

    def test_transport_error_keeps_status_200(self):
        client = mock.Mock(spec=UpstreamClient)
        client.fetch_users.side_effect = UpstreamTransportError(
            'GET "http://upstream/users": connection refused'
        )

        response = UsersHandler(client).handle(make_request("/users"))

        assert response.status == HTTPStatus.OK
        assert response.json == {"err": 'GET "http://upstream/users": connection refused'}

    def test_decode_error_reported(self, caplog):
        client = mock.Mock(spec=UpstreamClient)
        client.fetch_users.side_effect = UpstreamDecodeError("decode users: bad")

        response = UsersHandler(client).handle(make_request("/users"))

        assert response.json == {"err": "decode users: bad"}
        assert "Fetching users failed" in caplog.text

    def test_no_retry(self):
        client = mock.Mock(spec=UpstreamClient)
        client.fetch_users.side_effect = UpstreamTransportError("timeout")

        UsersHandler(client).handle(make_request("/users"))

        assert client.fetch_users.call_count == 1

    def test_zero_valued_record_passes_through(self):
        client = mock.Mock(spec=UpstreamClient)
        client.fetch_users.return_value = [UserRecord(id=0, name="", username="", email="")]

        response = UsersHandler(client).handle(make_request("/users"))

        assert response.json == [{"id": 0, "name": "", "username": "", "email": ""}]


def test_error_payload_never_empty():
    assert error_payload(UpstreamTransportError("")) == {"err": "UpstreamTransportError"}
