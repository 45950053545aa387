"""
pytest configuration and fixtures.
"""

import json
import socket
import time
from typing import Generator, List, Optional
from unittest import mock

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from userproxy import HTTPServer, ServerConfig, create_app
from userproxy.http import ok
from userproxy.upstream import UpstreamClient, decode_users


SAMPLE_USERS: List[dict] = [
    {
        "id": 1,
        "name": "Leanne Graham",
        "username": "Bret",
        "email": "Sincere@april.biz",
        "phone": "1-770-736-8031 x56442",
        "address": {"city": "Gwenborough"},
    },
    {
        "id": 2,
        "name": "Ervin Howell",
        "username": "Antonette",
        "email": "Shanna@melissa.tv",
    },
]


@pytest.fixture
def sample_users() -> List[dict]:
    """Upstream user objects, with fields the proxy drops."""
    return [dict(user) for user in SAMPLE_USERS]


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /users?page=1 HTTP/1.1\r\n"
        b"Host: localhost:7000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def config() -> ServerConfig:
    """Test configuration: loopback, OS-picked port, short timeouts."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        timeout=5.0,
        upstream_timeout=1.0,
        shutdown_timeout=2.0,
        cleanup_delay=0.05,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _http_get(port: int, path: str, method: str = "GET") -> tuple:
    """
    Send one request over a raw socket.

    Returns:
        (status_code, headers, decoded JSON body)
    """
    request = (
        f"{method} {path} HTTP/1.1\r\n"
        f"Host: 127.0.0.1:{port}\r\n"
        f"Connection: close\r\n"
        f"\r\n"
    ).encode()

    with socket.create_connection(("127.0.0.1", port), timeout=5.0) as s:
        s.sendall(request)
        data = b""
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            data += chunk

    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()

    return status, headers, json.loads(body.decode("utf-8")) if body else None


@pytest.fixture
def http_get():
    """Raw-socket HTTP client: http_get(port, path, method="GET")."""
    return _http_get


class TestServer:
    """Test server helper that serves on a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self.port: Optional[int] = None

    def start(self):
        """Bind and start serving; returns once the port accepts connections."""
        _, self.port = self.server.start()

        for _ in range(50):  # 5 seconds max
            try:
                with socket.create_connection(("127.0.0.1", self.port), timeout=1.0):
                    return
            except ConnectionRefusedError:
                time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def stop(self):
        self.server.stop(timeout=5.0)


@pytest.fixture
def start_server() -> Generator:
    """Factory: start_server(server) returns a running TestServer, stopped at teardown."""
    started: List[TestServer] = []

    def start(server: HTTPServer) -> TestServer:
        test_srv = TestServer(server)
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield start

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def upstream_server(sample_users, start_server) -> TestServer:
    """
    A stand-in for the remote user API, served by our own HTTPServer.

        /users     the sample users
        /object    a JSON object instead of an array
        /garbage   a body that is not JSON
        /slow      answers after 2 seconds
    """
    server = HTTPServer(ServerConfig(host="127.0.0.1", port=0))

    @server.get("/users")
    def users(request):
        return ok(sample_users)

    @server.get("/object")
    def not_a_list(request):
        return ok({"users": sample_users})

    @server.get("/garbage")
    def garbage(request):
        response = ok(None)
        response.body = b"<html>upstream exploded</html>"
        return response

    @server.get("/slow")
    def slow(request):
        time.sleep(2.0)
        return ok(sample_users)

    return start_server(server)


@pytest.fixture
def mock_client(sample_users) -> mock.Mock:
    """UpstreamClient double returning decoded sample users."""
    client = mock.Mock(spec=UpstreamClient)
    client.fetch_users.return_value = decode_users(sample_users)
    return client


@pytest.fixture
def app_server(config, mock_client, start_server) -> TestServer:
    """The full application on a free port, proxying through mock_client."""
    server, _ = create_app(config, client=mock_client)
    return start_server(server)
