"""
=============================================================================
UPSTREAM CLIENT
=============================================================================

Fetches the user list from the remote API.

    UpstreamClient.fetch_users()
        │
        ├── GET upstream_url (deadline: 3s for connect, headers and body)
        │       │
        │       ├── transport failure / deadline passed ──► UpstreamTransportError
        │       │
        │       └── body ──► JSON array? ──no──► UpstreamDecodeError
        │                        │
        │                       yes
        │                        ▼
        └──────────────── list[UserRecord]

One attempt per call. Retrying is the caller's decision, and the users
handler never retries.

=============================================================================
THE DEADLINE
=============================================================================

requests applies `timeout` to the connect and to each socket read, so a
server trickling bytes could hold a call open indefinitely. Two things make
the timeout a bound on the whole call:

    caller thread                        fetch thread (pool)
    ─────────────                        ───────────────────
    future.result(remaining) ──────────► session.get(stream=True)
      │                                  read body in CHUNK_SIZE pieces,
      │                                  giving up once the deadline passed
      └── deadline passed ──► UpstreamTransportError

The caller stops waiting at the deadline. The fetch thread stops reading
at its next chunk, so a slow upstream does not keep a pool thread busy
for long.

=============================================================================
CONNECTIONS
=============================================================================

The client keeps a requests.Session so consecutive calls reuse pooled
connections. The session is registered as a shutdown resource, so its
sockets are closed during graceful shutdown. Cookies are refused: each
proxied request must look the same to the upstream no matter what earlier
requests received.

=============================================================================
"""

import json
import logging
import time
from concurrent import futures
from http import cookiejar
from typing import Optional

import requests

from ..config import DEFAULT_UPSTREAM_URL
from .errors import UpstreamDecodeError, UpstreamTransportError
from .models import UserRecord


logger = logging.getLogger(__name__)

# Body bytes read between deadline checks
CHUNK_SIZE = 256


class UpstreamClient:
    """
    Client for the upstream user API.

    Usage:
        with UpstreamClient(timeout=3.0) as client:
            users = client.fetch_users()

    Args:
        url: Endpoint returning a JSON array of users.
        timeout: Seconds the whole call may take: connect, headers and
                 body together.
        session: Session to send requests with. A private one is created
                 when omitted.
        max_workers: Fetch threads, i.e. upstream calls in flight at once.
    """

    def __init__(
        self,
        url: str = DEFAULT_UPSTREAM_URL,
        timeout: float = 3.0,
        session: Optional[requests.Session] = None,
        max_workers: int = 8,
    ):
        self.url = url
        self.timeout = timeout

        if session is None:
            session = requests.Session()
            session.cookies.set_policy(cookiejar.DefaultCookiePolicy(allowed_domains=[]))
        self._session = session

        self._executor = futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="upstream-fetch",
        )

    def fetch_users(self) -> list[UserRecord]:
        """
        GET the user list and decode it, within timeout seconds.

        Returns:
            The decoded users, in upstream order.

        Raises:
            UpstreamTransportError: The request failed or the deadline passed.
            UpstreamDecodeError: The body is not a JSON array of users.
        """
        deadline = time.monotonic() + self.timeout
        try:
            future = self._executor.submit(self._read_body, deadline)
        except RuntimeError as e:
            # close() already ran
            raise UpstreamTransportError(f'GET "{self.url}": {e}') from e

        try:
            body = future.result(timeout=max(0.0, deadline - time.monotonic()))
        except futures.TimeoutError:
            future.cancel()
            raise UpstreamTransportError(
                f'GET "{self.url}": timed out after {self.timeout}s'
            ) from None
        except requests.exceptions.RequestException as e:
            raise UpstreamTransportError(f'GET "{self.url}": {e}') from e

        try:
            payload = json.loads(body)
        except ValueError as e:
            # Undecodable bytes surface as UnicodeDecodeError
            raise UpstreamDecodeError(f"decode users: {e}") from e

        return decode_users(payload)

    def _read_body(self, deadline: float) -> bytes:
        """
        Runs on a fetch thread. The response is streamed inside a with
        block, so the connection is released on every path out.
        """
        body = bytearray()

        with self._session.get(self.url, timeout=self.timeout, stream=True) as response:
            logger.debug(f"Upstream answered {response.status_code} for {self.url}")
            for chunk in response.iter_content(CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise requests.exceptions.Timeout(
                        f"body not read within {self.timeout}s"
                    )
                body += chunk

        return bytes(body)

    def close(self) -> None:
        """Close pooled connections. Safe to call more than once."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._session.close()
        logger.debug("Upstream session closed")

    def __enter__(self) -> "UpstreamClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def decode_users(payload) -> list[UserRecord]:
    """
    Decode the parsed upstream body into user records.

    Raises:
        UpstreamDecodeError: payload is not a list, or an element is not a user.
    """
    if not isinstance(payload, list):
        raise UpstreamDecodeError(
            f"decode users: expected JSON array, got {type(payload).__name__}"
        )
    return [UserRecord.from_dict(item) for item in payload]
