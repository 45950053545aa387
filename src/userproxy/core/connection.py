"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps an accepted client socket: frames requests out of the byte stream
and closes cleanly.

Framing one request:

    recv() until the blank line ending the headers
    Content-Length (0 if absent) tells how many body bytes follow
    bytes past the end of this request stay buffered for the next one

A connection moves through

    NEW → READING → PROCESSING → WRITING → KEEP_ALIVE → READING ...
                                                      ↘ CLOSING → CLOSED

The first request must arrive within `timeout`. Follow-up requests on a
kept-alive connection get the shorter `keep_alive_timeout`, and running
out of it is an ordinary close rather than an error.

=============================================================================
"""

import logging
import re
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"

_CONTENT_LENGTH = re.compile(rb"^content-length:[ \t]*(\d+)[ \t]*$", re.IGNORECASE | re.MULTILINE)


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


def content_length_of(head: bytes) -> int:
    """Declared body size in a raw header block. Missing or garbled means 0."""
    match = _CONTENT_LENGTH.search(head)
    return int(match.group(1)) if match else 0


@dataclass
class Connection:
    """
    One accepted client.

    Attributes:
        socket: The accepted client socket.
        address: Client (ip, port).
        id: Short random id that prefixes this connection's log lines.
        requests_handled: Requests framed so far.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    opened_at: float = field(default_factory=time.monotonic)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _pending: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Frame the next request out of the stream.

        Returns:
            Raw bytes of one request (head and body), or None when the
            client hung up or a kept-alive connection went idle.

        Raises:
            TimeoutError: The first request did not arrive within timeout.
            ValueError: More than max_request_size bytes are pending.
        """
        self.state = ConnectionState.READING
        follow_up = self.requests_handled > 0
        if follow_up:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            head_end = self._pending.find(HEADER_TERMINATOR)
            while head_end == -1:
                if not self._fill():
                    return None
                head_end = self._pending.find(HEADER_TERMINATOR)

            end = head_end + len(HEADER_TERMINATOR) + content_length_of(bytes(self._pending[:head_end]))

            # A short body is passed on as is; the parser rejects it
            while len(self._pending) < end and self._fill():
                pass

        except socket.timeout:
            if follow_up:
                logger.debug(f"[{self.id}] idle after {self.requests_handled} requests")
                return None
            raise TimeoutError("Timed out waiting for the request")

        finally:
            self.socket.settimeout(self.timeout)

        request = bytes(self._pending[:end])
        del self._pending[:end]
        self.requests_handled += 1
        return request

    def _fill(self) -> bool:
        """Append one recv() to the pending bytes. False on EOF or reset."""
        try:
            chunk = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return False

        if not chunk:
            return False

        self._pending += chunk
        if len(self._pending) > self.max_request_size:
            raise ValueError(
                f"Request exceeds {self.max_request_size} bytes"
            )
        return True

    # =========================================================================
    # WRITING AND CLOSING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """Write a serialized response. False if the client is gone."""
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] could not send response: {e}")
            return False
        return True

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def close(self):
        """
        Half-close, drain what the client still sends, then release the
        socket. Draining keeps the kernel from answering leftover bytes with
        a reset that could destroy the response in flight. Idempotent.
        """
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return
        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        lifetime = time.monotonic() - self.opened_at
        logger.debug(
            f"[{self.id}] closed after {self.requests_handled} requests, {lifetime:.2f}s"
        )

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
