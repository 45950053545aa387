"""
=============================================================================
TCP LISTENER
=============================================================================

Owns the listening socket and the accept loop.

    bind()              socket() → setsockopt() → bind() → listen()
                        Raises OSError if the port is unavailable; nothing
                        is served yet, so the caller can fail fast.

    serve(handler)      accept() in a loop, one Connection per client,
                        handed to handler(conn). Blocks until shutdown().

    shutdown()          stop accepting. The loop notices within one
                        accept timeout and closes the listening socket.

Signal handling is not done here: the lifecycle manager owns signals and
calls shutdown() when one arrives.

=============================================================================
"""

import logging
import socket
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

# accept() timeout; bounds how long serve() takes to notice shutdown()
ACCEPT_POLL_INTERVAL = 0.5


class SocketServer:
    """
    Low-level TCP socket server.

        server = SocketServer(config)
        server.bind()            # OSError here is fatal
        server.serve(on_conn)    # blocks until server.shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound.

        Differs from the configured one when port 0 asked the OS to pick.
        """
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind immediately after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Responses are small; send them without Nagle's delay
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def bind(self) -> Tuple[str, int]:
        """
        Create the listening socket, bind and listen.

        Returns:
            The bound (host, port).

        Raises:
            OSError: The address is in use or not permitted.
        """
        sock = self._create_socket()
        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise

        self._socket = sock
        self._running = True

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        return host, port

    def serve(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() is called.

        Args:
            connection_handler: Called with each new Connection. Must not
                                block for long; the HTTP server hands the
                                connection to a worker thread.
        """
        if self._socket is None:
            raise RuntimeError("bind() must be called before serve()")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Stop accepting new connections. Idempotent, callable from any thread."""
        if self._running:
            logger.info("Stopping listener...")
        self._running = False

    def _cleanup(self):
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        logger.info("Listener stopped")
