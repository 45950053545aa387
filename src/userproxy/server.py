"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the listener, the request parser, the middleware pipeline and the
router together.

    SocketServer ──conn──► worker thread ──► RequestParser
                                                  │
                                                  ▼
                            Middleware pipeline → Router → handler
                                                  │
                                                  ▼
                                   HTTPResponse.to_bytes() → client

Each accepted connection gets its own daemon thread. Requests share no
state, so there is no locking between them, and the number of in-flight
requests is not capped.

The server does not decide when to stop. start() returns once the port is
bound and the listener thread is running; whoever owns the process (the
LifecycleManager) calls stop().

=============================================================================
"""

import logging
import threading
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, ResponseBuilder, HTTPStatus, internal_error,
    Router,
)
from .middleware import MiddlewarePipeline, Middleware


logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Configure root logging once for the process."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("userproxy").setLevel(numeric_level)


class HTTPServer:
    """
    HTTP/1.1 server with routing and middleware.

        server = HTTPServer(ServerConfig(port=7000))
        server.use(JSONContentTypeMiddleware())

        @server.get("/")
        def index(request):
            return ok({"status": "ok"})

        server.start()      # binds, then serves on a background thread
        ...
        server.stop()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self._router = Router()
        self._middleware = MiddlewarePipeline()

        # middleware.wrap(router.handle), built in start()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

        self._listener_thread: Optional[threading.Thread] = None
        self._running = False

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware. First added is outermost."""
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    def get(self, path: str, name: Optional[str] = None):
        """Register a GET route (decorator)."""
        return self._router.get(path, name)

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port) once started."""
        return self._socket_server.address

    @property
    def is_serving(self) -> bool:
        """True while the listener thread is accepting connections."""
        return self._listener_thread is not None and self._listener_thread.is_alive()

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one request through middleware and router.

        Used by the connection loop, and directly by tests that do not
        need a socket.
        """
        if self._handler is None:
            self._handler = self._middleware.wrap(self._router.handle)
        return self._handler(request)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> Tuple[str, int]:
        """
        Bind the port and start accepting on a background thread.

        Returns:
            The bound (host, port).

        Raises:
            OSError: The port could not be bound. Nothing is running then.
        """
        self._handler = self._middleware.wrap(self._router.handle)

        host, port = self._socket_server.bind()
        self._running = True

        self._listener_thread = threading.Thread(
            target=self._socket_server.serve,
            args=(self._handle_connection,),
            name="http-listener",
            daemon=True,
        )
        self._listener_thread.start()

        for route in self._router.routes():
            logger.debug(f"Route: {route.method:6} {route.path}")

        return host, port

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Stop accepting new connections.

        Connections already being processed finish on their own threads.

        Args:
            timeout: How long to wait for the listening socket to close.

        Returns:
            True if the listener stopped within the timeout.
        """
        self._running = False
        self._socket_server.shutdown()

        if self._listener_thread is None:
            return True

        self._listener_thread.join(timeout)
        return not self._listener_thread.is_alive()

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand a new connection to its own worker thread."""
        worker = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        worker.start()

    def _process_connection(self, conn: Connection):
        """
        Serve requests on one connection until it closes.

        Loop: read → parse → middleware + router → send, repeated while
        the client keeps the connection alive and the server is running.
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    try:
                        request = self._parser.parse(raw_request, conn.address)
                    except HTTPParseError as e:
                        self._send_error(conn, HTTPStatus(e.status_code), str(e))
                        break

                    conn.state = ConnectionState.PROCESSING

                    try:
                        response = self.handle_request(request)
                    except Exception as e:
                        logger.exception(f"[{conn.id}] Handler error: {e}")
                        response = internal_error()

                    keep_alive = (
                        request.is_keep_alive
                        and self.config.keep_alive
                        and self._running
                    )
                    if keep_alive:
                        response.headers.setdefault("Connection", "keep-alive")
                        response.headers.setdefault(
                            "Keep-Alive",
                            f"timeout={int(self.config.keep_alive_timeout)}"
                        )
                    else:
                        response.headers["Connection"] = "close"

                    if not conn.send_response(response.to_bytes(self.config.server_name)):
                        break

                    if not keep_alive:
                        break

                    conn.set_keep_alive()

                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break

                except ValueError as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break

                except Exception as e:
                    logger.exception(f"[{conn.id}] Connection error: {e}")
                    break

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Error for failures before a handler ran (parse errors, timeouts)."""
        response = (ResponseBuilder()
            .status(status)
            .json({"error": message})
            .close_connection()
            .build())

        conn.send_response(response.to_bytes(self.config.server_name))
