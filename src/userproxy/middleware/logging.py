"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One line per request on the "userproxy.access" logger:

    127.0.0.1 - - [19/Oct/2026:10:00:00 +0000] "GET /users" 200 1532 412.07ms

or, with log_format="json", the same fields as one JSON object per line.

Proxy latency is dominated by the upstream call, so the duration column
is the quickest way to spot a slow or timing-out upstream. The access
logger can be routed or silenced on its own:

    logging.getLogger("userproxy.access").setLevel(logging.WARNING)

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("userproxy.access")

# Common Log Format timestamp
CLF_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


@dataclass
class AccessRecord:
    """What the access log knows about one finished request."""

    request_id: str
    client_ip: str
    method: str
    path: str
    status: int
    size: int
    duration_ms: float
    user_agent: str
    timestamp: str

    @classmethod
    def capture(
        cls,
        request: HTTPRequest,
        response: HTTPResponse,
        request_id: str,
        started: float,
    ) -> "AccessRecord":
        return cls(
            request_id=request_id,
            client_ip=request.client_address[0] or "-",
            method=request.method,
            path=request.path,
            status=int(response.status),
            size=len(response.body),
            duration_ms=round(_elapsed_ms(started), 2),
            user_agent=request.user_agent or "-",
            timestamp=time.strftime(CLF_TIME_FORMAT),
        )

    def as_line(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] "{self.method} {self.path}" '
            f"{self.status} {self.size} {self.duration_ms:.2f}ms"
        )

    def as_json(self) -> str:
        return json.dumps(asdict(self))


class LoggingMiddleware(Middleware):
    """
    Access logging with a short request id.

    Add it first so the timing covers every other middleware and the
    router's 404/405 responses are logged too.

    Args:
        log_format: "text" for Common Log Format lines, "json" for objects.
        include_request_id: Echo the id back in the X-Request-ID header.
        log_level: Level of the access lines.
        skip_paths: Paths served but not logged, e.g. a probe on "/".
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[Iterable[str]] = None,
    ):
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown access log format: {log_format}")

        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = frozenset(skip_paths or ())

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            # The server turns this into a 500; record which request caused it
            logger.error(
                f"[{request_id}] {request.method} {request.path} raised "
                f"{type(e).__name__}: {e} after {_elapsed_ms(started):.2f}ms"
            )
            raise

        if self.include_request_id:
            response.set_header("X-Request-ID", request_id)

        if request.path not in self.skip_paths:
            record = AccessRecord.capture(request, response, request_id, started)
            logger.log(
                self.log_level,
                record.as_json() if self.log_format == "json" else record.as_line(),
            )

        return response
