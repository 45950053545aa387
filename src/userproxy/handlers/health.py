"""
=============================================================================
HEALTH CHECK HANDLER
=============================================================================

GET / answers {"status":"ok"} for as long as the process is serving.

This is a liveness check only: it does not call the upstream API, so a
slow or failing upstream never makes the service look dead to a load
balancer or an orchestrator probe.

    livenessProbe:
      httpGet:
        path: /
        port: 7000

=============================================================================
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok


HEALTH_PAYLOAD = {"status": "ok"}


def health_check(request: HTTPRequest) -> HTTPResponse:
    """Static OK payload. No side effects, no failure path."""
    return ok(dict(HEALTH_PAYLOAD))
