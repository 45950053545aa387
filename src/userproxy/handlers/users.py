"""
=============================================================================
USERS HANDLER
=============================================================================

GET /users proxies the upstream user list.

    upstream OK      → 200  [{"id": 1, "name": ..., "username": ..., "email": ...}, ...]
    upstream failed  → 200  {"err": "<message>"}

Upstream failures keep status 200 and are reported in the body only.
Clients must check for the "err" key rather than the status code.

=============================================================================
"""

import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok
from ..upstream import UpstreamClient, UpstreamError


logger = logging.getLogger(__name__)


def error_payload(error: Exception) -> dict:
    """The {"err": ...} body sent when the upstream call fails."""
    return {"err": str(error)}


class UsersHandler:
    """
    Handler for GET /users.

    Holds the upstream client; the handler itself keeps no per-request
    state, so one instance serves all worker threads.

        users = UsersHandler(UpstreamClient())
        router.get("/users")(users.handle)
    """

    def __init__(self, client: UpstreamClient):
        self.client = client

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        try:
            users = self.client.fetch_users()
        except UpstreamError as e:
            logger.warning(f"Fetching users failed: {e}")
            return ok(error_payload(e))

        return ok([user.to_dict() for user in users])
