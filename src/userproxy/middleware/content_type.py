"""
=============================================================================
JSON CONTENT-TYPE MIDDLEWARE
=============================================================================

Every response this service sends is JSON: the health payload, the user
list, the {"err": ...} payload for upstream failures, and the router's own
404/405 bodies. This middleware stamps the Content-Type header on all of
them so no handler has to remember to.

=============================================================================
"""

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, JSON_CONTENT_TYPE


class JSONContentTypeMiddleware(Middleware):
    """
    Sets Content-Type on every response, whatever the handler returned.

    A value set by the handler is overwritten. Exceptions propagate to the
    server, whose 500 response is built as JSON as well.
    """

    def __init__(self, content_type: str = JSON_CONTENT_TYPE):
        self.content_type = content_type

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)
        response.set_content_type(self.content_type)
        return response
