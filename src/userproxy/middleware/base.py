"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Middleware wraps the router like layers of an onion (Chain of
Responsibility): each layer receives the request and the next handler,
and may act before and after calling it.

    pipeline.add(LoggingMiddleware())        # outermost
    pipeline.add(JSONContentTypeMiddleware())
    handler = pipeline.wrap(router.handle)

    request  ──► Logging ──► JSONContentType ──► router.handle
    response ◄── Logging ◄── JSONContentType ◄──┘

=============================================================================
"""

import logging
from functools import partial
from abc import ABC, abstractmethod
from typing import Callable, List

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware, or the router at the end of the chain.
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Subclasses implement __call__ and must call next(request) unless they
    deliberately short-circuit:

        class Stamp(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Stamp", "1")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Process the request and return a response."""

    @property
    def name(self) -> str:
        """Middleware name for logging."""
        return self.__class__.__name__


class MiddlewarePipeline:
    """Ordered list of middleware that can wrap a final handler."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append middleware. First added runs first (outermost)."""
        self._middleware.append(middleware)
        logger.debug(f"{middleware.name} is middleware #{len(self._middleware)}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Add several middleware in order."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around a final handler.

        Wrapping in reverse order makes the first-added middleware the
        outermost: [A, B, C] becomes A(B(C(handler))).
        """
        chain = handler
        for middleware in reversed(self._middleware):
            chain = partial(middleware, next=chain)
        return chain

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
