"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handler functions.

    GET /        → health_check
    GET /users   → list_users

=============================================================================
TRAILING SLASHES
=============================================================================

Paths are normalised before they are stored and before they are matched,
so a trailing slash never creates a second route:

    /users    → /users
    /users/   → /users
    //users// → /users
    /         → /

=============================================================================
NO MATCH
=============================================================================

    path known, method not registered  → 405 Method Not Allowed (+ Allow)
    path unknown                       → 404 Not Found

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse, not_found, method_not_allowed


Handler = Callable[[HTTPRequest], HTTPResponse]


def normalize_path(path: str) -> str:
    """Collapse leading/trailing slashes so "/users/" and "/users" are one route."""
    stripped = path.strip("/")
    return "/" + stripped if stripped else "/"


@dataclass
class Route:
    """A handler bound to one method on one normalised path."""

    path: str
    method: str
    handler: Handler
    name: Optional[str] = None


class Router:
    """
    HTTP request router.

    Routes are registered with decorators, Flask style:

        router = Router()

        @router.get("/users")
        def list_users(request):
            return ok([])

    Registering the same method and path twice replaces the first handler.
    """

    def __init__(self):
        # normalised path → {method → Route}
        self._routes: Dict[str, Dict[str, Route]] = {}

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: str = "GET",
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a handler for a method and path.

        Args:
            path: URL path, with or without a trailing slash.
            handler: Function taking an HTTPRequest and returning an HTTPResponse.
            method: HTTP method the route answers to.
            name: Optional name, shown by routes() for debugging.

        Returns:
            The registered Route.
        """
        route = Route(
            path=normalize_path(path),
            method=method.upper(),
            handler=handler,
            name=name or getattr(handler, "__name__", None),
        )
        self._routes.setdefault(route.path, {})[route.method] = route
        return route

    def route(
        self,
        path: str,
        method: str = "GET",
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of add_route(). Returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(path, "GET", name)

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[Route]:
        """Find the route for a method and path, or None."""
        methods = self._routes.get(normalize_path(path))
        if not methods:
            return None
        return methods.get(method.upper())

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods registered for a path, sorted. Empty if the path is unknown."""
        return sorted(self._routes.get(normalize_path(path), {}))

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request to its handler.

        This is the innermost link of the middleware chain: the pipeline
        wraps router.handle, so every middleware sees 404 and 405 responses
        exactly like handler responses.
        """
        route = self.match(request.method, request.path)
        if route:
            return route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)

        return not_found(f"No route matches {request.path}")

    def routes(self) -> List[Route]:
        """All registered routes, in registration order."""
        return [route for methods in self._routes.values() for route in methods.values()]
