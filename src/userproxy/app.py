"""
Application wiring: routes, middleware and shutdown resources.

    GET /        health_check
    GET /users   UsersHandler → UpstreamClient
"""

from typing import Optional

from .config import ServerConfig
from .core import Resource, ClosingResource, SimulatedRelease
from .handlers import health_check, UsersHandler
from .middleware import LoggingMiddleware, JSONContentTypeMiddleware
from .server import HTTPServer
from .upstream import UpstreamClient


def create_app(
    config: Optional[ServerConfig] = None,
    client: Optional[UpstreamClient] = None,
) -> tuple[HTTPServer, list[Resource]]:
    """
    Build the server and the resources to release on shutdown.

    Args:
        config: Defaults to ServerConfig().
        client: Upstream client to proxy through. Built from the config
                when omitted.

    Returns:
        (server, resources), ready for LifecycleManager.
    """
    config = config or ServerConfig()

    if client is None:
        client = UpstreamClient(config.upstream_url, timeout=config.upstream_timeout)

    server = HTTPServer(config)

    # Logging outermost so it also times the content-type step
    server.use(LoggingMiddleware(log_format=config.log_format))
    server.use(JSONContentTypeMiddleware())

    users = UsersHandler(client)
    server.get("/", name="health")(health_check)
    server.get("/users", name="users")(users.handle)

    resources: list[Resource] = [
        ClosingResource("upstream session", client.close),
        SimulatedRelease(config.cleanup_delay),
    ]

    return server, resources
