"""
=============================================================================
USERPROXY - User Directory Proxy With Graceful Shutdown
=============================================================================

A small HTTP/1.1 service on raw sockets that proxies a remote user
directory and shuts down within a bounded time on SIGINT.

    GET /        {"status":"ok"}
    GET /users   the upstream user list, or {"err": "<message>"}

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    userproxy/
    ├── __init__.py        this file
    ├── __main__.py        CLI entry point (python -m userproxy)
    ├── app.py             create_app(): routes, middleware, resources
    ├── config.py          ServerConfig
    ├── lifecycle.py       LifecycleManager: signal watch and shutdown race
    ├── server.py          HTTPServer
    ├── core/              listener, connections, shutdown resources
    ├── http/              request parsing, responses, routing
    ├── middleware/        access logging, JSON content type
    ├── handlers/          health and users handlers
    └── upstream/          remote user API client

=============================================================================
QUICK START
=============================================================================

    from userproxy import ServerConfig, create_app, LifecycleManager

    config = ServerConfig()
    server, resources = create_app(config)
    exit_code = LifecycleManager(server, resources, config).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer, setup_logging
from .app import create_app
from .lifecycle import LifecycleManager, LifecycleState

__all__ = [
    "ServerConfig",
    "HTTPServer",
    "setup_logging",
    "create_app",
    "LifecycleManager",
    "LifecycleState",
    "__version__",
]
