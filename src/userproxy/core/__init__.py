"""
Core networking and shutdown components.

    socket_server.py   listening socket and accept loop
    connection.py      per-client socket with request framing
    resources.py       things released on graceful shutdown
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .resources import Resource, ClosingResource, SimulatedRelease

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "Resource",
    "ClosingResource",
    "SimulatedRelease",
]
