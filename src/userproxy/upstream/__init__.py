"""
Client for the remote user API that /users proxies.
"""

from .client import UpstreamClient, decode_users
from .errors import UpstreamError, UpstreamTransportError, UpstreamDecodeError
from .models import UserRecord

__all__ = [
    "UpstreamClient",
    "decode_users",
    "UpstreamError",
    "UpstreamTransportError",
    "UpstreamDecodeError",
    "UserRecord",
]
