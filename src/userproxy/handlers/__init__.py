"""
Request handlers.

    health.py   GET /       static {"status": "ok"}
    users.py    GET /users  upstream user list, or {"err": ...}
"""

from .health import health_check, HEALTH_PAYLOAD
from .users import UsersHandler, error_payload

__all__ = [
    "health_check",
    "HEALTH_PAYLOAD",
    "UsersHandler",
    "error_payload",
]
