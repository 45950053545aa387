"""
Middleware for the user proxy.

    base.py          Middleware ABC and MiddlewarePipeline
    content_type.py  tags every response as application/json
    logging.py       access logging with request ids
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .content_type import JSONContentTypeMiddleware
from .logging import LoggingMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "JSONContentTypeMiddleware",
    "LoggingMiddleware",
]
