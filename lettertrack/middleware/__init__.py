"""Middleware components for request validation and protection."""

from lettertrack.middleware.csrf import OriginCheckMiddleware
from lettertrack.middleware.size_limit import RequestSizeLimitMiddleware

__all__ = [
    "OriginCheckMiddleware",
    "RequestSizeLimitMiddleware",
]
