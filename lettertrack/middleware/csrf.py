"""Origin check for state-changing requests."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from lettertrack.config import settings

logger = logging.getLogger(__name__)

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class OriginCheckMiddleware(BaseHTTPMiddleware):
    """Refuse browser writes coming from an origin other than the letter frontend.

    Requests without an ``Origin`` header (same-origin fetches, scripts,
    the registry scanner) are let through.
    """

    def __init__(self, app, allowed_origins: list[str] | None = None):
        super().__init__(app)
        if allowed_origins is None:
            allowed_origins = [*settings.cors_origins, settings.frontend_url]
        self.allowed_origins = {origin.rstrip("/") for origin in allowed_origins if origin}

    async def dispatch(self, request: Request, call_next):
        if request.method in UNSAFE_METHODS:
            origin = request.headers.get("origin")
            if origin and origin.rstrip("/") not in self.allowed_origins:
                logger.warning(f"Rejected {request.method} {request.url.path} from origin {origin}")
                return JSONResponse(
                    status_code=403,
                    content={"detail": "CSRF validation failed: invalid origin"},
                )
        return await call_next(request)
