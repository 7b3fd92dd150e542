"""Request body size limit middleware."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from lettertrack.config import settings

logger = logging.getLogger(__name__)

# Multipart framing around an uploaded scan
MULTIPART_OVERHEAD_BYTES = 64 * 1024


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject oversized request bodies from the Content-Length header.

    JSON endpoints get ``max_size``. Scan uploads (paths starting with one of
    ``upload_paths``) get the upload limit plus multipart overhead, so a file
    at exactly the upload limit still gets through to the endpoint.
    """

    def __init__(
        self,
        app,
        max_size: int | None = None,
        upload_max_size: int | None = None,
        upload_paths: tuple[str, ...] = ("/api/intake/scan",),
    ):
        super().__init__(app)
        self.max_size = max_size or settings.max_request_size_bytes
        self.upload_max_size = (
            upload_max_size or settings.max_upload_size_bytes
        ) + MULTIPART_OVERHEAD_BYTES
        self.upload_paths = upload_paths

    def limit_for(self, path: str) -> int:
        if path.startswith(self.upload_paths):
            return max(self.max_size, self.upload_max_size)
        return self.max_size

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if not content_length:
            return await call_next(request)

        try:
            size = int(content_length)
        except ValueError:
            # Invalid content-length header - let downstream handle it
            return await call_next(request)

        limit = self.limit_for(request.url.path)
        if size > limit:
            logger.warning(
                f"Request body too large: {size} bytes (max: {limit})",
                extra={"path": request.url.path, "method": request.method},
            )
            return JSONResponse(
                status_code=413,
                content={"detail": f"Request body exceeds maximum size of {limit} bytes"},
            )

        return await call_next(request)
