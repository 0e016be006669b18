"""
Inbound body size limit.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

DEFAULT_MAX_BODY_BYTES = 2 * 1024 * 1024


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects request bodies larger than ``max_body_bytes`` with 413.

    Checks the declared Content-Length first, then the actual body for
    requests that stream without one.
    """

    def __init__(self, app, max_body_bytes: int = DEFAULT_MAX_BODY_BYTES):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    def _too_large(self) -> JSONResponse:
        return JSONResponse(status_code=413, content={"error": "payload too large"})

    async def dispatch(self, request: Request, call_next):
        if request.method in ("POST", "PUT", "PATCH"):
            content_length = request.headers.get("content-length")
            if content_length is not None:
                try:
                    declared = int(content_length)
                except ValueError:
                    return JSONResponse(status_code=400, content={"error": "invalid content-length"})
                if declared > self.max_body_bytes:
                    return self._too_large()
            else:
                # Starlette caches the body, so the route can still read it
                body = await request.body()
                if len(body) > self.max_body_bytes:
                    return self._too_large()

        return await call_next(request)
