"""
Middleware for capturing request metadata and timing.
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from gemini_relay.core.logging import generate_request_id

logger = logging.getLogger("request_log")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to capture request start time and generate request IDs.
    Stores request metadata in request.state for later logging.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = generate_request_id()
        request.state.request_id = request_id
        request.state.start_time = time.time()

        response = await call_next(request)

        request.state.response_time_ms = int(
            (time.time() - request.state.start_time) * 1000
        )
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {request.state.response_time_ms}ms [{request_id}]"
        )

        # Add request ID to response headers for tracing
        response.headers["X-Request-ID"] = request_id

        return response
