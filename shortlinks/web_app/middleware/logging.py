"""Logging middleware."""

import time
import logging
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging."""

    def __init__(self, app, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("shortlinks.web")

    async def dispatch(self, request: Request, call_next: Callable):
        """Log request and response."""
        start_time = time.perf_counter()

        # Log request
        client_ip = request.client.host if request.client else "unknown"
        self.logger.info(f"Request: {request.method} {request.url.path} from {client_ip}")

        response = await call_next(request)

        # Log response with its wall time
        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            f"Response: {request.method} {request.url.path} - "
            f"Status: {response.status_code} - Duration: {duration_ms:.2f}ms"
        )

        return response
