"""
Cellar Tracker Backend - Rate Limiting Middleware
==================================================

What:  Per-IP sliding window rate limiter.
How:   Keeps the request timestamps of each client IP for the last
       RATE_LIMIT_WINDOW seconds. A request arriving while the client
       already has RATE_LIMIT_REQUESTS timestamps in the window is answered
       with 429 and a Retry-After header.

Excluded: health probes, API docs and /uploads/* (a gallery page loads many
thumbnails at once).

State is in memory and per process. Multiple uvicorn workers each enforce
their own limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Limits come from settings (rate_limit_requests per rate_limit_window
    seconds). Exceptions raised inside BaseHTTPMiddleware bypass FastAPI's
    exception handlers, so the 429 body is rendered here in the same shape
    the global handlers use.
    """

    EXCLUDED_PATHS = {"/health", "/api/health", "/docs", "/openapi.json", "/redoc"}
    EXCLUDED_PREFIXES = ("/uploads/",)

    # Prune idle IPs every this many tracked requests
    CLEANUP_EVERY = 1000

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    def is_excluded(self, path: str) -> bool:
        return path in self.EXCLUDED_PATHS or path.startswith(self.EXCLUDED_PREFIXES)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self.is_excluded(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - settings.rate_limit_window

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= settings.rate_limit_requests:
            retry_after = int(recent[0] + settings.rate_limit_window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                settings.rate_limit_window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": exc.message,
                    "code": "rate_limit_exceeded",
                    "details": exc.context,
                    "requestId": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Drop IPs with no request inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
