"""
TripMatch Backend — Rate Limiting Middleware
==============================================

What:  Per-IP sliding window rate limiter.
How:   Keeps the timestamps of each IP's requests inside the window; a
       request arriving when the window is full gets 429 with Retry-After.

Single-process only: counters live in this worker's memory. Multiple
workers each enforce the limit independently.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from tripmatch.config import settings
from tripmatch.exceptions import RateLimitExceededError
from tripmatch.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Args:
        max_requests / window_seconds: default to settings.rate_limit_*
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window_seconds

        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                self.window_seconds,
            )
            # Exceptions raised here never reach the app exception handlers
            error = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=error.status_code,
                content={
                    "error": error.kind.value,
                    "message": error.message,
                    "details": error.context,
                    "request_id": request_id_var.get("") or None,
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._seen += 1
        if self._seen % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]
        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
