"""
TripMatch Backend — Request ID Middleware
===========================================

What:  Assigns an ID to each request and echoes it in X-Request-ID.
How:   Uses the client's X-Request-ID when present, otherwise a short UUID.
       The value lives in a ContextVar so loggers and exception handlers
       can read it without access to the request object.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Longer client-supplied IDs are truncated before use
MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        rid = rid[:MAX_REQUEST_ID_LENGTH]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
