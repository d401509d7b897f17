"""
Cellar Tracker Backend - Request ID Middleware
===============================================

What:  Assigns an ID to each incoming request and echoes it in X-Request-ID.
How:   Reuses a client-supplied X-Request-ID when present, otherwise
       generates a short UUID. The ID is stored in a ContextVar for loggers
       and exception handlers, and in request.state for route handlers.
When:  Outermost middleware, so even rate-limited responses carry the header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on the same thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"
# Client-supplied IDs longer than this are replaced
MAX_REQUEST_ID_LENGTH = 64


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if not rid or len(rid) > MAX_REQUEST_ID_LENGTH:
            rid = new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
