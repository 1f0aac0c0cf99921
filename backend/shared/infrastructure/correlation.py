"""
Request Correlation Middleware.

Adds correlation IDs to all requests so that log records and shielded service
errors emitted while serving a request can be tied together.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for request ID (thread-safe)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to all requests.

    - If X-Request-ID header is present, uses that value
    - Otherwise generates a new UUID
    - Sets the ID in context for logging
    - Returns the ID in response headers
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get(self.HEADER_NAME)
        if not request_id:
            request_id = str(uuid.uuid4())

        token = request_id_var.set(request_id)

        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            request_id_var.reset(token)


class CorrelationIdFilter:
    """
    Logging filter that adds request_id to log records.

    Usage:
        import logging
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
