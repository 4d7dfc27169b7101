"""
FastAPI middleware for request tracing and correlation.

This module provides middleware components for adding observability to HTTP requests,
including unique request IDs for log correlation.
"""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add unique request IDs to each HTTP request.

    This middleware generates a UUID for each incoming request and:
    1. Stores it in request.state.request_id for access in route handlers
    2. Binds it into structlog contextvars so every log line of the request carries it
    3. Adds it to the response as X-Request-ID header for client correlation

    Example:
        >>> app.add_middleware(RequestIDMiddleware)
        >>>
        >>> # Response headers will include:
        >>> # X-Request-ID: 550e8400-e29b-41d4-a716-446655440000
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """
        Process each request by adding a unique request ID.

        Args:
            request: Incoming FastAPI request
            call_next: Next middleware or route handler in chain

        Returns:
            Response with X-Request-ID header added
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
