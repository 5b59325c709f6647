"""Request Correlation ID Middleware.

Every request gets a correlation ID, taken from the incoming
X-Correlation-ID / X-Request-ID header or generated. The ID is stored in
the logging request-id context variable so every log line written while
handling the request carries it, and is echoed in the response headers.

Usage:
    from fastapi import FastAPI
    from middleware.correlation import CorrelationIdMiddleware

    app = FastAPI()
    app.add_middleware(CorrelationIdMiddleware)
"""

from __future__ import annotations

import logging
import uuid
from contextvars import Token
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from services.logging_config import request_id_var

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID of the request being handled, if any."""
    return request_id_var.get()


def set_correlation_id(correlation_id: str) -> Token:
    """Set the correlation ID for the current context."""
    return request_id_var.set(correlation_id)


class correlation_id_context:
    """Context manager for a correlation ID outside a request.

    Usage:
        with correlation_id_context() as cid:
            logger.info("batch repricing")  # carries cid
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self._token: Optional[Token] = None

    def __enter__(self) -> str:
        self._token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            request_id_var.reset(self._token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to handle correlation IDs for request tracing."""

    def __init__(
        self,
        app,
        header_name: str = CORRELATION_ID_HEADER,
        generator: Optional[Callable[[], str]] = None,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.generator = generator or (lambda: str(uuid.uuid4()))

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        correlation_id = (
            request.headers.get(self.header_name)
            or request.headers.get(REQUEST_ID_HEADER)
            or self.generator()
        )

        token = set_correlation_id(correlation_id)
        try:
            request.state.correlation_id = correlation_id
            response = await call_next(request)
            response.headers[self.header_name] = correlation_id
            response.headers[REQUEST_ID_HEADER] = correlation_id
            return response
        finally:
            request_id_var.reset(token)
