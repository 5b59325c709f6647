"""
Unified API Error Response System.

Every error leaving the HTTP layer has the same JSON body, so the quote
form can show field errors and the request id the same way for every
endpoint.

Usage:
    from web.api_errors import APIError, ErrorCode

    raise APIError(
        code=ErrorCode.APPROVAL_REQUEST_BLOCKED,
        message="Contact email is required",
    )
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from approval.policy import ApprovalRequiredError, InvalidApprovalCodeError
from config.pricing_config_loader import PricingConfigError
from middleware.correlation import get_correlation_id
from quotes.records import QuoteNotPriceableError

logger = logging.getLogger(__name__)


# =============================================================================
# ERROR CODES
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for API responses.

    Categories:
    - VALIDATION_*: Input validation errors (400, 422)
    - APPROVAL_*: Cleanup override approval errors (400, 403)
    - QUOTE_*: Quote state errors (409)
    - RESOURCE_*: Routing errors (404, 405)
    - SERVER_*: Server-side errors (500)
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_MISSING_FIELD = "VALIDATION_MISSING_FIELD"
    VALIDATION_OUT_OF_RANGE = "VALIDATION_OUT_OF_RANGE"

    APPROVAL_REQUEST_BLOCKED = "APPROVAL_REQUEST_BLOCKED"
    APPROVAL_REQUIRED = "APPROVAL_REQUIRED"
    APPROVAL_CODE_INVALID = "APPROVAL_CODE_INVALID"

    QUOTE_NOT_PRICEABLE = "QUOTE_NOT_PRICEABLE"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    SERVER_INTERNAL_ERROR = "SERVER_INTERNAL_ERROR"
    SERVER_CONFIGURATION_ERROR = "SERVER_CONFIGURATION_ERROR"


ERROR_CODE_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_MISSING_FIELD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_OUT_OF_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.APPROVAL_REQUEST_BLOCKED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.APPROVAL_REQUIRED: status.HTTP_403_FORBIDDEN,
    ErrorCode.APPROVAL_CODE_INVALID: status.HTTP_403_FORBIDDEN,
    ErrorCode.QUOTE_NOT_PRICEABLE: status.HTTP_409_CONFLICT,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.SERVER_INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SERVER_CONFIGURATION_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Domain exceptions raised below the HTTP layer
DOMAIN_ERROR_CODES = {
    ApprovalRequiredError: ErrorCode.APPROVAL_REQUIRED,
    InvalidApprovalCodeError: ErrorCode.APPROVAL_CODE_INVALID,
    QuoteNotPriceableError: ErrorCode.QUOTE_NOT_PRICEABLE,
}


# =============================================================================
# ERROR RESPONSE MODELS
# =============================================================================


class FieldError(BaseModel):
    """Individual field validation error."""
    field: str = Field(..., description="Field name that caused the error")
    message: str = Field(..., description="Error message for this field")
    code: str = Field(default="invalid", description="Error code for this field")


class ErrorResponse(BaseModel):
    """Standardized API error response."""

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": True,
            "code": "VALIDATION_ERROR",
            "message": "Quote is incomplete",
            "status_code": 400,
            "timestamp": "2026-01-29T12:00:00Z",
            "request_id": "550e8400-e29b-41d4-a716-446655440000",
            "path": "/api/quotes/prepare",
            "field_errors": [
                {"field": "contactEmail", "message": "Email is required", "code": "required"}
            ]
        }
    })

    error: bool = Field(default=True, description="Always true for errors")
    code: str = Field(..., description="Error code from ErrorCode enum")
    message: str = Field(..., description="Human-readable error message")
    status_code: int = Field(..., description="HTTP status code")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    request_id: str = Field(..., description="Unique request identifier for tracking")
    path: Optional[str] = Field(None, description="Request path that caused the error")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    field_errors: Optional[List[FieldError]] = Field(None, description="Field-specific validation errors")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# =============================================================================
# API ERROR EXCEPTION
# =============================================================================


class APIError(Exception):
    """
    Exception carrying a standardized error response.

    Usage:
        raise APIError(
            code=ErrorCode.VALIDATION_ERROR,
            message="Quote is incomplete",
            field_errors=[{"field": "contactEmail", "message": "Email is required"}],
        )
    """

    def __init__(
        self,
        code: Union[ErrorCode, str],
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        field_errors: Optional[List[Dict[str, str]]] = None,
        log_error: bool = True,
    ):
        self.code = code if isinstance(code, ErrorCode) else ErrorCode(code)
        self.message = message
        self.status_code = status_code or ERROR_CODE_STATUS_MAP.get(
            self.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        self.details = details
        self.field_errors = field_errors
        self.log_error = log_error
        super().__init__(message)

    def to_response(self, request_id: str, path: Optional[str] = None) -> ErrorResponse:
        """Convert to ErrorResponse model."""
        field_error_models = None
        if self.field_errors:
            field_error_models = [
                FieldError(
                    field=fe.get("field", "unknown"),
                    message=fe.get("message", "Invalid value"),
                    code=fe.get("code", "invalid"),
                )
                for fe in self.field_errors
            ]

        return ErrorResponse(
            error=True,
            code=self.code.value,
            message=self.message,
            status_code=self.status_code,
            timestamp=_timestamp(),
            request_id=request_id,
            path=path,
            details=self.details,
            field_errors=field_error_models,
        )


def get_request_id(request: Request) -> str:
    """Request id set by the correlation middleware, else from headers, else new."""
    return (
        get_correlation_id()
        or getattr(request.state, "correlation_id", None)
        or request.headers.get("X-Request-ID")
        or str(uuid.uuid4())
    )


def _error_json(request: Request, error: APIError) -> JSONResponse:
    request_id = get_request_id(request)
    if error.log_error:
        log_level = logging.WARNING if error.status_code < 500 else logging.ERROR
        logger.log(
            log_level,
            f"[{request_id}] APIError: {error.code.value} - {error.message}",
            extra={'extra_data': {
                "error_code": error.code.value,
                "status_code": error.status_code,
                "path": request.url.path,
                "method": request.method,
            }}
        )
    response = error.to_response(request_id, request.url.path)
    return JSONResponse(
        status_code=error.status_code,
        content=response.model_dump(),
        headers={"X-Request-ID": request_id},
    )


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        return _error_json(request, exc)

    async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
        code = DOMAIN_ERROR_CODES[type(exc)]
        details = None
        contact_email = getattr(exc, "contact_email", None)
        if contact_email:
            details = {"contact_email": contact_email}
        return _error_json(request, APIError(code=code, message=str(exc), details=details))

    for exc_class in DOMAIN_ERROR_CODES:
        app.add_exception_handler(exc_class, domain_error_handler)

    @app.exception_handler(PricingConfigError)
    async def config_error_handler(request: Request, exc: PricingConfigError) -> JSONResponse:
        logger.error(f"Pricing configuration error: {exc}")
        return _error_json(request, APIError(
            code=ErrorCode.SERVER_CONFIGURATION_ERROR,
            message="Pricing tables are unavailable",
            log_error=False,
        ))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle request body parsing errors."""
        field_errors = []
        for error in exc.errors():
            field_path = ".".join(str(loc) for loc in error["loc"] if loc != "body")
            field_errors.append({
                "field": field_path or "body",
                "message": error["msg"],
                "code": error["type"],
            })

        return _error_json(request, APIError(
            code=ErrorCode.VALIDATION_ERROR,
            message="Request validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            field_errors=field_errors,
        ))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle standard HTTP exceptions."""
        status_to_code = {
            400: ErrorCode.VALIDATION_ERROR,
            404: ErrorCode.RESOURCE_NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }
        error_code = status_to_code.get(exc.status_code, ErrorCode.SERVER_INTERNAL_ERROR)
        return _error_json(request, APIError(
            code=error_code,
            message=str(exc.detail) if exc.detail else "An error occurred",
            status_code=exc.status_code,
        ))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all. Internal details are logged, never returned."""
        request_id = get_request_id(request)
        logger.error(
            f"[{request_id}] Unhandled exception: {type(exc).__name__}: {exc}",
            exc_info=True,
        )
        return _error_json(request, APIError(
            code=ErrorCode.SERVER_INTERNAL_ERROR,
            message="An unexpected error occurred. Please try again later.",
            details={"support": f"Reference ID: {request_id}"},
            log_error=False,
        ))
