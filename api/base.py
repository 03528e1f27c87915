"""Response envelope shared by every endpoint."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from fastapi import Request
from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    fields: dict[str, str] | None = Field(
        None,
        description="Per-field messages for validation errors",
    )


class APIMeta(BaseModel):
    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Matches the X-Request-ID header")


class APIResponse(BaseModel):
    """
    Envelope for all API responses.

    Exactly one of data and error is set, according to success.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request: Request | None) -> APIMeta:
    request_id = getattr(request.state, "request_id", None) if request is not None else None
    return APIMeta(timestamp=now_utc(), request_id=request_id or str(uuid4()))


def success_response(data: Any, request: Request | None = None) -> APIResponse:
    return APIResponse(success=True, data=data, meta=_meta(request))


def error_response(
    code: str,
    message: str,
    fields: dict[str, str] | None = None,
    request: Request | None = None,
) -> APIResponse:
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message, fields=fields or None),
        meta=_meta(request),
    )


class ErrorCodes:
    """Machine-readable codes carried in APIResponse.error.code."""

    # Authentication
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    RATE_LIMITED = "RATE_LIMITED"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
