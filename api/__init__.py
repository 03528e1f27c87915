"""HTTP layer: response envelope, error handlers, routers and app factory."""

from api.base import (
    APIError,
    APIMeta,
    APIResponse,
    success_response,
    error_response,
    ErrorCodes,
)
