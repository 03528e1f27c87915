"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def _json(status_code: int, request: Request, code: str, message: str, fields=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, fields, request=request).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Map domain exceptions to status codes and the error envelope."""

    @app.exception_handler(ValidationError)
    async def domain_validation_handler(request: Request, exc: ValidationError):
        return _json(422, request, ErrorCodes.VALIDATION_ERROR, str(exc), exc.field_errors)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _json(404, request, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _json(409, request, ErrorCodes.ALREADY_EXISTS, str(exc))

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        logger.error(f"Persistence failure on {request.url.path}: {exc}")
        return _json(503, request, ErrorCodes.SERVICE_UNAVAILABLE, "Storage is unavailable, please retry")

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = {}
        for error in exc.errors():
            # Drop the leading "body"/"query"/"path" segment
            field = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
            fields.setdefault(field, error["msg"])
        return _json(422, request, ErrorCodes.VALIDATION_ERROR, "Request validation failed", fields)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        code = ErrorCodes.NOT_AUTHENTICATED if exc.status_code == 401 else ErrorCodes.INVALID_REQUEST
        if exc.status_code == 404:
            code = ErrorCodes.NOT_FOUND
        return _json(exc.status_code, request, code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json(500, request, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
