"""Security middleware for FastAPI - session validation."""

from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from auth.session import SessionManager
from auth.exceptions import SessionExpiredError
from auth.types import Session
from api.base import error_response, ErrorCodes


class AuthMiddleware(BaseHTTPMiddleware):
    """Validates the session cookie and attaches the Session to request.state.

    For protected routes:
    1. Extracts the session token from the session cookie
    2. Validates it via SessionManager (sliding expiry)
    3. Sets request.state.session for the get_session dependency

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = [
        "/api/auth/login",
        "/api/auth/logout",
        "/api/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, session_manager: SessionManager, cookie_name: str = "session_token"):
        super().__init__(app)
        self._session_manager = session_manager
        self._cookie_name = cookie_name

    def _is_public_path(self, path: str) -> bool:
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        if self._is_public_path(request.url.path):
            return await call_next(request)

        session_token = request.cookies.get(self._cookie_name)
        if not session_token:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Authentication required",
                ).model_dump(mode="json"),
            )

        try:
            session = self._session_manager.validate_session(session_token)
        except SessionExpiredError:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.SESSION_EXPIRED,
                    "Session has expired",
                ).model_dump(mode="json"),
            )

        request.state.session = session
        return await call_next(request)


def get_session(request: Request) -> Session:
    """
    FastAPI dependency: the Session the middleware validated.

    Raises:
        HTTPException: 401 if the route was reached without a session
    """
    session = getattr(request.state, "session", None)
    if session is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return session
