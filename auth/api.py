"""HTTP routes for authentication."""

import ipaddress

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.base import success_response, error_response, ErrorCodes
from auth.config import AuthConfig
from auth.exceptions import InvalidCredentialsError, RateLimitedError
from auth.security_middleware import get_session
from auth.service import AuthService
from auth.types import LoginRequest, Session


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def create_auth_router(auth_service: AuthService, config: AuthConfig) -> APIRouter:
    """Create auth router with injected service."""
    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post("/login")
    async def login(request: Request, response: Response, body: LoginRequest):
        """Check credentials and set the session cookie."""
        try:
            session = auth_service.login(
                username=body.username,
                password=body.password,
                ip_address=_get_client_ip(request),
            )
        except RateLimitedError as e:
            return JSONResponse(
                status_code=429,
                headers={"Retry-After": str(e.retry_after_seconds)},
                content=error_response(
                    ErrorCodes.RATE_LIMITED,
                    f"Too many attempts. Please wait {e.retry_after_seconds} seconds.",
                ).model_dump(mode="json"),
            )
        except InvalidCredentialsError:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.INVALID_CREDENTIALS,
                    "Invalid username or password",
                ).model_dump(mode="json"),
            )

        response.set_cookie(
            key=config.cookie_name,
            value=session.token,
            httponly=True,
            secure=config.cookie_secure,
            samesite="lax",
            max_age=config.session_expiry_hours * 3600,
        )
        return success_response({"session": session.to_public()})

    @router.post("/logout")
    async def logout(request: Request, response: Response):
        """Revoke the session and clear the cookie."""
        session_token = request.cookies.get(config.cookie_name)
        if session_token:
            auth_service.logout(session_token, ip_address=_get_client_ip(request))

        response.delete_cookie(key=config.cookie_name)
        return success_response({"message": "Logged out successfully"})

    @router.get("/me")
    async def get_current_session(session: Session = Depends(get_session)):
        return success_response({"session": session.to_public()})

    return router
