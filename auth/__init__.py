"""Authentication: operator login, sessions and the request guard."""

from auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    RateLimitedError,
    SessionExpiredError,
)
from auth.types import Session, LoginRequest
from auth.config import AuthConfig, load_auth_config
from auth.rate_limiter import RateLimiter
from auth.session import SessionManager
from auth.service import AuthService
from auth.security_middleware import AuthMiddleware, get_session
from auth.api import create_auth_router
