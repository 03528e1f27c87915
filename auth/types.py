"""Pydantic models for auth domain."""

from datetime import datetime

from pydantic import BaseModel, Field


class Session(BaseModel):
    """
    An authenticated operator session.

    Passed explicitly to route handlers through the get_session dependency.
    """

    token: str = Field(..., description="Session token (opaque string)")
    username: str
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime

    def to_public(self) -> dict:
        """Session fields safe to return to the browser (no token)."""
        return {
            "username": self.username,
            "createdAt": self.created_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
        }


class LoginRequest(BaseModel):
    """Request payload for password login."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=200)
