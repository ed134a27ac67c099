"""Pydantic schemas for authentication endpoints (login and refresh)."""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    username: str
    password: str


class RefreshRequest(BaseModel):
    """Request body for POST /auth/refresh."""
    refresh_token: str


class TokenPairResponse(BaseModel):
    """Access and refresh tokens returned by login and refresh."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
