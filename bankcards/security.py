"""
Security utilities: password hashing and JWT token pairs.

Card-number encryption lives in crypto.py; this module covers the
authentication collaborator only.

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - passlib's CryptContext with the "argon2" scheme (Argon2id)

2. JWT TOKENS
   - Login returns a pair: a short-lived access token and a longer-lived
     refresh token, both HS256-signed with SECRET_KEY
   - "sub" carries the user id, "type" is "access" or "refresh"; an access
     token is never accepted where a refresh token is expected and vice versa
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from bankcards.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password using Argon2id."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a stored Argon2 hash (constant time)."""
    return pwd_context.verify(plain_password, hashed_password)


# ---------------------------------------------------------------------------
# 2. JWT Tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _encode(subject: str, token_type: str, expires_delta: timedelta) -> str:
    payload = {
        "sub": subject,
        "type": token_type,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_token_pair(subject: str) -> TokenPair:
    """Mint an access/refresh pair for the given subject (user id as string)."""
    return TokenPair(
        access_token=_encode(
            subject,
            ACCESS_TOKEN_TYPE,
            timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        ),
        refresh_token=_encode(
            subject,
            REFRESH_TOKEN_TYPE,
            timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        ),
    )


def decode_token(token: str, expected_type: str) -> str:
    """
    Decode and verify a token, returning its subject.

    Raises:
        JWTError: If the token is expired, tampered with, malformed, or of
            the wrong type.
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    if payload.get("type") != expected_type:
        raise JWTError(f"Expected a {expected_type} token")
    subject = payload.get("sub")
    if subject is None:
        raise JWTError("Token has no subject")
    return subject
