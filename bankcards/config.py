"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. Secrets never live in source code: the .env file is gitignored.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

A missing or malformed CARD_ENCRYPTION_KEY fails validation when the
settings singleton is built, so the process refuses to start rather than
failing on the first card read.

Usage:
    from bankcards.config import settings
    print(settings.SECRET_KEY)
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# AES-256: 32 raw bytes, supplied as 64 hex characters
CARD_ENCRYPTION_KEY_BYTES = 32


class Settings(BaseSettings):
    """
    Central configuration for the Bank Cards API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign JWT tokens
      - CARD_ENCRYPTION_KEY: hex-encoded AES-256 key for card numbers at rest
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Bank Cards API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"

    # --- Database ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/bankcards.db"

    # --- Authentication ---
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # --- Card Encryption ---
    # Generate with: python -c "import secrets; print(secrets.token_hex(32))"
    CARD_ENCRYPTION_KEY: str

    # --- Cards and transfers ---
    CARD_OPENING_BALANCE_KOPECKS: int = 1_000_000  # 10 000.00 RUB
    CARD_VALIDITY_YEARS: int = 5
    CARD_NUMBER_MAX_ATTEMPTS: int = 5
    TRANSFER_MAX_ATTEMPTS: int = 5
    TRANSFER_CURRENCY: str = "RUB"

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

    @field_validator("CARD_ENCRYPTION_KEY")
    @classmethod
    def encryption_key_must_be_hex(cls, value: str) -> str:
        try:
            raw = bytes.fromhex(value)
        except ValueError:
            raise ValueError("CARD_ENCRYPTION_KEY must be hex-encoded")
        if len(raw) != CARD_ENCRYPTION_KEY_BYTES:
            raise ValueError(
                f"CARD_ENCRYPTION_KEY must decode to {CARD_ENCRYPTION_KEY_BYTES} bytes, "
                f"got {len(raw)}"
            )
        return value

    @field_validator("LOG_FORMAT")
    @classmethod
    def log_format_must_be_known(cls, value: str) -> str:
        if value not in ("text", "json"):
            raise ValueError("LOG_FORMAT must be 'text' or 'json'")
        return value

    @property
    def card_encryption_key_bytes(self) -> bytes:
        return bytes.fromhex(self.CARD_ENCRYPTION_KEY)


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
