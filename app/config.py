"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This pattern keeps secrets out of source code — the .env file is
gitignored, and .env.example provides a safe template for developers.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

Usage:
    from app.config import settings
    print(settings.SECRET_KEY)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Bank Cards API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign JWT tokens
      - CARD_ENCRYPTION_SECRET / CARD_ENCRYPTION_SALT: key material for
        encrypting card numbers at rest

    A missing required field makes `Settings()` raise a ValidationError at
    import time, so the process refuses to start instead of failing on the
    first request that touches a card.
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
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    # SQLite for development; swap to a PostgreSQL URL (asyncpg) for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/bank_cards.db"

    # --- Authentication ---
    # REQUIRED: No default — forces the developer to set a real secret
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Card Encryption ---
    # REQUIRED: the secret and salt are stretched with PBKDF2 into the
    # Fernet key used for card numbers. Changing either makes every stored
    # card number unreadable.
    CARD_ENCRYPTION_SECRET: str
    CARD_ENCRYPTION_SALT: str

    # --- Bootstrap ---
    # The master admin is only provisioned when a password is configured
    MASTER_ADMIN_USERNAME: str = "owner"
    MASTER_ADMIN_PASSWORD: str | None = None
    SEED_DEMO_DATA: bool = False

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
