"""
CrimeWatch - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and connection strings are loaded from environment variables.

Security: No secrets are hardcoded. Use .env for local development.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        DATABASE_URL: SQLAlchemy URL (SQLite for development, PostgreSQL in production)
        SESSION_STORE: "database" for durable sessions, "memory" for process-local ones
        SESSION_EXPIRE_DAYS: Fixed lifetime of a session from login
        BCRYPT_WORK_FACTOR: bcrypt cost (2^N rounds)
        EXPOSE_RESET_TOKENS: Return reset tokens in the HTTP body (development only)
        ALLOWED_ORIGINS: CORS allowed origins for the separately hosted frontend
        ADMIN_EMAIL: Recipient of new-report notifications
    """

    # Database (PostgreSQL for production, SQLite for development). Required.
    DATABASE_URL: Optional[str] = None

    # Sessions
    SESSION_STORE: str = "database"
    SESSION_EXPIRE_DAYS: int = 30
    SESSION_COOKIE_NAME: str = "crimewatch_session"
    SESSION_COOKIE_SECURE: bool = False

    # Security
    BCRYPT_WORK_FACTOR: int = 12
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    EXPOSE_RESET_TOKENS: bool = False  # Never enable in production

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Email notifications
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""  # Must be set via environment
    SMTP_USE_TLS: bool = True
    ADMIN_EMAIL: str = ""

    # Logging
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
