"""
Application Configuration

Uses Pydantic Settings for environment variable management with validation.
"""

from datetime import timedelta
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Identity directory
    DATABASE_URL: str = "postgresql+asyncpg://postgres@localhost:5432/postgres"

    # Ephemeral store
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 5.0

    # Token signing
    SECRET_KEY: str = "default-signing-key-change-in-production"
    ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "campus-vault"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=15, ge=1)

    # One-time codes
    OTP_EXPIRE_SECONDS: int = Field(default=300, ge=1)
    OTP_COOLDOWN_SECONDS: int = Field(default=60, ge=1)
    OTP_MAX_ATTEMPTS: int = Field(default=3, ge=1)

    # Refresh tokens
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=7, ge=1)

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # SMTP (login code delivery)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_TIMEOUT: float = 10.0
    EMAIL_FROM_ADDRESS: str = "noreply@example.com"
    EMAIL_FROM_NAME: str = "Campus Vault"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def access_token_expiry(self) -> timedelta:
        return timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)

    @property
    def otp_expiry(self) -> timedelta:
        return timedelta(seconds=self.OTP_EXPIRE_SECONDS)

    @property
    def otp_cooldown(self) -> timedelta:
        return timedelta(seconds=self.OTP_COOLDOWN_SECONDS)

    @property
    def refresh_expiry(self) -> timedelta:
        return timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
