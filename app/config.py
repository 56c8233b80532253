"""Configuration settings for the sample app."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./sample_app.db")

    # JWT (session cookie and signed remember-me user id)
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", "480"))
    REMEMBER_COOKIE_DAYS: int = int(os.getenv("REMEMBER_COOKIE_DAYS", "7300"))  # 20 years

    # Credentials
    BCRYPT_MIN_COST: bool = os.getenv("BCRYPT_MIN_COST", "false").lower() == "true"
    PASSWORD_RESET_EXPIRY_HOURS: int = int(os.getenv("PASSWORD_RESET_EXPIRY_HOURS", "2"))

    # Mail
    MAIL_DELIVERY_METHOD: str = os.getenv("MAIL_DELIVERY_METHOD", "console")  # console, smtp, test
    MAIL_FROM: str = os.getenv("MAIL_FROM", "noreply@example.com")
    SMTP_HOST: str | None = os.getenv("SMTP_HOST")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str | None = os.getenv("SMTP_USER")
    SMTP_PASSWORD: str | None = os.getenv("SMTP_PASSWORD")
    APP_URL: str = os.getenv("APP_URL", "http://localhost:8000")

    # Pagination
    PER_PAGE: int = int(os.getenv("PER_PAGE", "30"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not os.getenv("JWT_SECRET_KEY"):
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if self.MAIL_DELIVERY_METHOD == "smtp" and not self.SMTP_HOST:
            errors.append("MAIL_DELIVERY_METHOD is smtp but SMTP_HOST is not set")
        if self.BCRYPT_MIN_COST and self.APP_ENV == "production":
            errors.append("BCRYPT_MIN_COST is enabled in production - password hashes will be weak")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
