"""
Application configuration.
"""

from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional


# Project root (where .env lives)
PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings."""

    # Application
    APP_NAME: str = "eShop Simplified"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    SITE_URL: str = "http://localhost:3000"  # storefront base URL, used for gateway redirects
    API_URL: str = "http://localhost:8000"  # public URL of this API, used for gateway callbacks

    # Database
    DATABASE_PATH: Path = PROJECT_ROOT / "database" / "eshop.db"

    # Uploads
    UPLOADS_DIR: Path = PROJECT_ROOT / "uploads"
    MAX_FILE_SIZE: int = 5 * 1024 * 1024  # 5 MB
    ALLOWED_IMAGE_TYPES: list = ["image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"]

    # CORS
    CORS_ORIGINS: list = ["*"]

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 10

    # Razorpay
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_WEBHOOK_SECRET: str = ""

    # PayU
    PAYU_KEY: str = ""
    PAYU_SALT: str = ""
    PAYU_BASE_URL: str = "https://test.payu.in/_payment"

    CURRENCY: str = "INR"

    # Sentry
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 1.0
    SENTRY_ENVIRONMENT: str = "development"

    # Telegram admin notifications
    BOT_TOKEN: str = ""
    ADMIN_CHAT_ID: Optional[int] = None

    # Gemini (bargain assistant)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Admin bootstrap (scripts/create_admin.py)
    ADMIN_EMAIL: str = "admin@eshop.com"
    ADMIN_PASSWORD: str = ""

    class Config:
        env_file = str(ENV_FILE)
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()
