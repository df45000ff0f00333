"""
Environment-aware configuration.
Token lifetimes, cookie attributes, JWT signing and logging.
The database URL is resolved by DBStorage from APP_ENV / DATABASE_URL.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _seconds(name: str, default: int) -> timedelta:
    return timedelta(seconds=int(os.getenv(name, str(default))))


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    # access token, default 1 day
    JWT_TOKEN_EXPIRES = _seconds("JWT_TOKEN_EXPIRES_SECONDS", 24 * 60 * 60)
    # refresh token row expiry and refresh cookie max-age, default 30 days
    REFRESH_TOKEN_EXPIRES = _seconds("REFRESH_TOKEN_EXPIRES_SECONDS", 30 * 24 * 60 * 60)
    PASSWORD_RESET_EXPIRES = _seconds("PASSWORD_RESET_EXPIRES_SECONDS", 24 * 60 * 60)
    EMAIL_VERIFICATION_EXPIRES = _seconds("EMAIL_VERIFICATION_EXPIRES_SECONDS", 48 * 60 * 60)

    COOKIE_SECURE = False
    COOKIE_SAMESITE = "Strict"
    COOKIE_PATH = "/"


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "test"
    JWT_SECRET = "test-secret-key-for-testing-only-0123456789"


class ProductionConfig(BaseConfig):
    DEBUG = False
    COOKIE_SECURE = True


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
