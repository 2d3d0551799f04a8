"""
Environment-aware configuration.
Values come from the process environment (and .env via python-dotenv);
get_config() picks the class for APP_ENV.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _list(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///session-auth.db")
    # CORS: comma-separated list of origins; cookies require explicit origins
    CORS_ORIGINS = _list("CORS_ORIGINS", "http://localhost:5000,http://localhost:5050")

    # Access credentials
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "3600")))

    # Refresh tokens
    REFRESH_TOKEN_RETENTION = timedelta(
        seconds=int(os.getenv("REFRESH_TOKEN_RETENTION_SECONDS", str(7 * 24 * 3600)))
    )
    REFRESH_TOKEN_ROTATION = _bool("REFRESH_TOKEN_ROTATION")
    REJECT_REFRESH_ANOMALIES = _bool("REJECT_REFRESH_ANOMALIES")
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refreshToken")
    REFRESH_COOKIE_SECURE = False

    # Google identity provider and admin bootstrap
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")

    # Admission limiter and background sweeps
    RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "60"))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", "300"))
    START_MAINTENANCE = _bool("START_MAINTENANCE", "true")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    JWT_SECRET = "test-secret-key-for-testing-only"
    GOOGLE_CLIENT_ID = "test-client-id"
    ADMIN_EMAIL = "admin@example.com"
    START_MAINTENANCE = False
    REFRESH_TOKEN_ROTATION = False
    REJECT_REFRESH_ANOMALIES = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    REFRESH_COOKIE_SECURE = True


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
