"""
Motion Hellas PCS
Configuration classes for the application factory.

Usage:
    app.config.from_object(config[os.getenv("APP_ENV", "development")])
"""

import os
import secrets

ROOT_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

SQLITE_DEV_URI = "sqlite:///" + os.path.join(ROOT_DIR, "instance", "pcs_dev.db")
SQLITE_TEST_URI = "sqlite:///:memory:"

# Vite dev servers used by the web client
DEV_CORS_ORIGINS = "http://localhost:5173,http://localhost:5174,http://localhost:5179"

SEVEN_DAYS = 7 * 24 * 3600


def _env_bool(name, default):
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name, default):
    return int(os.getenv(name, str(default)))


def _database_uri(fallback=None):
    uri = os.getenv("DATABASE_URL", "")
    if not uri:
        return fallback
    # SQLAlchemy 2.x only accepts the postgresql:// scheme
    if uri.startswith("postgres://"):
        uri = "postgresql://" + uri[len("postgres://"):]
    return uri


class Config:
    """Settings shared by every environment."""

    DEBUG = False
    TESTING = False

    # Token signing; a per-process random key keeps dev sessions short-lived
    SECRET_KEY = os.getenv("SECRET_KEY") or secrets.token_hex(32)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_EXPIRES = _env_int("JWT_EXPIRES", SEVEN_DAYS)

    # Session cookie ("token")
    SESSION_MAX_AGE = _env_int("SESSION_MAX_AGE", SEVEN_DAYS)
    SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", False)

    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 10)

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", DEV_CORS_ORIGINS)

    LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "10/minute")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    MAX_CONTENT_LENGTH = 2 * 1024 * 1024


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_uri(SQLITE_DEV_URI)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", SQLITE_TEST_URI)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SECRET_KEY = "pcs-testing-secret-key-0123456789abcdef"
    JWT_SECRET_KEY = None
    JWT_EXPIRES = SEVEN_DAYS
    BCRYPT_ROUNDS = 4
    SESSION_COOKIE_SECURE = False
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_uri()
    SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", True)
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "connect_args": {"options": "-c statement_timeout=30000"},
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not (os.getenv("SECRET_KEY") or os.getenv("JWT_SECRET_KEY")):
            raise RuntimeError("SECRET_KEY or JWT_SECRET_KEY must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
