"""
config.py
-----------------
Application settings, loaded from the environment (and a local .env file).
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")

    # MongoDB (the database name is part of the URI)
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/SchoolERP")

    # Session tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "30"))

    # Password hashing (werkzeug method string, carries the cost factor)
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt:32768:8:1")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Bootstrap (indexes, catalog, roles, default admin); otherwise run `flask seed`
    SEED_ON_STARTUP = _env_bool("SEED_ON_STARTUP", True)
    DEFAULT_ADMIN_USERNAME = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
    DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@school.com")
    DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")

    USERS_PAGE_LIMIT_MAX = int(os.getenv("USERS_PAGE_LIMIT_MAX", "100"))

    # HTTP protections
    CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024
    FORCE_HTTPS = _env_bool("FORCE_HTTPS", False)

    # Per-IP limit shared by every /api route (Flask-Limiter settings)
    RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "100"))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_APPLICATION = f"{RATE_LIMIT_MAX} per {RATE_LIMIT_WINDOW_SECONDS} seconds"
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_HEADERS_ENABLED = True


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-jwt-secret"
    MONGO_URI = "mongodb://localhost:27017/SchoolERP_test"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    LOG_LEVEL = "WARNING"
    DEFAULT_ADMIN_PASSWORD = "admin123"
    SEED_ON_STARTUP = False
    RATELIMIT_ENABLED = False
