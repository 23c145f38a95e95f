"""Test settings - uses SQLite for fast local testing."""
from .base import *  # noqa: F401,F403

DEBUG = True
SECRET_KEY = "test-secret-key-not-used-outside-the-test-suite-0123456789"

# Use SQLite for tests (no PostgreSQL dependency)
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}
DATABASES["default"]["ATOMIC_REQUESTS"] = False

# Faster password hashing in tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

CURRENCY = "OMR"
IMPORT_ERROR_LIMIT = 10

# Disable logging noise during tests
LOGGING["root"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["salesdash"]["handlers"] = ["console"]  # noqa: F405
LOGGING["loggers"]["salesdash"]["level"] = "WARNING"  # noqa: F405
