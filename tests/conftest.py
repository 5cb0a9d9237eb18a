"""Test environment: settings are read at import time, so set them before app is imported."""

import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-access-secret-0123456789abcdef"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcdef"
os.environ["APP_ENV"] = "dev"
os.environ["RETENTION_ENABLED"] = "true"

import app.core.security as security  # noqa: E402

# Minimum bcrypt cost keeps password hashing fast in tests.
security.BCRYPT_ROUNDS = 4
