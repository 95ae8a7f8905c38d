"""
Testing configuration for the zone dispatch service
"""
import os
from datetime import timedelta

from config.settings import Config


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""

    TESTING = True
    DEBUG = False

    # Use in-memory SQLite for fast tests
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'TEST_DATABASE_URL',
        'sqlite:///:memory:'
    )
    # SQLite in-memory uses a static pool, which takes no sizing options
    SQLALCHEMY_ENGINE_OPTIONS = {}

    SECRET_KEY = 'test-secret-key'
    JWT_SECRET_KEY = 'test-jwt-secret'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'

    # Logging
    LOG_LEVEL = 'WARNING'

    # Deliver driver notifications inline so tests can assert on them
    NOTIFICATIONS_ASYNC = False

    CORS_ORIGINS = ['http://localhost:5173', 'http://localhost:3000']
