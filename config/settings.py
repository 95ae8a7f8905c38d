"""
Configuration settings for different environments
"""
import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _database_url(default):
    """Read DATABASE_URL, rewriting postgres:// to postgresql:// for SQLAlchemy 2.x"""
    url = os.environ.get('DATABASE_URL') or default
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url('postgresql://localhost/zone_dispatch_dev')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 10,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }

    # JWT
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET') or SECRET_KEY
    JWT_ALGORITHM = 'HS256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=12)

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    API_PREFIX = '/api'

    # Rate limiting (Flask-Limiter)
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Zone reassignment
    ELIGIBLE_ORDER_STATUSES = ('confirmed', 'ready', 'out_for_delivery')

    # Driver zone notifications are handed to a background worker thread.
    NOTIFICATIONS_ASYNC = os.environ.get('NOTIFICATIONS_ASYNC', 'true').lower() in ['true', 'on', '1']


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    SQLALCHEMY_DATABASE_URI = _database_url('sqlite:///zone_dispatch.db')
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }
