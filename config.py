"""
Configuration for the dating app backend
"""
import os
import secrets
from datetime import timedelta


def _database_url():
    url = os.environ.get('DATABASE_URL', 'postgresql://localhost/dating_app')
    # Heroku/Render style URLs are not accepted by SQLAlchemy 1.4+
    return url.replace('postgres://', 'postgresql://', 1)


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', secrets.token_hex(32))
    PRODUCTION = bool(os.environ.get('PRODUCTION'))

    # Database configuration
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
        'max_overflow': 40,
        'pool_timeout': 30
    }

    # JWT
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRATION_HOURS = int(os.environ.get('JWT_EXPIRATION_HOURS', 24))
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)

    # Realtime
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379')
    # 'memory' keeps connections in this process, 'redis' shares them across instances
    CONNECTION_REGISTRY = os.environ.get('CONNECTION_REGISTRY', 'memory')
    # Redis entries expire unless the client registers or heartbeats again
    CONNECTION_TTL_SECONDS = int(os.environ.get('CONNECTION_TTL_SECONDS', 3600))
    CORS_ORIGINS = [
        origin.strip() for origin in
        os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if origin.strip()
    ]

    # Discovery
    DISCOVERY_RESULT_LIMIT = int(os.environ.get('DISCOVERY_RESULT_LIMIT', 20))

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = "5000 per day;500 per hour"
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    SWIPE_RATE_LIMIT = os.environ.get('SWIPE_RATE_LIMIT', '120 per minute')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    CONNECTION_REGISTRY = 'memory'
    RATELIMIT_ENABLED = False
