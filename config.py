import os
from dotenv import load_dotenv
from werkzeug.security import generate_password_hash

load_dotenv()


def _env_list(name, default):
    """Read a comma-separated environment variable into a list"""
    raw = os.environ.get(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///comments.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Reserved admin identity - both values are required (see AdminIdentity.from_config)
    # SERVER_PASSWORD_HASH accepts a bcrypt hash or a werkzeug generate_password_hash value
    ADMIN_USERNAME = os.environ.get('SERVER_USERNAME')
    ADMIN_PASSWORD_HASH = os.environ.get('SERVER_PASSWORD_HASH')

    # Cross-origin access
    CORS_ALLOWED_ORIGINS = _env_list('CORS_ALLOWED_ORIGINS', ['https://lain.ovh'])

    # Reverse proxy - client IP comes from X-Forwarded-For when enabled
    TRUST_PROXY = os.environ.get('TRUST_PROXY', 'true').lower() in ['true', 'on', '1']
    PROXY_FIX_X_FOR = int(os.environ.get('PROXY_FIX_X_FOR', 1))

    # Posting rules
    RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get('RATE_LIMIT_WINDOW_SECONDS', 24 * 60 * 60))
    USERNAME_MAX_LENGTH = 25
    CONTENT_MAX_LENGTH = 100

    # Pagination
    COMMENTS_PER_PAGE = 5

    # Flask-Limiter request throttle (separate from the daily posting rule)
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', '120 per minute')
    RATELIMIT_HEADERS_ENABLED = True

    # Request body limit - comments are tiny
    MAX_CONTENT_LENGTH = 16 * 1024

class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or 'sqlite:///comments_dev.db'

class ProductionConfig(Config):
    DEBUG = False

    # Pool options only apply to server databases; SQLite keeps its default pool
    if not Config.SQLALCHEMY_DATABASE_URI.startswith('sqlite'):
        SQLALCHEMY_ENGINE_OPTIONS = {
            'pool_size': 10,
            'pool_recycle': 3600,
            'pool_pre_ping': True,
            'max_overflow': 20
        }

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

    ADMIN_USERNAME = 'Admin'
    ADMIN_PASSWORD_HASH = generate_password_hash('correct-horse-battery-staple')

    CORS_ALLOWED_ORIGINS = ['https://lain.ovh']
    TRUST_PROXY = True
    PROXY_FIX_X_FOR = 1
    RATE_LIMIT_WINDOW_SECONDS = 24 * 60 * 60

    RATELIMIT_ENABLED = False

config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
