"""
Application Configuration
Loads environment variables and provides configuration classes for different environments
"""

import os
from datetime import timedelta
from dotenv import load_dotenv

# Load environment variables from .env file
basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, '.env'))


class Config:
    """Base configuration class"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'cashier.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # Business Configuration
    BUSINESS_NAME = os.environ.get('BUSINESS_NAME', 'Cashier POS')
    CURRENCY = os.environ.get('CURRENCY', 'VND')

    # Returns
    RETURN_WINDOW_HOURS = int(os.environ.get('RETURN_WINDOW_HOURS', 24))
    RETURN_NUMBER_PREFIX = os.environ.get('RETURN_NUMBER_PREFIX', 'RT')
    RETURN_NUMBER_MAX_ATTEMPTS = int(os.environ.get('RETURN_NUMBER_MAX_ATTEMPTS', 5))
    RETURN_REASON_MAX_LENGTH = int(os.environ.get('RETURN_REASON_MAX_LENGTH', 255))
    RETURNS_PER_PAGE = int(os.environ.get('RETURNS_PER_PAGE', 5))

    # Session Configuration
    PERMANENT_SESSION_LIFETIME = timedelta(
        seconds=int(os.environ.get('PERMANENT_SESSION_LIFETIME', 3600))
    )
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'False').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # CSRF Configuration
    WTF_CSRF_TIME_LIMIT = None  # valid for the session lifetime
    WTF_CSRF_SSL_STRICT = False
    WTF_CSRF_HEADERS = ['X-CSRFToken', 'X-CSRF-Token']

    # Rate limiting
    RATELIMIT_ENABLED = os.environ.get('RATELIMIT_ENABLED', 'True').lower() == 'true'
    RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', '200 per day;50 per hour')
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    LOGIN_RATE_LIMIT = os.environ.get('LOGIN_RATE_LIMIT', '10 per minute')

    # Logging
    LOG_FOLDER = os.path.join(basedir, 'logs')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_TO_FILE = os.environ.get('LOG_TO_FILE', 'True').lower() == 'true'

    # Sentry Error Tracking (optional)
    SENTRY_DSN = os.environ.get('SENTRY_DSN', '')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = False  # Set to True to see SQL queries


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    # Respect environment variable to allow HTTP in local production setups
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'True').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SQLALCHEMY_ECHO = False

    PREFERRED_URL_SCHEME = 'https' if SESSION_COOKIE_SECURE else 'http'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    LOG_TO_FILE = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
