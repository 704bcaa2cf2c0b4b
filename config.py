"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _float_tuple(raw, default):
    """Parse a comma separated list of floats (e.g. '37.33,-122.0,0.05,0.05')."""
    if not raw:
        return default
    try:
        return tuple(float(part) for part in raw.split(','))
    except ValueError:
        return default


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # CSRF on form posts (Flask-WTF)
    WTF_CSRF_ENABLED = os.getenv('WTF_CSRF_ENABLED', 'true').lower() == 'true'

    # Database
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///diary.db')

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Upload constraints (attachments are stored in the database)
    MAX_UPLOAD_SIZE = int(os.getenv('MAX_UPLOAD_SIZE', 10 * 1024 * 1024))  # 10MB

    # Location search (Nominatim-compatible geocoder)
    GEOCODER_URL = os.getenv('GEOCODER_URL', 'https://nominatim.openstreetmap.org/search')
    GEOCODER_USER_AGENT = os.getenv('GEOCODER_USER_AGENT', 'diary-service/1.0')
    GEOCODER_TIMEOUT = float(os.getenv('GEOCODER_TIMEOUT', '5'))
    GEOCODER_LIMIT = int(os.getenv('GEOCODER_LIMIT', '10'))
    LOCATION_SEARCH_DEBOUNCE_MS = int(os.getenv('LOCATION_SEARCH_DEBOUNCE_MS', '400'))
    # (latitude, longitude, latitude_delta, longitude_delta)
    LOCATION_DEFAULT_REGION = _float_tuple(
        os.getenv('LOCATION_DEFAULT_REGION'),
        (37.334900, -122.009020, 0.05, 0.05)
    )


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
