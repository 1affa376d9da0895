import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _split(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key'
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key'

    # Catalog (relational) and orders (document) stores
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///foodapp.db'
    SQLALCHEMY_BINDS = {
        'orders': os.environ.get('ORDERS_DATABASE_URL') or 'sqlite:///foodapp_orders.db',
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Every datastore call is bounded by the pool checkout timeout
    STORE_TIMEOUT_SECONDS = int(os.environ.get('STORE_TIMEOUT_SECONDS', 10))
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_timeout': STORE_TIMEOUT_SECONDS,
    }

    APP_URL = os.environ.get('APP_URL') or 'http://localhost:3001'
    CORS_ORIGINS = _split(os.environ.get('CORS_ORIGINS') or '*')

    # File Upload Configuration
    UPLOAD_DIR = os.environ.get('UPLOAD_DIR') or os.path.join(os.getcwd(), 'uploads')
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB
    ALLOWED_IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'webp'}

    # Payments
    STRIPE_SECRET_KEY = os.environ.get('STRIPE_SECRET_KEY')
    PAYMENT_CURRENCY = os.environ.get('PAYMENT_CURRENCY', 'brl')

    # Order lifecycle
    CANCEL_WINDOW_MINUTES = int(os.environ.get('CANCEL_WINDOW_MINUTES', 30))
    SWEEPER_ENABLED = os.environ.get('SWEEPER_ENABLED', 'True').lower() == 'true'
    SWEEPER_INTERVAL_SECONDS = int(os.environ.get('SWEEPER_INTERVAL_SECONDS', 300))
    SWEEPER_STALE_MINUTES = int(os.environ.get('SWEEPER_STALE_MINUTES', 60))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')  # Must be set in production
    SQLALCHEMY_BINDS = {'orders': os.environ.get('ORDERS_DATABASE_URL')}


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_BINDS = {'orders': 'sqlite://'}
    # in-memory sqlite runs on a StaticPool, which takes no pool_timeout
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = 'testing-jwt-secret-key-with-enough-length'
    STRIPE_SECRET_KEY = 'sk_test_dummy'
    SWEEPER_ENABLED = False
    APP_URL = 'http://testserver'
