"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    # Only the submission journal is stored locally.
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'orderdesk')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'orderdesk')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'orderdesk')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # ERP backend (source of truth for persisted orders)
    ORDERDESK_BACKEND_URL = os.getenv('ORDERDESK_BACKEND_URL', 'http://localhost:8080/api')
    ORDERDESK_BACKEND_TOKEN = os.getenv('ORDERDESK_BACKEND_TOKEN')
    ORDERDESK_BACKEND_TIMEOUT = float(os.getenv('ORDERDESK_BACKEND_TIMEOUT', '10'))

    # Totals preview
    DEFAULT_LOCALE = os.getenv('DEFAULT_LOCALE', 'vi-VN')
    PURCHASE_ORDER_POLICY = os.getenv('PURCHASE_ORDER_POLICY', 'order_level')
    SALES_ORDER_POLICY = os.getenv('SALES_ORDER_POLICY', 'per_line')
    # Unset: line discounts follow the tax policy
    PURCHASE_ORDER_DISCOUNT_MODE = os.getenv('PURCHASE_ORDER_DISCOUNT_MODE')
    SALES_ORDER_DISCOUNT_MODE = os.getenv('SALES_ORDER_DISCOUNT_MODE')

    # Business Information (printed order summaries)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'My Business')
    BUSINESS_ADDRESS = os.getenv('BUSINESS_ADDRESS', '')
    BUSINESS_PHONE = os.getenv('BUSINESS_PHONE', '')
    BUSINESS_EMAIL = os.getenv('BUSINESS_EMAIL', '')


class TestingConfig(Config):
    """Configuration for the test suite (in-memory SQLite, no real backend)."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    ORDERDESK_BACKEND_URL = 'http://backend.test/api'
    ORDERDESK_BACKEND_TOKEN = 'test-token'
    PURCHASE_ORDER_POLICY = 'order_level'
    SALES_ORDER_POLICY = 'per_line'
    PURCHASE_ORDER_DISCOUNT_MODE = None
    SALES_ORDER_DISCOUNT_MODE = None
    DEFAULT_LOCALE = 'vi-VN'
