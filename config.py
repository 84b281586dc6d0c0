"""
Configuration for Brew & Bean POS.

Values come from the environment (optionally a .env file). The refund
restock policy and the category report source are toggles; DESIGN.md
records the defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_NAME = "brew_pos_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")

    # Debug mode
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Transaction policy
    # ==========================================================================
    # RESTOCK_ON_REFUND: return refunded quantities to stock.
    #   Default: off (a refunded coffee is not put back on the shelf)
    #
    # CATEGORY_ROLLUP_SOURCE: where the category report takes an order
    # line's category from.
    #   "snapshot" - category captured at commit time (default)
    #   "live"     - item's current category (history shifts on reassignment)
    # ==========================================================================
    RESTOCK_ON_REFUND = _env_flag("RESTOCK_ON_REFUND", "0")
    CATEGORY_ROLLUP_SOURCE = os.environ.get("CATEGORY_ROLLUP_SOURCE", "snapshot")

    # Trailing windows for the analytics rollups
    DAILY_ROLLUP_DAYS = int(os.environ.get("DAILY_ROLLUP_DAYS", "7"))
    MONTHLY_ROLLUP_MONTHS = int(os.environ.get("MONTHLY_ROLLUP_MONTHS", "6"))

    # ==========================================================================
    # Demo data
    # ==========================================================================
    SEED_MENU = _env_flag("SEED_MENU", "1")
    DEFAULT_STOCK = int(os.environ.get("DEFAULT_STOCK", "50"))

    # Demo login credentials (the login boundary maps these to a role)
    ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin123")
    CASHIER_USERNAME = os.environ.get("CASHIER_USERNAME", "user")
    CASHIER_PASSWORD = os.environ.get("CASHIER_PASSWORD", "user123")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SECRET_KEY = "testing-secret-key"
    RESTOCK_ON_REFUND = False
    CATEGORY_ROLLUP_SOURCE = "snapshot"
    SEED_MENU = True
    DEFAULT_STOCK = 10
    ADMIN_USERNAME = "admin"
    ADMIN_PASSWORD = "admin123"
    CASHIER_USERNAME = "user"
    CASHIER_PASSWORD = "user123"
