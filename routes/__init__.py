"""
Flask route blueprints for Brew & Bean POS.

This module contains all route handlers organized by functionality:
- auth: Login, logout and current role
- pos: Menu, cart and checkout
- orders: Order history and refunds
- admin: Inventory and category management
- reports: Sales analytics
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .auth import auth_bp
from .pos import pos_bp
from .orders import orders_bp
from .admin import admin_bp
from .reports import reports_bp
from .api import api_bp

__all__ = [
    "auth_bp",
    "pos_bp",
    "orders_bp",
    "admin_bp",
    "reports_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(auth_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(api_bp)
