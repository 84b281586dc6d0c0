"""
Brew & Bean POS - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env, then the config class)
2. Sets up thread-aware logging
3. Builds the PointOfSale (catalog, inventory, carts, orders, analytics)
4. Registers route blueprints
5. Maps POS errors to JSON responses

ARCHITECTURE:
    Main Thread
    ├── PointOfSale construction (seed menu)
    └── Flask request handling

    Request Threads (one per terminal request)
    └── Share the single PointOfSale; the ledgers do their own locking

All state is in memory and lives as long as the process.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from logging_config import setup_logging, get_logger
from core.exceptions import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    POSError,
    StockError,
    ValidationError,
)
from services.pos_service import PointOfSale
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)

# HTTP status per error class, most specific first
ERROR_STATUS = (
    (ValidationError, 400),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (StockError, 409),
    (InvalidStateError, 409),
)


def _get_base_path() -> Path:
    """Directory containing app.py, where an optional .env lives."""
    return Path(__file__).parent


def status_for(error: POSError) -> int:
    """HTTP status code for a POS error."""
    for error_class, status in ERROR_STATUS:
        if isinstance(error, error_class):
            return status
    return 400


def create_app(config_object: str = "config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the config class to load

    Returns:
        Configured Flask application
    """
    # Load .env from base path (next to executable in production)
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    # Create Flask app
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="brew_pos",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting Brew & Bean POS in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CORE INITIALIZATION
    # =========================================================================

    app.config["POS"] = PointOfSale.from_config(app.config)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(POSError)
    def handle_pos_error(e: POSError):
        status = status_for(e)
        logger.warning(f"{status} {e.kind}: {e}")
        return jsonify(e.to_dict()), status

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({
            "error": "not_found",
            "message": "Resource not found.",
            "details": {},
        }), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({
            "error": "method_not_allowed",
            "message": "Method not allowed.",
            "details": {},
        }), 405

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({
            "error": "server_error",
            "message": "An unexpected error occurred. Please try again.",
            "details": {},
        }), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
