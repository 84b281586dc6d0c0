"""
API routes.

Handles:
- /health - Health check endpoint
"""

from flask import Blueprint, current_app, jsonify

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with component status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    pos = current_app.config.get("POS")
    if pos is None:
        health_status["status"] = "degraded"
        health_status["checks"]["pos"] = "not_initialized"
        return jsonify(health_status), 503

    health_status["checks"]["pos"] = "initialized"
    health_status["checks"]["categories"] = len(pos.catalog)
    health_status["checks"]["items"] = len(pos.inventory)
    health_status["checks"]["open_carts"] = len(pos.carts)
    health_status["checks"]["orders"] = len(pos.orders)

    return jsonify(health_status)
