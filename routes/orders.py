"""
Order history routes.

Handles:
- GET  /orders                     - Orders, newest first (?start, ?end, ?status, ?category)
- GET  /orders/<order_id>          - One order
- POST /orders/<order_id>/refund   - Refund a completed order (admin)

Dates are ISO calendar dates (YYYY-MM-DD) compared against the local date
of each order.
"""

from flask import Blueprint, jsonify, request

from logging_config import get_logger
from .context import current_terminal, login_required, parse_date_arg


# Module logger
logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__)


@orders_bp.route("/orders", methods=["GET"])
@login_required
def list_orders():
    orders = current_terminal().orders(
        start=parse_date_arg("start"),
        end=parse_date_arg("end"),
        status=request.args.get("status") or None,
        category_id=request.args.get("category") or None,
    )
    return jsonify({
        "orders": [order.to_dict() for order in orders],
        "count": len(orders),
    })


@orders_bp.route("/orders/<order_id>", methods=["GET"])
@login_required
def get_order(order_id: str):
    return jsonify({"order": current_terminal().get_order(order_id).to_dict()})


@orders_bp.route("/orders/<order_id>/refund", methods=["POST"])
@login_required
def refund_order(order_id: str):
    """Refund an order. A second refund of the same order is rejected."""
    order = current_terminal().refund(order_id)
    logger.info(f"Order {order.id} refunded via API")
    return jsonify({
        "order": order.to_dict(),
        "message": f"Order {order.id} refunded",
    })
