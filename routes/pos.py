"""
Selling routes (cashier and admin).

Handles:
- GET    /menu                    - Categories and items (optionally one category)
- GET    /cart                    - Current cart with preview total
- POST   /cart/items              - Add a line ({item_id, quantity})
- DELETE /cart/items/<item_id>    - Remove quantity (?quantity=N, default 1)
- POST   /cart/clear              - Empty the cart
- PUT    /cart/table              - Attach a dine-in table ({table_number})
- GET    /tables                  - Occupied tables
- POST   /checkout                - Commit the cart ({payment_method})
"""

from flask import Blueprint, jsonify, request

from logging_config import get_logger
from .context import current_terminal, json_payload, login_required


# Module logger
logger = get_logger(__name__)

pos_bp = Blueprint("pos", __name__)


@pos_bp.route("/menu", methods=["GET"])
@login_required
def menu():
    """Menu for the till, filtered by ?category= when given."""
    terminal = current_terminal()
    category_id = request.args.get("category") or None
    return jsonify({
        "categories": [c.to_dict() for c in terminal.categories()],
        "items": [item.to_dict() for item in terminal.menu(category_id)],
    })


@pos_bp.route("/cart", methods=["GET"])
@login_required
def view_cart():
    return jsonify(current_terminal().cart.to_dict())


@pos_bp.route("/cart/items", methods=["POST"])
@login_required
def add_to_cart():
    """Add an item to the cart, checked against current stock."""
    data = json_payload()
    terminal = current_terminal()
    terminal.add_to_cart(str(data.get("item_id", "")), data.get("quantity", 1))
    return jsonify(terminal.cart.to_dict())


@pos_bp.route("/cart/items/<item_id>", methods=["DELETE"])
@login_required
def remove_from_cart(item_id: str):
    """Remove quantity of an item; the line disappears at zero."""
    terminal = current_terminal()
    terminal.remove_from_cart(item_id, request.args.get("quantity", 1))
    return jsonify(terminal.cart.to_dict())


@pos_bp.route("/cart/clear", methods=["POST"])
@login_required
def clear_cart():
    terminal = current_terminal()
    terminal.clear_cart()
    return jsonify(terminal.cart.to_dict())


@pos_bp.route("/cart/table", methods=["PUT"])
@login_required
def set_table():
    """Attach a table to the cart; null detaches it (takeaway)."""
    data = json_payload()
    cart = current_terminal().set_table(data.get("table_number"))
    return jsonify(cart.to_dict())


@pos_bp.route("/tables", methods=["GET"])
@login_required
def tables():
    return jsonify({"occupied": current_terminal().occupied_tables()})


@pos_bp.route("/checkout", methods=["POST"])
@login_required
def checkout():
    """
    Charge the cart.

    Commits atomically: on any stock failure nothing is charged and the
    cart is kept so the cashier can adjust it.
    """
    data = json_payload()
    order = current_terminal().checkout(data.get("payment_method", "cash"))
    return jsonify({
        "order": order.to_dict(),
        "message": "Payment processed successfully!",
    }), 201
