"""
Inventory management routes (admin).

Handles:
- GET    /admin/items                  - All items with margin
- POST   /admin/items                  - Add an item
- PATCH  /admin/items/<item_id>        - Edit name/prices/category/image
- DELETE /admin/items/<item_id>        - Remove an item
- POST   /admin/items/<item_id>/stock  - Adjust ({delta}) or set ({stock}) stock
- POST   /admin/categories             - Add a category
- DELETE /admin/categories/<id>        - Remove an unused category

Text fields are sanitized here, before they reach the ledger.
"""

from flask import Blueprint, jsonify, request

from core.exceptions import ValidationError
from logging_config import get_logger
from services.inventory_service import EDITABLE_FIELDS
from .context import current_terminal, json_payload, login_required, sanitize_text


# Module logger
logger = get_logger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

MAX_IMAGE_URL_LENGTH = 500


def _clean_fields(data: dict, allowed) -> dict:
    cleaned = {}
    for field in allowed:
        if field not in data:
            continue
        value = data[field]
        if field == "name":
            value = sanitize_text(value)
        elif field == "image":
            value = sanitize_text(value, max_length=MAX_IMAGE_URL_LENGTH)
        cleaned[field] = value
    return cleaned


@admin_bp.route("/items", methods=["GET"])
@login_required
def list_items():
    category_id = request.args.get("category") or None
    items = current_terminal().inventory(category_id)
    return jsonify({"items": [item.to_dict() for item in items]})


@admin_bp.route("/items", methods=["POST"])
@login_required
def add_item():
    """Add an item; unknown fields are ignored."""
    data = json_payload()
    fields = _clean_fields(data, EDITABLE_FIELDS)
    item = current_terminal().add_item(
        name=fields.get("name", ""),
        selling_price=fields.get("selling_price"),
        cost_price=fields.get("cost_price", 0.0),
        category_id=fields.get("category_id", ""),
        stock=data.get("stock", 0),
        image=fields.get("image", ""),
    )
    return jsonify({"item": item.to_dict(), "message": f"{item.name} added successfully"}), 201


@admin_bp.route("/items/<item_id>", methods=["PATCH"])
@login_required
def update_item(item_id: str):
    """Edit an item through the ledger's validated setter."""
    data = json_payload()
    if "stock" in data:
        raise ValidationError(
            "Stock is changed through /admin/items/<id>/stock", field="stock"
        )
    unknown = sorted(set(data) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationError(
            f"Cannot update field(s): {', '.join(unknown)}", field=unknown[0]
        )
    item = current_terminal().update_item(item_id, _clean_fields(data, EDITABLE_FIELDS))
    return jsonify({"item": item.to_dict(), "message": f"{item.name} updated successfully"})


@admin_bp.route("/items/<item_id>", methods=["DELETE"])
@login_required
def remove_item(item_id: str):
    item = current_terminal().remove_item(item_id)
    return jsonify({"item": item.to_dict(), "message": "Item deleted successfully"})


@admin_bp.route("/items/<item_id>/stock", methods=["POST"])
@login_required
def change_stock(item_id: str):
    """
    Change stock.

    {"delta": n} adjusts (clamped at zero), {"stock": n} overwrites.
    The response reports whether the adjustment was clamped.
    """
    data = json_payload()
    terminal = current_terminal()
    if "stock" in data:
        stock = terminal.set_stock(item_id, data["stock"])
        return jsonify({"item_id": item_id, "stock": stock, "clamped": False})
    if "delta" not in data:
        raise ValidationError("Provide 'delta' or 'stock'", field="delta")

    return jsonify(terminal.adjust_stock(item_id, data["delta"]).to_dict())


@admin_bp.route("/categories", methods=["POST"])
@login_required
def add_category():
    data = json_payload()
    category = current_terminal().add_category(sanitize_text(data.get("name")))
    return jsonify({
        "category": category.to_dict(),
        "message": f'Category "{category.name}" added successfully',
    }), 201


@admin_bp.route("/categories/<category_id>", methods=["DELETE"])
@login_required
def remove_category(category_id: str):
    category = current_terminal().remove_category(category_id)
    return jsonify({"category": category.to_dict(), "message": "Category deleted"})
