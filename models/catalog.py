"""
Catalog data models.

These models represent the sellable menu: categories and the items that
belong to them. Items are owned by the inventory ledger, which is the only
component allowed to mutate them.

Validation:
    - Category.create() and Item.create() reject malformed input with
      ValidationError instead of storing it
    - Category is frozen (immutable once referenced)
    - Item is mutable, but only through InventoryLedger setters
"""

from __future__ import annotations

import re
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

from core.exceptions import ValidationError


MAX_NAME_LENGTH = 80

_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """Category id from its display name ("Cold Drinks" -> "cold-drinks")."""
    return _WHITESPACE.sub("-", name.strip().lower())


def clean_name(name: Optional[str], field: str = "name") -> str:
    """
    Normalize and validate a display name.

    Raises:
        ValidationError: If the name is empty or too long
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(f"{field.capitalize()} must not be empty", field=field)
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{field.capitalize()} is longer than {MAX_NAME_LENGTH} characters",
            field=field,
        )
    return cleaned


def validate_price(value: Any, field: str, allow_zero: bool) -> float:
    """
    Coerce a price to float and check its sign.

    Raises:
        ValidationError: If the value is not a number or has the wrong sign
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field) from None
    if price != price or price in (float("inf"), float("-inf")):
        raise ValidationError(f"{field} must be a finite number", field=field)
    if price < 0 or (price == 0 and not allow_zero):
        bound = "negative" if allow_zero else "zero or negative"
        raise ValidationError(f"{field} must not be {bound}", field=field, value=price)
    return price


def margin(selling_price: float, cost_price: float) -> float:
    """
    Gross margin as a fraction of the selling price.

    A zero cost price yields 0, not 1: an item without a recorded cost
    has no known margin.

        margin(4.00, 1.00) == 0.75
        margin(4.00, 0.00) == 0
    """
    if cost_price == 0:
        return 0.0
    return (selling_price - cost_price) / selling_price


@dataclass(frozen=True)
class Category:
    """
    A menu category.

    Immutable: once items reference a category it can be neither renamed
    nor deleted.
    """

    id: str
    """Slug derived from the name (e.g., 'cold-drinks')."""

    name: str
    """Display name (e.g., 'Cold Drinks')."""

    @classmethod
    def create(cls, name: str, category_id: Optional[str] = None) -> "Category":
        """
        Build a validated category.

        Args:
            name: Display name
            category_id: Explicit id; defaults to slugify(name)

        Raises:
            ValidationError: If the name (or explicit id) is empty
        """
        cleaned = clean_name(name)
        slug = slugify(category_id) if category_id else slugify(cleaned)
        if not slug:
            raise ValidationError("Category id must not be empty", field="id")
        return cls(id=slug, name=cleaned)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Item:
    """
    A sellable menu item with price, cost and stock.

    Owned by InventoryLedger. Routes and other services read items but
    never assign fields directly.
    """

    id: str
    name: str
    selling_price: float
    cost_price: float
    category_id: str
    stock: int = 0
    image: str = ""

    @classmethod
    def create(
        cls,
        item_id: str,
        name: str,
        selling_price: Any,
        cost_price: Any = 0.0,
        category_id: str = "",
        stock: Any = 0,
        image: str = "",
    ) -> "Item":
        """
        Build a validated item.

        Negative initial stock is clamped to zero rather than rejected.

        Raises:
            ValidationError: On empty name or category, non-positive selling
                price, negative cost, or non-integer stock
        """
        if not category_id:
            raise ValidationError("Category must not be empty", field="category_id")
        return cls(
            id=item_id,
            name=clean_name(name),
            selling_price=validate_price(selling_price, "selling_price", allow_zero=False),
            cost_price=validate_price(cost_price, "cost_price", allow_zero=True),
            category_id=category_id,
            stock=max(0, validate_quantity(stock, "stock", allow_negative=True)),
            image=(image or "").strip(),
        )

    @property
    def margin(self) -> float:
        """Gross margin fraction (see margin())."""
        return margin(self.selling_price, self.cost_price)

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        data = asdict(self)
        data["margin"] = round(self.margin, 4)
        data["in_stock"] = self.in_stock
        return data


@dataclass(frozen=True)
class StockAdjustment:
    """Outcome of one stock adjustment, read under the item lock."""

    item_id: str
    stock: int
    """Stock after the adjustment (never negative)."""

    requested: int
    """Stock the delta asked for; below zero when the adjustment clamped."""

    @property
    def clamped(self) -> bool:
        return self.requested != self.stock

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "stock": self.stock,
            "requested": self.requested,
            "clamped": self.clamped,
        }


def validate_quantity(value: Any, field: str = "quantity", allow_negative: bool = False) -> int:
    """
    Coerce a quantity to int.

    Raises:
        ValidationError: If the value is not integral, or is not positive
            when allow_negative is False
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field} must be an integer", field=field)
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field) from None
    if not allow_negative and quantity <= 0:
        raise ValidationError(f"{field} must be positive", field=field, value=quantity)
    return quantity


# =============================================================================
# SEED MENU
# =============================================================================

DEFAULT_CATEGORIES = (
    ("coffee", "Coffee"),
    ("cold", "Cold Drinks"),
    ("pastries", "Pastries"),
    ("snacks", "Snacks"),
)

# (name, selling price, cost price, category id)
DEFAULT_MENU = (
    ("Espresso", 2.50, 0.60, "coffee"),
    ("Americano", 3.00, 0.70, "coffee"),
    ("Cappuccino", 4.00, 1.00, "coffee"),
    ("Latte", 4.50, 1.20, "coffee"),
    ("Macchiato", 4.25, 1.05, "coffee"),
    ("Mocha", 5.00, 1.40, "coffee"),
    ("Iced Coffee", 3.50, 0.90, "cold"),
    ("Frappuccino", 5.50, 1.60, "cold"),
    ("Cold Brew", 4.00, 1.00, "cold"),
    ("Iced Tea", 2.75, 0.50, "cold"),
    ("Croissant", 3.25, 1.10, "pastries"),
    ("Muffin", 2.75, 0.90, "pastries"),
    ("Danish", 3.50, 1.20, "pastries"),
    ("Bagel", 2.50, 0.80, "pastries"),
    ("Sandwich", 6.50, 2.60, "snacks"),
    ("Salad", 7.25, 2.90, "snacks"),
    ("Cookies", 2.25, 0.60, "snacks"),
)
