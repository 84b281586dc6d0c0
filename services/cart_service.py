"""
Cart service: per-session selections validated against live stock.

A Cart only reads stock; it never mutates it. Stock is consumed when the
order ledger commits the cart.

Thread Safety:
    - Each Cart guards its lines with its own lock
    - CartRegistry guards the session -> cart table with its own lock
    - contains() reads a single dict key without the cart lock so the
      inventory ledger can ask "is this item held?" while it holds an
      item lock, without lock-order inversions

Usage:
    registry = CartRegistry(ledger)
    cart = registry.get_or_create(session_id)
    cart.add_line("1", 2)
    cart.total()            # preview from current prices
"""

from __future__ import annotations

import threading
import uuid
from typing import Any, Dict, List, Optional

from core.exceptions import (
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    OutOfStockError,
    ValidationError,
)
from models.cart import CartLine
from models.catalog import validate_quantity
from services.inventory_service import InventoryLedger
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

# Dine-in tables on the floor (numbered 1..TABLE_COUNT)
TABLE_COUNT = 10


class Cart:
    """
    A mutable (item, quantity) selection for one transaction.

    Lines are kept in insertion order, which is display order.

    Attributes:
        cart_id: Identifier (the session id when held by a CartRegistry)
        table_number: Optional dine-in table
    """

    def __init__(
        self,
        ledger: InventoryLedger,
        cart_id: Optional[str] = None,
        table_number: Optional[int] = None,
    ):
        self._ledger = ledger
        self.cart_id = cart_id or uuid.uuid4().hex
        self.table_number = table_number
        self._lines: Dict[str, CartLine] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock guarding the lines (held by the order ledger during commit)."""
        return self._lock

    def add_line(self, item_id: str, qty: int = 1) -> CartLine:
        """
        Add qty of an item, checking against currently reported stock.

        Args:
            item_id: Item to add
            qty: Units to add (> 0)

        Returns:
            Copy of the resulting line

        Raises:
            ValidationError: If qty is not a positive integer
            NotFoundError: If the item is unknown
            OutOfStockError: If the item has no stock
            InsufficientStockError: If the line would exceed current stock
        """
        qty = validate_quantity(qty)
        with self._lock:
            item = self._ledger.get_item(item_id)
            if item.stock <= 0:
                raise OutOfStockError(item.id, item.name, qty)

            line = self._lines.get(item_id)
            existing = line.quantity if line else 0
            if existing + qty > item.stock:
                raise InsufficientStockError(item.id, existing + qty, item.stock, item.name)

            if line is None:
                line = CartLine(item_id=item_id, quantity=qty)
                self._lines[item_id] = line
            else:
                line.quantity += qty

            logger.debug(f"Cart {self.cart_id[:8]}: {item.name} x{line.quantity}")
            return CartLine(line.item_id, line.quantity)

    def remove_line(self, item_id: str, qty: int = 1) -> Optional[CartLine]:
        """
        Remove qty of an item; the line is dropped when it reaches zero.

        Returns:
            Copy of the remaining line, or None if the line was dropped

        Raises:
            ValidationError: If qty is not a positive integer
            NotFoundError: If the cart has no line for the item
        """
        qty = validate_quantity(qty)
        with self._lock:
            line = self._lines.get(item_id)
            if line is None:
                raise NotFoundError("cart line", item_id)

            line.quantity -= qty
            if line.quantity <= 0:
                del self._lines[item_id]
                return None
            return CartLine(line.item_id, line.quantity)

    def clear(self) -> None:
        """Empty the cart. Safe to call on an empty cart."""
        with self._lock:
            self._lines.clear()

    def total(self) -> float:
        """
        Preview total from CURRENT ledger prices.

        May differ from the committed order total if prices change in
        between; the order freezes prices at commit time.
        """
        with self._lock:
            lines = list(self._lines.values())
        total = 0.0
        for line in lines:
            item = self._ledger.find_item(line.item_id)
            if item is not None:
                total += item.selling_price * line.quantity
        return round(total, 2)

    @property
    def lines(self) -> List[CartLine]:
        """Copies of the current lines, in display order."""
        with self._lock:
            return [CartLine(line.item_id, line.quantity) for line in self._lines.values()]

    def quantity_of(self, item_id: str) -> int:
        with self._lock:
            line = self._lines.get(item_id)
            return line.quantity if line else 0

    def contains(self, item_id: str) -> bool:
        return item_id in self._lines

    @property
    def item_count(self) -> int:
        with self._lock:
            return sum(line.quantity for line in self._lines.values())

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return not self._lines

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def to_dict(self) -> Dict[str, Any]:
        """Cart view with current names and prices, for JSON responses."""
        lines = []
        for line in self.lines:
            item = self._ledger.find_item(line.item_id)
            unit_price = item.selling_price if item else 0.0
            lines.append({
                "item_id": line.item_id,
                "name": item.name if item else line.item_id,
                "unit_price": unit_price,
                "quantity": line.quantity,
                "line_total": round(unit_price * line.quantity, 2),
            })
        return {
            "cart_id": self.cart_id,
            "table_number": self.table_number,
            "lines": lines,
            "item_count": sum(line["quantity"] for line in lines),
            "total": round(sum(line["line_total"] for line in lines), 2),
        }


class CartRegistry:
    """
    Open carts keyed by session id.

    The registry is what the inventory ledger consults before removing an
    item, and what the floor plan consults for occupied tables.
    """

    def __init__(self, ledger: InventoryLedger):
        self._ledger = ledger
        self._carts: Dict[str, Cart] = {}
        self._lock = threading.Lock()
        # Serializes table assignment; never taken while holding a cart lock
        self._table_lock = threading.Lock()

        ledger.set_usage_check(self.item_in_open_cart)

    def get_or_create(self, session_id: str) -> Cart:
        """The open cart for a session, created empty on first use."""
        with self._lock:
            cart = self._carts.get(session_id)
            if cart is None:
                cart = Cart(self._ledger, cart_id=session_id)
                self._carts[session_id] = cart
                logger.debug(f"Cart opened for session {session_id[:8]}")
            return cart

    def get(self, session_id: str) -> Optional[Cart]:
        with self._lock:
            return self._carts.get(session_id)

    def discard(self, session_id: str) -> None:
        """Destroy a session's cart (explicit clear or logout)."""
        with self._lock:
            cart = self._carts.pop(session_id, None)
        if cart is not None:
            cart.clear()
            logger.debug(f"Cart discarded for session {session_id[:8]}")

    def item_in_open_cart(self, item_id: str) -> bool:
        with self._lock:
            carts = list(self._carts.values())
        return any(cart.contains(item_id) for cart in carts)

    def occupied_tables(self) -> List[int]:
        """Tables held by open, non-empty carts."""
        with self._lock:
            carts = list(self._carts.values())
        return sorted({
            cart.table_number for cart in carts
            if cart.table_number is not None and not cart.is_empty
        })

    def assign_table(self, session_id: str, table_number: Optional[int]) -> Cart:
        """
        Attach a dine-in table to a session's cart (None for takeaway).

        Raises:
            ValidationError: If the table number is out of range
            InvalidStateError: If another open cart holds the table
        """
        cart = self.get_or_create(session_id)
        if table_number is None:
            cart.table_number = None
            return cart

        table_number = validate_quantity(table_number, "table_number")
        if table_number > TABLE_COUNT:
            raise ValidationError(
                f"Table must be between 1 and {TABLE_COUNT}",
                field="table_number",
                value=table_number,
            )

        with self._table_lock:
            with self._lock:
                others = [c for sid, c in self._carts.items() if sid != session_id]
            for other in others:
                if other.table_number == table_number and not other.is_empty:
                    raise InvalidStateError(
                        f"Table {table_number} is occupied",
                        {"table_number": table_number},
                    )
            cart.table_number = table_number
        return cart

    def __len__(self) -> int:
        with self._lock:
            return len(self._carts)
