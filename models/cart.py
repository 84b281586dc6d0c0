"""
Cart line model.

A cart line is the (item, quantity) pair a cashier has selected. It holds
no price: the cart total is always previewed from current ledger prices,
and prices are only frozen when the cart is committed into an Order.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, Any


@dataclass
class CartLine:
    """
    One line of an open cart.

    quantity is always positive; a line that would drop to zero is
    removed from the cart instead.
    """

    item_id: str
    quantity: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
