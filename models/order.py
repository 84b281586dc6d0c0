"""
Order data models.

These models represent a committed sale as it sits in the order ledger:
cart -> commit -> Order (completed) -> refund -> Order (refunded).

Immutability:
    - OrderLine is a frozen value snapshot of name/price at commit time;
      later edits to the Item never reach it
    - Order is frozen; the single allowed transition (completed -> refunded)
      produces a new Order via Order.refunded(), which the ledger swaps in
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, Tuple


class OrderStatus(Enum):
    """
    Status of a committed order.

    Lifecycle:
        COMPLETED -> REFUNDED
    """

    COMPLETED = "completed"
    """Sale was charged and stock consumed."""

    REFUNDED = "refunded"
    """Sale was reversed. The order stays in the ledger for reporting."""


class PaymentMethod(Enum):
    """How the customer paid."""

    CASH = "cash"
    CARD = "card"


@dataclass(frozen=True)
class OrderLine:
    """
    Immutable snapshot of one cart line at commit time.

    category_id is captured too, so category reports do not shift when an
    item is later moved to another category.
    """

    item_id: str
    name: str
    unit_price: float
    quantity: int
    category_id: str = ""

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "category_id": self.category_id,
            "line_total": round(self.line_total, 2),
        }


@dataclass(frozen=True)
class Order:
    """
    A committed sale.

    This is a FROZEN dataclass. total is computed once by Order.create()
    from the frozen lines and never edited afterwards.

    Usage:
        order = Order.create(order_id, lines, created_at=now)
        order.total          # sum of line totals, rounded to cents
        refunded = order.refunded(now)
    """

    id: str
    lines: Tuple[OrderLine, ...]
    total: float
    created_at: datetime
    status: OrderStatus = OrderStatus.COMPLETED
    payment_method: PaymentMethod = PaymentMethod.CASH
    table_number: Optional[int] = None
    refunded_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        order_id: str,
        lines: Tuple[OrderLine, ...],
        created_at: datetime,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        table_number: Optional[int] = None,
    ) -> "Order":
        """
        Create a completed order with its total frozen from the lines.

        Args:
            order_id: Unique order id
            lines: Snapshot lines (order preserved)
            created_at: Commit timestamp
            payment_method: Cash or card
            table_number: Optional dine-in table

        Returns:
            Order in COMPLETED status
        """
        lines = tuple(lines)
        return cls(
            id=order_id,
            lines=lines,
            total=compute_total(lines),
            created_at=created_at,
            status=OrderStatus.COMPLETED,
            payment_method=payment_method,
            table_number=table_number,
        )

    @property
    def item_count(self) -> int:
        """Total units across all lines."""
        return sum(line.quantity for line in self.lines)

    @property
    def is_completed(self) -> bool:
        return self.status is OrderStatus.COMPLETED

    @property
    def is_refunded(self) -> bool:
        return self.status is OrderStatus.REFUNDED

    @property
    def category_ids(self) -> frozenset:
        return frozenset(line.category_id for line in self.lines)

    def refunded(self, at: datetime) -> "Order":
        """
        Return the refunded copy of this order.

        The caller (OrderLedger) is responsible for checking that the
        transition is legal and for swapping the copy into the ledger.
        """
        return replace(self, status=OrderStatus.REFUNDED, refunded_at=at)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses and report export."""
        return {
            "id": self.id,
            "lines": [line.to_dict() for line in self.lines],
            "total": self.total,
            "item_count": self.item_count,
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "payment_method": self.payment_method.value,
            "table_number": self.table_number,
            "refunded_at": self.refunded_at.isoformat() if self.refunded_at else None,
        }


def compute_total(lines) -> float:
    """Sum of line totals, rounded to cents."""
    return round(sum(line.line_total for line in lines), 2)
