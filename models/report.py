"""
Report row models.

Stable, serializable shapes produced by the analytics aggregator and read
by report exporters. All rows are frozen; to_dict() is the export contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any


@dataclass(frozen=True)
class PeriodRow:
    """One bucket of a daily or monthly rollup."""

    period: str
    """ISO date ('2024-01-01') for daily rows, 'YYYY-MM' for monthly rows."""

    sales: float
    orders: int
    items: int

    label: str = ""
    """Display label (e.g., 'Jan 2024')."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "label": self.label or self.period,
            "sales": round(self.sales, 2),
            "orders": self.orders,
            "items": self.items,
        }


@dataclass(frozen=True)
class CategoryRow:
    """Units and revenue for one category across the ledger."""

    category: str
    quantity: int
    revenue: float
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "name": self.name or self.category,
            "quantity": self.quantity,
            "revenue": round(self.revenue, 2),
        }


@dataclass(frozen=True)
class DaySummary:
    """
    Sales history figures for one calendar day.

    Sales, orders and items count completed orders only; refunds are
    reported separately.
    """

    date: str
    total_sales: float
    total_orders: int
    total_items: int
    refunds: int
    refund_amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "total_sales": round(self.total_sales, 2),
            "total_orders": self.total_orders,
            "total_items": self.total_items,
            "refunds": self.refunds,
            "refund_amount": round(self.refund_amount, 2),
        }


@dataclass(frozen=True)
class SalesSummary:
    """Headline figures across the whole ledger."""

    total_sales: float
    total_orders: int
    total_items: int

    @property
    def average_order_value(self) -> float:
        if self.total_orders == 0:
            return 0.0
        return self.total_sales / self.total_orders

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_sales": round(self.total_sales, 2),
            "total_orders": self.total_orders,
            "total_items": self.total_items,
            "average_order_value": round(self.average_order_value, 2),
        }
