"""
Data models for Brew & Bean POS.

This module contains dataclasses for:
- Category, Item: The sellable menu (validated constructors)
- CartLine: One (item, quantity) selection in an open cart
- Order, OrderLine: Committed sales with frozen price snapshots
- PeriodRow, CategoryRow, DaySummary, SalesSummary: Report rows

Immutability:
- Category, OrderLine, Order and all report rows are frozen
- Item and CartLine are mutable, but only their owning service mutates them
"""

from .catalog import Category, Item, StockAdjustment, margin, slugify
from .cart import CartLine
from .order import Order, OrderLine, OrderStatus, PaymentMethod
from .report import PeriodRow, CategoryRow, DaySummary, SalesSummary

__all__ = [
    # Catalog models
    "Category",
    "Item",
    "StockAdjustment",
    "margin",
    "slugify",
    # Cart models
    "CartLine",
    # Order models
    "Order",
    "OrderLine",
    "OrderStatus",
    "PaymentMethod",
    # Report models
    "PeriodRow",
    "CategoryRow",
    "DaySummary",
    "SalesSummary",
]
