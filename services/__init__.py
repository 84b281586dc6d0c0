"""
Services layer for Brew & Bean POS.

This module contains the transaction core:
- Catalog: Category registry
- InventoryLedger: Items, stock levels, margins, per-item locks
- Cart / CartRegistry: Per-session selections validated against stock
- OrderLedger: Atomic commit, refund and query
- AnalyticsAggregator: Daily, monthly and category rollups
- PointOfSale / Terminal: Wiring and role-gated access

Data Flow:
    Catalog -> InventoryLedger -> Cart -> OrderLedger -> AnalyticsAggregator

None of these import Flask; the web boundary lives in routes/.
"""

from .catalog_service import Catalog
from .inventory_service import InventoryLedger
from .cart_service import Cart, CartRegistry
from .order_service import OrderLedger
from .analytics_service import AnalyticsAggregator
from .pos_service import PointOfSale, Terminal

__all__ = [
    "Catalog",
    "InventoryLedger",
    "Cart",
    "CartRegistry",
    "OrderLedger",
    "AnalyticsAggregator",
    "PointOfSale",
    "Terminal",
]
