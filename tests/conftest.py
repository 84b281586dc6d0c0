"""
Shared fixtures for the POS test suite.

The seeded menu uses ids "1".."17"; the ones used most often here:
    "1"  Espresso    2.50 (cost 0.60)  coffee
    "3"  Cappuccino  4.00 (cost 1.00)  coffee
    "12" Muffin      2.75 (cost 0.90)  pastries
"""

from datetime import datetime, timedelta

import pytest

from services.cart_service import Cart, CartRegistry
from services.catalog_service import Catalog
from services.inventory_service import InventoryLedger
from services.order_service import OrderLedger


class FakeClock:
    """Settable clock for deterministic order timestamps."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 9, 0, 0))


@pytest.fixture
def catalog():
    """Catalog with the four storefront categories."""
    return Catalog.with_defaults()


@pytest.fixture
def ledger(catalog):
    """Inventory seeded with the storefront menu, 10 of each item."""
    inventory = InventoryLedger(catalog)
    inventory.seed_menu(stock=10)
    return inventory


@pytest.fixture
def registry(ledger):
    return CartRegistry(ledger)


@pytest.fixture
def cart(registry):
    return registry.get_or_create("session-a")


@pytest.fixture
def orders(ledger, clock):
    return OrderLedger(ledger, clock=clock)


@pytest.fixture
def make_cart(ledger):
    """Factory for standalone carts filled with (item_id, qty) pairs."""

    def _make(*lines, table_number=None):
        new_cart = Cart(ledger, table_number=table_number)
        for item_id, qty in lines:
            new_cart.add_line(item_id, qty)
        return new_cart

    return _make
