"""
Point of sale: wires the catalog, ledgers, carts and analytics together.

PointOfSale owns one instance of each component. Callers do not use the
components directly; they ask for a Terminal bound to a role and a session,
and every Terminal operation checks the role's capability first.

Usage:
    pos = PointOfSale.create(seed_menu=True)

    till = pos.terminal("cashier", session_id)
    till.add_to_cart("1", 2)
    order = till.checkout("card")

    office = pos.terminal("admin", other_session_id)
    office.refund(order.id)
    office.daily_rollup()
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional, Union

from core.roles import Capability, Role, authorize
from models.catalog import Category, Item, StockAdjustment
from models.cart import CartLine
from models.order import Order, OrderStatus, PaymentMethod
from models.report import CategoryRow, DaySummary, PeriodRow, SalesSummary
from services.analytics_service import AnalyticsAggregator
from services.cart_service import Cart, CartRegistry
from services.catalog_service import Catalog
from services.inventory_service import InventoryLedger
from services.order_service import OrderLedger, local_now
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class PointOfSale:
    """
    The transaction core as one object.

    Attributes:
        catalog: Category registry
        inventory: Item and stock ledger
        carts: Open carts by session
        orders: Committed orders
        analytics: Read-only rollups
        daily_days: Default daily rollup window
        monthly_months: Default monthly rollup window
    """

    def __init__(
        self,
        catalog: Catalog,
        inventory: InventoryLedger,
        carts: CartRegistry,
        orders: OrderLedger,
        analytics: AnalyticsAggregator,
        daily_days: int = 7,
        monthly_months: int = 6,
    ):
        self.catalog = catalog
        self.inventory = inventory
        self.carts = carts
        self.orders = orders
        self.analytics = analytics
        self.daily_days = daily_days
        self.monthly_months = monthly_months

    @classmethod
    def create(
        cls,
        seed_menu: bool = True,
        default_stock: int = 50,
        restock_on_refund: bool = False,
        category_source: str = "snapshot",
        daily_days: int = 7,
        monthly_months: int = 6,
        clock: Callable[[], datetime] = local_now,
    ) -> "PointOfSale":
        """
        Build a point of sale with fresh in-memory state.

        Args:
            seed_menu: Load the default categories and menu
            default_stock: Stock for each seeded item
            restock_on_refund: Whether refunds return stock
            category_source: "snapshot" or "live" for the category report
            daily_days: Default daily rollup window
            monthly_months: Default monthly rollup window
            clock: Timestamp source for orders

        Returns:
            Configured PointOfSale
        """
        catalog = Catalog.with_defaults() if seed_menu else Catalog()
        inventory = InventoryLedger(catalog)
        if seed_menu:
            inventory.seed_menu(stock=default_stock)
        carts = CartRegistry(inventory)
        orders = OrderLedger(inventory, restock_on_refund=restock_on_refund, clock=clock)
        analytics = AnalyticsAggregator(orders, inventory, catalog, category_source)

        logger.info(
            f"Point of sale ready: {len(catalog)} categories, {len(inventory)} items, "
            f"restock_on_refund={restock_on_refund}, category_source={category_source}"
        )
        return cls(catalog, inventory, carts, orders, analytics, daily_days, monthly_months)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "PointOfSale":
        """Build from a Flask config mapping (see config.Config)."""
        return cls.create(
            seed_menu=config.get("SEED_MENU", True),
            default_stock=config.get("DEFAULT_STOCK", 50),
            restock_on_refund=config.get("RESTOCK_ON_REFUND", False),
            category_source=config.get("CATEGORY_ROLLUP_SOURCE", "snapshot"),
            daily_days=config.get("DAILY_ROLLUP_DAYS", 7),
            monthly_months=config.get("MONTHLY_ROLLUP_MONTHS", 6),
        )

    def terminal(self, role: Union[Role, str], session_id: str) -> "Terminal":
        """
        A role-bound view of the core for one session.

        Raises:
            ValidationError: If the role tag is unknown
        """
        return Terminal(self, Role.parse(role), session_id)

    def end_session(self, session_id: str) -> None:
        """Drop the session's open cart (logout)."""
        self.carts.discard(session_id)


class Terminal:
    """
    Role-gated operations for one session.

    Each public method authorizes the role before delegating, so a
    PermissionDeniedError is raised before any state is read or changed.
    """

    def __init__(self, pos: PointOfSale, role: Role, session_id: str):
        self._pos = pos
        self.role = role
        self.session_id = session_id

    def _require(self, capability: Capability) -> None:
        authorize(self.role, capability)

    # =========================================================================
    # Menu
    # =========================================================================

    def categories(self) -> List[Category]:
        self._require(Capability.VIEW_MENU)
        return self._pos.catalog.list_categories()

    def menu(self, category_id: Optional[str] = None) -> List[Item]:
        self._require(Capability.VIEW_MENU)
        return self._pos.inventory.list_items(category_id)

    def get_item(self, item_id: str) -> Item:
        self._require(Capability.VIEW_MENU)
        return self._pos.inventory.get_item(item_id)

    # =========================================================================
    # Selling
    # =========================================================================

    @property
    def cart(self) -> Cart:
        self._require(Capability.SELL)
        return self._pos.carts.get_or_create(self.session_id)

    def add_to_cart(self, item_id: str, qty: int = 1) -> CartLine:
        return self.cart.add_line(item_id, qty)

    def remove_from_cart(self, item_id: str, qty: int = 1) -> Optional[CartLine]:
        return self.cart.remove_line(item_id, qty)

    def clear_cart(self) -> None:
        self.cart.clear()

    def set_table(self, table_number: Optional[int]) -> Cart:
        self._require(Capability.SELL)
        return self._pos.carts.assign_table(self.session_id, table_number)

    def occupied_tables(self) -> List[int]:
        self._require(Capability.SELL)
        return self._pos.carts.occupied_tables()

    def checkout(self, payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH) -> Order:
        """Commit this session's cart."""
        return self._pos.orders.commit(self.cart, payment_method)

    # =========================================================================
    # Orders
    # =========================================================================

    def get_order(self, order_id: str) -> Order:
        self._require(Capability.VIEW_ORDERS)
        return self._pos.orders.get(order_id)

    def orders(
        self,
        start: Union[date, datetime, None] = None,
        end: Union[date, datetime, None] = None,
        status: Union[OrderStatus, str, None] = None,
        category_id: Optional[str] = None,
    ) -> List[Order]:
        self._require(Capability.VIEW_ORDERS)
        return list(self._pos.orders.query(start, end, status, category_id))

    def refund(self, order_id: str) -> Order:
        self._require(Capability.REFUND)
        return self._pos.orders.refund(order_id)

    # =========================================================================
    # Inventory management
    # =========================================================================

    def inventory(self, category_id: Optional[str] = None) -> List[Item]:
        """Items with cost and margin, for the inventory screen."""
        self._require(Capability.MANAGE_INVENTORY)
        return self._pos.inventory.list_items(category_id)

    def add_item(
        self,
        name: str,
        selling_price: Any,
        cost_price: Any = 0.0,
        category_id: str = "",
        stock: Any = 0,
        image: str = "",
    ) -> Item:
        self._require(Capability.MANAGE_INVENTORY)
        return self._pos.inventory.add_item(
            name, selling_price, cost_price, category_id, stock, image
        )

    def update_item(self, item_id: str, changes: Mapping[str, Any]) -> Item:
        self._require(Capability.MANAGE_INVENTORY)
        return self._pos.inventory.update_fields(item_id, changes)

    def remove_item(self, item_id: str) -> Item:
        self._require(Capability.MANAGE_INVENTORY)
        return self._pos.inventory.remove_item(item_id)

    def adjust_stock(self, item_id: str, delta: int) -> StockAdjustment:
        """Adjust stock; the result says whether it was clamped at zero."""
        self._require(Capability.MANAGE_INVENTORY)
        return self._pos.inventory.apply_adjustment(item_id, delta)

    def set_stock(self, item_id: str, stock: int) -> int:
        self._require(Capability.MANAGE_INVENTORY)
        return self._pos.inventory.set_stock(item_id, stock)

    def add_category(self, name: str) -> Category:
        self._require(Capability.MANAGE_INVENTORY)
        return self._pos.catalog.add_category(name)

    def remove_category(self, category_id: str) -> Category:
        self._require(Capability.MANAGE_INVENTORY)
        return self._pos.catalog.remove_category(category_id)

    # =========================================================================
    # Analytics
    # =========================================================================

    def daily_rollup(
        self,
        days: Optional[int] = None,
        today: Optional[date] = None,
        include_refunded: bool = True,
    ) -> List[PeriodRow]:
        self._require(Capability.VIEW_ANALYTICS)
        return self._pos.analytics.daily_rollup(
            self._pos.daily_days if days is None else days, today, include_refunded
        )

    def monthly_rollup(
        self,
        months: Optional[int] = None,
        today: Optional[date] = None,
        include_refunded: bool = True,
    ) -> List[PeriodRow]:
        self._require(Capability.VIEW_ANALYTICS)
        return self._pos.analytics.monthly_rollup(
            self._pos.monthly_months if months is None else months, today, include_refunded
        )

    def category_rollup(self, include_refunded: bool = True) -> List[CategoryRow]:
        self._require(Capability.VIEW_ANALYTICS)
        return self._pos.analytics.category_rollup(include_refunded)

    def day_summary(self, day: Optional[date] = None) -> DaySummary:
        self._require(Capability.VIEW_ANALYTICS)
        return self._pos.analytics.day_summary(day)

    def overview(self, include_refunded: bool = True) -> SalesSummary:
        self._require(Capability.VIEW_ANALYTICS)
        return self._pos.analytics.overview(include_refunded)
