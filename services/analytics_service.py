"""
Analytics aggregator: read-only rollups over the order ledger.

Every method is a pure reduction of the ledger's current contents. The
aggregator keeps no state of its own, so the same ledger always yields the
same rows regardless of call order. Pass `today` to pin the trailing
windows (tests and report exports do this).

Gross vs net:
    include_refunded=True  - completed and refunded orders (gross)
    include_refunded=False - completed orders only (net)

Dates are the local calendar date of Order.created_at.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from core.exceptions import ValidationError
from models.order import Order, OrderStatus
from models.report import CategoryRow, DaySummary, PeriodRow, SalesSummary
from services.catalog_service import Catalog
from services.inventory_service import InventoryLedger
from services.order_service import OrderLedger, local_date, local_now


CATEGORY_SOURCES = ("snapshot", "live")


class AnalyticsAggregator:
    """
    Daily, monthly and category rollups for reporting.

    Attributes:
        category_source: "snapshot" to use the category frozen on each order
            line, "live" to look up the item's current category
    """

    def __init__(
        self,
        orders: OrderLedger,
        inventory: InventoryLedger,
        catalog: Catalog,
        category_source: str = "snapshot",
    ):
        if category_source not in CATEGORY_SOURCES:
            raise ValidationError(
                f"Unknown category source: {category_source!r}",
                field="category_source",
            )
        self._orders = orders
        self._inventory = inventory
        self._catalog = catalog
        self.category_source = category_source

    # =========================================================================
    # Period rollups
    # =========================================================================

    def daily_rollup(
        self,
        days: int = 7,
        today: Optional[date] = None,
        include_refunded: bool = True,
    ) -> List[PeriodRow]:
        """
        One row per day for the trailing window ending today, oldest first.

        Args:
            days: Window length (today included)
            today: End of the window (defaults to the local date)
            include_refunded: Gross (True) or net (False) figures

        Returns:
            PeriodRow per day; days without orders report zeros
        """
        _require_positive(days, "days")
        today = today or local_now().date()

        buckets: Dict[date, List[Order]] = defaultdict(list)
        for order in self._selected(include_refunded):
            buckets[local_date(order.created_at)].append(order)

        rows = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            rows.append(_period_row(
                day.isoformat(), day.strftime("%b %d"), buckets.get(day, ())
            ))
        return rows

    def monthly_rollup(
        self,
        months: int = 6,
        today: Optional[date] = None,
        include_refunded: bool = True,
    ) -> List[PeriodRow]:
        """
        One row per calendar month for the trailing window, oldest first.

        Each month covers [first of month, last of month] inclusive.

        Args:
            months: Window length (current month included)
            today: Any date in the last month of the window
            include_refunded: Gross (True) or net (False) figures
        """
        _require_positive(months, "months")
        today = today or local_now().date()

        buckets: Dict[Tuple[int, int], List[Order]] = defaultdict(list)
        for order in self._selected(include_refunded):
            day = local_date(order.created_at)
            buckets[(day.year, day.month)].append(order)

        rows = []
        for offset in range(months - 1, -1, -1):
            year, month = _shift_month(today.year, today.month, -offset)
            first = date(year, month, 1)
            rows.append(_period_row(
                f"{year:04d}-{month:02d}",
                first.strftime("%b %Y"),
                buckets.get((year, month), ()),
            ))
        return rows

    # =========================================================================
    # Category rollup
    # =========================================================================

    def category_rollup(
        self,
        include_refunded: bool = True,
        source: Optional[str] = None,
    ) -> List[CategoryRow]:
        """
        Units and revenue per category across all orders (no date filter).

        Rows come in order of first appearance in the ledger.

        Args:
            include_refunded: Gross (True) or net (False) figures
            source: Override category_source for this call
        """
        source = source or self.category_source
        if source not in CATEGORY_SOURCES:
            raise ValidationError(f"Unknown category source: {source!r}", field="source")

        quantities: Dict[str, int] = {}
        revenue: Dict[str, float] = {}
        for order in self._selected(include_refunded):
            for line in order.lines:
                category_id = self._category_of(line.item_id, line.category_id, source)
                quantities[category_id] = quantities.get(category_id, 0) + line.quantity
                revenue[category_id] = revenue.get(category_id, 0.0) + line.line_total

        return [
            CategoryRow(
                category=category_id,
                quantity=quantities[category_id],
                revenue=round(revenue[category_id], 2),
                name=self._catalog.name_of(category_id),
            )
            for category_id in quantities
        ]

    # =========================================================================
    # Summaries
    # =========================================================================

    def day_summary(self, day: Optional[date] = None) -> DaySummary:
        """
        Sales history figures for one day.

        Sales, orders and items count completed orders; refunded orders are
        reported as a count and an amount.
        """
        day = day or local_now().date()
        completed = []
        refunded = []
        for order in self._orders.query(start=day, end=day):
            if order.status is OrderStatus.REFUNDED:
                refunded.append(order)
            else:
                completed.append(order)

        return DaySummary(
            date=day.isoformat(),
            total_sales=_sum_totals(completed),
            total_orders=len(completed),
            total_items=sum(order.item_count for order in completed),
            refunds=len(refunded),
            refund_amount=_sum_totals(refunded),
        )

    def overview(self, include_refunded: bool = True) -> SalesSummary:
        """Headline totals across the whole ledger."""
        orders = list(self._selected(include_refunded))
        return SalesSummary(
            total_sales=_sum_totals(orders),
            total_orders=len(orders),
            total_items=sum(order.item_count for order in orders),
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _selected(self, include_refunded: bool) -> Iterable[Order]:
        if include_refunded:
            return self._orders.orders()
        return [o for o in self._orders.orders() if o.status is OrderStatus.COMPLETED]

    def _category_of(self, item_id: str, snapshot: str, source: str) -> str:
        if source == "live":
            item = self._inventory.find_item(item_id)
            if item is not None:
                return item.category_id
        return snapshot


def _period_row(period: str, label: str, orders: Iterable[Order]) -> PeriodRow:
    orders = list(orders)
    return PeriodRow(
        period=period,
        label=label,
        sales=_sum_totals(orders),
        orders=len(orders),
        items=sum(order.item_count for order in orders),
    )


def _sum_totals(orders: Iterable[Order]) -> float:
    return round(sum(order.total for order in orders), 2)


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _require_positive(value: int, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", field=field)
