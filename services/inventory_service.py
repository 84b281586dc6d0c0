"""
Inventory ledger: items, stock levels, cost/price and margin.

The ledger is the only owner of Item objects. Everything outside it gets
copies, and every change goes through a validated method here.

STOCK RULES:
    - Stock never goes below zero
    - adjust_stock() clamps instead of raising and returns the clamped value
    - Removing an item is refused while it sits in an open cart

Thread Safety:
    - _lock guards the item table itself (add/remove/lookup)
    - Each item has its own RLock; item_locks() takes several in sorted
      id order, which is the serialization point for commit's
      validate-then-apply sequence
    - Item locks are re-entrant, so a commit holding them can still call
      adjust_stock()

Usage:
    ledger = InventoryLedger(catalog)
    item = ledger.add_item("Espresso", 2.50, cost_price=0.60,
                           category_id="coffee", stock=20)

    with ledger.item_locks([item.id]):
        if ledger.stock_of(item.id) >= 2:
            ledger.adjust_stock(item.id, -2)
"""

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from core.exceptions import InvalidStateError, NotFoundError, ValidationError
from models.catalog import (
    DEFAULT_MENU,
    Item,
    StockAdjustment,
    clean_name,
    margin,
    validate_price,
    validate_quantity,
)
from services.catalog_service import Catalog
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

# Fields update_item() may change. Stock has its own operations.
EDITABLE_FIELDS = ("name", "selling_price", "cost_price", "category_id", "image")


class InventoryLedger:
    """
    Current stock level and cost/price for every item.

    Attributes:
        catalog: Catalog the items' categories must belong to
    """

    def __init__(self, catalog: Catalog):
        """
        Initialize an empty ledger.

        Registers itself with the catalog as the category reference check.

        Args:
            catalog: Category registry
        """
        self.catalog = catalog
        self._items: Dict[str, Item] = {}
        self._item_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()
        self._usage_check: Optional[Callable[[str], bool]] = None

        catalog.set_reference_check(self.category_in_use)

    # =========================================================================
    # Registration
    # =========================================================================

    def set_usage_check(self, check: Callable[[str], bool]) -> None:
        """
        Register the callable that reports whether an item is in an open cart.

        Args:
            check: Returns True if any open cart holds the item id
        """
        self._usage_check = check

    def seed_menu(self, stock: int = 50) -> List[Item]:
        """
        Load the storefront menu with numeric ids ("1".."17").

        Categories missing from the catalog are skipped.

        Returns:
            Items added
        """
        added = []
        for index, (name, price, cost, category_id) in enumerate(DEFAULT_MENU, start=1):
            if not self.catalog.exists(category_id):
                logger.warning(f"Skipping seed item {name}: unknown category {category_id}")
                continue
            added.append(self._insert(Item.create(
                str(index), name, price, cost, category_id, stock,
            )))
        logger.info(f"Seeded {len(added)} menu items with stock {stock}")
        return added

    # =========================================================================
    # Item lifecycle
    # =========================================================================

    def add_item(
        self,
        name: str,
        selling_price: Any,
        cost_price: Any = 0.0,
        category_id: str = "",
        stock: Any = 0,
        image: str = "",
    ) -> Item:
        """
        Add a new item with a generated id.

        Args:
            name: Display name (must not be empty)
            selling_price: Price charged (> 0)
            cost_price: Unit cost (>= 0)
            category_id: Existing catalog category
            stock: Initial stock, clamped to 0 if negative
            image: Optional image URL

        Returns:
            Copy of the stored Item

        Raises:
            ValidationError: On bad fields or an unknown category
        """
        self._require_category(category_id)
        item = Item.create(
            f"item-{uuid.uuid4().hex[:12]}",
            name,
            selling_price,
            cost_price,
            category_id,
            stock,
            image,
        )
        self._insert(item)
        logger.info(f"Item added: {item.id} ({item.name}, stock {item.stock})")
        return replace(item)

    def update_item(self, item_id: str, **changes: Any) -> Item:
        """Keyword form of update_fields()."""
        return self.update_fields(item_id, changes)

    def update_fields(self, item_id: str, changes: Mapping[str, Any]) -> Item:
        """
        Validated setter for item fields other than stock.

        All changes are validated before any is applied.

        Raises:
            NotFoundError: If the item is unknown
            ValidationError: On an unknown field or invalid value
        """
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(unknown)}",
                field=unknown[0],
            )

        validated: Dict[str, Any] = {}
        if "name" in changes:
            validated["name"] = clean_name(changes["name"])
        if "selling_price" in changes:
            validated["selling_price"] = validate_price(
                changes["selling_price"], "selling_price", allow_zero=False
            )
        if "cost_price" in changes:
            validated["cost_price"] = validate_price(
                changes["cost_price"], "cost_price", allow_zero=True
            )
        if "category_id" in changes:
            self._require_category(changes["category_id"])
            validated["category_id"] = changes["category_id"]
        if "image" in changes:
            validated["image"] = (changes["image"] or "").strip()

        with self._locked_item(item_id) as item:
            for field, value in validated.items():
                setattr(item, field, value)
            updated = replace(item)

        logger.info(f"Item updated: {item_id} {sorted(validated)}")
        return updated

    def remove_item(self, item_id: str) -> Item:
        """
        Delete an item.

        Raises:
            NotFoundError: If the item is unknown
            InvalidStateError: If the item is in an open cart
        """
        with self._locked_item(item_id) as item:
            if self._usage_check and self._usage_check(item_id):
                raise InvalidStateError(
                    f"{item.name} is in an open cart and cannot be removed",
                    {"item_id": item_id},
                )
            with self._lock:
                del self._items[item_id]

        logger.info(f"Item removed: {item_id} ({item.name})")
        return item

    # =========================================================================
    # Stock
    # =========================================================================

    def adjust_stock(self, item_id: str, delta: int) -> int:
        """
        Move stock by delta, never below zero.

        Args:
            item_id: Item to adjust
            delta: Signed change (negative to consume)

        Returns:
            The new (possibly clamped) stock level

        Raises:
            NotFoundError: If the item is unknown
            ValidationError: If delta is not an integer
        """
        return self.apply_adjustment(item_id, delta).stock

    def apply_adjustment(self, item_id: str, delta: int) -> StockAdjustment:
        """
        Same as adjust_stock(), but reports whether the result was clamped.

        The report is taken under the item lock, so it describes exactly
        this adjustment even with concurrent writers.
        """
        delta = validate_quantity(delta, "delta", allow_negative=True)
        with self._locked_item(item_id) as item:
            requested = item.stock + delta
            item.stock = max(0, requested)
            adjustment = StockAdjustment(item_id, item.stock, requested)

        if adjustment.clamped:
            logger.warning(
                f"Stock for {item_id} clamped at 0 (delta {delta} would give {requested})"
            )
        else:
            logger.debug(f"Stock for {item_id} adjusted by {delta} -> {adjustment.stock}")
        return adjustment

    def set_stock(self, item_id: str, stock: int) -> int:
        """Overwrite the stock count (admin correction), clamped to zero."""
        stock = validate_quantity(stock, "stock", allow_negative=True)
        with self._locked_item(item_id) as item:
            item.stock = max(0, stock)
            new_stock = item.stock
        logger.info(f"Stock for {item_id} set to {new_stock}")
        return new_stock

    def stock_of(self, item_id: str) -> int:
        """
        Current stock of an item.

        Raises:
            NotFoundError: If the item is unknown
        """
        return self._get(item_id).stock

    def has_stock(self, item_id: str, quantity: int = 1) -> bool:
        """Whether current stock covers quantity."""
        return self.stock_of(item_id) >= quantity

    @contextmanager
    def item_locks(self, item_ids: Iterable[str]) -> Iterator[None]:
        """
        Hold the locks of several items at once.

        Locks are taken in sorted id order so two commits touching the same
        items cannot deadlock. Unknown ids still get a lock, which lets the
        caller detect the missing item under the lock.
        """
        ordered = sorted(set(item_ids))
        with self._lock:
            locks = [self._item_locks.setdefault(i, threading.RLock()) for i in ordered]

        acquired = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_item(self, item_id: str) -> Item:
        """
        Copy of an item.

        Raises:
            NotFoundError: If the item is unknown
        """
        return replace(self._get(item_id))

    def find_item(self, item_id: str) -> Optional[Item]:
        """Copy of an item, or None if unknown."""
        with self._lock:
            item = self._items.get(item_id)
        return replace(item) if item else None

    def list_items(self, category_id: Optional[str] = None) -> List[Item]:
        """Copies of all items (optionally one category), in insertion order."""
        with self._lock:
            items = list(self._items.values())
        return [
            replace(item) for item in items
            if category_id is None or item.category_id == category_id
        ]

    def margin(self, item: Any) -> float:
        """
        Gross margin of an item (or item id).

        0 when the cost price is 0, else (price - cost) / price.
        """
        if isinstance(item, str):
            item = self._get(item)
        return margin(item.selling_price, item.cost_price)

    def category_in_use(self, category_id: str) -> bool:
        with self._lock:
            return any(item.category_id == category_id for item in self._items.values())

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    # =========================================================================
    # Internals
    # =========================================================================

    def _insert(self, item: Item) -> Item:
        with self._lock:
            if item.id in self._items:
                raise ValidationError(f"Item id already exists: {item.id}", field="id")
            self._items[item.id] = item
            self._item_locks.setdefault(item.id, threading.RLock())
        return item

    def _get(self, item_id: str) -> Item:
        with self._lock:
            item = self._items.get(item_id)
        if item is None:
            raise NotFoundError("item", item_id)
        return item

    @contextmanager
    def _locked_item(self, item_id: str) -> Iterator[Item]:
        """Yield the live item while holding its lock."""
        with self.item_locks([item_id]):
            yield self._get(item_id)

    def _require_category(self, category_id: str) -> None:
        if not category_id or not self.catalog.exists(category_id):
            raise ValidationError(
                f"Unknown category: {category_id!r}",
                field="category_id",
            )
