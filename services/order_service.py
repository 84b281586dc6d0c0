"""
Order ledger: atomic commit of carts, refunds and queries.

The ledger is append-only. Orders are never deleted; a refund swaps in a
refunded copy of the order under the same id.

COMMIT IS ALL-OR-NOTHING:
    1. Take the cart lock, then the locks of every item in the cart
       (sorted order, see InventoryLedger.item_locks)
    2. Re-validate every line against current stock
    3. Only if all lines pass: snapshot lines and record the order under a
       freshly allocated id (id check and insert are one locked step)
    4. Decrement stock (cannot fail: the items are locked and present)
    5. Clear the cart

    If step 2 or 3 fails, nothing is applied and the cart is left as it
    was. There is no apply-then-validate path.

Thread Safety:
    - Item locks serialize commits that touch the same items
    - _lock guards the order table (append and swap)
    - Each order id has its own lock so two refunds of the same order
      cannot both pass the COMPLETED check

Usage:
    ledger = OrderLedger(inventory)
    order = ledger.commit(cart, payment_method="card")
    ledger.refund(order.id)
    for order in ledger.query(status=OrderStatus.REFUNDED):
        ...
"""

from __future__ import annotations

import threading
import time
import uuid
from datetime import date, datetime
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from core.exceptions import (
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from models.order import Order, OrderLine, OrderStatus, PaymentMethod
from services.cart_service import Cart
from services.inventory_service import InventoryLedger
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

DateBound = Union[date, datetime, None]

# Draws from the id factory before a commit gives up
MAX_ID_ATTEMPTS = 100


def local_now() -> datetime:
    """Current time as an aware datetime in the local timezone."""
    return datetime.now().astimezone()


def local_date(moment: datetime) -> date:
    """Calendar date of a timestamp in the local timezone."""
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def new_order_id() -> str:
    """
    Timestamp-derived order id with a random suffix.

    Format: ORD-<epoch milliseconds>-<6 hex chars>
    """
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class OrderLedger:
    """
    Append-only record of committed orders.

    Attributes:
        restock_on_refund: Return refunded quantities to stock
    """

    def __init__(
        self,
        inventory: InventoryLedger,
        restock_on_refund: bool = False,
        clock: Callable[[], datetime] = local_now,
        id_factory: Callable[[], str] = new_order_id,
    ):
        """
        Initialize an empty ledger.

        Args:
            inventory: Ledger whose stock commits consume
            restock_on_refund: Whether refund() puts stock back
            clock: Source of created_at / refunded_at timestamps
            id_factory: Source of order ids
        """
        self._inventory = inventory
        self.restock_on_refund = restock_on_refund
        self._clock = clock
        self._id_factory = id_factory

        self._orders: Dict[str, Order] = {}
        self._order_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(
        self,
        cart: Cart,
        payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH,
    ) -> Order:
        """
        Turn a cart into a completed order, consuming stock.

        Args:
            cart: Cart to commit (cleared on success only)
            payment_method: "cash" or "card"

        Returns:
            The new Order

        Raises:
            ValidationError: If the cart is empty or the payment method unknown
            NotFoundError: If an item in the cart no longer exists
            InsufficientStockError: If any line exceeds current stock
            InvalidStateError: If no unused order id can be allocated
        """
        payment = parse_payment_method(payment_method)

        with cart.lock:
            lines = cart.lines
            if not lines:
                raise ValidationError("Cannot commit an empty cart", field="cart")

            with self._inventory.item_locks(line.item_id for line in lines):
                # Validate every line before touching any stock
                items = {}
                for line in lines:
                    item = self._inventory.find_item(line.item_id)
                    if item is None:
                        raise NotFoundError("item", line.item_id)
                    if line.quantity > item.stock:
                        logger.info(
                            f"Commit rejected: {item.name} needs {line.quantity}, "
                            f"stock {item.stock}"
                        )
                        raise InsufficientStockError(
                            item.id, line.quantity, item.stock, item.name
                        )
                    items[item.id] = item

                # Record the order (the only step that can still fail), then
                # consume stock. Nothing raises once stock has moved.
                order = self._record(
                    tuple(
                        OrderLine(
                            item_id=line.item_id,
                            name=items[line.item_id].name,
                            unit_price=items[line.item_id].selling_price,
                            quantity=line.quantity,
                            category_id=items[line.item_id].category_id,
                        )
                        for line in lines
                    ),
                    payment,
                    cart.table_number,
                )
                for line in lines:
                    self._inventory.adjust_stock(line.item_id, -line.quantity)

            cart.clear()

        logger.info(
            f"Committed {order.id}: {order.item_count} items, "
            f"total {order.total:.2f} ({payment.value})"
        )
        return order

    # =========================================================================
    # Refund
    # =========================================================================

    def refund(self, order_id: str) -> Order:
        """
        Move a completed order to REFUNDED.

        Refunding is one-way and not idempotent: a second refund of the
        same order is rejected.

        Returns:
            The refunded Order

        Raises:
            NotFoundError: If the order id is unknown
            InvalidStateError: If the order is not COMPLETED
        """
        self.get(order_id)
        with self._order_lock(order_id):
            order = self.get(order_id)
            if order.status is not OrderStatus.COMPLETED:
                raise InvalidStateError(
                    f"Order {order_id} cannot be refunded (status: {order.status.value})",
                    {"order_id": order_id, "status": order.status.value},
                )

            if self.restock_on_refund:
                self._restock(order)

            refunded = order.refunded(self._clock())
            with self._lock:
                self._orders[order_id] = refunded

        logger.info(f"Refunded {order_id}: {refunded.total:.2f}")
        return refunded

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, order_id: str) -> Order:
        """
        Look up an order.

        Raises:
            NotFoundError: If the order id is unknown
        """
        with self._lock:
            order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("order", order_id)
        return order

    def query(
        self,
        start: DateBound = None,
        end: DateBound = None,
        status: Union[OrderStatus, str, None] = None,
        category_id: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> Iterator[Order]:
        """
        Lazily yield matching orders, newest first.

        Args:
            start: Inclusive lower bound (date compares the local calendar day)
            end: Inclusive upper bound (date compares the local calendar day)
            status: Only orders with this status
            category_id: Only orders with at least one line in this category
            order_id: Only the order with this id

        Yields:
            Orders as they were when query() was called
        """
        if status is not None:
            status = parse_status(status)
        with self._lock:
            snapshot = list(self._orders.values())

        for order in reversed(snapshot):
            if order_id is not None and order.id != order_id:
                continue
            if status is not None and order.status is not status:
                continue
            if category_id is not None and category_id not in order.category_ids:
                continue
            if not _within(order.created_at, start, end):
                continue
            yield order

    def orders(self) -> List[Order]:
        """All orders, oldest first."""
        with self._lock:
            return list(self._orders.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self.orders())

    # =========================================================================
    # Internals
    # =========================================================================

    def _record(
        self,
        lines: Tuple[OrderLine, ...],
        payment: PaymentMethod,
        table_number: Optional[int],
    ) -> Order:
        """
        Allocate an unused id and insert the new order in one locked step.

        Raises:
            InvalidStateError: If the id factory keeps returning taken ids
        """
        created_at = self._clock()
        with self._lock:
            for _ in range(MAX_ID_ATTEMPTS):
                order_id = self._id_factory()
                if order_id not in self._orders:
                    break
            else:
                raise InvalidStateError(
                    f"No unused order id after {MAX_ID_ATTEMPTS} attempts",
                    {"last_id": order_id},
                )

            order = Order.create(order_id, lines, created_at, payment, table_number)
            self._orders[order.id] = order
            self._order_locks[order.id] = threading.Lock()
        return order

    def _order_lock(self, order_id: str) -> threading.Lock:
        with self._lock:
            return self._order_locks[order_id]

    def _restock(self, order: Order) -> None:
        with self._inventory.item_locks(line.item_id for line in order.lines):
            for line in order.lines:
                if line.item_id not in self._inventory:
                    logger.warning(
                        f"Refund {order.id}: item {line.item_id} no longer exists, not restocked"
                    )
                    continue
                self._inventory.adjust_stock(line.item_id, line.quantity)


def parse_payment_method(value: Union[PaymentMethod, str]) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    try:
        return PaymentMethod((value or "").strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown payment method: {value!r}", field="payment_method"
        ) from None


def parse_status(value: Union[OrderStatus, str]) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus((value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown order status: {value!r}", field="status") from None


def _within(moment: datetime, start: DateBound, end: DateBound) -> bool:
    if start is not None and _before(moment, start):
        return False
    if end is not None and _after(moment, end):
        return False
    return True


def _before(moment: datetime, bound: Union[date, datetime]) -> bool:
    if isinstance(bound, datetime):
        return moment < bound
    return local_date(moment) < bound


def _after(moment: datetime, bound: Union[date, datetime]) -> bool:
    if isinstance(bound, datetime):
        return moment > bound
    return local_date(moment) > bound
