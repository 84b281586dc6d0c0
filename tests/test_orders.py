"""
Unit tests for the Order Ledger.

Covers atomic commit, frozen line snapshots, refunds and queries,
including commits racing for the same stock.
"""

import threading
from datetime import date, datetime

import pytest

from core.exceptions import (
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from models.order import OrderStatus, PaymentMethod
from services.order_service import OrderLedger, new_order_id


class TestCommit:

    def test_commit_creates_completed_order(self, orders, ledger, make_cart, clock):
        cart = make_cart(("1", 3), ("12", 2))
        order = orders.commit(cart, "card")

        assert order.status is OrderStatus.COMPLETED
        assert order.payment_method is PaymentMethod.CARD
        assert order.total == 13.0
        assert order.item_count == 5
        assert order.created_at == clock.now
        assert ledger.stock_of("1") == 7
        assert ledger.stock_of("12") == 8
        assert cart.is_empty
        assert orders.get(order.id) == order

    def test_total_is_sum_of_lines(self, orders, make_cart):
        order = orders.commit(make_cart(("1", 1), ("2", 1), ("3", 1)))
        assert order.total == round(sum(line.line_total for line in order.lines), 2)

    def test_empty_cart_rejected(self, orders, make_cart):
        with pytest.raises(ValidationError):
            orders.commit(make_cart())
        assert len(orders) == 0

    def test_unknown_payment_method(self, orders, make_cart):
        cart = make_cart(("1", 1))
        with pytest.raises(ValidationError):
            orders.commit(cart, "cheque")
        assert not cart.is_empty

    def test_commit_is_all_or_nothing(self, orders, ledger, make_cart):
        cart = make_cart(("1", 2), ("12", 5))
        ledger.set_stock("12", 3)

        with pytest.raises(InsufficientStockError) as exc_info:
            orders.commit(cart)

        assert exc_info.value.item_id == "12"
        assert ledger.stock_of("1") == 10
        assert ledger.stock_of("12") == 3
        assert len(orders) == 0
        assert cart.quantity_of("1") == 2
        assert cart.quantity_of("12") == 5

    def test_item_removed_after_carting(self, orders, ledger, registry, make_cart):
        cart = make_cart(("17", 1))
        # Standalone carts are not in the registry, so removal is allowed
        ledger.remove_item("17")
        with pytest.raises(NotFoundError):
            orders.commit(cart)

    def test_prices_are_frozen(self, orders, ledger, make_cart):
        order = orders.commit(make_cart(("1", 2)))
        ledger.update_item("1", name="Ristretto", selling_price=9.99)

        stored = orders.get(order.id)
        assert stored.lines[0].name == "Espresso"
        assert stored.lines[0].unit_price == 2.50
        assert stored.total == 5.0

        queried = next(orders.query(order_id=order.id))
        assert queried.lines[0].name == "Espresso"
        assert queried.lines[0].unit_price == 2.50
        assert queried.total == 5.0

    def test_table_and_category_snapshot(self, orders, make_cart):
        order = orders.commit(make_cart(("1", 1), table_number=3))
        assert order.table_number == 3
        assert order.lines[0].category_id == "coffee"

    def test_concurrent_commits_never_oversell(self, orders, ledger, make_cart):
        ledger.set_stock("1", 5)
        carts = [make_cart(("1", 1)) for _ in range(12)]
        barrier = threading.Barrier(len(carts))
        results = []
        results_lock = threading.Lock()

        def checkout(cart):
            barrier.wait()
            try:
                orders.commit(cart)
                outcome = "ok"
            except InsufficientStockError:
                outcome = "short"
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=checkout, args=(c,)) for c in carts]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count("ok") == 5
        assert results.count("short") == 7
        assert ledger.stock_of("1") == 0
        assert len(orders) == 5

    def test_order_ids_are_unique(self, ledger, make_cart):
        ids = iter(["ORD-1", "ORD-1", "ORD-2"])
        ledger_with_ids = OrderLedger(ledger, id_factory=lambda: next(ids))
        first = ledger_with_ids.commit(make_cart(("1", 1)))
        second = ledger_with_ids.commit(make_cart(("1", 1)))
        assert (first.id, second.id) == ("ORD-1", "ORD-2")

    def test_exhausted_ids_leave_stock_untouched(self, ledger, make_cart):
        ledger_with_ids = OrderLedger(ledger, id_factory=lambda: "ORD-X")
        ledger_with_ids.commit(make_cart(("1", 1)))

        cart = make_cart(("1", 2), ("12", 3))
        with pytest.raises(InvalidStateError):
            ledger_with_ids.commit(cart)

        assert ledger.stock_of("1") == 9
        assert ledger.stock_of("12") == 10
        assert [(line.item_id, line.quantity) for line in cart.lines] == [("1", 2), ("12", 3)]
        assert len(ledger_with_ids) == 1

    def test_concurrent_commits_get_distinct_ids(self, ledger, make_cart):
        ids = iter(["ORD-X", "ORD-X", "ORD-Y"])
        ids_lock = threading.Lock()

        def next_id():
            with ids_lock:
                return next(ids)

        # Both commits reach id allocation before either records its order
        barrier = threading.Barrier(2, timeout=5)

        def clock():
            barrier.wait()
            return datetime(2024, 1, 1, 9, 0, 0)

        ledger_with_ids = OrderLedger(ledger, clock=clock, id_factory=next_id)
        carts = [make_cart(("1", 2)), make_cart(("12", 3))]
        errors = []

        def checkout(cart):
            try:
                ledger_with_ids.commit(cart)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=checkout, args=(c,)) for c in carts]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert {order.id for order in ledger_with_ids} == {"ORD-X", "ORD-Y"}
        assert ledger.stock_of("1") == 8
        assert ledger.stock_of("12") == 7
        assert all(cart.is_empty for cart in carts)

    def test_default_id_format(self):
        prefix, millis, suffix = new_order_id().split("-")
        assert prefix == "ORD"
        assert millis.isdigit()
        assert len(suffix) == 6


class TestRefund:

    def test_refund(self, orders, make_cart, clock):
        order = orders.commit(make_cart(("1", 2)))
        clock.advance(hours=1)

        refunded = orders.refund(order.id)
        assert refunded.status is OrderStatus.REFUNDED
        assert refunded.refunded_at == clock.now
        assert refunded.total == order.total
        assert orders.get(order.id).is_refunded

    def test_double_refund_rejected(self, orders, make_cart):
        order = orders.commit(make_cart(("1", 1)))
        orders.refund(order.id)
        with pytest.raises(InvalidStateError):
            orders.refund(order.id)

    def test_refund_unknown(self, orders):
        with pytest.raises(NotFoundError):
            orders.refund("ORD-missing")

    def test_refund_does_not_restock_by_default(self, orders, ledger, make_cart):
        order = orders.commit(make_cart(("1", 4)))
        orders.refund(order.id)
        assert ledger.stock_of("1") == 6

    def test_restock_on_refund(self, ledger, make_cart):
        restocking = OrderLedger(ledger, restock_on_refund=True)
        order = restocking.commit(make_cart(("1", 4), ("17", 1)))
        ledger.remove_item("17")

        restocking.refund(order.id)
        assert ledger.stock_of("1") == 10

    def test_concurrent_refunds_only_one_wins(self, orders, make_cart):
        order = orders.commit(make_cart(("1", 1)))
        barrier = threading.Barrier(6)
        outcomes = []
        outcomes_lock = threading.Lock()

        def refund():
            barrier.wait()
            try:
                orders.refund(order.id)
                outcome = "ok"
            except InvalidStateError:
                outcome = "rejected"
            with outcomes_lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=refund) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("rejected") == 5


class TestQuery:

    @pytest.fixture
    def history(self, orders, make_cart, clock):
        """Three orders across two days; the middle one refunded."""
        first = orders.commit(make_cart(("1", 1)))
        clock.advance(hours=2)
        second = orders.commit(make_cart(("12", 1)))
        clock.now = datetime(2024, 1, 2, 10, 0, 0)
        third = orders.commit(make_cart(("3", 1)))
        orders.refund(second.id)
        return first, second, third

    def test_newest_first(self, orders, history):
        first, second, third = history
        assert [o.id for o in orders.query()] == [third.id, second.id, first.id]

    def test_orders_oldest_first(self, orders, history):
        assert [o.id for o in orders.orders()] == [o.id for o in history]

    def test_filter_by_status(self, orders, history):
        refunded = list(orders.query(status="refunded"))
        assert [o.id for o in refunded] == [history[1].id]

    def test_bad_status(self, orders, history):
        with pytest.raises(ValidationError):
            list(orders.query(status="pending"))

    def test_filter_by_date(self, orders, history):
        day_one = list(orders.query(start=date(2024, 1, 1), end=date(2024, 1, 1)))
        assert {o.id for o in day_one} == {history[0].id, history[1].id}

        day_two = list(orders.query(start=date(2024, 1, 2)))
        assert [o.id for o in day_two] == [history[2].id]

    def test_filter_by_category(self, orders, history):
        pastries = list(orders.query(category_id="pastries"))
        assert [o.id for o in pastries] == [history[1].id]

    def test_filter_by_id(self, orders, history):
        assert [o.id for o in orders.query(order_id=history[0].id)] == [history[0].id]

    def test_query_is_lazy(self, orders, history):
        results = orders.query()
        assert next(results).id == history[2].id
