"""
Unit tests for the Inventory Ledger.

Covers item lifecycle, validated setters, stock clamping and margin.
"""

import threading
from unittest.mock import Mock, patch

import pytest

from core.exceptions import InvalidStateError, NotFoundError, ValidationError
from services.inventory_service import InventoryLedger


class TestSeedMenu:

    def test_seeded_ids_and_stock(self, ledger):
        assert len(ledger) == 17
        espresso = ledger.get_item("1")
        assert espresso.name == "Espresso"
        assert espresso.selling_price == 2.50
        assert espresso.category_id == "coffee"
        assert espresso.stock == 10

    def test_list_by_category(self, ledger):
        names = [item.name for item in ledger.list_items("pastries")]
        assert names == ["Croissant", "Muffin", "Danish", "Bagel"]

    def test_seed_skips_unknown_category(self, catalog):
        catalog.remove_category("snacks")
        inventory = InventoryLedger(catalog)
        inventory.seed_menu()
        assert len(inventory) == 14


class TestItemLifecycle:

    def test_add_item(self, ledger):
        item = ledger.add_item("Flat White", 4.25, cost_price=1.10, category_id="coffee", stock=5)
        assert item.id.startswith("item-")
        assert item.id in ledger
        assert ledger.stock_of(item.id) == 5

    def test_add_item_unknown_category(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            ledger.add_item("Flat White", 4.25, category_id="tea")
        assert exc_info.value.field == "category_id"

    def test_add_item_bad_price(self, ledger):
        before = len(ledger)
        with pytest.raises(ValidationError):
            ledger.add_item("Flat White", 0, category_id="coffee")
        assert len(ledger) == before

    def test_returned_items_are_copies(self, ledger):
        item = ledger.get_item("1")
        item.stock = 999
        item.selling_price = 0.01
        assert ledger.stock_of("1") == 10
        assert ledger.get_item("1").selling_price == 2.50

    def test_update_item(self, ledger):
        updated = ledger.update_item("1", name="Double Espresso", selling_price=3.25)
        assert updated.name == "Double Espresso"
        assert ledger.get_item("1").selling_price == 3.25

    def test_update_is_all_or_nothing(self, ledger):
        with pytest.raises(ValidationError):
            ledger.update_item("1", name="Ristretto", selling_price=-1)
        assert ledger.get_item("1").name == "Espresso"

    def test_update_rejects_stock_field(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            ledger.update_item("1", stock=100)
        assert exc_info.value.field == "stock"

    @pytest.mark.parametrize("field", ["item_id", "self", "id"])
    def test_update_fields_rejects_reserved_names(self, ledger, field):
        with pytest.raises(ValidationError) as exc_info:
            ledger.update_fields("1", {field: "x", "name": "Ristretto"})
        assert exc_info.value.field == field
        assert ledger.get_item("1").name == "Espresso"

    def test_update_category_must_exist(self, ledger):
        with pytest.raises(ValidationError):
            ledger.update_item("1", category_id="tea")
        ledger.update_item("1", category_id="cold")
        assert ledger.get_item("1").category_id == "cold"

    def test_update_unknown_item(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.update_item("nope", name="X")

    def test_remove_item(self, ledger):
        removed = ledger.remove_item("17")
        assert removed.name == "Cookies"
        assert "17" not in ledger
        assert ledger.find_item("17") is None

    def test_usage_check_consulted(self, ledger):
        check = Mock(return_value=True)
        ledger.set_usage_check(check)
        with pytest.raises(InvalidStateError):
            ledger.remove_item("2")
        check.assert_called_once_with("2")

    def test_remove_unknown(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.remove_item("nope")

    def test_remove_item_in_open_cart(self, ledger, cart):
        cart.add_line("1", 1)
        with pytest.raises(InvalidStateError):
            ledger.remove_item("1")
        assert "1" in ledger

        cart.clear()
        ledger.remove_item("1")
        assert "1" not in ledger


class TestStock:

    def test_adjust_up_and_down(self, ledger):
        assert ledger.adjust_stock("1", 5) == 15
        assert ledger.adjust_stock("1", -3) == 12

    def test_adjust_clamps_at_zero(self, ledger):
        assert ledger.adjust_stock("1", -25) == 0
        assert ledger.stock_of("1") == 0

    def test_clamp_is_logged(self, ledger):
        with patch("services.inventory_service.logger") as mock_logger:
            ledger.adjust_stock("1", -25)
        mock_logger.warning.assert_called_once()
        assert "clamped" in mock_logger.warning.call_args[0][0]

    def test_apply_adjustment_reports_clamp(self, ledger):
        adjustment = ledger.apply_adjustment("1", -25)
        assert adjustment.stock == 0
        assert adjustment.requested == -15
        assert adjustment.clamped
        assert adjustment.to_dict() == {
            "item_id": "1", "stock": 0, "requested": -15, "clamped": True,
        }

    def test_apply_adjustment_without_clamp(self, ledger):
        adjustment = ledger.apply_adjustment("1", -4)
        assert adjustment.stock == adjustment.requested == 6
        assert not adjustment.clamped

    def test_clamp_report_ignores_earlier_writers(self, ledger):
        # Another writer drained stock first; this adjustment lands exactly at 0
        ledger.adjust_stock("1", -6)
        adjustment = ledger.apply_adjustment("1", -4)
        assert adjustment.stock == 0
        assert not adjustment.clamped

    def test_adjust_rejects_non_integer(self, ledger):
        with pytest.raises(ValidationError):
            ledger.adjust_stock("1", 1.5)

    def test_adjust_unknown_item(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.adjust_stock("nope", 1)

    def test_set_stock(self, ledger):
        assert ledger.set_stock("1", 3) == 3
        assert ledger.set_stock("1", -3) == 0

    def test_has_stock(self, ledger):
        assert ledger.has_stock("1", 10)
        assert not ledger.has_stock("1", 11)

    def test_concurrent_adjustments(self, ledger):
        ledger.set_stock("1", 0)

        def bump():
            for _ in range(100):
                ledger.adjust_stock("1", 1)

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert ledger.stock_of("1") == 800


class TestMargin:

    def test_margin_examples(self, ledger):
        cappuccino = ledger.add_item("Test Cappuccino", 4.00, 1.00, "coffee")
        free_cost = ledger.add_item("Tap Water", 4.00, 0.00, "cold")
        assert ledger.margin(cappuccino.id) == pytest.approx(0.75)
        assert ledger.margin(free_cost.id) == 0

    def test_margin_from_item(self, ledger):
        assert ledger.margin(ledger.get_item("3")) == pytest.approx(0.75)
