"""
Inventory service tests against the demo catalogue.

Demo stock: Ceylon 45/10, Green 8/15, White 25/8, Earl Grey 6/12,
Chamomile 32/10, Oolong 4/10 (stock / reorder level).
"""
import pytest

from teashop.models import StockAdjustment
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.inventory_service import InventoryService


def test_list_products_carries_stock_status(seeded):
    rows = {p["name"]: p for p in InventoryService(seeded).list_products()}
    assert len(rows) == 6
    assert rows["Green Tea Supreme"]["stock_status"] == "LowStock"
    assert rows["Ceylon Black Tea Premium"]["stock_status"] == "InStock"
    assert rows["Oolong Dragon Well"]["stock_value"] == 4 * 1850.0


def test_list_products_search_and_type_filter(seeded):
    service = InventoryService(seeded)
    assert [p["name"] for p in service.list_products(search="tea")] == [
        "Ceylon Black Tea Premium", "Green Tea Supreme", "White Tea Delicate",
    ]
    assert [p["name"] for p in service.list_products(tea_type="HerbalTea")] == ["Chamomile Herbal Blend"]


def test_create_product_defaults_and_validation(seeded):
    service = InventoryService(seeded)
    created = service.create_product({"name": "  Ginger Lemon ", "tea_type": "HerbalTea", "price": 900})
    assert created["name"] == "Ginger Lemon"
    assert created["quantity_in_stock"] == 0
    assert created["reorder_level"] == 10
    assert created["unit"] == "g"
    assert created["stock_status"] == "OutOfStock"

    with pytest.raises(ValidationFailed) as exc:
        service.create_product({"name": "Bad", "tea_type": "HerbalTea", "price": 0})
    assert exc.value.field == "price"

    with pytest.raises(ValidationFailed) as exc:
        service.create_product({"name": "Bad", "tea_type": "Coffee", "price": 10})
    assert exc.value.field == "tea_type"

    with pytest.raises(ValidationFailed) as exc:
        service.create_product({"name": "Bad", "tea_type": "HerbalTea", "price": 10, "quantity_in_stock": -1})
    assert exc.value.field == "quantity_in_stock"


def test_update_and_soft_delete(seeded, product_ids):
    service = InventoryService(seeded)
    green = product_ids["Green Tea Supreme"]

    updated = service.update_product(green, {"quantity_in_stock": 40, "price": 1600})
    assert updated["stock_status"] == "InStock"
    assert updated["price"] == 1600

    service.delete_product(green)
    with pytest.raises(NotFound):
        service.get_product(green)
    assert green not in {p["id"] for p in service.list_products()}


@pytest.mark.parametrize("field", ["name", "tea_type", "price", "unit", "is_active", "quantity_in_stock"])
def test_update_rejects_null_for_required_fields(seeded, product_ids, field):
    service = InventoryService(seeded)
    green = product_ids["Green Tea Supreme"]
    with pytest.raises(ValidationFailed) as exc:
        service.update_product(green, {field: None})
    assert exc.value.field == field

    product = service.get_product(green)
    assert product["is_active"] is True
    assert product["unit"] == "g"


def test_unknown_product_is_not_found(seeded):
    with pytest.raises(NotFound):
        InventoryService(seeded).get_product(9999)


def test_restock_queue_for_demo_data(seeded):
    queue = InventoryService(seeded).get_restock_queue()
    assert [p["name"] for p in queue] == ["Green Tea Supreme", "Earl Grey Classic", "Oolong Dragon Well"]
    assert {p["urgency"] for p in queue} == {"medium"}


def test_low_stock_summary_and_filters(seeded, product_ids):
    service = InventoryService(seeded)
    result = service.get_low_stock()
    assert result["summary"] == {
        "low_stock_items": 3,
        "critical_items": 0,
        "high_urgency_items": 0,
        "value_at_risk": 8 * 1550.0 + 6 * 1350.0 + 4 * 1850.0,
    }

    service.adjust_stock(product_ids["Oolong Dragon Well"], "decrease", 4, "Damaged in storage")
    result = service.get_low_stock()
    assert result["items"][0]["name"] == "Oolong Dragon Well"
    assert result["summary"]["critical_items"] == 1

    assert service.get_low_stock(urgency="critical")["summary"]["low_stock_items"] == 1
    assert service.get_low_stock(tea_type="GreenTea")["summary"]["low_stock_items"] == 1
    assert service.get_low_stock(search="earl")["items"][0]["name"] == "Earl Grey Classic"


def test_overview_sorting_and_totals(seeded):
    service = InventoryService(seeded)
    by_name = service.get_overview(sort_by="name")
    assert [p["name"] for p in by_name["items"]] == [
        "Ceylon Black Tea Premium", "Chamomile Herbal Blend", "Earl Grey Classic",
        "Green Tea Supreme", "Oolong Dragon Well", "White Tea Delicate",
    ]
    assert by_name["total_stock_value"] == 170510.0
    assert len(by_name["category_breakdown"]) == 6

    by_value = service.get_overview(sort_by="value")
    assert by_value["items"][0]["name"] == "Ceylon Black Tea Premium"
    green = next(p for p in by_value["items"] if p["name"] == "Green Tea Supreme")
    assert green["stock_level_pct"] == pytest.approx(8 / 30 * 100)

    with pytest.raises(ValidationFailed):
        service.get_overview(sort_by="colour")


def test_adjustment_decrease_floors_at_zero_and_is_audited(seeded, product_ids):
    service = InventoryService(seeded)
    oolong = product_ids["Oolong Dragon Well"]

    adj = service.adjust_stock(oolong, "decrease", 10, "Stock count correction", user_id=None)
    assert adj["previous_stock"] == 4
    assert adj["new_stock"] == 0
    assert service.get_product(oolong)["quantity_in_stock"] == 0

    service.adjust_stock(oolong, "increase", 20, "Supplier delivery")
    assert service.get_product(oolong)["quantity_in_stock"] == 20

    history = service.list_adjustments(product_id=oolong)
    assert [a["reason"] for a in history] == ["Supplier delivery", "Stock count correction"]
    assert seeded.query(StockAdjustment).count() == 2


@pytest.mark.parametrize(
    "adjustment_type, amount, reason, field",
    [
        ("increase", 0, "x", "amount"),
        ("decrease", -3, "x", "amount"),
        ("restock", 5, "x", "adjustment_type"),
        ("increase", 5, "  ", "reason"),
    ],
)
def test_invalid_adjustments(seeded, product_ids, adjustment_type, amount, reason, field):
    with pytest.raises(ValidationFailed) as exc:
        InventoryService(seeded).adjust_stock(product_ids["Green Tea Supreme"], adjustment_type, amount, reason)
    assert exc.value.field == field


def test_inventory_report(seeded):
    report = InventoryService(seeded).get_inventory_report(sort_by="stock")
    metrics = report["metrics"]
    assert metrics["total_products"] == 6
    assert metrics["total_stock_value"] == 170510.0
    assert metrics["low_stock_items"] == 3
    assert metrics["out_of_stock_items"] == 0
    assert metrics["overstock_items"] == 3
    # White Tea sits at 25 against a 24 threshold (reorder 8 x 3)
    assert {r["name"] for r in report["items"] if r["is_overstock"]} == {
        "Ceylon Black Tea Premium", "Chamomile Herbal Blend", "White Tea Delicate",
    }
    assert metrics["slow_moving_items"] == 6
    assert metrics["fast_moving_items"] == 0
    assert [r["quantity_in_stock"] for r in report["items"]] == [45, 32, 25, 8, 6, 4]

    sold = {r["name"]: r["total_sold"] for r in report["items"]}
    assert sold["Ceylon Black Tea Premium"] == 2
    assert sold["Green Tea Supreme"] == 1
    assert sold["White Tea Delicate"] == 1


def test_inventory_report_category_filter(seeded):
    report = InventoryService(seeded).get_inventory_report(category="GreenTea")
    assert [r["name"] for r in report["items"]] == ["Green Tea Supreme"]
    assert report["metrics"]["total_stock_value"] == 12400.0
    green = next(b for b in report["category_breakdown"] if b["type"] == "GreenTea")
    assert green["percentage"] == 100.0
    assert len(report["category_breakdown"]) == 6


def test_inventory_report_rejects_unknown_inputs(seeded):
    service = InventoryService(seeded)
    with pytest.raises(ValidationFailed):
        service.get_inventory_report(category="Coffee")
    with pytest.raises(ValidationFailed):
        service.get_inventory_report(sort_by="name")
    with pytest.raises(ValidationFailed):
        service.get_inventory_report(window="2w")
