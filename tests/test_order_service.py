"""
Order service tests: numbering, stock movements, status rules, pending queue.
"""
from datetime import datetime, timedelta

import pytest

from teashop.models import Customer, Order
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.inventory_service import InventoryService
from teashop.services.order_service import OrderService


def _stock(db, product_id):
    return InventoryService(db).get_product(product_id)["quantity_in_stock"]


def test_list_orders_newest_first_with_status_counts(seeded):
    result = OrderService(seeded).list_orders()
    assert [o["order_number"] for o in result["orders"]] == [
        "DTN-20240203-003", "DTN-20240203-002", "DTN-20240203-001",
    ]
    assert result["status_counts"] == {"Pending": 1, "Processing": 1, "Completed": 1, "Cancelled": 0}

    first = result["orders"][-1]
    assert first["customer_name"] == "Saman Perera"
    assert [(i["product_name"], i["total_price"]) for i in first["items"]] == [
        ("Ceylon Black Tea Premium", 2500.0),
        ("White Tea Delicate", 2200.0),
    ]


def test_list_orders_status_filter(seeded):
    service = OrderService(seeded)
    assert [o["status"] for o in service.list_orders(status="Processing")["orders"]] == ["Processing"]
    assert len(service.list_orders(status="all")["orders"]) == 3
    with pytest.raises(ValidationFailed):
        service.list_orders(status="Shipped")


def test_order_number_continues_the_day_sequence(seeded):
    service = OrderService(seeded)
    assert service.next_order_number(datetime(2024, 2, 3, 18, 0)) == "DTN-20240203-004"
    assert service.next_order_number(datetime(2024, 2, 10, 9, 0)) == "DTN-20240210-001"


def test_create_order_prices_lines_and_takes_stock(seeded, product_ids):
    service = OrderService(seeded)
    ceylon = product_ids["Ceylon Black Tea Premium"]
    chamomile = product_ids["Chamomile Herbal Blend"]
    saman = seeded.query(Customer).filter(Customer.email == "saman.perera@email.com").one()

    order = service.create_order(
        items=[
            {"product_id": ceylon, "quantity": 2},
            {"product_id": chamomile, "quantity": 1, "price": 950.0},
        ],
        customer_id=saman.id,
        notes="Gift wrap",
        now=datetime(2024, 2, 3, 17, 0),
    )
    assert order["order_number"] == "DTN-20240203-004"
    assert order["status"] == "Pending"
    assert order["total_amount"] == 2 * 1250.0 + 950.0
    assert [i["price"] for i in order["items"]] == [1250.0, 950.0]
    assert _stock(seeded, ceylon) == 43
    assert _stock(seeded, chamomile) == 31


def test_walk_in_order_has_no_customer(seeded, product_ids):
    order = OrderService(seeded).create_order(items=[{"product_id": product_ids["White Tea Delicate"], "quantity": 1}])
    assert order["customer_id"] is None
    assert order["customer_name"] is None


def test_order_can_take_the_last_unit_but_not_more(seeded, product_ids):
    service = OrderService(seeded)
    green = product_ids["Green Tea Supreme"]

    with pytest.raises(ValidationFailed) as exc:
        service.create_order(items=[{"product_id": green, "quantity": 9}])
    assert exc.value.field == "quantity"
    assert _stock(seeded, green) == 8

    # Same product on two lines is checked against the combined quantity
    with pytest.raises(ValidationFailed):
        service.create_order(items=[{"product_id": green, "quantity": 5}, {"product_id": green, "quantity": 4}])

    service.create_order(items=[{"product_id": green, "quantity": 8}])
    assert _stock(seeded, green) == 0


def test_create_order_rejects_bad_input(seeded, product_ids):
    service = OrderService(seeded)
    ceylon = product_ids["Ceylon Black Tea Premium"]

    with pytest.raises(ValidationFailed) as exc:
        service.create_order(items=[])
    assert exc.value.field == "items"

    with pytest.raises(ValidationFailed) as exc:
        service.create_order(items=[{"product_id": ceylon, "quantity": 0}])
    assert exc.value.field == "quantity"

    with pytest.raises(ValidationFailed) as exc:
        service.create_order(items=[{"product_id": 9999, "quantity": 1}])
    assert exc.value.field == "product_id"

    with pytest.raises(ValidationFailed) as exc:
        service.create_order(items=[{"product_id": ceylon, "quantity": 1}], customer_id=9999)
    assert exc.value.field == "customer_id"

    InventoryService(seeded).delete_product(ceylon)
    with pytest.raises(ValidationFailed):
        service.create_order(items=[{"product_id": ceylon, "quantity": 1}])


def test_cancelling_restores_stock(seeded, product_ids):
    service = OrderService(seeded)
    ceylon = product_ids["Ceylon Black Tea Premium"]
    order = service.create_order(items=[{"product_id": ceylon, "quantity": 5}])
    assert _stock(seeded, ceylon) == 40

    cancelled = service.update_status(order["id"], "Cancelled")
    assert cancelled["status"] == "Cancelled"
    assert _stock(seeded, ceylon) == 45


def test_final_statuses_cannot_change(seeded):
    service = OrderService(seeded)
    completed = seeded.query(Order).filter(Order.order_number == "DTN-20240203-001").one()

    with pytest.raises(ValidationFailed) as exc:
        service.update_status(completed.id, "Pending")
    assert exc.value.field == "status"

    # Re-sending the current status is a no-op
    assert service.update_status(completed.id, "Completed")["status"] == "Completed"


def test_status_progression(seeded):
    service = OrderService(seeded)
    pending = seeded.query(Order).filter(Order.order_number == "DTN-20240203-003").one()
    assert service.update_status(pending.id, "Processing")["status"] == "Processing"
    assert service.update_status(pending.id, "Completed")["status"] == "Completed"
    with pytest.raises(ValidationFailed):
        service.update_status(pending.id, "Dispatched")


def test_unknown_order(seeded):
    with pytest.raises(NotFound):
        OrderService(seeded).get_order(9999)
    with pytest.raises(NotFound):
        OrderService(seeded).update_status(9999, "Processing")


def test_pending_queue_priority_and_summary(seeded, demo_now):
    service = OrderService(seeded)
    result = service.get_pending(now=demo_now)
    assert result["summary"] == {
        "pending_orders": 1,
        "overdue_orders": 0,
        "total_value": 1850.0,
        "unique_customers": 1,
    }
    order = result["orders"][0]
    assert order["customer_name"] == "Rajesh Fernando"
    assert order["days_since_order"] == 1
    assert order["priority"] == "Medium"
    assert order["order_date_display"] == "03 Feb 2024"

    later = service.get_pending(now=demo_now + timedelta(days=2))
    assert later["orders"][0]["priority"] == "High"
    assert later["summary"]["overdue_orders"] == 1


def test_pending_search(seeded, demo_now):
    service = OrderService(seeded)
    assert len(service.get_pending(search="RAJESH", now=demo_now)["orders"]) == 1
    assert service.get_pending(search="saman", now=demo_now)["orders"] == []
    pending_id = service.get_pending(now=demo_now)["orders"][0]["id"]
    assert len(service.get_pending(search=str(pending_id), now=demo_now)["orders"]) == 1
