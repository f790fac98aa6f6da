"""
Analytics engine tests.

Pure functions only; no database. Covers the stock, urgency, turnover,
segmentation and time-window rules that every report depends on.
"""
from datetime import datetime, timedelta, timezone

import pytest

from teashop.services import analytics
from teashop.services.analytics import RiskLevel, StockStatus, TurnoverClass
from teashop.utils.helpers import format_currency, format_date

NOW = datetime(2024, 3, 1, 12, 0, 0)


def _order(order_id, customer_id, amount, created_at, status="Completed", items=None, name=None):
    return {
        "id": order_id,
        "order_number": f"DTN-TEST-{order_id:03d}",
        "customer_id": customer_id,
        "customer_name": name,
        "status": status,
        "total_amount": amount,
        "created_at": created_at,
        "items": items or [],
    }


def _product(product_id, name, stock, reorder, price=1000.0, tea_type="BlackTea"):
    return {
        "id": product_id,
        "name": name,
        "tea_type": tea_type,
        "price": price,
        "quantity_in_stock": stock,
        "reorder_level": reorder,
    }


# ---------------------------------------------------------------------------
# Stock status
# ---------------------------------------------------------------------------

def test_exactly_one_status_for_every_stock_and_reorder_pair():
    for reorder in range(0, 25):
        for stock in range(0, 60):
            status = analytics.classify_stock_status(stock, reorder)
            assert status in (StockStatus.OUT_OF_STOCK, StockStatus.LOW_STOCK, StockStatus.IN_STOCK)
            if status == StockStatus.OUT_OF_STOCK:
                assert stock == 0
            elif status == StockStatus.LOW_STOCK:
                assert 0 < stock <= reorder
            else:
                assert stock > reorder


def test_low_stock_boundary_is_inclusive():
    assert analytics.classify_stock_status(10, 10) == StockStatus.LOW_STOCK
    assert analytics.classify_stock_status(11, 10) == StockStatus.IN_STOCK


def test_negative_stock_is_rejected():
    with pytest.raises(ValueError):
        analytics.classify_stock_status(-1, 10)


def test_green_tea_example_is_low_stock_with_medium_urgency():
    assert analytics.classify_stock_status(8, 15) == StockStatus.LOW_STOCK
    urgency = analytics.restock_urgency(8, 15)
    assert urgency == {"level": "medium", "label": "Medium", "priority": 2}


# ---------------------------------------------------------------------------
# Restock urgency
# ---------------------------------------------------------------------------

def test_urgency_thresholds_use_exact_arithmetic():
    # 15 * 0.3 = 4.5, 15 * 0.6 = 9
    assert analytics.restock_urgency(0, 15)["level"] == "critical"
    assert analytics.restock_urgency(4, 15)["level"] == "high"
    assert analytics.restock_urgency(5, 15)["level"] == "medium"
    assert analytics.restock_urgency(9, 15)["level"] == "medium"
    assert analytics.restock_urgency(10, 15)["level"] == "low"


def test_urgency_priority_never_increases_with_stock():
    for reorder in (0, 1, 7, 10, 15, 40):
        priorities = [analytics.restock_urgency(stock, reorder)["priority"] for stock in range(0, reorder * 2 + 5)]
        assert all(a >= b for a, b in zip(priorities, priorities[1:])), reorder


def test_restock_queue_keeps_only_low_stock_sorted_by_priority():
    products = [
        _product(1, "Plenty", 50, 10),
        _product(2, "Medium A", 8, 15),
        _product(3, "Empty", 0, 10),
        _product(4, "Medium B", 6, 12),
        _product(5, "High", 2, 10),
    ]
    queue = analytics.rank_restock_queue(products)
    assert [p["name"] for p in queue] == ["Empty", "High", "Medium A", "Medium B"]
    assert queue[0]["stock_status"] == "OutOfStock"
    assert queue[0]["urgency_label"] == "Critical"


def test_restock_queue_is_stable_for_equal_priority():
    products = [_product(i, f"P{i}", 5, 10) for i in range(1, 6)]
    assert [p["id"] for p in analytics.rank_restock_queue(products)] == [1, 2, 3, 4, 5]


def test_stock_level_percentage():
    assert analytics.stock_level_percentage(8, 15) == pytest.approx(8 / 30 * 100)
    assert analytics.stock_level_percentage(45, 10) == 100.0
    assert analytics.stock_level_percentage(0, 0) == 0.0
    assert analytics.stock_level_percentage(3, 0) == 100.0


# ---------------------------------------------------------------------------
# Turnover
# ---------------------------------------------------------------------------

def test_turnover_is_zero_without_stock():
    for sold in (0, 1, 250):
        assert analytics.turnover_rate(sold, 0) == 0


def test_turnover_classification_boundaries():
    assert analytics.classify_turnover(2.01) == TurnoverClass.FAST_MOVING
    assert analytics.classify_turnover(2.0) == TurnoverClass.NORMAL
    assert analytics.classify_turnover(0.5) == TurnoverClass.NORMAL
    assert analytics.classify_turnover(0.49) == TurnoverClass.SLOW_MOVING


def test_overstock_is_independent_of_turnover():
    products = [_product(1, "Bulk", 31, 10)]
    orders = [_order(1, 1, 1000, NOW, items=[{"product_id": 1, "quantity": 100, "price": 10}])]
    row = analytics.product_turnover(products, orders)[0]
    assert row["is_overstock"] is True
    assert row["is_fast_moving"] is True


def test_product_turnover_sums_units_across_orders():
    products = [_product(1, "A", 10, 5, price=100), _product(2, "B", 0, 5, price=200)]
    orders = [
        _order(1, 1, 500, NOW, items=[{"product_id": 1, "quantity": 3, "price": 100}]),
        _order(2, 1, 200, NOW, items=[{"product_id": 1, "quantity": 2, "price": 100},
                                      {"product_id": 2, "quantity": 4, "price": 200}]),
    ]
    rows = {r["id"]: r for r in analytics.product_turnover(products, orders)}
    assert rows[1]["total_sold"] == 5
    assert rows[1]["turnover_rate"] == 0.5
    assert rows[1]["turnover_class"] == "Normal"
    assert rows[1]["stock_value"] == 1000
    assert rows[2]["turnover_rate"] == 0
    assert rows[2]["is_out_of_stock"] is True


def test_inventory_metrics_low_stock_excludes_out_of_stock():
    rows = analytics.product_turnover(
        [_product(1, "Out", 0, 5), _product(2, "Low", 3, 5), _product(3, "Fine", 20, 5)],
        [],
    )
    metrics = analytics.inventory_metrics(rows)
    assert metrics["low_stock_items"] == 1
    assert metrics["out_of_stock_items"] == 1
    assert metrics["overstock_items"] == 1
    assert metrics["total_products"] == 3


def test_category_breakdown_drops_empty_categories():
    products = [
        _product(1, "A", 10, 5, price=100, tea_type="GreenTea"),
        _product(2, "B", 10, 5, price=300, tea_type="BlackTea"),
    ]
    breakdown = analytics.category_breakdown(products, ["BlackTea", "GreenTea", "WhiteTea"])
    assert [b["type"] for b in breakdown] == ["BlackTea", "GreenTea"]
    assert breakdown[0]["percentage"] == 75.0
    assert breakdown[1]["quantity"] == 10


# ---------------------------------------------------------------------------
# Time windows
# ---------------------------------------------------------------------------

def test_window_tokens():
    assert [analytics.window_days(w) for w in ("7d", "30d", "90d", "1y")] == [7, 30, 90, 365]


def test_unknown_window_is_rejected():
    with pytest.raises(ValueError):
        analytics.window_days("2w")


def test_window_boundary_is_inclusive():
    cutoff = NOW - timedelta(days=30)
    orders = [
        _order(1, 1, 100, cutoff),
        _order(2, 1, 100, cutoff - timedelta(seconds=1)),
        _order(3, 1, 100, NOW),
    ]
    kept = analytics.filter_orders_by_window(orders, "30d", NOW)
    assert [o["id"] for o in kept] == [1, 3]


def test_window_accepts_timezone_aware_now():
    aware_now = NOW.replace(tzinfo=timezone.utc)
    orders = [_order(1, 1, 100, NOW - timedelta(days=6))]
    assert len(analytics.filter_orders_by_window(orders, "7d", aware_now)) == 1


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

def test_segment_rule_order_puts_big_single_order_in_vip():
    assert analytics.assign_segment(150_000, 1) == "VIP"


def test_segment_thresholds():
    assert analytics.assign_segment(100_000, 9) == "Loyal"
    assert analytics.assign_segment(50_000, 6) == "Regular"
    assert analytics.assign_segment(50_000, 5) == "Active"
    assert analytics.assign_segment(0, 0) == "New"


def test_risk_levels():
    assert analytics.risk_level(None) == RiskLevel.LOW
    assert analytics.risk_level(30) == RiskLevel.LOW
    assert analytics.risk_level(31) == RiskLevel.MEDIUM
    assert analytics.risk_level(90) == RiskLevel.MEDIUM
    assert analytics.risk_level(91) == RiskLevel.HIGH


def test_vip_over_three_orders_in_window():
    customer = {"id": 1, "name": "Saman Perera"}
    orders = [
        _order(1, 1, 40_000, NOW - timedelta(days=20)),
        _order(2, 1, 40_000, NOW - timedelta(days=10)),
        _order(3, 1, 40_000, NOW - timedelta(days=2, hours=5)),
    ]
    window_orders = analytics.filter_orders_by_window(orders, "30d", NOW)
    row = analytics.customer_analytics([customer], window_orders, NOW)[0]
    assert row["segment"] == "VIP"
    assert row["avg_order_value"] == 40_000
    assert row["days_since_last_order"] == 2
    assert row["is_active"] is True
    assert row["is_returning"] is True


def test_customer_without_orders():
    row = analytics.customer_summary({"id": 9, "name": "Nobody"}, [], NOW)
    assert row["segment"] == "New"
    assert row["avg_order_value"] == 0
    assert row["last_order_date"] is None
    assert row["days_since_last_order"] is None
    assert row["risk_level"] == "Low"
    assert row["is_active"] is False
    assert row["is_new"] is True


def test_order_placed_today_counts_as_active():
    row = analytics.customer_summary({"id": 1}, [_order(1, 1, 100, NOW - timedelta(hours=3))], NOW)
    assert row["days_since_last_order"] == 0
    assert row["is_active"] is True


def test_orders_are_matched_by_customer_id_not_name():
    customers = [{"id": 1, "name": "Same Name"}, {"id": 2, "name": "Same Name"}]
    orders = [_order(1, 1, 500, NOW, name="Same Name")]
    rows = analytics.customer_analytics(customers, orders, NOW)
    assert [r["total_orders"] for r in rows] == [1, 0]


def test_sort_customers_recent_puts_never_ordered_last():
    rows = analytics.customer_analytics(
        [{"id": 1}, {"id": 2}, {"id": 3}],
        [_order(1, 1, 100, NOW - timedelta(days=5)), _order(2, 3, 50, NOW - timedelta(days=1))],
        NOW,
    )
    assert [r["id"] for r in analytics.sort_customers(rows, "recent")] == [3, 1, 2]
    assert [r["id"] for r in analytics.sort_customers(rows, "value")] == [1, 3, 2]
    with pytest.raises(ValueError):
        analytics.sort_customers(rows, "alphabetical")


def test_customer_metrics():
    customers = [{"id": 1}, {"id": 2}, {"id": 3}, {"id": 4}]
    orders = [
        _order(1, 1, 1000, NOW - timedelta(days=1)),
        _order(2, 1, 3000, NOW - timedelta(days=3)),
        _order(3, 2, 2000, NOW - timedelta(days=40)),
    ]
    window_orders = analytics.filter_orders_by_window(orders, "90d", NOW)
    rows = analytics.customer_analytics(customers, window_orders, NOW)
    metrics = analytics.customer_metrics(rows, window_orders)

    assert metrics["total_customers"] == 4
    assert metrics["active_customers"] == 1
    assert metrics["returning_customers"] == 1
    assert metrics["new_customers"] == 3
    assert metrics["total_revenue"] == 6000
    assert metrics["average_order_value"] == 2000
    assert metrics["customer_lifetime_value"] == 3000
    assert metrics["repeat_customer_rate"] == 25.0
    assert metrics["churn_rate"] == 75.0


def test_customer_metrics_for_empty_set():
    metrics = analytics.customer_metrics([], [])
    assert metrics["repeat_customer_rate"] == 0
    assert metrics["churn_rate"] == 0
    assert metrics["customer_lifetime_value"] == 0


def test_segment_summary_keeps_fixed_order_and_omits_empty():
    rows = analytics.customer_analytics(
        [{"id": 1}, {"id": 2}, {"id": 3}],
        [_order(1, 1, 120_000, NOW), _order(2, 2, 500, NOW)],
        NOW,
    )
    summary = analytics.segment_summary(rows)
    assert [s["segment"] for s in summary] == ["VIP", "Active", "New"]
    assert summary[0]["name"] == "VIP Customers"
    assert summary[1]["percentage"] == pytest.approx(100 / 3)


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

def test_daily_sales_covers_seven_days_oldest_first():
    orders = [
        _order(1, 1, 500, NOW - timedelta(hours=1)),
        _order(2, 1, 250, NOW - timedelta(days=6)),
        _order(3, 1, 999, NOW - timedelta(days=7)),
    ]
    series = analytics.daily_sales(orders, NOW)
    assert len(series) == 7
    assert series[0]["date"] == "2024-02-24"
    assert series[-1]["date"] == "2024-03-01"
    assert series[0]["revenue"] == 250
    assert series[-1]["orders"] == 1


def test_product_and_customer_performance():
    products = [_product(1, "A", 10, 5), _product(2, "B", 10, 5)]
    orders = [
        _order(1, 1, 300, NOW, items=[{"product_id": 1, "quantity": 3, "price": 100}], name="Saman"),
        _order(2, None, 800, NOW, items=[{"product_id": 2, "quantity": 2, "price": 400},
                                         {"product_id": 99, "quantity": 1, "price": 5}]),
    ]
    top_products = analytics.product_performance(orders, products)
    assert [p["name"] for p in top_products] == ["B", "A"]
    assert top_products[0]["revenue"] == 800

    top_customers = analytics.customer_performance(orders)
    assert top_customers[0]["name"] == "Unknown Customer"
    assert top_customers[1]["revenue"] == 300


def test_pending_priority():
    assert analytics.pending_priority(NOW - timedelta(days=3), 100, NOW) == "High"
    assert analytics.pending_priority(NOW, 50_000, NOW) == "High"
    assert analytics.pending_priority(NOW - timedelta(days=1), 100, NOW) == "Medium"
    assert analytics.pending_priority(NOW, 20_000, NOW) == "Medium"
    assert analytics.pending_priority(NOW - timedelta(hours=23), 19_999, NOW) == "Normal"


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def test_format_currency_uses_a_plain_space():
    assert format_currency(1250) == "LKR 1,250.00"
    assert format_currency(1250, decimals=0) == "LKR 1,250"
    assert format_currency(-99.5, currency="USD") == "-$99.50"
    assert "\u00a0" not in format_currency(8300)


def test_format_date():
    assert format_date(datetime(2024, 2, 3, 9, 30)) == "03 Feb 2024"
    assert format_date(None) == ""
