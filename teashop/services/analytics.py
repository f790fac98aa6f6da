"""
Analytics / Aggregation Engine

Deterministic business rules behind every report and dashboard:
  - Stock status classification (OutOfStock / LowStock / InStock)
  - Restock urgency ranking (critical / high / medium / low)
  - Turnover rate + fast/slow moving classification, overstock flag
  - Customer segmentation (VIP / Loyal / Regular / Active / New) and churn risk
  - Time-window filtering and windowed revenue metrics

Every function here is pure: inputs are plain dicts (see the loaders in the
service modules), `now` is always passed in explicitly, and nothing is cached
between calls. Order dicts look like:

    {"id", "order_number", "customer_id", "customer_name", "status",
     "total_amount", "created_at" (naive UTC datetime),
     "items": [{"product_id", "product_name", "quantity", "price"}]}
"""
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from teashop.utils.helpers import safe_divide


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

WINDOW_DAYS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}

# (level, label) keyed by priority, highest first
URGENCY_LEVELS = {
    4: ("critical", "Critical"),
    3: ("high", "High"),
    2: ("medium", "Medium"),
    1: ("low", "Low"),
}

HIGH_URGENCY_RATIO = 0.3
MEDIUM_URGENCY_RATIO = 0.6
OVERSTOCK_MULTIPLIER = 3
FAST_MOVING_THRESHOLD = 2
SLOW_MOVING_THRESHOLD = 0.5

VIP_SPEND_THRESHOLD = 100_000
LOYAL_SPEND_THRESHOLD = 50_000
REGULAR_ORDER_THRESHOLD = 5
ACTIVE_DAYS = 30
HIGH_RISK_DAYS = 90

# Evaluated in order; first match wins
SEGMENT_DEFINITIONS = OrderedDict([
    ("VIP", {"name": "VIP Customers", "description": "Spent > LKR 100,000"}),
    ("Loyal", {"name": "Loyal Customers", "description": "Spent LKR 50,000 - 100,000"}),
    ("Regular", {"name": "Regular Customers", "description": "5+ orders"}),
    ("Active", {"name": "Active Customers", "description": "1-4 orders"}),
    ("New", {"name": "New Customers", "description": "No orders yet"}),
])


class StockStatus(str, Enum):
    OUT_OF_STOCK = "OutOfStock"
    LOW_STOCK = "LowStock"
    IN_STOCK = "InStock"


class TurnoverClass(str, Enum):
    FAST_MOVING = "FastMoving"
    SLOW_MOVING = "SlowMoving"
    NORMAL = "Normal"


class RiskLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


def _naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; bring aware datetimes in line."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ---------------------------------------------------------------------------
# Stock status + urgency
# ---------------------------------------------------------------------------

def classify_stock_status(current_stock: int, reorder_level: int) -> StockStatus:
    """Exactly one of OutOfStock / LowStock / InStock."""
    if current_stock < 0:
        raise ValueError(f"Stock cannot be negative (got {current_stock})")
    if current_stock == 0:
        return StockStatus.OUT_OF_STOCK
    if current_stock <= reorder_level:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def is_low_stock(current_stock: int, reorder_level: int) -> bool:
    """True for anything that needs restocking, out-of-stock included."""
    return current_stock <= reorder_level


def restock_urgency(current_stock: int, reorder_level: int) -> Dict[str, Any]:
    """
    Urgency band for a restocking list.

    Thresholds compare stock against reorder_level * 0.3 and
    reorder_level * 0.6, so 8 units against a reorder level of 15 is
    medium (8 > 4.5, 8 <= 9).
    """
    if current_stock == 0:
        priority = 4
    elif current_stock <= reorder_level * HIGH_URGENCY_RATIO:
        priority = 3
    elif current_stock <= reorder_level * MEDIUM_URGENCY_RATIO:
        priority = 2
    else:
        priority = 1
    level, label = URGENCY_LEVELS[priority]
    return {"level": level, "label": label, "priority": priority}


def rank_restock_queue(products: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Low and out-of-stock products, most urgent first.

    sorted() is stable, so products with equal priority keep their
    original collection order.
    """
    queue = []
    for p in products:
        stock = p["quantity_in_stock"]
        reorder = p["reorder_level"]
        if not is_low_stock(stock, reorder):
            continue
        urgency = restock_urgency(stock, reorder)
        queue.append({
            **p,
            "stock_status": classify_stock_status(stock, reorder).value,
            "urgency": urgency["level"],
            "urgency_label": urgency["label"],
            "priority": urgency["priority"],
        })
    return sorted(queue, key=lambda r: r["priority"], reverse=True)


def stock_level_percentage(current_stock: int, reorder_level: int) -> float:
    """Fill level for the stock bar: stock against twice the reorder level, capped at 100."""
    capacity = reorder_level * 2
    if capacity == 0:
        return 100.0 if current_stock > 0 else 0.0
    return min(current_stock / capacity * 100, 100.0)


# ---------------------------------------------------------------------------
# Turnover
# ---------------------------------------------------------------------------

def turnover_rate(units_sold: float, current_stock: int) -> float:
    """Units sold / current stock; 0 when there is no stock."""
    if current_stock <= 0:
        return 0.0
    return units_sold / current_stock


def classify_turnover(rate: float) -> TurnoverClass:
    if rate > FAST_MOVING_THRESHOLD:
        return TurnoverClass.FAST_MOVING
    if rate < SLOW_MOVING_THRESHOLD:
        return TurnoverClass.SLOW_MOVING
    return TurnoverClass.NORMAL


def is_overstock(current_stock: int, reorder_level: int) -> bool:
    return current_stock > reorder_level * OVERSTOCK_MULTIPLIER


def units_sold_by_product(orders: Iterable[Dict[str, Any]]) -> Dict[int, int]:
    sold: Dict[int, int] = {}
    for order in orders:
        for item in order.get("items", []):
            sold[item["product_id"]] = sold.get(item["product_id"], 0) + item["quantity"]
    return sold


def product_turnover(
    products: Iterable[Dict[str, Any]],
    orders: Iterable[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Per-product turnover row with stock value and every status flag."""
    sold = units_sold_by_product(orders)
    rows = []
    for p in products:
        stock = p["quantity_in_stock"]
        reorder = p["reorder_level"]
        total_sold = sold.get(p["id"], 0)
        rate = turnover_rate(total_sold, stock)
        turnover_class = classify_turnover(rate)
        rows.append({
            **p,
            "total_sold": total_sold,
            "turnover_rate": rate,
            "turnover_class": turnover_class.value,
            "stock_value": stock * p["price"],
            "stock_status": classify_stock_status(stock, reorder).value,
            "is_low_stock": is_low_stock(stock, reorder),
            "is_out_of_stock": stock == 0,
            "is_overstock": is_overstock(stock, reorder),
            "is_fast_moving": turnover_class == TurnoverClass.FAST_MOVING,
            "is_slow_moving": turnover_class == TurnoverClass.SLOW_MOVING,
        })
    return rows


def inventory_metrics(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Headline numbers over product_turnover() rows."""
    total_products = len(rows)
    total_stock_value = sum(r["stock_value"] for r in rows)
    return {
        "total_products": total_products,
        "total_stock_value": total_stock_value,
        "average_stock_value": safe_divide(total_stock_value, total_products),
        "low_stock_items": sum(1 for r in rows if r["is_low_stock"] and not r["is_out_of_stock"]),
        "out_of_stock_items": sum(1 for r in rows if r["is_out_of_stock"]),
        "overstock_items": sum(1 for r in rows if r["is_overstock"]),
        "fast_moving_items": sum(1 for r in rows if r["is_fast_moving"]),
        "slow_moving_items": sum(1 for r in rows if r["is_slow_moving"]),
    }


def category_breakdown(
    products: List[Dict[str, Any]],
    tea_types: Iterable[str],
    total_stock_value: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """
    Count / value / quantity per tea type, empty categories dropped.

    Share of value is taken against total_stock_value when given (the
    inventory report uses the filtered total), else the total of `products`.
    """
    if total_stock_value is None:
        total_stock_value = sum(p["quantity_in_stock"] * p["price"] for p in products)

    breakdown = []
    for tea_type in tea_types:
        in_category = [p for p in products if p["tea_type"] == tea_type]
        if not in_category:
            continue
        value = sum(p["quantity_in_stock"] * p["price"] for p in in_category)
        breakdown.append({
            "type": tea_type,
            "count": len(in_category),
            "value": value,
            "quantity": sum(p["quantity_in_stock"] for p in in_category),
            "percentage": safe_divide(value, total_stock_value) * 100,
        })
    return breakdown


# ---------------------------------------------------------------------------
# Time windows
# ---------------------------------------------------------------------------

def window_days(window: str) -> int:
    try:
        return WINDOW_DAYS[window]
    except KeyError:
        raise ValueError(
            f"Unknown time window '{window}' (expected one of {', '.join(WINDOW_DAYS)})"
        ) from None


def window_cutoff(window: str, now: datetime) -> datetime:
    return _naive_utc(now) - timedelta(days=window_days(window))


def filter_orders_by_window(
    orders: Iterable[Dict[str, Any]],
    window: str,
    now: datetime,
) -> List[Dict[str, Any]]:
    """Orders created at or after now - N days (boundary inclusive)."""
    cutoff = window_cutoff(window, now)
    return [o for o in orders if _naive_utc(o["created_at"]) >= cutoff]


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

def assign_segment(total_spent: float, total_orders: int) -> str:
    """Segment by priority order, so a single 150k order is VIP, not New."""
    if total_spent > VIP_SPEND_THRESHOLD:
        return "VIP"
    if total_spent > LOYAL_SPEND_THRESHOLD:
        return "Loyal"
    if total_orders > REGULAR_ORDER_THRESHOLD:
        return "Regular"
    if total_orders > 0:
        return "Active"
    return "New"


def risk_level(days_since_last_order: Optional[int]) -> RiskLevel:
    if days_since_last_order is None:
        return RiskLevel.LOW
    if days_since_last_order > HIGH_RISK_DAYS:
        return RiskLevel.HIGH
    if days_since_last_order > ACTIVE_DAYS:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def customer_summary(
    customer: Dict[str, Any],
    orders: List[Dict[str, Any]],
    now: datetime,
) -> Dict[str, Any]:
    """Derived fields for one customer from that customer's (windowed) orders."""
    now = _naive_utc(now)
    total_orders = len(orders)
    total_spent = sum(o["total_amount"] for o in orders)

    last_order_date = max((_naive_utc(o["created_at"]) for o in orders), default=None)
    if last_order_date is not None:
        days_since = (now - last_order_date) // timedelta(days=1)
    else:
        days_since = None

    return {
        **customer,
        "total_orders": total_orders,
        "total_spent": total_spent,
        "avg_order_value": safe_divide(total_spent, total_orders),
        "last_order_date": last_order_date,
        "days_since_last_order": days_since,
        "segment": assign_segment(total_spent, total_orders),
        "risk_level": risk_level(days_since).value,
        "is_active": days_since is not None and days_since <= ACTIVE_DAYS,
        "is_new": total_orders <= 1,
        "is_returning": total_orders > 1,
    }


def customer_analytics(
    customers: Iterable[Dict[str, Any]],
    orders: Iterable[Dict[str, Any]],
    now: datetime,
) -> List[Dict[str, Any]]:
    """customer_summary() for every customer; orders are matched on customer_id."""
    by_customer: Dict[Any, List[Dict[str, Any]]] = {}
    for order in orders:
        by_customer.setdefault(order.get("customer_id"), []).append(order)
    return [customer_summary(c, by_customer.get(c["id"], []), now) for c in customers]


def sort_customers(rows: List[Dict[str, Any]], sort_by: str = "value") -> List[Dict[str, Any]]:
    """value / orders / recent, all descending; never-ordered customers go last on recent."""
    if sort_by == "value":
        return sorted(rows, key=lambda c: c["total_spent"], reverse=True)
    if sort_by == "orders":
        return sorted(rows, key=lambda c: c["total_orders"], reverse=True)
    if sort_by == "recent":
        with_date = [c for c in rows if c["last_order_date"] is not None]
        without = [c for c in rows if c["last_order_date"] is None]
        return sorted(with_date, key=lambda c: c["last_order_date"], reverse=True) + without
    raise ValueError(f"Unknown customer sort '{sort_by}' (expected value, orders or recent)")


def customer_metrics(
    rows: List[Dict[str, Any]],
    window_orders: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """Aggregate metrics over customer_summary() rows and the windowed orders."""
    total_customers = len(rows)
    active_customers = sum(1 for c in rows if c["is_active"])
    new_customers = sum(1 for c in rows if c["is_new"])
    returning_customers = sum(1 for c in rows if c["is_returning"])

    total_revenue = sum(o["total_amount"] for o in window_orders)
    customers_with_orders = sum(1 for c in rows if c["total_orders"] > 0)

    return {
        "total_customers": total_customers,
        "active_customers": active_customers,
        "new_customers": new_customers,
        "returning_customers": returning_customers,
        "total_revenue": total_revenue,
        "average_order_value": safe_divide(total_revenue, len(window_orders)),
        "customer_lifetime_value": safe_divide(total_revenue, customers_with_orders),
        "repeat_customer_rate": safe_divide(returning_customers, total_customers) * 100,
        "churn_rate": safe_divide(total_customers - active_customers, total_customers) * 100,
    }


def segment_summary(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Per-segment count, share and revenue; empty segments omitted."""
    total_customers = len(rows)
    summary = []
    for segment, defn in SEGMENT_DEFINITIONS.items():
        members = [c for c in rows if c["segment"] == segment]
        if not members:
            continue
        revenue = sum(c["total_spent"] for c in members)
        orders = sum(c["total_orders"] for c in members)
        summary.append({
            "segment": segment,
            "name": defn["name"],
            "description": defn["description"],
            "count": len(members),
            "percentage": safe_divide(len(members), total_customers) * 100,
            "total_revenue": revenue,
            "avg_order_value": safe_divide(revenue, orders),
        })
    return summary


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

def sales_metrics(orders: List[Dict[str, Any]]) -> Dict[str, Any]:
    total_revenue = sum(o["total_amount"] for o in orders)
    total_orders = len(orders)

    def count(status):
        return sum(1 for o in orders if o["status"] == status)

    return {
        "total_revenue": total_revenue,
        "total_orders": total_orders,
        "average_order_value": safe_divide(total_revenue, total_orders),
        "completed_orders": count("Completed"),
        "processing_orders": count("Processing"),
        "pending_orders": count("Pending"),
        "cancelled_orders": count("Cancelled"),
    }


def daily_sales(orders: List[Dict[str, Any]], now: datetime, days: int = 7) -> List[Dict[str, Any]]:
    """Revenue and order count per calendar day, oldest first, ending today."""
    now = _naive_utc(now)
    series = []
    for offset in range(days - 1, -1, -1):
        day = (now - timedelta(days=offset)).date()
        day_orders = [o for o in orders if _naive_utc(o["created_at"]).date() == day]
        series.append({
            "date": day.isoformat(),
            "label": day.strftime("%a %d"),
            "revenue": sum(o["total_amount"] for o in day_orders),
            "orders": len(day_orders),
        })
    return series


def product_performance(orders: List[Dict[str, Any]], products: List[Dict[str, Any]], limit: int = 10):
    """Top products by line revenue; `orders` counts order lines, not distinct orders."""
    known = {p["id"]: p for p in products}
    stats: Dict[int, Dict[str, Any]] = {}
    for order in orders:
        for item in order.get("items", []):
            product = known.get(item["product_id"])
            if product is None:
                continue
            row = stats.setdefault(product["id"], {
                "product_id": product["id"],
                "name": product["name"],
                "type": product["tea_type"],
                "quantity": 0,
                "revenue": 0.0,
                "orders": 0,
            })
            row["quantity"] += item["quantity"]
            row["revenue"] += item["quantity"] * item["price"]
            row["orders"] += 1
    return sorted(stats.values(), key=lambda r: r["revenue"], reverse=True)[:limit]


def customer_performance(orders: List[Dict[str, Any]], limit: int = 10):
    """Top customers by revenue; walk-in orders without a customer stand alone."""
    stats: Dict[Any, Dict[str, Any]] = {}
    for order in orders:
        key = order.get("customer_id") or f"order:{order['id']}"
        created = _naive_utc(order["created_at"])
        row = stats.setdefault(key, {
            "customer_id": order.get("customer_id"),
            "name": order.get("customer_name") or "Unknown Customer",
            "orders": 0,
            "revenue": 0.0,
            "last_order": created,
        })
        row["orders"] += 1
        row["revenue"] += order["total_amount"]
        if created > row["last_order"]:
            row["last_order"] = created
    return sorted(stats.values(), key=lambda r: r["revenue"], reverse=True)[:limit]


def pending_priority(created_at: datetime, total_amount: float, now: datetime) -> str:
    """Handling priority of a pending order from its age and value."""
    days_since_order = (_naive_utc(now) - _naive_utc(created_at)) // timedelta(days=1)
    if days_since_order >= 3 or total_amount >= 50_000:
        return "High"
    if days_since_order >= 1 or total_amount >= 20_000:
        return "Medium"
    return "Normal"
