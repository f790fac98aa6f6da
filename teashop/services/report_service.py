"""
Report Service

Sales report and the admin dashboard summary. Inventory and customer
reports live with their own services.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from teashop.config import get_settings
from teashop.services import analytics
from teashop.services.errors import ValidationFailed
from teashop.services.records import load_customers, load_orders, load_products
from teashop.utils.helpers import format_currency, format_date

logger = logging.getLogger(__name__)

TOP_LIMIT = 10
RECENT_ORDERS_LIMIT = 5


class ReportService:
    def __init__(self, db: Session):
        self.db = db
        self.currency = get_settings().currency_code

    def get_sales_report(self, window: str = "30d", now: Optional[datetime] = None) -> Dict[str, Any]:
        """Revenue metrics, last-7-day series and top sellers for one time window."""
        now = now or datetime.utcnow()
        try:
            orders = analytics.filter_orders_by_window(load_orders(self.db), window, now)
        except ValueError as e:
            raise ValidationFailed(str(e), field="range") from None

        metrics = analytics.sales_metrics(orders)
        daily = analytics.daily_sales(orders, now)
        return {
            "range": window,
            "metrics": {
                **metrics,
                "total_revenue_display": format_currency(metrics["total_revenue"], self.currency),
                "average_order_value_display": format_currency(metrics["average_order_value"], self.currency),
            },
            "daily_sales": daily,
            "max_daily_revenue": max((d["revenue"] for d in daily), default=0.0),
            "top_products": analytics.product_performance(orders, load_products(self.db), TOP_LIMIT),
            "top_customers": analytics.customer_performance(orders, TOP_LIMIT),
        }

    def get_dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Headline numbers for the admin landing page; "today" is the UTC day of `now`."""
        now = now or datetime.utcnow()
        products = load_products(self.db)
        orders = load_orders(self.db)
        today = [o for o in orders if o["created_at"].date() == now.date()]
        low_stock = [
            p for p in products
            if p["is_active"] and analytics.is_low_stock(p["quantity_in_stock"], p["reorder_level"])
        ]
        today_revenue = sum(o["total_amount"] for o in today)

        return {
            "stats": {
                "total_products": len(products),
                "low_stock_items": len(low_stock),
                "today_orders": len(today),
                "today_revenue": today_revenue,
                "today_revenue_display": format_currency(today_revenue, self.currency),
                "total_customers": len(load_customers(self.db)),
                "pending_orders": sum(1 for o in orders if o["status"] == "Pending"),
            },
            "low_stock": [
                {
                    "id": p["id"],
                    "name": p["name"],
                    "current_stock": p["quantity_in_stock"],
                    "reorder_level": p["reorder_level"],
                    "type": p["tea_type"],
                }
                for p in low_stock
            ],
            "recent_orders": [
                {
                    "id": o["id"],
                    "order_number": o["order_number"],
                    "customer_name": o["customer_name"],
                    "total_amount": o["total_amount"],
                    "status": o["status"],
                    "created_at": o["created_at"],
                    "created_display": format_date(o["created_at"]),
                }
                for o in orders[:RECENT_ORDERS_LIMIT]
            ],
        }
