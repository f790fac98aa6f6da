"""
Customer Service

Customer records and the customer analytics report (segments, churn risk,
lifetime value). Order totals are always derived from orders.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from teashop.models import Customer, Feedback
from teashop.services import analytics
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.records import customer_to_dict, feedback_to_dict, load_customers, load_orders

logger = logging.getLogger(__name__)

CUSTOMER_TYPES = ("Individual", "Business")
REPORT_ROW_LIMIT = 50


class CustomerService:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, customer_id: int) -> Customer:
        customer = (
            self.db.query(Customer)
            .filter(Customer.id == customer_id, Customer.is_deleted == False)
            .first()
        )
        if not customer:
            raise NotFound(f"Customer {customer_id} not found")
        return customer

    @staticmethod
    def _with_totals(customer: Dict[str, Any], orders: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            **customer,
            "total_orders": len(orders),
            "total_spent": sum(o["total_amount"] for o in orders),
            "last_order_date": max((o["created_at"] for o in orders), default=None),
        }

    def list_customers(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """Customer list with lifetime order totals; search covers name, phone and email."""
        by_customer: Dict[int, List[Dict[str, Any]]] = {}
        for order in load_orders(self.db):
            by_customer.setdefault(order["customer_id"], []).append(order)

        rows = []
        term = (search or "").lower()
        for c in load_customers(self.db):
            if term and not any(term in (c[k] or "").lower() for k in ("name", "phone", "email")):
                continue
            rows.append(self._with_totals(c, by_customer.get(c["id"], [])))
        return rows

    def get_customer(self, customer_id: int) -> Dict[str, Any]:
        customer = self._get(customer_id)
        orders = [o for o in load_orders(self.db) if o["customer_id"] == customer_id]
        return {
            **self._with_totals(customer_to_dict(customer), orders),
            "city": customer.city,
            "postal_code": customer.postal_code,
            "customer_type": customer.customer_type,
            "notes": customer.notes,
            "orders": orders,
        }

    def create_customer(self, data: Dict[str, Any]) -> Dict[str, Any]:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationFailed("Customer name is required", field="name")
        if not (data.get("phone") or "").strip():
            raise ValidationFailed("Phone number is required", field="phone")
        customer_type = data.get("customer_type") or "Individual"
        if customer_type not in CUSTOMER_TYPES:
            raise ValidationFailed("Customer type must be Individual or Business", field="customer_type")

        email = (data.get("email") or "").strip().lower() or None
        if email:
            if "@" not in email:
                raise ValidationFailed("Invalid email address", field="email")
            if self.db.query(Customer).filter(Customer.email == email).first():
                raise ValidationFailed(f"A customer with email {email} already exists", field="email")

        customer = Customer(
            name=name,
            phone=data["phone"].strip(),
            email=email,
            address=data.get("address"),
            city=data.get("city"),
            postal_code=data.get("postal_code"),
            customer_type=customer_type,
            notes=data.get("notes"),
        )
        try:
            self.db.add(customer)
            self.db.commit()
            self.db.refresh(customer)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Created customer {customer.id} '{customer.name}'")
        return self.get_customer(customer.id)

    def get_feedback(self, customer_id: int) -> List[Dict[str, Any]]:
        self._get(customer_id)
        rows = (
            self.db.query(Feedback)
            .filter(Feedback.customer_id == customer_id, Feedback.is_deleted == False)
            .order_by(Feedback.created_at.desc(), Feedback.id.desc())
            .all()
        )
        return [feedback_to_dict(f) for f in rows]

    # ─────────────────────────────────────────────
    # CUSTOMER ANALYTICS REPORT
    # ─────────────────────────────────────────────

    def get_customer_report(
        self,
        window: str = "30d",
        sort_by: str = "value",
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Segment and churn analysis over the orders in `window`.

        Metrics and segments cover every customer; the customer table is
        cut to the first REPORT_ROW_LIMIT rows after sorting.
        """
        now = now or datetime.utcnow()
        try:
            window_orders = analytics.filter_orders_by_window(load_orders(self.db), window, now)
        except ValueError as e:
            raise ValidationFailed(str(e), field="range") from None

        rows = analytics.customer_analytics(load_customers(self.db), window_orders, now)
        try:
            ordered = analytics.sort_customers(rows, sort_by)
        except ValueError as e:
            raise ValidationFailed(str(e), field="sort") from None

        return {
            "range": window,
            "sort": sort_by,
            "metrics": analytics.customer_metrics(rows, window_orders),
            "segments": analytics.segment_summary(rows),
            "customers": ordered[:REPORT_ROW_LIMIT],
        }
