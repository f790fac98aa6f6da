"""Storefront service: product browsing, customer profile and product reviews."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from teashop.models import Customer, Feedback, Product
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.records import customer_to_dict, feedback_to_dict, load_orders, load_products

logger = logging.getLogger(__name__)


class StorefrontService:
    def __init__(self, db: Session):
        self.db = db

    def _reviewed_product_ids(self, customer_id: int) -> set:
        rows = (
            self.db.query(Feedback.product_id)
            .filter(
                Feedback.customer_id == customer_id,
                Feedback.product_id.isnot(None),
                Feedback.is_deleted == False,
            )
            .all()
        )
        return {product_id for (product_id,) in rows}

    def list_products(self, customer_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Active products; has_reviewed is set when a signed-in customer has reviewed the product."""
        reviewed = self._reviewed_product_ids(customer_id) if customer_id else set()
        return [
            {**p, "in_stock": p["quantity_in_stock"] > 0, "has_reviewed": p["id"] in reviewed}
            for p in load_products(self.db, include_inactive=False)
        ]

    def get_profile(self, customer_id: int) -> Dict[str, Any]:
        customer = (
            self.db.query(Customer)
            .filter(Customer.id == customer_id, Customer.is_deleted == False)
            .first()
        )
        if not customer:
            raise NotFound(f"Customer {customer_id} not found")
        orders = [o for o in load_orders(self.db) if o["customer_id"] == customer_id]
        return {
            **customer_to_dict(customer),
            "total_orders": len(orders),
            "total_spent": sum(o["total_amount"] for o in orders),
            "orders": orders,
        }

    def list_reviews(self, customer_id: int) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(Feedback)
            .filter(Feedback.customer_id == customer_id, Feedback.is_deleted == False)
            .order_by(Feedback.created_at.desc(), Feedback.id.desc())
            .all()
        )
        return [feedback_to_dict(f) for f in rows]

    def submit_review(
        self,
        customer_id: int,
        product_id: int,
        rating: int,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """One review per customer per product."""
        if rating is None or not 1 <= rating <= 5:
            raise ValidationFailed("Rating must be between 1 and 5", field="rating")
        product = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.is_deleted == False, Product.is_active == True)
            .first()
        )
        if not product:
            raise NotFound(f"Product {product_id} not found")
        if product_id in self._reviewed_product_ids(customer_id):
            raise ValidationFailed(f"You have already reviewed '{product.name}'", field="product_id")

        feedback = Feedback(
            customer_id=customer_id,
            product_id=product_id,
            rating=rating,
            comment=(comment or "").strip() or None,
        )
        try:
            self.db.add(feedback)
            self.db.commit()
            self.db.refresh(feedback)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Customer {customer_id} reviewed product {product_id} ({rating}/5)")
        return feedback_to_dict(feedback)
