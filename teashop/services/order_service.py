"""
Order Service

Order listing, creation and status changes. Creating an order takes stock
out of the products it sells; cancelling one puts the stock back.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from teashop.models import Customer, Order, OrderItem, OrderStatus, Product
from teashop.models.order import FINAL_STATUSES
from teashop.services import analytics
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.records import load_orders, order_to_dict
from teashop.utils.helpers import format_date

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "DTN"
OVERDUE_DAYS = 3


def _parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationFailed(
            f"Unknown order status '{value}' (expected one of {', '.join(s.value for s in OrderStatus)})",
            field="status",
        ) from None


class OrderService:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, order_id: int) -> Order:
        order = (
            self.db.query(Order)
            .options(selectinload(Order.items).selectinload(OrderItem.product))
            .filter(Order.id == order_id, Order.is_deleted == False)
            .first()
        )
        if not order:
            raise NotFound(f"Order {order_id} not found")
        return order

    # ─────────────────────────────────────────────
    # READ
    # ─────────────────────────────────────────────

    def list_orders(self, status: Optional[str] = None) -> Dict[str, Any]:
        """Orders newest first, plus a count per status over every order."""
        if status and status != "all":
            _parse_status(status)
        else:
            status = None
        every = load_orders(self.db)
        orders = [o for o in every if o["status"] == status] if status else every
        return {
            "status_counts": {s.value: sum(1 for o in every if o["status"] == s.value) for s in OrderStatus},
            "orders": orders,
        }

    def get_order(self, order_id: int) -> Dict[str, Any]:
        return order_to_dict(self._get(order_id))

    def get_pending(self, search: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Pending orders with a handling priority.

        search matches the customer name (case-insensitive) or the order id.
        """
        now = now or datetime.utcnow()
        orders = load_orders(self.db, status=OrderStatus.PENDING.value)
        if search:
            term = search.lower()
            orders = [
                o for o in orders
                if term in (o["customer_name"] or "").lower() or term in str(o["id"])
            ]

        rows = []
        for o in orders:
            age = (now - o["created_at"]) // timedelta(days=1)
            rows.append({
                **o,
                "order_date_display": format_date(o["created_at"]),
                "days_since_order": age,
                "priority": analytics.pending_priority(o["created_at"], o["total_amount"], now),
            })

        return {
            "summary": {
                "pending_orders": len(rows),
                "overdue_orders": sum(1 for r in rows if r["days_since_order"] >= OVERDUE_DAYS),
                "total_value": sum(r["total_amount"] for r in rows),
                "unique_customers": len({r["customer_id"] for r in rows if r["customer_id"] is not None}),
            },
            "orders": rows,
        }

    # ─────────────────────────────────────────────
    # WRITE
    # ─────────────────────────────────────────────

    def next_order_number(self, now: datetime) -> str:
        """DTN-YYYYMMDD-NNN, NNN counting that day's orders from 1."""
        prefix = f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-"
        existing = (
            self.db.query(Order.order_number)
            .filter(Order.order_number.like(f"{prefix}%"))
            .all()
        )
        last = 0
        for (number,) in existing:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                last = max(last, int(suffix))
        return f"{prefix}{last + 1:03d}"

    def create_order(
        self,
        items: List[Dict[str, Any]],
        customer_id: Optional[int] = None,
        notes: Optional[str] = None,
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Record a sale.

        Each item is {"product_id", "quantity", "price" (optional)}; a missing
        price is taken from the product. Stock is checked against the summed
        quantity per product before anything is written.
        """
        now = now or datetime.utcnow()
        if not items:
            raise ValidationFailed("An order needs at least one item", field="items")

        if customer_id is not None:
            customer = (
                self.db.query(Customer)
                .filter(Customer.id == customer_id, Customer.is_deleted == False)
                .first()
            )
            if not customer:
                raise ValidationFailed(f"Customer {customer_id} does not exist", field="customer_id")

        requested: Dict[int, int] = {}
        products: Dict[int, Product] = {}
        for item in items:
            quantity = item.get("quantity")
            if quantity is None or quantity <= 0:
                raise ValidationFailed("Item quantity must be greater than 0", field="quantity")
            product_id = item.get("product_id")
            product = products.get(product_id) or (
                self.db.query(Product)
                .filter(Product.id == product_id, Product.is_deleted == False, Product.is_active == True)
                .first()
            )
            if not product:
                raise ValidationFailed(f"Product {product_id} is not available", field="product_id")
            price = item.get("price")
            if price is not None and price <= 0:
                raise ValidationFailed("Item price must be greater than 0", field="price")
            products[product_id] = product
            requested[product_id] = requested.get(product_id, 0) + quantity

        for product_id, quantity in requested.items():
            product = products[product_id]
            if quantity > product.quantity_in_stock:
                raise ValidationFailed(
                    f"Only {product.quantity_in_stock} {product.unit} of '{product.name}' in stock "
                    f"({quantity} requested)",
                    field="quantity",
                )

        order = Order(
            order_number=self.next_order_number(now),
            customer_id=customer_id,
            user_id=user_id,
            status=OrderStatus.PENDING,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        total = 0.0
        for item in items:
            product = products[item["product_id"]]
            price = item.get("price") if item.get("price") is not None else product.price
            order.items.append(OrderItem(product_id=product.id, quantity=item["quantity"], price=price))
            total += item["quantity"] * price
        order.total_amount = total

        try:
            for product_id, quantity in requested.items():
                products[product_id].quantity_in_stock -= quantity
            self.db.add(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Created order {order.order_number} ({len(items)} items, total {total:.2f})")
        return self.get_order(order.id)

    def update_status(self, order_id: int, status: str) -> Dict[str, Any]:
        """Move an order to a new status. Completed and Cancelled orders are final."""
        new_status = _parse_status(status)
        order = self._get(order_id)
        if order.status == new_status:
            return order_to_dict(order)
        if order.status in FINAL_STATUSES:
            raise ValidationFailed(
                f"Order {order.order_number} is {order.status.value} and can no longer change status",
                field="status",
            )

        previous = order.status
        try:
            if new_status == OrderStatus.CANCELLED:
                for item in order.items:
                    if item.product is not None:
                        item.product.quantity_in_stock += item.quantity
            order.status = new_status
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Order {order.order_number}: {previous.value} -> {new_status.value}")
        return self.get_order(order_id)
