"""
Demo data

The shop's sample catalogue, customers, staff, orders and reviews. Loaded
into an empty database on startup (SEED_DEMO_DATA) or by scripts/seed_demo.py.

Timestamps are the original February 2024 ones. Passing `anchor` shifts
every timestamp by the same offset so the latest order falls on that day,
which makes the dashboard's "today" figures and the 7d window show data.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from teashop.models import (
    Customer,
    Feedback,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    TeaType,
    User,
    UserRole,
)
from teashop.services.auth_service import hash_password

logger = logging.getLogger(__name__)

STAFF_PASSWORD = "admin123"
CUSTOMER_PASSWORD = "customer123"

PRODUCTS = [
    {
        "name": "Ceylon Black Tea Premium",
        "tea_type": TeaType.BLACK,
        "description": "Premium high-grown Ceylon black tea with rich flavor and aroma from the hills of Deniyaya",
        "price": 1250.00, "quantity_in_stock": 45, "reorder_level": 10,
        "image_url": "/products/ceylon-black.jpg",
        "created_at": "2024-01-15T08:00:00", "updated_at": "2024-01-20T10:30:00",
    },
    {
        "name": "Green Tea Supreme",
        "tea_type": TeaType.GREEN,
        "description": "Fresh green tea leaves with delicate aroma and natural antioxidants",
        "price": 1550.00, "quantity_in_stock": 8, "reorder_level": 15,
        "image_url": "/products/green-supreme.jpg",
        "created_at": "2024-01-16T09:00:00", "updated_at": "2024-01-22T14:15:00",
    },
    {
        "name": "White Tea Delicate",
        "tea_type": TeaType.WHITE,
        "description": "Subtle and refined white tea with light color and gentle flavor",
        "price": 2200.00, "quantity_in_stock": 25, "reorder_level": 8,
        "image_url": "/products/white-delicate.jpg",
        "created_at": "2024-01-18T11:00:00", "updated_at": "2024-01-25T16:45:00",
    },
    {
        "name": "Earl Grey Classic",
        "tea_type": TeaType.FLAVORED,
        "description": "Traditional Earl Grey with bergamot oil and cornflower petals",
        "price": 1350.00, "quantity_in_stock": 6, "reorder_level": 12,
        "image_url": "/products/earl-grey.jpg",
        "created_at": "2024-01-20T07:30:00", "updated_at": "2024-01-28T09:20:00",
    },
    {
        "name": "Chamomile Herbal Blend",
        "tea_type": TeaType.HERBAL,
        "description": "Soothing chamomile blend perfect for relaxation and evening tea",
        "price": 980.00, "quantity_in_stock": 32, "reorder_level": 10,
        "image_url": "/products/chamomile.jpg",
        "created_at": "2024-01-22T12:00:00", "updated_at": "2024-01-30T11:10:00",
    },
    {
        "name": "Oolong Dragon Well",
        "tea_type": TeaType.OOLONG,
        "description": "Semi-fermented oolong tea with complex flavor profile",
        "price": 1850.00, "quantity_in_stock": 4, "reorder_level": 10,
        "image_url": "/products/oolong-dragon.jpg",
        "created_at": "2024-01-25T14:00:00", "updated_at": "2024-02-01T13:25:00",
    },
]

CUSTOMERS = [
    {
        "name": "Saman Perera", "phone": "+94771234567", "email": "saman.perera@email.com",
        "address": "No. 45, Galle Road, Colombo 03",
        "created_at": "2024-01-10T10:00:00", "updated_at": "2024-01-10T10:00:00",
    },
    {
        "name": "Kumari Silva", "phone": "+94779876543", "email": "kumari.silva@email.com",
        "address": "No. 128, Kandy Road, Peradeniya",
        "created_at": "2024-01-12T14:30:00", "updated_at": "2024-01-20T16:45:00",
    },
    {
        "name": "Rajesh Fernando", "phone": "+94765432109", "email": "rajesh.fernando@email.com",
        "address": "No. 67, Main Street, Negombo",
        "created_at": "2024-01-15T09:15:00", "updated_at": "2024-01-25T11:20:00",
    },
    {
        "name": "Test Customer", "phone": None, "email": "customer@deniyaya.com",
        "address": None,
        "created_at": "2024-01-01T00:00:00", "updated_at": "2024-01-01T00:00:00",
    },
]

USERS = [
    {
        "email": "admin@deniyaya.com", "name": "Nimal Bandara", "role": UserRole.ADMIN,
        "created_at": "2024-01-01T00:00:00",
    },
    {
        "email": "manager@deniyaya.com", "name": "Priya Jayasinghe", "role": UserRole.MANAGER,
        "created_at": "2024-01-05T08:00:00",
    },
]

# customer / user are 1-based positions in CUSTOMERS / USERS; items reference PRODUCTS the same way
ORDERS = [
    {
        "order_number": "DTN-20240203-001", "customer": 1, "user": 1,
        "status": OrderStatus.COMPLETED, "total_amount": 3750.00,
        "notes": "Customer requested extra packaging",
        "created_at": "2024-02-03T09:30:00", "updated_at": "2024-02-03T14:45:00",
        "items": [(1, 2, 1250.00), (3, 1, 2200.00)],
    },
    {
        "order_number": "DTN-20240203-002", "customer": 2, "user": 2,
        "status": OrderStatus.PROCESSING, "total_amount": 2700.00,
        "notes": "Rush order - needed by evening",
        "created_at": "2024-02-03T11:15:00", "updated_at": "2024-02-03T15:20:00",
        "items": [(2, 1, 1550.00)],
    },
    {
        "order_number": "DTN-20240203-003", "customer": 3, "user": 1,
        "status": OrderStatus.PENDING, "total_amount": 1850.00,
        "notes": None,
        "created_at": "2024-02-03T13:45:00", "updated_at": "2024-02-03T13:45:00",
        "items": [],
    },
]

FEEDBACK = [
    {
        "customer": 1, "product": 1, "rating": 5,
        "comment": "Excellent quality Ceylon tea! The flavor is outstanding and delivery was prompt.",
        "created_at": "2024-02-04T10:00:00",
    },
    {
        "customer": 2, "product": 2, "rating": 4,
        "comment": "Great tea selection. The green tea was fresh and aromatic.",
        "created_at": "2024-02-05T14:30:00",
    },
]

LATEST_ORDER_AT = max(datetime.fromisoformat(o["created_at"]) for o in ORDERS)


def is_empty(db: Session) -> bool:
    return db.query(Product).first() is None and db.query(Customer).first() is None


def seed_demo_data(db: Session, anchor: Optional[datetime] = None) -> dict:
    """
    Insert the demo dataset. Returns the number of rows created per table.

    Order totals and order lines are stored as recorded, so the second
    order's total (2700) does not equal the sum of its single line (1550).
    """
    offset = timedelta(0)
    if anchor is not None:
        offset = anchor.replace(hour=0, minute=0, second=0, microsecond=0) - LATEST_ORDER_AT.replace(
            hour=0, minute=0, second=0, microsecond=0
        )

    def ts(value: str) -> datetime:
        return datetime.fromisoformat(value) + offset

    staff_hash = hash_password(STAFF_PASSWORD)
    customer_hash = hash_password(CUSTOMER_PASSWORD)

    try:
        products = [
            Product(**{**p, "created_at": ts(p["created_at"]), "updated_at": ts(p["updated_at"])})
            for p in PRODUCTS
        ]
        customers = [
            Customer(
                **{**c, "created_at": ts(c["created_at"]), "updated_at": ts(c["updated_at"])},
                password_hash=customer_hash,
            )
            for c in CUSTOMERS
        ]
        users = [
            User(**{**u, "created_at": ts(u["created_at"])}, password_hash=staff_hash)
            for u in USERS
        ]
        db.add_all(products + customers + users)
        db.flush()

        orders = []
        for o in ORDERS:
            order = Order(
                order_number=o["order_number"],
                customer_id=customers[o["customer"] - 1].id,
                user_id=users[o["user"] - 1].id,
                status=o["status"],
                total_amount=o["total_amount"],
                notes=o["notes"],
                created_at=ts(o["created_at"]),
                updated_at=ts(o["updated_at"]),
            )
            for product_pos, quantity, price in o["items"]:
                order.items.append(OrderItem(
                    product_id=products[product_pos - 1].id,
                    quantity=quantity,
                    price=price,
                    created_at=ts(o["created_at"]),
                    updated_at=ts(o["created_at"]),
                ))
            orders.append(order)
        db.add_all(orders)

        feedback = [
            Feedback(
                customer_id=customers[f["customer"] - 1].id,
                product_id=products[f["product"] - 1].id,
                rating=f["rating"],
                comment=f["comment"],
                created_at=ts(f["created_at"]),
                updated_at=ts(f["created_at"]),
            )
            for f in FEEDBACK
        ]
        db.add_all(feedback)
        db.commit()
    except Exception:
        db.rollback()
        raise

    counts = {
        "products": len(products),
        "customers": len(customers),
        "users": len(users),
        "orders": len(orders),
        "order_items": sum(len(o.items) for o in orders),
        "feedback": len(feedback),
    }
    logger.info(f"Seeded demo data: {counts}")
    return counts
