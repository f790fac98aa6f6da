"""
Row loaders

Turn ORM rows into the plain dicts consumed by the analytics engine and
returned by the API.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from teashop.models import Product, Customer, Order, OrderItem, OrderStatus, Feedback


def product_to_dict(p: Product) -> Dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "tea_type": p.tea_type.value if p.tea_type else None,
        "description": p.description,
        "price": float(p.price or 0),
        "quantity_in_stock": int(p.quantity_in_stock or 0),
        "reorder_level": int(p.reorder_level or 0),
        "unit": p.unit,
        "image_url": p.image_url,
        "is_active": bool(p.is_active),
        "created_at": p.created_at,
        "updated_at": p.updated_at,
    }


def order_item_to_dict(item: OrderItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "product_name": item.product.name if item.product else "Unknown Product",
        "quantity": item.quantity,
        "price": float(item.price),
        "total_price": item.quantity * float(item.price),
    }


def order_to_dict(o: Order) -> Dict[str, Any]:
    customer = o.customer
    return {
        "id": o.id,
        "order_number": o.order_number,
        "customer_id": o.customer_id,
        "customer_name": customer.name if customer else None,
        "customer_phone": customer.phone if customer else None,
        "customer_email": customer.email if customer else None,
        "status": o.status.value if o.status else None,
        "total_amount": float(o.total_amount or 0),
        "notes": o.notes,
        "created_at": o.created_at,
        "items": [order_item_to_dict(i) for i in o.items],
    }


def customer_to_dict(c: Customer) -> Dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "phone": c.phone,
        "email": c.email,
        "address": c.address,
        "created_at": c.created_at,
    }


def feedback_to_dict(f: Feedback) -> Dict[str, Any]:
    return {
        "id": f.id,
        "customer_id": f.customer_id,
        "product_id": f.product_id,
        "product_name": f.product.name if f.product else None,
        "rating": f.rating,
        "comment": f.comment,
        "created_at": f.created_at,
    }


def load_products(db: Session, include_inactive: bool = True) -> List[Dict[str, Any]]:
    """Non-deleted products in id order."""
    q = db.query(Product).filter(Product.is_deleted == False)
    if not include_inactive:
        q = q.filter(Product.is_active == True)
    return [product_to_dict(p) for p in q.order_by(Product.id).all()]


def load_orders(db: Session, status: Optional[str] = None) -> List[Dict[str, Any]]:
    """Non-deleted orders with items, newest first."""
    q = (
        db.query(Order)
        .options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.customer),
        )
        .filter(Order.is_deleted == False)
    )
    if status:
        q = q.filter(Order.status == OrderStatus(status))
    return [order_to_dict(o) for o in q.order_by(Order.created_at.desc(), Order.id.desc()).all()]


def load_customers(db: Session) -> List[Dict[str, Any]]:
    q = db.query(Customer).filter(Customer.is_deleted == False)
    return [customer_to_dict(c) for c in q.order_by(Customer.id).all()]
