"""
Orders API

Order list, pending queue, order entry and status changes.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import List, Optional

from teashop.models.base import get_db
from teashop.models.order import OrderStatus
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.order_service import OrderService
from teashop.utils.logger import log

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    price: Optional[float] = Field(None, gt=0)


class OrderCreate(BaseModel):
    customer_id: Optional[int] = None
    items: List[OrderItemIn] = Field(..., min_length=1)
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: OrderStatus


@router.get("")
async def list_orders(
    status: Optional[str] = Query(None, description="Pending, Processing, Completed, Cancelled or all"),
    db: Session = Depends(get_db),
):
    """Orders newest first with a count per status."""
    try:
        result = OrderService(db).list_orders(status=status)
        return {
            "success": True,
            "count": len(result["orders"]),
            "status_counts": result["status_counts"],
            "data": result["orders"],
        }
    except ValidationFailed:
        raise
    except Exception as e:
        log.error(f"Error listing orders: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/pending")
async def get_pending_orders(
    search: Optional[str] = Query(None, description="Customer name or order id"),
    db: Session = Depends(get_db),
):
    """Pending orders with handling priority."""
    try:
        result = OrderService(db).get_pending(search=search)
        return {"success": True, "count": len(result["orders"]), "summary": result["summary"], "data": result["orders"]}
    except Exception as e:
        log.error(f"Error loading pending orders: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
async def create_order(body: OrderCreate, request: Request, db: Session = Depends(get_db)):
    principal = getattr(request.state, "principal", None)
    try:
        data = OrderService(db).create_order(
            items=[i.model_dump() for i in body.items],
            customer_id=body.customer_id,
            notes=body.notes,
            user_id=principal.id if principal else None,
        )
        return {"success": True, "data": data}
    except (ValidationFailed, NotFound):
        raise
    except Exception as e:
        log.error(f"Error creating order: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{order_id}")
async def get_order(order_id: int, db: Session = Depends(get_db)):
    try:
        return {"success": True, "data": OrderService(db).get_order(order_id)}
    except NotFound:
        raise
    except Exception as e:
        log.error(f"Error loading order {order_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{order_id}/status")
async def update_order_status(order_id: int, body: StatusUpdate, db: Session = Depends(get_db)):
    """Change status; cancelling returns the items to stock."""
    try:
        data = OrderService(db).update_status(order_id, body.status.value)
        return {"success": True, "data": data}
    except (ValidationFailed, NotFound):
        raise
    except Exception as e:
        log.error(f"Error updating order {order_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
