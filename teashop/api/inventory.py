"""
Inventory API

Stock overview, low-stock alerts, restock queue and manual adjustments.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import Literal, Optional

from teashop.models.base import get_db
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.inventory_service import InventoryService
from teashop.utils.logger import log

router = APIRouter(prefix="/inventory", tags=["inventory"])


class AdjustmentRequest(BaseModel):
    product_id: int
    adjustment_type: Literal["increase", "decrease"]
    amount: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1)


@router.get("/overview")
async def get_inventory_overview(
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    sort: str = Query("value", description="name, stock or value"),
    db: Session = Depends(get_db),
):
    """Stock levels with total value and category breakdown."""
    try:
        data = InventoryService(db).get_overview(search=search, tea_type=type, sort_by=sort)
        return {"success": True, "data": data}
    except ValidationFailed:
        raise
    except Exception as e:
        log.error(f"Error loading inventory overview: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/low-stock")
async def get_low_stock(
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None, description="critical, high, medium or low"),
    db: Session = Depends(get_db),
):
    """Low-stock alerts with critical/high counts and value at risk."""
    try:
        result = InventoryService(db).get_low_stock(search=search, tea_type=type, urgency=urgency)
        return {"success": True, "count": len(result["items"]), "summary": result["summary"], "data": result["items"]}
    except Exception as e:
        log.error(f"Error loading low-stock alerts: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/restock-queue")
async def get_restock_queue(db: Session = Depends(get_db)):
    """Products to reorder, most urgent first."""
    try:
        data = InventoryService(db).get_restock_queue()
        return {"success": True, "count": len(data), "data": data}
    except Exception as e:
        log.error(f"Error building restock queue: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/adjustments")
async def list_adjustments(
    product_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Stock adjustment history, newest first."""
    try:
        data = InventoryService(db).list_adjustments(product_id=product_id, limit=limit)
        return {"success": True, "count": len(data), "data": data}
    except Exception as e:
        log.error(f"Error listing stock adjustments: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/adjustments", status_code=201)
async def create_adjustment(body: AdjustmentRequest, request: Request, db: Session = Depends(get_db)):
    """Increase or decrease a product's stock; decreases stop at zero."""
    principal = getattr(request.state, "principal", None)
    try:
        data = InventoryService(db).adjust_stock(
            product_id=body.product_id,
            adjustment_type=body.adjustment_type,
            amount=body.amount,
            reason=body.reason,
            user_id=principal.id if principal else None,
        )
        return {"success": True, "data": data}
    except (ValidationFailed, NotFound):
        raise
    except Exception as e:
        log.error(f"Error adjusting stock for product {body.product_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
