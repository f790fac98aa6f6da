"""
Reports API

Sales, inventory and customer reports. `range` takes 7d, 30d, 90d or 1y.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional

from teashop.config import get_settings
from teashop.models.base import get_db
from teashop.services.customer_service import CustomerService
from teashop.services.errors import ValidationFailed
from teashop.services.inventory_service import InventoryService
from teashop.services.report_service import ReportService
from teashop.utils.logger import log

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/sales")
async def get_sales_report(
    window: Optional[str] = Query(None, alias="range", description="7d, 30d, 90d or 1y"),
    db: Session = Depends(get_db),
):
    """Revenue, order counts, daily series and top products/customers."""
    try:
        data = ReportService(db).get_sales_report(window or get_settings().default_report_window)
        return {"success": True, "data": data}
    except ValidationFailed:
        raise
    except Exception as e:
        log.error(f"Error building sales report: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/inventory")
async def get_inventory_report(
    category: Optional[str] = Query(None, description="Tea type filter"),
    sort: str = Query("value", description="value, turnover or stock"),
    window: Optional[str] = Query(None, alias="range", description="Count units sold in this window only"),
    db: Session = Depends(get_db),
):
    """Turnover, stock value and category breakdown."""
    try:
        data = InventoryService(db).get_inventory_report(category=category, sort_by=sort, window=window)
        return {"success": True, "count": len(data["items"]), "data": data}
    except ValidationFailed:
        raise
    except Exception as e:
        log.error(f"Error building inventory report: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/customers")
async def get_customer_report(
    window: Optional[str] = Query(None, alias="range", description="7d, 30d, 90d or 1y"),
    sort: str = Query("value", description="value, orders or recent"),
    db: Session = Depends(get_db),
):
    """Customer segments, churn risk and lifetime value."""
    try:
        data = CustomerService(db).get_customer_report(
            window=window or get_settings().default_report_window,
            sort_by=sort,
        )
        return {"success": True, "count": len(data["customers"]), "data": data}
    except ValidationFailed:
        raise
    except Exception as e:
        log.error(f"Error building customer report: {e}")
        raise HTTPException(status_code=500, detail=str(e))
