"""
Dashboard API
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from teashop.models.base import get_db
from teashop.services.report_service import ReportService
from teashop.utils.logger import log

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def get_dashboard(db: Session = Depends(get_db)):
    """Today's orders and revenue, stock alerts and the five latest orders."""
    try:
        return {"success": True, "data": ReportService(db).get_dashboard()}
    except Exception as e:
        log.error(f"Error building dashboard: {e}")
        raise HTTPException(status_code=500, detail=str(e))
