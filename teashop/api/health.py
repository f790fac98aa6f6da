"""
Health check and status endpoints
"""
from fastapi import APIRouter
from datetime import datetime
from sqlalchemy import text

from teashop.config import get_settings
from teashop.models.base import SessionLocal
from teashop import __version__

settings = get_settings()

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status():
    """Get system status"""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        database = f"error: {e}"
    finally:
        db.close()

    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "database": database,
        "currency": settings.currency_code,
        "features": {
            "scheduler": settings.enable_scheduler,
            "demo_data": settings.seed_demo_data,
        },
        "timestamp": datetime.utcnow().isoformat()
    }
