"""
Customers API
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import Literal, Optional

from teashop.models.base import get_db
from teashop.services.customer_service import CustomerService
from teashop.services.errors import NotFound, ValidationFailed
from teashop.utils.logger import log

router = APIRouter(prefix="/customers", tags=["customers"])


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    customer_type: Literal["Individual", "Business"] = "Individual"
    notes: Optional[str] = None


@router.get("")
async def list_customers(
    search: Optional[str] = Query(None, description="Name, phone or email"),
    db: Session = Depends(get_db),
):
    """Customers with order count, total spent and last order date."""
    try:
        data = CustomerService(db).list_customers(search=search)
        return {"success": True, "count": len(data), "data": data}
    except Exception as e:
        log.error(f"Error listing customers: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
async def create_customer(body: CustomerCreate, db: Session = Depends(get_db)):
    try:
        data = CustomerService(db).create_customer(body.model_dump())
        return {"success": True, "data": data}
    except ValidationFailed:
        raise
    except Exception as e:
        log.error(f"Error creating customer: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{customer_id}")
async def get_customer(customer_id: int, db: Session = Depends(get_db)):
    try:
        return {"success": True, "data": CustomerService(db).get_customer(customer_id)}
    except NotFound:
        raise
    except Exception as e:
        log.error(f"Error loading customer {customer_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{customer_id}/feedback")
async def get_customer_feedback(customer_id: int, db: Session = Depends(get_db)):
    try:
        data = CustomerService(db).get_feedback(customer_id)
        return {"success": True, "count": len(data), "data": data}
    except NotFound:
        raise
    except Exception as e:
        log.error(f"Error loading feedback for customer {customer_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
