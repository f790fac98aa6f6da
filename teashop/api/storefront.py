"""
Storefront API

Public product listing plus the signed-in customer's profile and reviews.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import Optional

from teashop.models.base import get_db
from teashop.services.auth_service import Principal
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.storefront_service import StorefrontService
from teashop.utils.logger import log

router = APIRouter(prefix="/storefront", tags=["storefront"])


class ReviewCreate(BaseModel):
    product_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


def _require_customer(request: Request) -> Principal:
    """Dependency: raise 401 unless a customer is signed in."""
    principal = getattr(request.state, "principal", None)
    if not principal or not principal.is_customer:
        raise HTTPException(status_code=401, detail="Customer sign-in required")
    return principal


@router.get("/products")
async def list_products(request: Request, db: Session = Depends(get_db)):
    """Active products; has_reviewed reflects the signed-in customer, if any."""
    principal = getattr(request.state, "principal", None)
    customer_id = principal.id if principal and principal.is_customer else None
    try:
        data = StorefrontService(db).list_products(customer_id=customer_id)
        return {"success": True, "count": len(data), "data": data}
    except Exception as e:
        log.error(f"Error listing storefront products: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/me")
async def get_profile(
    db: Session = Depends(get_db),
    customer: Principal = Depends(_require_customer),
):
    try:
        return {"success": True, "data": StorefrontService(db).get_profile(customer.id)}
    except NotFound:
        raise
    except Exception as e:
        log.error(f"Error loading profile for customer {customer.id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/me/reviews")
async def list_reviews(
    db: Session = Depends(get_db),
    customer: Principal = Depends(_require_customer),
):
    try:
        data = StorefrontService(db).list_reviews(customer.id)
        return {"success": True, "count": len(data), "data": data}
    except Exception as e:
        log.error(f"Error listing reviews for customer {customer.id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/me/reviews", status_code=201)
async def submit_review(
    body: ReviewCreate,
    db: Session = Depends(get_db),
    customer: Principal = Depends(_require_customer),
):
    """One review per product; a second review of the same product is rejected."""
    try:
        data = StorefrontService(db).submit_review(customer.id, body.product_id, body.rating, body.comment)
        return {"success": True, "data": data}
    except (ValidationFailed, NotFound):
        raise
    except Exception as e:
        log.error(f"Error saving review for customer {customer.id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
