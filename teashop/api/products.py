"""
Products API

Catalogue CRUD for the back office. Deleting a product hides it everywhere
but keeps the row for past orders.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import Optional

from teashop.models.base import get_db
from teashop.models.product import TeaType
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.inventory_service import InventoryService
from teashop.utils.logger import log

router = APIRouter(prefix="/products", tags=["products"])


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    tea_type: TeaType
    description: Optional[str] = None
    price: float = Field(..., gt=0)
    quantity_in_stock: int = Field(0, ge=0)
    reorder_level: int = Field(10, ge=0)
    unit: str = "g"
    image_url: Optional[str] = None
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    tea_type: Optional[TeaType] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    quantity_in_stock: Optional[int] = Field(None, ge=0)
    reorder_level: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


@router.get("")
async def list_products(
    search: Optional[str] = Query(None, description="Match on product name"),
    type: Optional[str] = Query(None, description="Tea type, e.g. GreenTea"),
    include_inactive: bool = Query(True),
    db: Session = Depends(get_db),
):
    """Every non-deleted product with its stock status."""
    try:
        data = InventoryService(db).list_products(search=search, tea_type=type, include_inactive=include_inactive)
        return {"success": True, "count": len(data), "data": data}
    except Exception as e:
        log.error(f"Error listing products: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/low-stock")
async def get_low_stock_products(
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None, description="critical, high, medium or low"),
    db: Session = Depends(get_db),
):
    """Products at or below their reorder level, most urgent first."""
    try:
        result = InventoryService(db).get_low_stock(search=search, tea_type=type, urgency=urgency)
        return {"success": True, "count": len(result["items"]), "summary": result["summary"], "data": result["items"]}
    except Exception as e:
        log.error(f"Error loading low-stock products: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
async def create_product(body: ProductCreate, db: Session = Depends(get_db)):
    try:
        data = InventoryService(db).create_product(body.model_dump())
        return {"success": True, "data": data}
    except (ValidationFailed, NotFound):
        raise
    except Exception as e:
        log.error(f"Error creating product: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{product_id}")
async def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        return {"success": True, "data": InventoryService(db).get_product(product_id)}
    except NotFound:
        raise
    except Exception as e:
        log.error(f"Error loading product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{product_id}")
async def update_product(product_id: int, body: ProductUpdate, db: Session = Depends(get_db)):
    try:
        data = InventoryService(db).update_product(product_id, body.model_dump(exclude_unset=True))
        return {"success": True, "data": data}
    except (ValidationFailed, NotFound):
        raise
    except Exception as e:
        log.error(f"Error updating product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{product_id}")
async def delete_product(product_id: int, db: Session = Depends(get_db)):
    try:
        InventoryService(db).delete_product(product_id)
        return {"success": True, "message": f"Product {product_id} deleted"}
    except NotFound:
        raise
    except Exception as e:
        log.error(f"Error deleting product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
