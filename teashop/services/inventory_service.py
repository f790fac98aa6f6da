"""
Inventory Service

Product catalogue CRUD and stock views for the admin back office:
  - Products: list / create / update / soft-delete
  - Stock overview (search, tea-type filter, sort, category breakdown)
  - Low-stock alerts and the restock queue (urgency ranked)
  - Manual stock adjustments with an audit trail
  - Inventory report (turnover, stock value, fast/slow movers)

All derived fields come from teashop.services.analytics.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from teashop.models import Product, StockAdjustment, TeaType
from teashop.services import analytics
from teashop.services.errors import NotFound, ValidationFailed
from teashop.services.records import load_orders, load_products, product_to_dict

logger = logging.getLogger(__name__)

TEA_TYPES = [t.value for t in TeaType]
ADJUSTMENT_TYPES = ("increase", "decrease")
PRODUCT_FIELDS = (
    "name", "tea_type", "description", "price", "quantity_in_stock",
    "reorder_level", "unit", "image_url", "is_active",
)


def _parse_tea_type(value: Any) -> TeaType:
    try:
        return TeaType(value)
    except ValueError:
        raise ValidationFailed(
            f"Unknown tea type '{value}' (expected one of {', '.join(TEA_TYPES)})",
            field="tea_type",
        ) from None


def _validate_product_fields(fields: Dict[str, Any]) -> None:
    if "name" in fields and not (fields["name"] or "").strip():
        raise ValidationFailed("Product name is required", field="name")
    if "price" in fields and (fields["price"] is None or fields["price"] <= 0):
        raise ValidationFailed("Price must be greater than 0", field="price")
    if "quantity_in_stock" in fields and (fields["quantity_in_stock"] is None or fields["quantity_in_stock"] < 0):
        raise ValidationFailed("Stock quantity cannot be negative", field="quantity_in_stock")
    if "reorder_level" in fields and (fields["reorder_level"] is None or fields["reorder_level"] < 0):
        raise ValidationFailed("Reorder level cannot be negative", field="reorder_level")
    if "unit" in fields and not (fields["unit"] or "").strip():
        raise ValidationFailed("Unit is required", field="unit")
    if "is_active" in fields and fields["is_active"] is None:
        raise ValidationFailed("is_active must be true or false", field="is_active")


class InventoryService:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, product_id: int) -> Product:
        product = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.is_deleted == False)
            .first()
        )
        if not product:
            raise NotFound(f"Product {product_id} not found")
        return product

    @staticmethod
    def _with_status(p: Dict[str, Any]) -> Dict[str, Any]:
        stock, reorder = p["quantity_in_stock"], p["reorder_level"]
        return {
            **p,
            "stock_status": analytics.classify_stock_status(stock, reorder).value,
            "stock_value": stock * p["price"],
        }

    @staticmethod
    def _matches(p: Dict[str, Any], search: Optional[str], tea_type: Optional[str]) -> bool:
        if search and search.lower() not in p["name"].lower():
            return False
        if tea_type and p["tea_type"] != tea_type:
            return False
        return True

    # ─────────────────────────────────────────────
    # PRODUCTS
    # ─────────────────────────────────────────────

    def list_products(
        self,
        search: Optional[str] = None,
        tea_type: Optional[str] = None,
        include_inactive: bool = True,
    ) -> List[Dict[str, Any]]:
        products = load_products(self.db, include_inactive=include_inactive)
        return [self._with_status(p) for p in products if self._matches(p, search, tea_type)]

    def get_product(self, product_id: int) -> Dict[str, Any]:
        return self._with_status(product_to_dict(self._get(product_id)))

    def create_product(self, data: Dict[str, Any]) -> Dict[str, Any]:
        fields = {k: v for k, v in data.items() if k in PRODUCT_FIELDS and v is not None}
        for required in ("name", "tea_type", "price"):
            if required not in fields:
                raise ValidationFailed(f"Field '{required}' is required", field=required)
        fields.setdefault("quantity_in_stock", 0)
        fields.setdefault("reorder_level", 10)
        fields.setdefault("unit", "g")
        _validate_product_fields(fields)
        fields["tea_type"] = _parse_tea_type(fields["tea_type"])
        fields["name"] = fields["name"].strip()

        product = Product(**fields)
        try:
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Created product {product.id} '{product.name}' ({product.quantity_in_stock} {product.unit})")
        return self.get_product(product.id)

    def update_product(self, product_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        product = self._get(product_id)
        fields = {k: v for k, v in changes.items() if k in PRODUCT_FIELDS}
        _validate_product_fields(fields)
        if "tea_type" in fields:
            fields["tea_type"] = _parse_tea_type(fields["tea_type"])

        try:
            for key, value in fields.items():
                setattr(product, key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Updated product {product_id}: {sorted(fields)}")
        return self.get_product(product_id)

    def delete_product(self, product_id: int) -> None:
        """Soft delete; past order lines keep pointing at the row."""
        product = self._get(product_id)
        try:
            product.is_deleted = True
            product.is_active = False
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted product {product_id} '{product.name}'")

    # ─────────────────────────────────────────────
    # STOCK OVERVIEW
    # ─────────────────────────────────────────────

    def get_overview(
        self,
        search: Optional[str] = None,
        tea_type: Optional[str] = None,
        sort_by: str = "value",
    ) -> Dict[str, Any]:
        """Stock levels with fill-bar percentage, total value and category split."""
        products = [p for p in load_products(self.db) if self._matches(p, search, tea_type)]

        if sort_by == "name":
            products.sort(key=lambda p: p["name"].lower())
        elif sort_by == "stock":
            products.sort(key=lambda p: p["quantity_in_stock"], reverse=True)
        elif sort_by == "value":
            products.sort(key=lambda p: p["quantity_in_stock"] * p["price"], reverse=True)
        else:
            raise ValidationFailed(f"Unknown sort '{sort_by}' (expected name, stock or value)", field="sort")

        items = []
        for p in products:
            row = self._with_status(p)
            row["stock_level_pct"] = analytics.stock_level_percentage(p["quantity_in_stock"], p["reorder_level"])
            items.append(row)

        total_value = sum(r["stock_value"] for r in items)
        return {
            "total_products": len(items),
            "total_stock_value": total_value,
            "category_breakdown": analytics.category_breakdown(products, TEA_TYPES, total_value),
            "items": items,
        }

    # ─────────────────────────────────────────────
    # LOW STOCK / RESTOCK QUEUE
    # ─────────────────────────────────────────────

    def get_restock_queue(self) -> List[Dict[str, Any]]:
        """Every low or out-of-stock product, most urgent first."""
        products = [p for p in load_products(self.db) if p["is_active"]]
        return analytics.rank_restock_queue(products)

    def get_low_stock(
        self,
        search: Optional[str] = None,
        tea_type: Optional[str] = None,
        urgency: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Low-stock alerts with summary counts; filters apply before counting."""
        items = [p for p in self.get_restock_queue() if self._matches(p, search, tea_type)]
        if urgency:
            items = [p for p in items if p["urgency"] == urgency]

        return {
            "summary": {
                "low_stock_items": len(items),
                "critical_items": sum(1 for p in items if p["quantity_in_stock"] == 0),
                "high_urgency_items": sum(1 for p in items if p["urgency"] == "high"),
                "value_at_risk": sum(p["quantity_in_stock"] * p["price"] for p in items),
            },
            "items": items,
        }

    # ─────────────────────────────────────────────
    # ADJUSTMENTS
    # ─────────────────────────────────────────────

    def adjust_stock(
        self,
        product_id: int,
        adjustment_type: str,
        amount: int,
        reason: str,
        user_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Apply a manual stock correction.

        Decreases floor at zero rather than failing, so recording a write-off
        larger than the counted stock leaves the product out of stock.
        """
        if adjustment_type not in ADJUSTMENT_TYPES:
            raise ValidationFailed("Adjustment type must be 'increase' or 'decrease'", field="adjustment_type")
        if amount is None or amount <= 0:
            raise ValidationFailed("Adjustment amount must be greater than 0", field="amount")
        if not (reason or "").strip():
            raise ValidationFailed("A reason is required for stock adjustments", field="reason")

        product = self._get(product_id)
        previous = product.quantity_in_stock
        if adjustment_type == "increase":
            new_stock = previous + amount
        else:
            new_stock = max(0, previous - amount)

        adjustment = StockAdjustment(
            product_id=product.id,
            user_id=user_id,
            adjustment_type=adjustment_type,
            amount=amount,
            reason=reason.strip(),
            previous_stock=previous,
            new_stock=new_stock,
        )
        try:
            product.quantity_in_stock = new_stock
            self.db.add(adjustment)
            self.db.commit()
            self.db.refresh(adjustment)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Stock adjustment on product {product.id}: {adjustment_type} {amount} "
            f"({previous} -> {new_stock}) reason='{adjustment.reason}'"
        )
        return self._adjustment_dict(adjustment)

    def list_adjustments(self, product_id: Optional[int] = None, limit: int = 50) -> List[Dict[str, Any]]:
        q = self.db.query(StockAdjustment)
        if product_id is not None:
            q = q.filter(StockAdjustment.product_id == product_id)
        rows = q.order_by(StockAdjustment.created_at.desc(), StockAdjustment.id.desc()).limit(limit).all()
        return [self._adjustment_dict(a) for a in rows]

    @staticmethod
    def _adjustment_dict(a: StockAdjustment) -> Dict[str, Any]:
        return {
            "id": a.id,
            "product_id": a.product_id,
            "product_name": a.product.name if a.product else None,
            "user_id": a.user_id,
            "adjustment_type": a.adjustment_type,
            "amount": a.amount,
            "reason": a.reason,
            "previous_stock": a.previous_stock,
            "new_stock": a.new_stock,
            "created_at": a.created_at,
        }

    # ─────────────────────────────────────────────
    # INVENTORY REPORT
    # ─────────────────────────────────────────────

    def get_inventory_report(
        self,
        category: Optional[str] = None,
        sort_by: str = "value",
        window: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Turnover report.

        Units sold count every order unless a window is given. Metrics cover
        the category-filtered rows; the category breakdown always covers
        every product, with shares taken against the filtered stock value.
        """
        if category and category not in TEA_TYPES:
            raise ValidationFailed(f"Unknown tea type '{category}'", field="category")
        sort_keys = {"value": "stock_value", "turnover": "turnover_rate", "stock": "quantity_in_stock"}
        if sort_by not in sort_keys:
            raise ValidationFailed(f"Unknown sort '{sort_by}' (expected value, turnover or stock)", field="sort")

        orders = load_orders(self.db)
        if window:
            try:
                orders = analytics.filter_orders_by_window(orders, window, now or datetime.utcnow())
            except ValueError as e:
                raise ValidationFailed(str(e), field="range") from None

        all_rows = analytics.product_turnover(load_products(self.db), orders)
        rows = [r for r in all_rows if not category or r["tea_type"] == category]
        metrics = analytics.inventory_metrics(rows)
        rows = sorted(rows, key=lambda r: r[sort_keys[sort_by]], reverse=True)

        return {
            "metrics": metrics,
            "category_breakdown": analytics.category_breakdown(all_rows, TEA_TYPES, metrics["total_stock_value"]),
            "items": rows,
        }
