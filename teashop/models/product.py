"""
Product catalogue and stock models
"""
import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from teashop.models.base import Base


class TeaType(str, enum.Enum):
    BLACK = "BlackTea"
    GREEN = "GreenTea"
    WHITE = "WhiteTea"
    HERBAL = "HerbalTea"
    OOLONG = "OolongTea"
    FLAVORED = "FlavoredTea"
    OTHER = "Other"


class Product(Base):
    """Tea product with current stock position"""
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity_in_stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("reorder_level >= 0", name="ck_products_reorder_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Basic info
    name = Column(String, nullable=False, index=True)
    tea_type = Column(Enum(TeaType, values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)

    # Pricing
    price = Column(Float, nullable=False)  # Current selling price (LKR)

    # Inventory
    quantity_in_stock = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=10)
    unit = Column(String, nullable=False, default="g")

    # Status
    is_active = Column(Boolean, default=True)
    is_deleted = Column(Boolean, default=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    order_items = relationship("OrderItem", back_populates="product")
    adjustments = relationship("StockAdjustment", back_populates="product")


class StockAdjustment(Base):
    """Audit trail of manual stock corrections"""
    __tablename__ = "stock_adjustments"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    adjustment_type = Column(String, nullable=False)  # increase, decrease
    amount = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)

    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    product = relationship("Product", back_populates="adjustments")
