"""Relational schema for shops, products, sales and purchase orders."""

import enum
from datetime import datetime
from typing import Dict, Any, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..database import Base


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class PurchaseOrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


class Shop(Base):
    __tablename__ = "shops"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "createdAt": _iso(self.created_at)}


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("shop_id", "name", name="uq_category_shop_name"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "shopId": self.shop_id}


class Product(Base):
    """
    A sellable item owned by one shop.

    ``current_stock`` and ``total_stock`` form the stock ledger. They are
    only written through ``StockLedger`` except for a manual stocktake
    overwrite of ``current_stock``.
    """

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    cost_price = Column(Float, nullable=False, default=0.0)
    sell_price = Column(Float, nullable=False, default=0.0)
    floor_price = Column(Float, nullable=False, default=0.0)

    current_stock = Column(Integer, nullable=False, default=0)
    total_stock = Column(Integer, nullable=False, default=0)
    stock_threshold = Column(Integer, nullable=False, default=10)

    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category")

    __table_args__ = (
        UniqueConstraint("shop_id", "name", name="uq_product_shop_name"),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.stock_threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shopId": self.shop_id,
            "name": self.name,
            "costPrice": self.cost_price,
            "sellPrice": self.sell_price,
            "floorPrice": self.floor_price,
            "currentStock": self.current_stock,
            "totalStock": self.total_stock,
            "stockThreshold": self.stock_threshold,
            "categoryId": self.category_id,
            "category": self.category.to_dict() if self.category else None,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Order(Base):
    """A completed sale. Only ever written in its final, committed form."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    total_amount = Column(Float, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        Index("ix_orders_shop_created", "shop_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shopId": self.shop_id,
            "totalAmount": self.total_amount,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }


class OrderItem(Base):
    """
    One product line of an order.

    ``sold_at`` and ``cost_at_sale`` are point-in-time snapshots and are
    never re-derived from the product. ``discount`` is per unit.
    """

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = Column(String(200), nullable=False)

    quantity = Column(Integer, nullable=False)
    sold_at = Column(Float, nullable=False)
    cost_at_sale = Column(Float, nullable=False, default=0.0)
    discount = Column(Float, nullable=False, default=0.0)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "soldAt": self.sold_at,
            "costAtSale": self.cost_at_sale,
            "discount": self.discount,
        }


class PurchaseOrder(Base):
    """A shipment from a supplier; receiving it adds to the stock ledger."""

    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_details = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    status = Column(
        Enum(PurchaseOrderStatus, native_enum=False, length=16),
        nullable=False,
        default=PurchaseOrderStatus.PENDING,
    )

    order_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    received_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shopId": self.shop_id,
            "supplierDetails": self.supplier_details,
            "notes": self.notes,
            "totalAmount": self.total_amount,
            "status": self.status.value,
            "orderDate": _iso(self.order_date),
            "receivedDate": _iso(self.received_date),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True)
    purchase_order_id = Column(
        Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = Column(String(200), nullable=False)

    quantity_ordered = Column(Integer, nullable=False)
    quantity_received = Column(Integer, nullable=False, default=0)
    cost_price_per_item = Column(Float, nullable=False)

    purchase_order = relationship("PurchaseOrder", back_populates="items")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "purchaseOrderId": self.purchase_order_id,
            "productId": self.product_id,
            "productName": self.product_name,
            "quantityOrdered": self.quantity_ordered,
            "quantityReceived": self.quantity_received,
            "costPricePerItem": self.cost_price_per_item,
        }


class CustomerRequest(Base):
    """An item a customer asked for that the shop does not stock."""

    __tablename__ = "customer_requests"

    id = Column(Integer, primary_key=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    item = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shopId": self.shop_id,
            "item": self.item,
            "createdAt": _iso(self.created_at),
        }
