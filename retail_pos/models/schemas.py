"""Request payloads accepted by the HTTP API.

Field names are camelCase on the wire, snake_case in Python.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItemIn(CamelModel):
    """A cart line as submitted by the POS."""
    product_id: int
    quantity: int
    sell_price: Optional[float] = Field(None, ge=0, description="Unit price at the moment of sale")
    cost_at_sale: Optional[float] = Field(None, ge=0, description="Cost snapshot; defaults to the product's cost")
    name: Optional[str] = None


class DiscountIn(CamelModel):
    """Bill-level discount as typed; non-numeric input counts as no discount."""
    total_discount_input: Any = None
    discount_type: Optional[str] = None


class QuoteRequest(DiscountIn):
    items: List[CartItemIn] = Field(default_factory=list)
    auto_clamp_on_overflow: bool = True


class CreateOrderRequest(DiscountIn):
    cart_items: List[CartItemIn] = Field(default_factory=list)
    total_amount: Optional[float] = None


class UpdatedItemIn(CamelModel):
    id: int
    quantity: int


class EditOrderRequest(DiscountIn):
    updated_items: List[UpdatedItemIn] = Field(default_factory=list)


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1)
    cost_price: float = Field(0.0, ge=0)
    sell_price: float = Field(0.0, ge=0)
    floor_price: Optional[float] = Field(None, ge=0)
    current_stock: int = Field(0, ge=0)
    stock_threshold: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    cost_price: Optional[float] = Field(None, ge=0)
    sell_price: Optional[float] = Field(None, ge=0)
    floor_price: Optional[float] = Field(None, ge=0)
    current_stock: Optional[int] = None
    stock_threshold: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None


class CategoryIn(CamelModel):
    name: str


class PurchaseOrderItemIn(CamelModel):
    product_id: int
    quantity_ordered: int = Field(..., gt=0)
    cost_price_per_item: float = Field(..., ge=0)
    product_name: Optional[str] = None


class PurchaseOrderCreate(CamelModel):
    supplier_details: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    items: List[PurchaseOrderItemIn] = Field(default_factory=list)


class PurchaseOrderUpdate(CamelModel):
    status: Optional[str] = None
    supplier_details: Optional[str] = None
    notes: Optional[str] = None


class CustomerRequestIn(CamelModel):
    item: str
