"""Cart, discount and totals data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List


class DiscountType(str, Enum):
    """How a discount value is read against the subtotal."""

    PERCENT = "PERCENT"
    FIXED = "FIXED"

    @classmethod
    def parse(cls, value: Any) -> "DiscountType":
        """Accept enum members and the spellings the POS client sends."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.FIXED

        normalized = str(value).strip().upper()
        if normalized in ("PERCENT", "PERCENTAGE", "%"):
            return cls.PERCENT
        if normalized in ("FIXED", "AMOUNT", "FLAT"):
            return cls.FIXED

        raise ValueError(f"Unknown discount type: {value}")


@dataclass
class DiscountSpec:
    """A bill-level discount as typed by the cashier.

    ``value`` is kept as entered; the calculator decides what counts as a
    usable number.
    """

    value: Any = 0
    type: DiscountType = DiscountType.FIXED

    def __post_init__(self):
        self.type = DiscountType.parse(self.type)

    @classmethod
    def none(cls) -> "DiscountSpec":
        return cls(value=0, type=DiscountType.FIXED)

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "type": self.type.value}


@dataclass
class CartLine:
    """One candidate line: what is being sold, how many, and at what price."""

    quantity: int
    sell_price: float
    floor_price: float = 0.0
    product_id: Optional[int] = None
    item_id: Optional[int] = None
    name: str = ""
    cost_at_sale: Optional[float] = None

    def __post_init__(self):
        if self.sell_price < 0:
            raise ValueError("Sell price cannot be negative")

        if self.floor_price < 0:
            raise ValueError("Floor price cannot be negative")

    @property
    def line_subtotal(self) -> float:
        return self.quantity * self.sell_price

    @property
    def line_floor(self) -> float:
        return self.quantity * self.floor_price


@dataclass
class ItemAllocation:
    """Share of the bill discount carried by one line."""

    line: CartLine
    item_discount_total: float
    per_unit_discount: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.line.product_id,
            "itemId": self.line.item_id,
            "quantity": self.line.quantity,
            "itemDiscountTotal": self.item_discount_total,
            "perUnitDiscount": self.per_unit_discount,
        }


@dataclass
class CartTotals:
    """Result of pricing a cart."""

    subtotal: float
    max_discount: float
    raw_discount: float
    effective_discount: int
    grand_total: int
    discount: DiscountSpec
    lines: List[CartLine] = field(default_factory=list)
    allocations: List[ItemAllocation] = field(default_factory=list)
    auto_clamped: bool = False

    @property
    def allowed_discount(self) -> float:
        """Headroom actually usable; a negative maximum means no discount at all."""
        return max(0.0, self.max_discount)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "subtotal": self.subtotal,
            "maxDiscount": self.allowed_discount,
            "rawDiscount": self.raw_discount,
            "effectiveDiscount": self.effective_discount,
            "grandTotal": self.grand_total,
            "discount": self.discount.to_dict(),
            "autoClamped": self.auto_clamped,
            "allocations": [allocation.to_dict() for allocation in self.allocations],
        }
