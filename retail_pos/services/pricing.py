"""Cart and discount calculator.

Pure arithmetic shared by the quote endpoint (live POS preview) and the
order reconciliation transactions, so a preview and the persisted order
always agree:

  - subtotal      = sum(quantity * sell price)
  - max discount  = subtotal - sum(quantity * floor price)
  - discount      = floor(raw discount)      shop never under-charges
  - grand total   = ceil(subtotal - discount) shop never under-collects

Subtotal and floor sums are rounded to cents so float noise such as
149.99999999 does not cost a whole currency unit. The discount itself is
floored with only a float tolerance, so 99.999 stays 99.
"""

import math
from typing import Any, Iterable, List, Optional

from ..models.cart import (
    CartLine,
    CartTotals,
    DiscountSpec,
    DiscountType,
    ItemAllocation,
)
from ..utils.exceptions import DiscountExceedsMaximumError

DEFAULT_DISCOUNT_EPSILON = 0.01
FLOAT_TOLERANCE = 1e-9


def _to_cents(amount: float) -> float:
    return round(amount, 2)


def coerce_discount_value(value: Any) -> float:
    """Read a typed discount value; anything unusable counts as no discount."""
    if isinstance(value, bool):
        return 0.0

    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0

    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0

    return number


def raw_discount(subtotal: float, discount: DiscountSpec) -> float:
    """Discount amount before rounding."""
    value = coerce_discount_value(discount.value)
    if discount.type is DiscountType.PERCENT:
        return subtotal * value / 100
    return value


def allocate_discount(
    lines: Iterable[CartLine],
    subtotal: float,
    effective_discount: float
) -> List[ItemAllocation]:
    """
    Spread the bill discount over lines by their share of the subtotal.

    Bookkeeping only: the allocations sum back to the discount within
    float tolerance and are not re-validated.
    """
    allocations = []
    for line in lines:
        proportion = line.line_subtotal / subtotal if subtotal > 0 else 0.0
        item_discount_total = effective_discount * proportion
        per_unit = item_discount_total / line.quantity if line.quantity > 0 else 0.0
        allocations.append(
            ItemAllocation(
                line=line,
                item_discount_total=item_discount_total,
                per_unit_discount=per_unit
            )
        )
    return allocations


def calculate_cart(
    lines: Iterable[CartLine],
    discount: Optional[DiscountSpec] = None,
    auto_clamp_on_overflow: bool = False,
    epsilon: float = DEFAULT_DISCOUNT_EPSILON
) -> CartTotals:
    """
    Price a cart and validate its discount against the floor prices.

    Args:
        lines: Candidate lines; lines with quantity <= 0 are dropped
        discount: Bill discount, or None for no discount
        auto_clamp_on_overflow: Live-cart mode. An oversized discount is
            replaced by the maximum as a FIXED amount instead of rejected
        epsilon: Tolerance when comparing against the maximum

    Returns:
        CartTotals with per-line allocations

    Raises:
        DiscountExceedsMaximumError: If the discount is over the maximum
            and auto_clamp_on_overflow is False
    """
    discount = discount or DiscountSpec.none()
    priced = [line for line in lines if line.quantity > 0]

    subtotal = _to_cents(sum(line.line_subtotal for line in priced))
    floor_total = _to_cents(sum(line.line_floor for line in priced))
    max_discount = _to_cents(subtotal - floor_total)
    allowed = max(0.0, max_discount)

    requested = raw_discount(subtotal, discount)
    effective = math.floor(requested + FLOAT_TOLERANCE)
    auto_clamped = False

    if effective > allowed + epsilon:
        if not auto_clamp_on_overflow:
            raise DiscountExceedsMaximumError(max_discount=allowed, requested=effective)

        effective = math.floor(allowed)
        discount = DiscountSpec(value=effective, type=DiscountType.FIXED)
        auto_clamped = True

    grand_total = math.ceil(_to_cents(subtotal - effective))

    return CartTotals(
        subtotal=subtotal,
        max_discount=max_discount,
        raw_discount=requested,
        effective_discount=effective,
        grand_total=grand_total,
        discount=discount,
        lines=priced,
        allocations=allocate_discount(priced, subtotal, effective),
        auto_clamped=auto_clamped
    )


def default_floor_price(cost_price: float, margin_rate: float, margin_minimum: float) -> float:
    """Lowest net unit price that still clears cost by a minimum margin."""
    return cost_price + max(margin_minimum, cost_price * margin_rate)
