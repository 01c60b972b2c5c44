"""Sales orders: quote, create, edit and delete with matching stock changes.

Every write path is one transaction. The order, its items and the stock
ledger either all change or none do:

  create  insert order -> insert items -> decrement stock (guarded)
  edit    reprice at the original sold-at prices -> validate discount
          -> apply quantity deltas to stock -> update items and total
  delete  restock every item (missing products skipped) -> delete order
"""

import math
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, selectinload

from .base import TransactionalService
from .pricing import calculate_cart
from .stock_ledger import StockLedger
from ..models.cart import CartLine, DiscountSpec
from ..models.schemas import CartItemIn, UpdatedItemIn
from ..models.tables import Order, OrderItem
from ..utils.exceptions import NotFoundError, ValidationError
from ..utils.logger import get_order_logger


def build_discount(value: Any, discount_type: Optional[str]) -> DiscountSpec:
    """
    Turn raw discount input into a DiscountSpec.

    Raises:
        ValidationError: If the discount type is not recognised
    """
    try:
        return DiscountSpec(value=value if value is not None else 0, type=discount_type)
    except ValueError as e:
        raise ValidationError(str(e), details={"discountType": discount_type})


def order_query(
    shop_id: int,
    order_id: int,
    with_products: bool = False,
    for_update: bool = False
) -> Select:
    """
    Select one order of a shop with its items.

    Write paths lock the order row so concurrent edits or deletes of the
    same order run one after the other and each sees committed quantities.
    """
    loader = selectinload(Order.items)
    if with_products:
        loader = loader.selectinload(OrderItem.product)

    query = select(Order).where(Order.id == order_id, Order.shop_id == shop_id).options(loader)
    if for_update:
        query = query.with_for_update()
    return query


class OrderService(TransactionalService):
    """Order reconciliation transactions for one shop at a time."""

    def __init__(self, session_factory=None):
        super().__init__(session_factory)
        self.logger = get_order_logger()

    @property
    def epsilon(self) -> float:
        return self.config.pricing.discount_epsilon

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def quote(
        self,
        shop_id: int,
        items: List[CartItemIn],
        discount: Optional[DiscountSpec] = None,
        auto_clamp_on_overflow: bool = True
    ) -> Dict[str, Any]:
        """Price a cart against current floor prices without writing anything."""
        with self.transaction("pricing the cart") as session:
            products = self.load_products(session, shop_id, (item.product_id for item in items))
            lines = self._cart_lines(items, products)

        totals = calculate_cart(
            lines,
            discount,
            auto_clamp_on_overflow=auto_clamp_on_overflow,
            epsilon=self.epsilon
        )
        return totals.to_dict()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_order(
        self,
        shop_id: int,
        cart_items: List[CartItemIn],
        total_amount: Optional[float] = None,
        discount: Optional[DiscountSpec] = None
    ) -> Dict[str, Any]:
        """
        Persist a finalized cart as an order and take its items out of stock.

        Args:
            shop_id: Owning shop
            cart_items: Cart lines; lines with quantity <= 0 are dropped
            total_amount: The client's previewed grand total, checked
                against the server's recomputation when given
            discount: Bill discount, if any

        Returns:
            The created order with its items

        Raises:
            ValidationError: Empty cart, total mismatch, or discount over
                the floor-price maximum
            NotFoundError: A product is not in this shop
            InsufficientStockError: A product has fewer units than sold
        """
        items = [item for item in cart_items if item.quantity > 0]
        if not items:
            raise ValidationError("Cart is empty")

        with self.transaction("creating the order") as session:
            products = self.load_products(session, shop_id, (item.product_id for item in items))
            lines = self._cart_lines(items, products)
            totals = calculate_cart(lines, discount, epsilon=self.epsilon)

            if total_amount is not None and abs(total_amount - totals.grand_total) > self.epsilon:
                raise ValidationError(
                    "Order total does not match the cart",
                    details={"expectedTotal": totals.grand_total, "submittedTotal": total_amount}
                )

            order = Order(shop_id=shop_id, total_amount=totals.grand_total)
            for allocation in totals.allocations:
                line = allocation.line
                order.items.append(
                    OrderItem(
                        product_id=line.product_id,
                        product_name=line.name,
                        quantity=line.quantity,
                        sold_at=line.sell_price,
                        cost_at_sale=line.cost_at_sale,
                        discount=allocation.per_unit_discount
                    )
                )
            session.add(order)
            session.flush()

            ledger = StockLedger(session)
            for line in totals.lines:
                ledger.decrement(line.product_id, line.quantity)

            result = order.to_dict()

        self.logger.info(
            f"Order {result['id']} created for shop {shop_id}: "
            f"{len(result['items'])} item(s), total {result['totalAmount']}"
        )
        return result

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    def edit_order(
        self,
        shop_id: int,
        order_id: int,
        updated_items: Iterable[UpdatedItemIn],
        discount: Optional[DiscountSpec] = None
    ) -> Dict[str, Any]:
        """
        Change item quantities and the bill discount of an existing order.

        Prices stay at each item's original ``sold_at``. Stock moves by the
        quantity delta only, so other orders' stock changes are preserved.
        An item set to quantity 0 is removed from the order.

        Raises:
            NotFoundError: If the order does not exist in this shop
            ValidationError: Unknown item, negative quantity, no items
                left, or discount over the floor-price maximum
        """
        new_quantities: Dict[int, int] = {}
        for updated in updated_items:
            if updated.quantity < 0:
                raise ValidationError(
                    "Quantity cannot be negative",
                    details={"itemId": updated.id, "quantity": updated.quantity}
                )
            new_quantities[updated.id] = updated.quantity

        with self.transaction("updating the order") as session:
            order = self._get_order(session, shop_id, order_id, with_products=True, for_update=True)
            items_by_id = {item.id: item for item in order.items}

            unknown = sorted(set(new_quantities) - set(items_by_id))
            if unknown:
                raise ValidationError(
                    "Item does not belong to this order",
                    details={"itemIds": unknown}
                )

            lines = [
                CartLine(
                    quantity=new_quantities.get(item.id, item.quantity),
                    sell_price=item.sold_at,
                    floor_price=item.product.floor_price if item.product else 0.0,
                    product_id=item.product_id,
                    item_id=item.id,
                    name=item.product_name,
                    cost_at_sale=item.cost_at_sale
                )
                for item in order.items
            ]
            if all(line.quantity == 0 for line in lines):
                raise ValidationError("An order must keep at least one item; delete the order instead")

            totals = calculate_cart(lines, discount, epsilon=self.epsilon)
            allocations = {allocation.line.item_id: allocation for allocation in totals.allocations}

            ledger = StockLedger(session)
            for item in list(order.items):
                new_quantity = new_quantities.get(item.id, item.quantity)
                delta = item.quantity - new_quantity

                if delta < 0 and item.product_id is None:
                    raise NotFoundError(
                        f"Product for {item.product_name} no longer exists",
                        details={"itemId": item.id}
                    )
                if delta != 0 and item.product_id is not None:
                    ledger.adjust(item.product_id, delta)

                if new_quantity == 0:
                    order.items.remove(item)
                else:
                    item.quantity = new_quantity
                    item.discount = allocations[item.id].per_unit_discount

            order.total_amount = totals.grand_total
            session.flush()
            result = order.to_dict()

        self.logger.info(
            f"Order {order_id} updated for shop {shop_id}: total {result['totalAmount']}"
        )
        return result

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_order(self, shop_id: int, order_id: int) -> None:
        """
        Delete an order and put its items back into stock.

        Items whose product no longer exists are skipped so one dangling
        reference does not block the rest of the reversal.

        Raises:
            NotFoundError: If the order does not exist in this shop
        """
        with self.transaction("deleting the order") as session:
            order = self._get_order(session, shop_id, order_id, for_update=True)

            ledger = StockLedger(session)
            skipped = 0
            for item in order.items:
                if item.product_id is None or not ledger.restore(item.product_id, item.quantity):
                    skipped += 1

            session.delete(order)

        if skipped:
            self.logger.warning(
                f"Order {order_id} deleted; {skipped} item(s) had no product to restock"
            )
        self.logger.info(f"Order {order_id} deleted for shop {shop_id}, stock restored")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_order(self, shop_id: int, order_id: int) -> Dict[str, Any]:
        with self.transaction("fetching the order") as session:
            return self._get_order(session, shop_id, order_id).to_dict()

    def list_orders(
        self,
        shop_id: int,
        start_date: date,
        end_date: date,
        page: int = 1,
        limit: Optional[int] = None
    ) -> Dict[str, Any]:
        """One page of orders created between two whole days, newest first."""
        page = max(1, page)
        limit = limit or self.config.orders.default_page_size
        limit = min(max(1, limit), self.config.orders.max_page_size)

        window = (
            Order.shop_id == shop_id,
            Order.created_at >= datetime.combine(start_date, time.min),
            Order.created_at <= datetime.combine(end_date, time.max),
        )

        with self.transaction("fetching orders") as session:
            total_orders = session.scalar(select(func.count(Order.id)).where(*window))
            orders = session.scalars(
                select(Order)
                .where(*window)
                .options(selectinload(Order.items))
                .order_by(Order.created_at.desc(), Order.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            ).all()

            return {
                "orders": [order.to_dict() for order in orders],
                "totalOrders": total_orders,
                "totalPages": math.ceil(total_orders / limit),
                "currentPage": page,
            }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _get_order(
        session: Session,
        shop_id: int,
        order_id: int,
        with_products: bool = False,
        for_update: bool = False
    ) -> Order:
        order = session.scalar(order_query(shop_id, order_id, with_products, for_update))
        if order is None:
            raise NotFoundError("Order not found", details={"orderId": order_id})
        return order

    @staticmethod
    def _cart_lines(items: Iterable[CartItemIn], products) -> List[CartLine]:
        """Fill in floor price, and defaults for price, cost and name, from the products."""
        lines = []
        for item in items:
            product = products[item.product_id]
            lines.append(
                CartLine(
                    quantity=item.quantity,
                    sell_price=item.sell_price if item.sell_price is not None else product.sell_price,
                    floor_price=product.floor_price,
                    product_id=product.id,
                    name=item.name or product.name,
                    cost_at_sale=item.cost_at_sale if item.cost_at_sale is not None else product.cost_price
                )
            )
        return lines
