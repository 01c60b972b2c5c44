"""Stock ledger: the current/total stock counters on each product.

Every method runs inside the caller's transaction and issues a single
``UPDATE ... SET current_stock = current_stock +/- q`` so concurrent
transactions compose under the database's isolation level. Nothing here
reads a counter, computes in Python and writes it back.
"""

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from ..models.tables import Product
from ..utils.exceptions import InsufficientStockError, NotFoundError
from ..utils.logger import get_inventory_logger


class StockLedger:
    """Atomic stock mutations bound to one open session."""

    def __init__(self, session: Session):
        self.session = session
        self.logger = get_inventory_logger()

    def decrement(self, product_id: int, quantity: int) -> None:
        """
        Take ``quantity`` units out of current stock for a sale.

        The sufficiency check is part of the UPDATE itself, so two sales
        racing for the last unit cannot both succeed.

        Raises:
            NotFoundError: If the product does not exist
            InsufficientStockError: If current stock is below ``quantity``
        """
        if quantity <= 0:
            raise ValueError("Quantity to decrement must be positive")

        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.current_stock >= quantity)
            .values(current_stock=Product.current_stock - quantity)
            .execution_options(synchronize_session=False)
        )
        self._expire(product_id)
        if result.rowcount == 1:
            self.logger.debug(f"Product {product_id}: stock -{quantity}")
            return

        row = self.session.execute(
            select(Product.name, Product.current_stock).where(Product.id == product_id)
        ).first()
        if row is None:
            raise NotFoundError(
                f"Product {product_id} not found",
                details={"productId": product_id}
            )

        raise InsufficientStockError(
            f"Insufficient stock for {row.name}: requested {quantity}, available {row.current_stock}",
            details={
                "productId": product_id,
                "requested": quantity,
                "available": row.current_stock
            }
        )

    def restore(self, product_id: int, quantity: int) -> bool:
        """
        Put ``quantity`` units back into current stock.

        Returns:
            False if the product no longer exists, True otherwise
        """
        if quantity <= 0:
            raise ValueError("Quantity to restore must be positive")

        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(current_stock=Product.current_stock + quantity)
            .execution_options(synchronize_session=False)
        )
        self._expire(product_id)
        if result.rowcount != 1:
            self.logger.warning(f"Product {product_id} missing, {quantity} unit(s) not restocked")
            return False

        self.logger.debug(f"Product {product_id}: stock +{quantity}")
        return True

    def adjust(self, product_id: int, delta: int) -> bool:
        """
        Apply a signed change: positive puts stock back, negative sells more.

        A missing product is tolerated when stock goes back, but not when
        more units are taken.
        """
        if delta > 0:
            return self.restore(product_id, delta)
        if delta < 0:
            self.decrement(product_id, -delta)
        return True

    def receive(self, product_id: int, quantity: int, unit_cost: float) -> bool:
        """
        Book a purchase receipt: both counters go up and cost price becomes
        the weighted average over total stock.

        Returns:
            False if the product no longer exists
        """
        new_total = Product.total_stock + quantity
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                cost_price=case(
                    (new_total > 0, (Product.cost_price * Product.total_stock + unit_cost * quantity) / new_total),
                    else_=unit_cost
                ),
                current_stock=Product.current_stock + quantity,
                total_stock=new_total
            )
            .execution_options(synchronize_session=False)
        )
        self._expire(product_id)
        if result.rowcount != 1:
            self.logger.warning(f"Product {product_id} missing, receipt of {quantity} skipped")
            return False

        self.logger.debug(f"Product {product_id}: received {quantity} @ {unit_cost}")
        return True

    def reverse_receipt(self, product_id: int, quantity: int, unit_cost: float) -> bool:
        """
        Undo a purchase receipt. Counters are clamped at zero and the
        receipt's cost contribution is backed out of the average.

        Returns:
            False if the product no longer exists
        """
        new_total = Product.total_stock - quantity
        new_current = Product.current_stock - quantity
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                cost_price=case(
                    (new_total > 0, (Product.cost_price * Product.total_stock - unit_cost * quantity) / new_total),
                    else_=0.0
                ),
                current_stock=case((new_current < 0, 0), else_=new_current),
                total_stock=case((new_total < 0, 0), else_=new_total)
            )
            .execution_options(synchronize_session=False)
        )
        self._expire(product_id)
        if result.rowcount != 1:
            self.logger.warning(f"Product {product_id} missing, reversal of {quantity} skipped")
            return False

        self.logger.debug(f"Product {product_id}: reversed receipt of {quantity}")
        return True

    def _expire(self, product_id: int) -> None:
        """Drop a cached Product so the next attribute access reloads the counters."""
        key = self.session.identity_key(Product, product_id)
        instance = self.session.identity_map.get(key)
        if instance is not None:
            self.session.expire(instance)
