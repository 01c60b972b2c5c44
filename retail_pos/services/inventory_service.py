"""Product catalogue and stock visibility for a shop."""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from .base import TransactionalService
from .pricing import default_floor_price
from ..models.schemas import ProductCreate, ProductUpdate
from ..models.tables import Category, OrderItem, Product, PurchaseOrder, PurchaseOrderItem
from ..utils.exceptions import BusinessRuleError, NotFoundError, ValidationError
from ..utils.logger import get_inventory_logger


class InventoryService(TransactionalService):
    """Create, edit and inspect products."""

    def __init__(self, session_factory=None):
        super().__init__(session_factory)
        self.logger = get_inventory_logger()

    def list_products(self, shop_id: int) -> List[Dict[str, Any]]:
        with self.transaction("fetching inventory") as session:
            products = session.scalars(
                select(Product)
                .where(Product.shop_id == shop_id)
                .options(selectinload(Product.category))
                .order_by(Product.name)
            ).all()
            return [product.to_dict() for product in products]

    def create_product(self, shop_id: int, data: ProductCreate) -> Dict[str, Any]:
        """
        Add a product. Initial stock counts towards both counters.

        When no floor price is given it is derived from cost so the
        product cannot be discounted into a loss.
        """
        pricing = self.config.pricing
        floor_price = data.floor_price
        if floor_price is None:
            floor_price = default_floor_price(
                data.cost_price, pricing.floor_margin_rate, pricing.floor_margin_minimum
            )

        with self.transaction(
            "creating the product",
            conflict_message=f'A product with the name "{data.name}" already exists.'
        ) as session:
            if data.category_id is not None:
                self._require_category(session, shop_id, data.category_id)

            product = Product(
                shop_id=shop_id,
                name=data.name.strip(),
                cost_price=data.cost_price,
                sell_price=data.sell_price,
                floor_price=floor_price,
                current_stock=data.current_stock,
                total_stock=data.current_stock,
                stock_threshold=(
                    data.stock_threshold
                    if data.stock_threshold is not None
                    else pricing.default_stock_threshold
                ),
                category_id=data.category_id
            )
            session.add(product)
            session.flush()
            result = product.to_dict()

        self.logger.info(f"Product {result['id']} ({result['name']}) created for shop {shop_id}")
        return result

    def update_product(self, shop_id: int, product_id: int, data: ProductUpdate) -> Dict[str, Any]:
        """
        Edit product fields.

        ``currentStock`` is overwritten as given: this is the stocktake
        escape hatch and the one place the ledger is not moved by deltas.
        """
        if data.current_stock is not None and data.current_stock < 0:
            raise ValidationError(
                "Current stock cannot be negative",
                details={"currentStock": data.current_stock}
            )

        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is None:
            raise ValidationError("Product name is required")

        with self.transaction(
            "updating the product",
            conflict_message="A product with this name already exists."
        ) as session:
            product = self._require_product(session, shop_id, product_id)

            if changes.get("category_id") is not None:
                self._require_category(session, shop_id, changes["category_id"])

            previous_stock = product.current_stock
            for field_name, value in changes.items():
                if value is None and field_name != "category_id":
                    continue
                setattr(product, field_name, value.strip() if field_name == "name" else value)

            session.flush()
            result = product.to_dict()

        if data.current_stock is not None and data.current_stock != previous_stock:
            self.logger.info(
                f"Product {product_id}: stock overwritten {previous_stock} -> {data.current_stock}"
            )
        return result

    def product_dependencies(self, shop_id: int, product_id: int) -> Dict[str, Any]:
        """Whether a product can be deleted without orphaning sales or purchase history."""
        with self.transaction("checking product dependencies") as session:
            self._require_product(session, shop_id, product_id)
            return self._dependencies(session, product_id)

    def delete_product(self, shop_id: int, product_id: int) -> None:
        """
        Raises:
            NotFoundError: If the product is not in this shop
            BusinessRuleError: If sales or purchase orders reference it
        """
        with self.transaction("deleting the product") as session:
            product = self._require_product(session, shop_id, product_id)

            dependencies = self._dependencies(session, product_id)
            if not dependencies["canDelete"]:
                raise BusinessRuleError(
                    "Product has sales or purchase history and cannot be deleted",
                    details=dependencies
                )

            session.delete(product)

        self.logger.info(f"Product {product_id} deleted from shop {shop_id}")

    def product_stats(self, shop_id: int, product_id: int) -> Dict[str, Any]:
        """Highest cost price ever paid for the product on a purchase order."""
        with self.transaction("fetching product stats") as session:
            self._require_product(session, shop_id, product_id)
            highest = session.scalar(
                select(func.max(PurchaseOrderItem.cost_price_per_item))
                .join(PurchaseOrder)
                .where(
                    PurchaseOrderItem.product_id == product_id,
                    PurchaseOrder.shop_id == shop_id
                )
            )
            return {"productId": product_id, "highestCostPrice": highest or 0}

    def product_purchase_orders(self, shop_id: int, product_id: int) -> List[Dict[str, Any]]:
        """Purchase orders containing the product, latest order date first."""
        with self.transaction("fetching product purchase orders") as session:
            self._require_product(session, shop_id, product_id)
            purchase_orders = session.scalars(
                select(PurchaseOrder)
                .join(PurchaseOrderItem)
                .where(
                    PurchaseOrderItem.product_id == product_id,
                    PurchaseOrder.shop_id == shop_id
                )
                .options(selectinload(PurchaseOrder.items))
                .order_by(PurchaseOrder.order_date.desc())
            ).unique().all()
            return [purchase_order.to_dict() for purchase_order in purchase_orders]

    def low_stock_products(self, shop_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Products at or below their threshold; all shops when ``shop_id`` is None."""
        query = select(Product).where(Product.current_stock <= Product.stock_threshold)
        if shop_id is not None:
            query = query.where(Product.shop_id == shop_id)

        with self.transaction("fetching low-stock products") as session:
            products = session.scalars(
                query.options(selectinload(Product.category))
                .order_by(Product.shop_id, Product.current_stock, Product.name)
            ).all()
            return [product.to_dict() for product in products]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_product(session: Session, shop_id: int, product_id: int) -> Product:
        product = session.scalar(
            select(Product).where(Product.id == product_id, Product.shop_id == shop_id)
        )
        if product is None:
            raise NotFoundError("Product not found", details={"productId": product_id})
        return product

    @staticmethod
    def _require_category(session: Session, shop_id: int, category_id: int) -> Category:
        category = session.scalar(
            select(Category).where(Category.id == category_id, Category.shop_id == shop_id)
        )
        if category is None:
            raise NotFoundError("Category not found", details={"categoryId": category_id})
        return category

    @staticmethod
    def _dependencies(session: Session, product_id: int) -> Dict[str, Any]:
        sales = session.scalar(
            select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)
        )
        purchases = session.scalar(
            select(func.count(PurchaseOrderItem.id)).where(PurchaseOrderItem.product_id == product_id)
        )
        return {
            "canDelete": sales == 0 and purchases == 0,
            "hasSalesOrders": sales > 0,
            "hasPurchaseOrders": purchases > 0,
        }
