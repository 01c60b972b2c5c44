"""Purchase orders: the stock ledger's other writer.

Receiving a purchase order adds to both stock counters and re-averages the
product's cost price. Deleting a received purchase order reverses that
receipt, but only within the configured window after creation.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .base import TransactionalService
from .stock_ledger import StockLedger
from ..models.schemas import PurchaseOrderCreate, PurchaseOrderUpdate
from ..models.tables import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus
from ..utils.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PurchaseOrderLockedError,
    ValidationError,
)
from ..utils.logger import get_inventory_logger

# Allowed status changes after creation
TRANSITIONS = {
    PurchaseOrderStatus.PENDING: {PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.RECEIVED: set(),
    PurchaseOrderStatus.CANCELLED: set(),
}


def parse_status(value: Optional[str], default: PurchaseOrderStatus) -> PurchaseOrderStatus:
    if value is None:
        return default
    try:
        return PurchaseOrderStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError(
            f"Unknown purchase order status: {value}",
            details={"status": value, "allowed": [status.value for status in PurchaseOrderStatus]}
        )


class PurchaseOrderService(TransactionalService):

    def __init__(self, session_factory=None):
        super().__init__(session_factory)
        self.logger = get_inventory_logger()

    def create_purchase_order(self, shop_id: int, data: PurchaseOrderCreate) -> Dict[str, Any]:
        """
        Record a purchase order, receiving it straight away unless it is
        created as PENDING.

        Raises:
            ValidationError: No items, or an unusable status
            NotFoundError: An item's product is not in this shop
        """
        if not data.items:
            raise ValidationError("Purchase order must contain at least one item")

        status = parse_status(data.status, PurchaseOrderStatus.RECEIVED)
        if status == PurchaseOrderStatus.CANCELLED:
            raise ValidationError("A purchase order cannot be created as cancelled")

        with self.transaction("creating the purchase order") as session:
            products = self.load_products(session, shop_id, (item.product_id for item in data.items))

            purchase_order = PurchaseOrder(
                shop_id=shop_id,
                supplier_details=data.supplier_details,
                notes=data.notes,
                status=PurchaseOrderStatus.PENDING,
                total_amount=sum(item.quantity_ordered * item.cost_price_per_item for item in data.items)
            )
            for item in data.items:
                purchase_order.items.append(
                    PurchaseOrderItem(
                        product_id=item.product_id,
                        product_name=item.product_name or products[item.product_id].name,
                        quantity_ordered=item.quantity_ordered,
                        quantity_received=0,
                        cost_price_per_item=item.cost_price_per_item
                    )
                )
            session.add(purchase_order)
            session.flush()

            if status == PurchaseOrderStatus.RECEIVED:
                self._receive(session, purchase_order)

            result = purchase_order.to_dict()

        self.logger.info(
            f"Purchase order {result['id']} created for shop {shop_id} as {result['status']}: "
            f"{len(result['items'])} item(s), total {result['totalAmount']}"
        )
        return result

    def list_purchase_orders(self, shop_id: int) -> List[Dict[str, Any]]:
        with self.transaction("fetching purchase orders") as session:
            purchase_orders = session.scalars(
                select(PurchaseOrder)
                .where(PurchaseOrder.shop_id == shop_id)
                .options(selectinload(PurchaseOrder.items))
                .order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
            ).all()
            return [purchase_order.to_dict() for purchase_order in purchase_orders]

    def get_purchase_order(self, shop_id: int, purchase_order_id: int) -> Dict[str, Any]:
        with self.transaction("fetching the purchase order") as session:
            return self._get_purchase_order(session, shop_id, purchase_order_id).to_dict()

    def update_purchase_order(
        self,
        shop_id: int,
        purchase_order_id: int,
        data: PurchaseOrderUpdate
    ) -> Dict[str, Any]:
        """
        Edit supplier details or notes, and move a PENDING order to
        RECEIVED or CANCELLED.

        Raises:
            NotFoundError: If the purchase order is not in this shop
            BusinessRuleError: If the status change is not allowed
        """
        with self.transaction("updating the purchase order") as session:
            purchase_order = self._get_purchase_order(session, shop_id, purchase_order_id)

            if data.supplier_details is not None:
                purchase_order.supplier_details = data.supplier_details
            if data.notes is not None:
                purchase_order.notes = data.notes

            if data.status is not None:
                new_status = parse_status(data.status, purchase_order.status)
                if new_status != purchase_order.status:
                    if new_status not in TRANSITIONS[purchase_order.status]:
                        raise BusinessRuleError(
                            f"Cannot change a {purchase_order.status.value} purchase order to {new_status.value}",
                            details={"from": purchase_order.status.value, "to": new_status.value}
                        )
                    if new_status == PurchaseOrderStatus.RECEIVED:
                        self._receive(session, purchase_order)
                    else:
                        purchase_order.status = new_status

            session.flush()
            result = purchase_order.to_dict()

        self.logger.info(f"Purchase order {purchase_order_id} updated, status {result['status']}")
        return result

    def delete_purchase_order(
        self,
        shop_id: int,
        purchase_order_id: int,
        now: Optional[datetime] = None
    ) -> None:
        """
        Delete a purchase order, reversing its receipt if it was received.

        Raises:
            NotFoundError: If the purchase order is not in this shop
            PurchaseOrderLockedError: If it was created longer ago than the
                deletion window
        """
        now = now or datetime.utcnow()
        window = timedelta(hours=self.config.purchase_orders.deletion_window_hours)

        with self.transaction("deleting the purchase order") as session:
            purchase_order = self._get_purchase_order(session, shop_id, purchase_order_id)

            if now - purchase_order.created_at > window:
                self.logger.warning(
                    f"Purchase order {purchase_order_id} is past its deletion window, delete refused"
                )
                raise PurchaseOrderLockedError(
                    f"Purchase orders can only be deleted within "
                    f"{self.config.purchase_orders.deletion_window_hours} hours of creation",
                    details={
                        "purchaseOrderId": purchase_order_id,
                        "createdAt": purchase_order.created_at.isoformat(),
                        "deletionWindowHours": self.config.purchase_orders.deletion_window_hours
                    }
                )

            if purchase_order.status == PurchaseOrderStatus.RECEIVED:
                ledger = StockLedger(session)
                for item in purchase_order.items:
                    if item.product_id is None or item.quantity_received <= 0:
                        continue
                    ledger.reverse_receipt(item.product_id, item.quantity_received, item.cost_price_per_item)

            session.delete(purchase_order)

        self.logger.info(f"Purchase order {purchase_order_id} deleted for shop {shop_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _receive(session: Session, purchase_order: PurchaseOrder) -> None:
        """Book every item into stock. Items whose product is gone are skipped."""
        ledger = StockLedger(session)
        for item in purchase_order.items:
            if item.product_id is None:
                continue
            if ledger.receive(item.product_id, item.quantity_ordered, item.cost_price_per_item):
                item.quantity_received = item.quantity_ordered

        purchase_order.status = PurchaseOrderStatus.RECEIVED
        purchase_order.received_date = datetime.utcnow()

    @staticmethod
    def _get_purchase_order(session: Session, shop_id: int, purchase_order_id: int) -> PurchaseOrder:
        purchase_order = session.scalar(
            select(PurchaseOrder)
            .where(PurchaseOrder.id == purchase_order_id, PurchaseOrder.shop_id == shop_id)
            .options(selectinload(PurchaseOrder.items))
        )
        if purchase_order is None:
            raise NotFoundError("Purchase order not found", details={"purchaseOrderId": purchase_order_id})
        return purchase_order
