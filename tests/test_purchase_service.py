"""Tests for purchase orders and their stock receipts."""

from datetime import datetime, timedelta

import pytest

from retail_pos.models.schemas import PurchaseOrderCreate, PurchaseOrderItemIn, PurchaseOrderUpdate
from retail_pos.services.purchase_service import PurchaseOrderService
from retail_pos.utils.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PurchaseOrderLockedError,
    ValidationError,
)


@pytest.fixture
def service(session_factory):
    return PurchaseOrderService(session_factory)


def tea_shipment(products, status=None, quantity=10, cost=40):
    return PurchaseOrderCreate(
        supplier_details="Leaf & Co",
        status=status,
        items=[
            PurchaseOrderItemIn(
                product_id=products["tea"]["id"],
                quantity_ordered=quantity,
                cost_price_per_item=cost
            )
        ]
    )


class TestCreatePurchaseOrder:

    def test_received_by_default(self, service, shop, products, stock_of):
        purchase_order = service.create_purchase_order(shop["id"], tea_shipment(products))

        assert purchase_order["status"] == "RECEIVED"
        assert purchase_order["totalAmount"] == 400
        assert purchase_order["receivedDate"] is not None
        assert purchase_order["items"][0]["quantityReceived"] == 10
        assert purchase_order["items"][0]["productName"] == "Tea"
        assert stock_of(products["tea"]["id"]) == (20, 20, pytest.approx(35))

    def test_pending_does_not_touch_stock(self, service, shop, products, stock_of):
        purchase_order = service.create_purchase_order(shop["id"], tea_shipment(products, status="pending"))

        assert purchase_order["status"] == "PENDING"
        assert purchase_order["items"][0]["quantityReceived"] == 0
        assert stock_of(products["tea"]["id"]) == (10, 10, 30)

    def test_requires_items(self, service, shop, products):
        with pytest.raises(ValidationError, match="at least one item"):
            service.create_purchase_order(shop["id"], PurchaseOrderCreate(items=[]))

    def test_cannot_create_cancelled(self, service, shop, products):
        with pytest.raises(ValidationError):
            service.create_purchase_order(shop["id"], tea_shipment(products, status="CANCELLED"))

    def test_unknown_status(self, service, shop, products):
        with pytest.raises(ValidationError) as exc_info:
            service.create_purchase_order(shop["id"], tea_shipment(products, status="shipped"))

        assert exc_info.value.details["allowed"] == ["PENDING", "RECEIVED", "CANCELLED"]

    def test_unknown_product(self, service, shop, products, stock_of):
        data = tea_shipment(products)
        data.items.append(PurchaseOrderItemIn(product_id=9999, quantity_ordered=1, cost_price_per_item=1))

        with pytest.raises(NotFoundError):
            service.create_purchase_order(shop["id"], data)

        assert stock_of(products["tea"]["id"])[0] == 10
        assert service.list_purchase_orders(shop["id"]) == []


class TestUpdatePurchaseOrder:

    def test_receiving_pending_order_books_stock(self, service, shop, products, stock_of):
        created = service.create_purchase_order(shop["id"], tea_shipment(products, status="PENDING"))

        updated = service.update_purchase_order(shop["id"], created["id"], PurchaseOrderUpdate(status="RECEIVED"))

        assert updated["status"] == "RECEIVED"
        assert updated["items"][0]["quantityReceived"] == 10
        assert stock_of(products["tea"]["id"]) == (20, 20, pytest.approx(35))

    def test_cancel_pending_order(self, service, shop, products, stock_of):
        created = service.create_purchase_order(shop["id"], tea_shipment(products, status="PENDING"))

        updated = service.update_purchase_order(shop["id"], created["id"], PurchaseOrderUpdate(status="CANCELLED"))

        assert updated["status"] == "CANCELLED"
        assert stock_of(products["tea"]["id"])[0] == 10

    @pytest.mark.parametrize("start,target", [
        ("RECEIVED", "PENDING"),
        ("RECEIVED", "CANCELLED"),
    ])
    def test_received_orders_are_final(self, service, shop, products, stock_of, start, target):
        created = service.create_purchase_order(shop["id"], tea_shipment(products, status=start))

        with pytest.raises(BusinessRuleError):
            service.update_purchase_order(shop["id"], created["id"], PurchaseOrderUpdate(status=target))

        assert stock_of(products["tea"]["id"])[0] == 20

    def test_cancelled_cannot_be_received(self, service, shop, products):
        created = service.create_purchase_order(shop["id"], tea_shipment(products, status="PENDING"))
        service.update_purchase_order(shop["id"], created["id"], PurchaseOrderUpdate(status="CANCELLED"))

        with pytest.raises(BusinessRuleError):
            service.update_purchase_order(shop["id"], created["id"], PurchaseOrderUpdate(status="RECEIVED"))

    def test_edit_notes_only(self, service, shop, products):
        created = service.create_purchase_order(shop["id"], tea_shipment(products))

        updated = service.update_purchase_order(
            shop["id"], created["id"], PurchaseOrderUpdate(notes="Two boxes dented")
        )

        assert updated["notes"] == "Two boxes dented"
        assert updated["supplierDetails"] == "Leaf & Co"
        assert updated["status"] == "RECEIVED"


class TestDeletePurchaseOrder:

    def test_order_older_than_window_is_locked(self, service, shop, products, stock_of):
        created = service.create_purchase_order(shop["id"], tea_shipment(products))

        with pytest.raises(PurchaseOrderLockedError) as exc_info:
            service.delete_purchase_order(
                shop["id"], created["id"], now=datetime.utcnow() + timedelta(hours=25)
            )

        assert isinstance(exc_info.value, BusinessRuleError)
        assert not isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.details["deletionWindowHours"] == 24
        assert stock_of(products["tea"]["id"])[0] == 20
        assert service.get_purchase_order(shop["id"], created["id"])["id"] == created["id"]

    def test_delete_received_order_reverses_receipt(self, service, shop, products, stock_of):
        created = service.create_purchase_order(shop["id"], tea_shipment(products))

        service.delete_purchase_order(shop["id"], created["id"])

        assert stock_of(products["tea"]["id"]) == (10, 10, pytest.approx(30))
        with pytest.raises(NotFoundError, match="Purchase order not found"):
            service.get_purchase_order(shop["id"], created["id"])

    def test_delete_pending_order_leaves_stock(self, service, shop, products, stock_of):
        created = service.create_purchase_order(shop["id"], tea_shipment(products, status="PENDING"))

        service.delete_purchase_order(shop["id"], created["id"])

        assert stock_of(products["tea"]["id"]) == (10, 10, 30)

    def test_reversal_clamps_sold_stock_at_zero(self, service, session_factory, shop, products, stock_of):
        from retail_pos.models.schemas import CartItemIn
        from retail_pos.services.order_service import OrderService

        created = service.create_purchase_order(shop["id"], tea_shipment(products))
        OrderService(session_factory).create_order(
            shop["id"], [CartItemIn(product_id=products["tea"]["id"], quantity=15)]
        )

        service.delete_purchase_order(shop["id"], created["id"])

        assert stock_of(products["tea"]["id"])[:2] == (0, 10)

    def test_delete_missing(self, service, shop):
        with pytest.raises(NotFoundError):
            service.delete_purchase_order(shop["id"], 9999)


def test_list_purchase_orders(service, shop, products):
    service.create_purchase_order(shop["id"], tea_shipment(products))
    service.create_purchase_order(shop["id"], tea_shipment(products, status="PENDING", quantity=3))

    purchase_orders = service.list_purchase_orders(shop["id"])

    assert len(purchase_orders) == 2
    assert {po["status"] for po in purchase_orders} == {"RECEIVED", "PENDING"}
