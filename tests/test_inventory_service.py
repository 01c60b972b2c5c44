"""Tests for products, categories and customer requests."""

import pytest

from retail_pos.models.schemas import (
    CartItemIn,
    ProductCreate,
    ProductUpdate,
    PurchaseOrderCreate,
    PurchaseOrderItemIn,
)
from retail_pos.services.inventory_service import InventoryService
from retail_pos.services.order_service import OrderService
from retail_pos.services.purchase_service import PurchaseOrderService
from retail_pos.services.shop_service import ShopService
from retail_pos.utils.exceptions import BusinessRuleError, NotFoundError, ValidationError


@pytest.fixture
def inventory(session_factory):
    return InventoryService(session_factory)


@pytest.fixture
def shops(session_factory):
    return ShopService(session_factory)


class TestProducts:

    def test_floor_price_defaults_from_cost(self, inventory, shop):
        cheap = inventory.create_product(shop["id"], ProductCreate(name="Gum", cost_price=2, sell_price=4))
        dear = inventory.create_product(shop["id"], ProductCreate(name="Coffee", cost_price=200, sell_price=260))

        assert cheap["floorPrice"] == 3
        assert dear["floorPrice"] == pytest.approx(210)

    def test_initial_stock_counts_towards_total(self, inventory, shop):
        product = inventory.create_product(
            shop["id"], ProductCreate(name="Rice", cost_price=1, sell_price=2, current_stock=40)
        )

        assert product["currentStock"] == 40
        assert product["totalStock"] == 40
        assert product["stockThreshold"] == 10

    def test_duplicate_name_in_shop(self, inventory, shop, products):
        with pytest.raises(BusinessRuleError, match='"Tea" already exists'):
            inventory.create_product(shop["id"], ProductCreate(name="Tea", cost_price=1, sell_price=2))

    def test_same_name_in_another_shop(self, inventory, shops, products):
        other_shop = shops.create_shop("Other Store")

        product = inventory.create_product(other_shop["id"], ProductCreate(name="Tea", cost_price=1, sell_price=2))

        assert product["shopId"] == other_shop["id"]

    def test_list_products_sorted_by_name(self, inventory, shop, products):
        names = [product["name"] for product in inventory.list_products(shop["id"])]

        assert names == ["Biscuits", "Tea"]

    def test_stocktake_overwrites_current_stock(self, inventory, shop, products, stock_of):
        updated = inventory.update_product(
            shop["id"], products["tea"]["id"], ProductUpdate(current_stock=3, sell_price=55)
        )

        assert updated["currentStock"] == 3
        assert updated["sellPrice"] == 55
        assert updated["floorPrice"] == 40
        assert stock_of(products["tea"]["id"])[:2] == (3, 10)

    def test_negative_stock_rejected(self, inventory, shop, products):
        with pytest.raises(ValidationError, match="cannot be negative"):
            inventory.update_product(shop["id"], products["tea"]["id"], ProductUpdate(current_stock=-1))

    def test_update_missing_product(self, inventory, shop):
        with pytest.raises(NotFoundError):
            inventory.update_product(shop["id"], 9999, ProductUpdate(sell_price=1))

    def test_assign_and_clear_category(self, inventory, shops, shop, products):
        category = shops.create_category(shop["id"], "Drinks")

        assigned = inventory.update_product(
            shop["id"], products["tea"]["id"], ProductUpdate(category_id=category["id"])
        )
        cleared = inventory.update_product(
            shop["id"], products["tea"]["id"], ProductUpdate(category_id=None)
        )

        assert assigned["category"]["name"] == "Drinks"
        assert cleared["categoryId"] is None

    def test_unknown_category(self, inventory, shop, products):
        with pytest.raises(NotFoundError, match="Category not found"):
            inventory.update_product(shop["id"], products["tea"]["id"], ProductUpdate(category_id=9999))

    def test_delete_unused_product(self, inventory, shop, products):
        tea_id = products["tea"]["id"]
        assert inventory.product_dependencies(shop["id"], tea_id) == {
            "canDelete": True,
            "hasSalesOrders": False,
            "hasPurchaseOrders": False,
        }

        inventory.delete_product(shop["id"], tea_id)

        assert [product["name"] for product in inventory.list_products(shop["id"])] == ["Biscuits"]

    def test_delete_sold_product_blocked(self, inventory, session_factory, shop, products):
        tea_id = products["tea"]["id"]
        OrderService(session_factory).create_order(shop["id"], [CartItemIn(product_id=tea_id, quantity=1)])

        with pytest.raises(BusinessRuleError) as exc_info:
            inventory.delete_product(shop["id"], tea_id)

        assert exc_info.value.details["hasSalesOrders"] is True
        assert exc_info.value.details["hasPurchaseOrders"] is False

    def test_low_stock(self, inventory, shop, products):
        inventory.update_product(shop["id"], products["biscuits"]["id"], ProductUpdate(stock_threshold=5))

        low = inventory.low_stock_products(shop["id"])

        assert [product["name"] for product in low] == ["Biscuits"]


class TestPurchaseHistory:

    @pytest.fixture
    def purchases(self, session_factory, shop, products):
        service = PurchaseOrderService(session_factory)
        for cost in (32, 41.5, 38):
            service.create_purchase_order(
                shop["id"],
                PurchaseOrderCreate(items=[
                    PurchaseOrderItemIn(product_id=products["tea"]["id"], quantity_ordered=2, cost_price_per_item=cost)
                ])
            )

    def test_highest_cost_price(self, inventory, shop, products, purchases):
        stats = inventory.product_stats(shop["id"], products["tea"]["id"])

        assert stats == {"productId": products["tea"]["id"], "highestCostPrice": 41.5}

    def test_no_purchases_means_zero(self, inventory, shop, products):
        stats = inventory.product_stats(shop["id"], products["biscuits"]["id"])

        assert stats["highestCostPrice"] == 0

    def test_purchase_orders_for_product(self, inventory, shop, products, purchases):
        purchase_orders = inventory.product_purchase_orders(shop["id"], products["tea"]["id"])

        assert len(purchase_orders) == 3
        assert inventory.product_purchase_orders(shop["id"], products["biscuits"]["id"]) == []

    def test_purchased_product_cannot_be_deleted(self, inventory, shop, products, purchases):
        dependencies = inventory.product_dependencies(shop["id"], products["tea"]["id"])

        assert dependencies["canDelete"] is False
        assert dependencies["hasPurchaseOrders"] is True


class TestCategories:

    def test_create_and_list(self, shops, shop):
        shops.create_category(shop["id"], "Snacks")
        shops.create_category(shop["id"], " Drinks ")

        names = [category["name"] for category in shops.list_categories(shop["id"])]

        assert names == ["Drinks", "Snacks"]

    def test_duplicate_name_conflicts(self, shops, shop):
        shops.create_category(shop["id"], "Snacks")

        with pytest.raises(BusinessRuleError, match="already exists"):
            shops.create_category(shop["id"], "Snacks")

    def test_blank_name(self, shops, shop):
        with pytest.raises(ValidationError, match="Category name is required"):
            shops.create_category(shop["id"], "   ")

    def test_rename(self, shops, shop):
        category = shops.create_category(shop["id"], "Snaks")

        renamed = shops.rename_category(shop["id"], category["id"], "Snacks")

        assert renamed["name"] == "Snacks"

    def test_delete_keeps_products(self, shops, inventory, shop, products):
        category = shops.create_category(shop["id"], "Drinks")
        inventory.update_product(shop["id"], products["tea"]["id"], ProductUpdate(category_id=category["id"]))

        shops.delete_category(shop["id"], category["id"])

        tea = next(p for p in inventory.list_products(shop["id"]) if p["name"] == "Tea")
        assert tea["categoryId"] is None
        assert shops.list_categories(shop["id"]) == []

    def test_delete_missing(self, shops, shop):
        with pytest.raises(NotFoundError):
            shops.delete_category(shop["id"], 9999)


class TestShopsAndRequests:

    def test_require_shop(self, shops, shop):
        assert shops.require_shop(shop["id"])["name"] == "Corner Store"

        with pytest.raises(NotFoundError, match="Shop not found for user"):
            shops.require_shop(9999)

    def test_customer_requests(self, shops, shop):
        first = shops.create_request(shop["id"], "Oat milk")
        shops.create_request(shop["id"], "Rye bread")

        assert {request["item"] for request in shops.list_requests(shop["id"])} == {"Oat milk", "Rye bread"}

        shops.delete_request(shop["id"], first["id"])

        assert [request["item"] for request in shops.list_requests(shop["id"])] == ["Rye bread"]

    def test_delete_missing_request(self, shops, shop):
        with pytest.raises(NotFoundError, match="Request not found"):
            shops.delete_request(shop["id"], 9999)
