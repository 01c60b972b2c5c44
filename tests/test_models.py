"""Tests for data models."""

import pytest
from datetime import date

from retail_pos.models.cart import CartLine, CartTotals, DiscountSpec, DiscountType, ItemAllocation
from retail_pos.models.report import ProductPurchaseSummary, ProductQuantity, PurchaseReport, SalesReport
from retail_pos.models.schemas import CartItemIn, CreateOrderRequest, ProductUpdate


class TestDiscountType:
    """Tests for DiscountType parsing."""

    @pytest.mark.parametrize("raw", ["PERCENT", "percent", "Percentage", "%", DiscountType.PERCENT])
    def test_percent_spellings(self, raw):
        assert DiscountType.parse(raw) is DiscountType.PERCENT

    @pytest.mark.parametrize("raw", ["FIXED", "amount", " flat ", None])
    def test_fixed_spellings(self, raw):
        assert DiscountType.parse(raw) is DiscountType.FIXED

    def test_unknown_type(self):
        """Test that an unknown type raises ValueError."""
        with pytest.raises(ValueError, match="Unknown discount type"):
            DiscountType.parse("BOGO")


class TestDiscountSpec:

    def test_type_is_parsed(self):
        spec = DiscountSpec(value="15", type="percentage")

        assert spec.type is DiscountType.PERCENT
        assert spec.value == "15"

    def test_none(self):
        assert DiscountSpec.none().to_dict() == {"value": 0, "type": "FIXED"}


class TestCartLine:
    """Tests for CartLine model."""

    def test_line_amounts(self):
        line = CartLine(quantity=3, sell_price=20, floor_price=15)

        assert line.line_subtotal == 60
        assert line.line_floor == 45

    def test_negative_sell_price(self):
        """Test that negative sell price raises ValueError."""
        with pytest.raises(ValueError, match="Sell price cannot be negative"):
            CartLine(quantity=1, sell_price=-1)

    def test_negative_floor_price(self):
        with pytest.raises(ValueError, match="Floor price cannot be negative"):
            CartLine(quantity=1, sell_price=1, floor_price=-1)


class TestCartTotals:

    def test_to_dict_reports_usable_maximum(self):
        line = CartLine(quantity=1, sell_price=50, floor_price=60, product_id=4)
        totals = CartTotals(
            subtotal=50,
            max_discount=-10,
            raw_discount=0,
            effective_discount=0,
            grand_total=50,
            discount=DiscountSpec.none(),
            lines=[line],
            allocations=[ItemAllocation(line=line, item_discount_total=0, per_unit_discount=0)]
        )

        data = totals.to_dict()

        assert data["maxDiscount"] == 0
        assert data["grandTotal"] == 50
        assert data["autoClamped"] is False
        assert data["allocations"][0]["productId"] == 4


class TestSalesReport:
    """Tests for SalesReport model."""

    def test_average_order_value(self):
        report = SalesReport(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))
        report.total_revenue = 300
        report.total_orders = 4

        assert report.average_order_value == 75.0

    def test_average_order_value_no_orders(self):
        report = SalesReport(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))

        assert report.average_order_value == 0.0
        assert report.most_sold_item is None

    def test_get_summary(self):
        """Test getting summary string."""
        report = SalesReport(
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
            total_revenue=300,
            total_profit=90,
            total_orders=4,
            top_selling_products=[ProductQuantity(name="Tea", quantity=9)],
            busiest_day={"day": "Saturday", "orders": 3}
        )

        summary = report.get_summary()

        assert "Sales 2024-01-01 to 2024-01-31" in summary
        assert "Revenue:         300.00" in summary
        assert "Tea: 9" in summary
        assert "Busiest day: Saturday (3 orders)" in summary


class TestPurchaseReport:

    def test_to_dict(self):
        report = PurchaseReport(
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 2),
            total_purchase_value=12.3456,
            total_orders=1,
            product_breakdown=[ProductPurchaseSummary(product_id=1, product_name="Tea", total_quantity=3)]
        )

        data = report.to_dict()

        assert data["summary"]["totalPurchaseValue"] == 12.35
        assert data["productBreakdown"][0]["productName"] == "Tea"


class TestSchemas:

    def test_camel_case_aliases(self):
        request = CreateOrderRequest.model_validate({
            "cartItems": [{"productId": 1, "quantity": 2, "sellPrice": 50, "costAtSale": 30}],
            "totalAmount": 100,
            "totalDiscountInput": "abc",
            "discountType": "FIXED"
        })

        assert request.cart_items[0] == CartItemIn(product_id=1, quantity=2, sell_price=50, cost_at_sale=30)
        assert request.total_discount_input == "abc"

    def test_product_update_tracks_unset_fields(self):
        update = ProductUpdate.model_validate({"currentStock": 4})

        assert update.model_dump(exclude_unset=True) == {"current_stock": 4}
