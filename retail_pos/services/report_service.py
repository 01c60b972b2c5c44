"""Sales and purchase reporting over whole-day date ranges."""

from collections import Counter, defaultdict
from datetime import date, datetime, time
from typing import Dict

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .base import TransactionalService
from ..models.report import ProductPurchaseSummary, ProductQuantity, PurchaseReport, SalesReport
from ..models.tables import Order, Product, PurchaseOrder, PurchaseOrderStatus
from ..utils.exceptions import ValidationError

TOP_PRODUCTS = 5


def _day_bounds(start_date: date, end_date: date):
    if end_date < start_date:
        raise ValidationError(
            "End date must not be before start date",
            details={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()}
        )
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)


def _top_entry(totals: Dict[str, float]):
    if not totals:
        return None
    return max(totals.items(), key=lambda entry: entry[1])


class ReportService(TransactionalService):

    def sales_report(self, shop_id: int, start_date: date, end_date: date) -> SalesReport:
        """
        Revenue, profit and best sellers for orders created in the range.

        Profit uses the point-in-time snapshots on each item, net of its
        per-unit discount: (sold_at - discount - cost_at_sale) * quantity.
        """
        start, end = _day_bounds(start_date, end_date)
        report = SalesReport(start_date=start_date, end_date=end_date)

        with self.transaction("generating the sales report") as session:
            orders = session.scalars(
                select(Order)
                .where(Order.shop_id == shop_id, Order.created_at >= start, Order.created_at <= end)
                .options(selectinload(Order.items))
            ).all()

            quantity_by_product: Counter = Counter()
            orders_by_day: Dict[str, float] = defaultdict(int)
            profit_by_day: Dict[str, float] = defaultdict(float)
            profit_by_month: Dict[str, float] = defaultdict(float)

            for order in orders:
                weekday = order.created_at.strftime("%A")
                month = order.created_at.strftime("%B")

                order_profit = 0.0
                for item in order.items:
                    order_profit += (item.sold_at - item.discount - item.cost_at_sale) * item.quantity
                    quantity_by_product[item.product_name] += item.quantity

                report.total_revenue += order.total_amount
                report.total_profit += order_profit
                orders_by_day[weekday] += 1
                profit_by_day[weekday] += order_profit
                profit_by_month[month] += order_profit

        report.total_orders = len(orders)
        report.top_selling_products = [
            ProductQuantity(name=name, quantity=quantity)
            for name, quantity in quantity_by_product.most_common(TOP_PRODUCTS)
        ]

        busiest = _top_entry(orders_by_day)
        if busiest:
            report.busiest_day = {"day": busiest[0], "orders": busiest[1]}

        profitable_day = _top_entry(profit_by_day)
        if profitable_day:
            report.most_profitable_day = {"day": profitable_day[0], "profit": round(profitable_day[1], 2)}

        profitable_month = _top_entry(profit_by_month)
        if profitable_month:
            report.most_profitable_month = {"month": profitable_month[0], "profit": round(profitable_month[1], 2)}

        return report

    def purchase_report(self, shop_id: int, start_date: date, end_date: date) -> PurchaseReport:
        """Spend per product across non-cancelled purchase orders created in the range."""
        start, end = _day_bounds(start_date, end_date)
        report = PurchaseReport(start_date=start_date, end_date=end_date)

        with self.transaction("generating the purchase report") as session:
            purchase_orders = session.scalars(
                select(PurchaseOrder)
                .where(
                    PurchaseOrder.shop_id == shop_id,
                    PurchaseOrder.created_at >= start,
                    PurchaseOrder.created_at <= end,
                    PurchaseOrder.status != PurchaseOrderStatus.CANCELLED
                )
                .options(selectinload(PurchaseOrder.items))
                .order_by(PurchaseOrder.created_at.desc())
            ).all()

            product_ids = {
                item.product_id
                for purchase_order in purchase_orders
                for item in purchase_order.items
                if item.product_id is not None
            }
            current_names = dict(
                session.execute(
                    select(Product.id, Product.name).where(Product.id.in_(product_ids))
                ).all()
            ) if product_ids else {}

            summaries: Dict[object, ProductPurchaseSummary] = {}
            for purchase_order in purchase_orders:
                for item in purchase_order.items:
                    item_cost = item.quantity_ordered * item.cost_price_per_item
                    report.total_purchase_value += item_cost

                    key = item.product_id if item.product_id is not None else item.product_name
                    summary = summaries.get(key)
                    if summary is None:
                        summary = ProductPurchaseSummary(
                            product_id=item.product_id,
                            product_name=current_names.get(item.product_id, item.product_name)
                        )
                        summaries[key] = summary

                    summary.total_quantity += item.quantity_ordered
                    summary.total_cost += item_cost

        report.total_orders = len(purchase_orders)
        report.product_breakdown = sorted(
            summaries.values(), key=lambda summary: summary.total_cost, reverse=True
        )
        return report
