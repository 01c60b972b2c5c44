"""Sales and purchase report data models."""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Dict, Any, Optional


@dataclass
class ProductQuantity:
    """Units of one product sold in the period."""

    name: str
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "quantity": self.quantity}


@dataclass
class SalesReport:
    """Aggregated sales for a shop over a date range."""

    start_date: date
    end_date: date
    total_revenue: float = 0.0
    total_profit: float = 0.0
    total_orders: int = 0
    top_selling_products: List[ProductQuantity] = field(default_factory=list)
    busiest_day: Optional[Dict[str, Any]] = None
    most_profitable_day: Optional[Dict[str, Any]] = None
    most_profitable_month: Optional[Dict[str, Any]] = None

    @property
    def average_order_value(self) -> float:
        """Revenue per order."""
        if self.total_orders == 0:
            return 0.0
        return self.total_revenue / self.total_orders

    @property
    def most_sold_item(self) -> Optional[ProductQuantity]:
        return self.top_selling_products[0] if self.top_selling_products else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        most_sold = self.most_sold_item
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "totalRevenue": self.total_revenue,
            "totalProfit": round(self.total_profit, 2),
            "totalOrders": self.total_orders,
            "averageOrderValue": round(self.average_order_value, 2),
            "topSellingProducts": [product.to_dict() for product in self.top_selling_products],
            "mostSoldItem": most_sold.to_dict() if most_sold else None,
            "busiestDay": self.busiest_day,
            "mostProfitableDay": self.most_profitable_day,
            "mostProfitableMonth": self.most_profitable_month,
        }

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        summary_lines = [
            f"Sales {self.start_date.isoformat()} to {self.end_date.isoformat()}",
            f"Orders:          {self.total_orders}",
            f"Revenue:         {self.total_revenue:.2f}",
            f"Profit:          {self.total_profit:.2f}",
            f"Avg order value: {self.average_order_value:.2f}"
        ]

        if self.top_selling_products:
            summary_lines.append("\nTop products:")
            for product in self.top_selling_products:
                summary_lines.append(f"  - {product.name}: {product.quantity}")

        if self.busiest_day:
            summary_lines.append(f"\nBusiest day: {self.busiest_day['day']} ({self.busiest_day['orders']} orders)")

        return "\n".join(summary_lines)


@dataclass
class ProductPurchaseSummary:
    """Quantity and spend for one product across purchase orders."""

    product_id: Optional[int]
    product_name: str
    total_quantity: int = 0
    total_cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "totalQuantity": self.total_quantity,
            "totalCost": round(self.total_cost, 2),
        }


@dataclass
class PurchaseReport:
    """Aggregated purchase orders for a shop over a date range."""

    start_date: date
    end_date: date
    total_purchase_value: float = 0.0
    total_orders: int = 0
    product_breakdown: List[ProductPurchaseSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "summary": {
                "totalPurchaseValue": round(self.total_purchase_value, 2),
                "totalOrders": self.total_orders,
            },
            "productBreakdown": [summary.to_dict() for summary in self.product_breakdown],
        }
