"""Shops, product categories and customer item requests."""

from typing import Any, Dict, List

from sqlalchemy import select

from .base import TransactionalService
from ..models.tables import Category, CustomerRequest, Shop
from ..utils.exceptions import NotFoundError, ValidationError
from ..utils.logger import get_inventory_logger


def _clean_name(name: str, label: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{label} is required")
    return name.strip()


class ShopService(TransactionalService):

    def __init__(self, session_factory=None):
        super().__init__(session_factory)
        self.logger = get_inventory_logger()

    # ------------------------------------------------------------------
    # Shops
    # ------------------------------------------------------------------

    def create_shop(self, name: str) -> Dict[str, Any]:
        name = _clean_name(name, "Shop name")
        with self.transaction("creating the shop") as session:
            shop = Shop(name=name)
            session.add(shop)
            session.flush()
            result = shop.to_dict()

        self.logger.info(f"Shop {result['id']} ({name}) created")
        return result

    def require_shop(self, shop_id: int) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: If no shop has this id
        """
        with self.transaction("fetching the shop") as session:
            shop = session.get(Shop, shop_id)
            if shop is None:
                raise NotFoundError("Shop not found for user", details={"shopId": shop_id})
            return shop.to_dict()

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self, shop_id: int) -> List[Dict[str, Any]]:
        with self.transaction("fetching categories") as session:
            categories = session.scalars(
                select(Category).where(Category.shop_id == shop_id).order_by(Category.name)
            ).all()
            return [category.to_dict() for category in categories]

    def create_category(self, shop_id: int, name: str) -> Dict[str, Any]:
        name = _clean_name(name, "Category name")
        with self.transaction(
            "creating the category",
            conflict_message="A category with this name already exists."
        ) as session:
            category = Category(shop_id=shop_id, name=name)
            session.add(category)
            session.flush()
            return category.to_dict()

    def rename_category(self, shop_id: int, category_id: int, name: str) -> Dict[str, Any]:
        name = _clean_name(name, "Category name")
        with self.transaction(
            "updating the category",
            conflict_message="A category with this name already exists."
        ) as session:
            category = self._require_category(session, shop_id, category_id)
            category.name = name
            session.flush()
            return category.to_dict()

    def delete_category(self, shop_id: int, category_id: int) -> None:
        """Products in the category keep existing with no category."""
        with self.transaction("deleting the category") as session:
            category = self._require_category(session, shop_id, category_id)
            session.delete(category)

    @staticmethod
    def _require_category(session, shop_id: int, category_id: int) -> Category:
        category = session.scalar(
            select(Category).where(Category.id == category_id, Category.shop_id == shop_id)
        )
        if category is None:
            raise NotFoundError("Category not found", details={"categoryId": category_id})
        return category

    # ------------------------------------------------------------------
    # Customer requests
    # ------------------------------------------------------------------

    def list_requests(self, shop_id: int) -> List[Dict[str, Any]]:
        with self.transaction("fetching customer requests") as session:
            requests = session.scalars(
                select(CustomerRequest)
                .where(CustomerRequest.shop_id == shop_id)
                .order_by(CustomerRequest.created_at.desc(), CustomerRequest.id.desc())
            ).all()
            return [request.to_dict() for request in requests]

    def create_request(self, shop_id: int, item: str) -> Dict[str, Any]:
        item = _clean_name(item, "Requested item")
        with self.transaction("creating the customer request") as session:
            request = CustomerRequest(shop_id=shop_id, item=item)
            session.add(request)
            session.flush()
            return request.to_dict()

    def delete_request(self, shop_id: int, request_id: int) -> None:
        with self.transaction("deleting the customer request") as session:
            request = session.scalar(
                select(CustomerRequest).where(
                    CustomerRequest.id == request_id,
                    CustomerRequest.shop_id == shop_id
                )
            )
            if request is None:
                raise NotFoundError("Request not found", details={"requestId": request_id})
            session.delete(request)
