"""FastAPI dependencies: shop identity and per-request services."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import sessionmaker

from ..database import get_session_factory
from ..middleware.session_validator import ShopIdentityValidator
from ..services.inventory_service import InventoryService
from ..services.order_service import OrderService
from ..services.purchase_service import PurchaseOrderService
from ..services.report_service import ReportService
from ..services.shop_service import ShopService


@lru_cache()
def get_identity_validator() -> ShopIdentityValidator:
    return ShopIdentityValidator()


def current_shop_id(
    x_shop_id: Optional[str] = Header(None),
    x_shop_signature: Optional[str] = Header(None),
    validator: ShopIdentityValidator = Depends(get_identity_validator),
    session_factory: sessionmaker = Depends(get_session_factory)
) -> int:
    """
    Verified shop id for the request.

    Raises:
        AuthenticationError: Missing or forged identity headers
        NotFoundError: The signed shop no longer exists
    """
    shop_id = validator.authenticate(x_shop_id, x_shop_signature)
    ShopService(session_factory).require_shop(shop_id)
    return shop_id


def get_order_service(session_factory: sessionmaker = Depends(get_session_factory)) -> OrderService:
    return OrderService(session_factory)


def get_inventory_service(session_factory: sessionmaker = Depends(get_session_factory)) -> InventoryService:
    return InventoryService(session_factory)


def get_shop_service(session_factory: sessionmaker = Depends(get_session_factory)) -> ShopService:
    return ShopService(session_factory)


def get_purchase_order_service(
    session_factory: sessionmaker = Depends(get_session_factory)
) -> PurchaseOrderService:
    return PurchaseOrderService(session_factory)


def get_report_service(session_factory: sessionmaker = Depends(get_session_factory)) -> ReportService:
    return ReportService(session_factory)
