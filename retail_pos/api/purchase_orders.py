"""Purchase order endpoints."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response, status

from .deps import current_shop_id, get_purchase_order_service
from ..models.schemas import PurchaseOrderCreate, PurchaseOrderUpdate
from ..services.purchase_service import PurchaseOrderService

router = APIRouter(prefix="/api/purchase-orders", tags=["purchase-orders"])


@router.get("")
def list_purchase_orders(
    shop_id: int = Depends(current_shop_id),
    service: PurchaseOrderService = Depends(get_purchase_order_service)
) -> List[Dict[str, Any]]:
    return service.list_purchase_orders(shop_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    payload: PurchaseOrderCreate,
    shop_id: int = Depends(current_shop_id),
    service: PurchaseOrderService = Depends(get_purchase_order_service)
) -> Dict[str, Any]:
    return service.create_purchase_order(shop_id, payload)


@router.get("/{purchase_order_id}")
def get_purchase_order(
    purchase_order_id: int,
    shop_id: int = Depends(current_shop_id),
    service: PurchaseOrderService = Depends(get_purchase_order_service)
) -> Dict[str, Any]:
    return service.get_purchase_order(shop_id, purchase_order_id)


@router.put("/{purchase_order_id}")
def update_purchase_order(
    purchase_order_id: int,
    payload: PurchaseOrderUpdate,
    shop_id: int = Depends(current_shop_id),
    service: PurchaseOrderService = Depends(get_purchase_order_service)
) -> Dict[str, Any]:
    return service.update_purchase_order(shop_id, purchase_order_id, payload)


@router.delete("/{purchase_order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_order(
    purchase_order_id: int,
    shop_id: int = Depends(current_shop_id),
    service: PurchaseOrderService = Depends(get_purchase_order_service)
) -> Response:
    """Only allowed within the deletion window; a locked order answers 409."""
    service.delete_purchase_order(shop_id, purchase_order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
