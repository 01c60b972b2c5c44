"""Order endpoints: quote, history, and the reconciliation transactions."""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from .deps import current_shop_id, get_order_service
from ..models.schemas import CreateOrderRequest, EditOrderRequest, QuoteRequest
from ..services.order_service import OrderService, build_discount
from ..utils.logger import get_api_logger

router = APIRouter(prefix="/api/orders", tags=["orders"])
logger = get_api_logger()


@router.get("")
def list_orders(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    shop_id: int = Depends(current_shop_id),
    service: OrderService = Depends(get_order_service)
) -> Dict[str, Any]:
    return service.list_orders(shop_id, start_date, end_date, page=page, limit=limit)


@router.post("/quote")
def quote(
    payload: QuoteRequest,
    shop_id: int = Depends(current_shop_id),
    service: OrderService = Depends(get_order_service)
) -> Dict[str, Any]:
    """Live cart preview. Oversized discounts are clamped unless the caller opts out."""
    discount = build_discount(payload.total_discount_input, payload.discount_type)
    return service.quote(
        shop_id,
        payload.items,
        discount,
        auto_clamp_on_overflow=payload.auto_clamp_on_overflow
    )


@router.get("/{order_id}")
def get_order(
    order_id: int,
    shop_id: int = Depends(current_shop_id),
    service: OrderService = Depends(get_order_service)
) -> Dict[str, Any]:
    return service.get_order(shop_id, order_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: CreateOrderRequest,
    shop_id: int = Depends(current_shop_id),
    service: OrderService = Depends(get_order_service)
) -> Dict[str, Any]:
    discount = None
    if payload.total_discount_input is not None:
        discount = build_discount(payload.total_discount_input, payload.discount_type)

    logger.info(f"Create order request from shop {shop_id}: {len(payload.cart_items)} cart item(s)")
    return service.create_order(
        shop_id,
        payload.cart_items,
        total_amount=payload.total_amount,
        discount=discount
    )


@router.put("/{order_id}")
def edit_order(
    order_id: int,
    payload: EditOrderRequest,
    shop_id: int = Depends(current_shop_id),
    service: OrderService = Depends(get_order_service)
) -> Dict[str, Any]:
    discount = build_discount(payload.total_discount_input, payload.discount_type)
    return service.edit_order(shop_id, order_id, payload.updated_items, discount)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: int,
    shop_id: int = Depends(current_shop_id),
    service: OrderService = Depends(get_order_service)
) -> Response:
    service.delete_order(shop_id, order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
