"""Inventory endpoints: products, categories and customer requests."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response, status

from .deps import current_shop_id, get_inventory_service, get_shop_service
from ..models.schemas import CategoryIn, CustomerRequestIn, ProductCreate, ProductUpdate
from ..services.inventory_service import InventoryService
from ..services.shop_service import ShopService

router = APIRouter(prefix="/api", tags=["inventory"])


# ------------------------------------------------------------------
# Products
# ------------------------------------------------------------------

@router.get("/products")
def list_products(
    shop_id: int = Depends(current_shop_id),
    service: InventoryService = Depends(get_inventory_service)
) -> List[Dict[str, Any]]:
    return service.list_products(shop_id)


@router.get("/products/low-stock")
def low_stock_products(
    shop_id: int = Depends(current_shop_id),
    service: InventoryService = Depends(get_inventory_service)
) -> List[Dict[str, Any]]:
    return service.low_stock_products(shop_id)


@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    shop_id: int = Depends(current_shop_id),
    service: InventoryService = Depends(get_inventory_service)
) -> Dict[str, Any]:
    return service.create_product(shop_id, payload)


@router.put("/products/{product_id}")
def update_product(
    product_id: int,
    payload: ProductUpdate,
    shop_id: int = Depends(current_shop_id),
    service: InventoryService = Depends(get_inventory_service)
) -> Dict[str, Any]:
    return service.update_product(shop_id, product_id, payload)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    shop_id: int = Depends(current_shop_id),
    service: InventoryService = Depends(get_inventory_service)
) -> Response:
    service.delete_product(shop_id, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/products/{product_id}/dependencies")
def product_dependencies(
    product_id: int,
    shop_id: int = Depends(current_shop_id),
    service: InventoryService = Depends(get_inventory_service)
) -> Dict[str, Any]:
    return service.product_dependencies(shop_id, product_id)


@router.get("/products/{product_id}/stats")
def product_stats(
    product_id: int,
    shop_id: int = Depends(current_shop_id),
    service: InventoryService = Depends(get_inventory_service)
) -> Dict[str, Any]:
    return service.product_stats(shop_id, product_id)


@router.get("/products/{product_id}/purchase-orders")
def product_purchase_orders(
    product_id: int,
    shop_id: int = Depends(current_shop_id),
    service: InventoryService = Depends(get_inventory_service)
) -> List[Dict[str, Any]]:
    return service.product_purchase_orders(shop_id, product_id)


# ------------------------------------------------------------------
# Categories
# ------------------------------------------------------------------

@router.get("/categories")
def list_categories(
    shop_id: int = Depends(current_shop_id),
    service: ShopService = Depends(get_shop_service)
) -> List[Dict[str, Any]]:
    return service.list_categories(shop_id)


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryIn,
    shop_id: int = Depends(current_shop_id),
    service: ShopService = Depends(get_shop_service)
) -> Dict[str, Any]:
    return service.create_category(shop_id, payload.name)


@router.put("/categories/{category_id}")
def rename_category(
    category_id: int,
    payload: CategoryIn,
    shop_id: int = Depends(current_shop_id),
    service: ShopService = Depends(get_shop_service)
) -> Dict[str, Any]:
    return service.rename_category(shop_id, category_id, payload.name)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    shop_id: int = Depends(current_shop_id),
    service: ShopService = Depends(get_shop_service)
) -> Response:
    service.delete_category(shop_id, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ------------------------------------------------------------------
# Customer requests
# ------------------------------------------------------------------

@router.get("/requests")
def list_requests(
    shop_id: int = Depends(current_shop_id),
    service: ShopService = Depends(get_shop_service)
) -> List[Dict[str, Any]]:
    return service.list_requests(shop_id)


@router.post("/requests", status_code=status.HTTP_201_CREATED)
def create_request(
    payload: CustomerRequestIn,
    shop_id: int = Depends(current_shop_id),
    service: ShopService = Depends(get_shop_service)
) -> Dict[str, Any]:
    return service.create_request(shop_id, payload.item)


@router.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: int,
    shop_id: int = Depends(current_shop_id),
    service: ShopService = Depends(get_shop_service)
) -> Response:
    service.delete_request(shop_id, request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
