"""Sales and purchase report endpoints."""

from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from .deps import current_shop_id, get_report_service
from ..services.report_service import ReportService

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/sales")
def sales_report(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    shop_id: int = Depends(current_shop_id),
    service: ReportService = Depends(get_report_service)
) -> Dict[str, Any]:
    return service.sales_report(shop_id, start_date, end_date).to_dict()


@router.get("/purchases")
def purchase_report(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    shop_id: int = Depends(current_shop_id),
    service: ReportService = Depends(get_report_service)
) -> Dict[str, Any]:
    return service.purchase_report(shop_id, start_date, end_date).to_dict()
