"""Tests for the low-stock scan job."""

from retail_pos.models.schemas import ProductUpdate
from retail_pos.scheduler import SCAN_JOB_ID, _make_scan_job, create_background_scheduler
from retail_pos.services.inventory_service import InventoryService


def test_scan_flags_products_at_threshold(session_factory, shop, products):
    InventoryService(session_factory).update_product(
        shop["id"], products["tea"]["id"], ProductUpdate(current_stock=3)
    )

    flagged = _make_scan_job(session_factory)()

    assert [product["name"] for product in flagged] == ["Tea"]


def test_scan_with_healthy_stock(session_factory, shop, products):
    assert _make_scan_job(session_factory)() == []


def test_background_scheduler_is_not_started(session_factory):
    scheduler = create_background_scheduler(session_factory)

    assert scheduler.running is False
    assert SCAN_JOB_ID in {job.id for job in scheduler.get_jobs()}
