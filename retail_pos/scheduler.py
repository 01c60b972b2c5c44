"""Background scheduler for the periodic low-stock scan.

Supports two modes:
  - **Standalone** (``python -m retail_pos.scheduler``): runs a
    ``BlockingScheduler`` as a separate worker process.
  - **Embedded** (``create_background_scheduler()``): returns a
    ``BackgroundScheduler`` that the FastAPI process starts in its
    ``lifespan`` handler.
"""

import sys
import signal
from collections import defaultdict
from datetime import datetime, timedelta

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .services.inventory_service import InventoryService
from .utils.config import get_config
from .utils.logger import get_inventory_logger, get_scheduler_logger

SCAN_JOB_ID = "low_stock_scan"


# ------------------------------------------------------------------
# Shared scan-job factory
# ------------------------------------------------------------------

def _make_scan_job(session_factory=None):
    """Create and return the low-stock scan callable."""
    logger = get_inventory_logger()

    def scan_job():
        logger.info(f"Low-stock scan started at {datetime.now()}")

        try:
            products = InventoryService(session_factory).low_stock_products()
        except Exception as e:
            logger.error(f"Low-stock scan failed: {str(e)}", exc_info=True)
            return []

        by_shop = defaultdict(list)
        for product in products:
            by_shop[product["shopId"]].append(product)

        for shop_id, shop_products in by_shop.items():
            logger.warning(f"Shop {shop_id}: {len(shop_products)} product(s) at or below threshold")
            for product in shop_products:
                logger.warning(
                    f"  - {product['name']}: {product['currentStock']} left "
                    f"(threshold {product['stockThreshold']})"
                )

        logger.info(f"Low-stock scan completed: {len(products)} product(s) flagged")
        return products

    return scan_job


# ------------------------------------------------------------------
# Embedded (non-blocking) scheduler, used by the web process
# ------------------------------------------------------------------

def create_background_scheduler(session_factory=None) -> BackgroundScheduler:
    """Create a ``BackgroundScheduler`` for embedding inside FastAPI.

    The scheduler is returned **not started**; the caller must invoke
    ``scheduler.start()`` when ready.
    """
    config = get_config()
    logger = get_scheduler_logger()
    interval = config.scheduler.low_stock_scan_minutes
    delay = config.scheduler.initial_scan_delay_seconds

    scheduler = BackgroundScheduler(timezone=config.scheduler.timezone)
    scan_job = _make_scan_job(session_factory)

    scheduler.add_job(
        func=scan_job,
        trigger=IntervalTrigger(minutes=interval),
        id=SCAN_JOB_ID,
        name="Low-stock scan",
        max_instances=config.scheduler.max_instances,
        coalesce=config.scheduler.coalesce,
        misfire_grace_time=config.scheduler.misfire_grace_time,
        replace_existing=True
    )

    scheduler.add_job(
        func=scan_job,
        trigger="date",
        run_date=datetime.now() + timedelta(seconds=delay),
        id="initial_low_stock_scan",
        name="Initial low-stock scan on startup",
    )

    logger.info(f"Background scheduler configured: low-stock scan every {interval} min (initial run in ~{delay} s)")
    return scheduler


# ------------------------------------------------------------------
# Standalone (blocking) scheduler
# ------------------------------------------------------------------

class LowStockScheduler:
    """Runs the low-stock scan on a fixed interval in the foreground."""

    def __init__(self):
        self.config = get_config()
        self.logger = get_scheduler_logger()
        self.scan_job = _make_scan_job()

        self.scheduler = BlockingScheduler(
            timezone=self.config.scheduler.timezone
        )

        signal.signal(signal.SIGINT, self._shutdown_handler)
        signal.signal(signal.SIGTERM, self._shutdown_handler)

    def _shutdown_handler(self, signum, frame):
        self.logger.info(f"Received shutdown signal ({signum}). Stopping scheduler...")
        self.scheduler.shutdown(wait=True)
        sys.exit(0)

    def start(self):
        """Start the blocking scheduler (runs forever)."""
        interval = self.config.scheduler.low_stock_scan_minutes

        self.logger.info("=" * 70)
        self.logger.info("Retail POS Low-Stock Scheduler Starting (standalone)")
        self.logger.info("=" * 70)
        self.logger.info(f"Environment:      {self.config.env.environment}")
        self.logger.info(f"Timezone:         {self.config.scheduler.timezone}")
        self.logger.info(f"Scan interval:    {interval} minutes")
        self.logger.info(f"Max instances:    {self.config.scheduler.max_instances}")
        self.logger.info("=" * 70)

        self.scheduler.add_job(
            func=self.scan_job,
            trigger=IntervalTrigger(minutes=interval),
            id=SCAN_JOB_ID,
            name="Low-stock scan",
            max_instances=self.config.scheduler.max_instances,
            coalesce=self.config.scheduler.coalesce,
            misfire_grace_time=self.config.scheduler.misfire_grace_time,
            replace_existing=True
        )

        self.logger.info("Running initial scan...")
        self.scan_job()

        self.logger.info("Scheduler started. Press Ctrl+C to stop.")

        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            self.logger.info("Scheduler stopped.")


def main():
    """Main entry point for standalone scheduler."""
    try:
        scheduler = LowStockScheduler()
        scheduler.start()
    except Exception as e:
        logger = get_scheduler_logger()
        logger.error(f"Scheduler failed to start: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
