"""FastAPI application for the retail point-of-sale backend.

The low-stock scheduler is embedded in this process so a single service
handles both the API and the periodic scan.
"""

from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api import inventory, orders, purchase_orders, reports
from .database import get_engine, init_db, wait_for_database
from .scheduler import create_background_scheduler
from .utils.config import get_config
from .utils.exceptions import (
    AuthenticationError,
    BaseAppException,
    BusinessRuleError,
    NotFoundError,
    ValidationError,
)
from .utils.logger import get_api_logger, get_error_logger

# Initialize shared state
config = get_config()
logger = get_api_logger()
error_logger = get_error_logger()

# Most specific class first; anything else is a server-side failure.
STATUS_CODES = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (BusinessRuleError, 409),
)


def status_code_for(exc: BaseAppException) -> int:
    for exception_class, status_code in STATUS_CODES:
        if isinstance(exc, exception_class):
            return status_code
    return 500


# ------------------------------------------------------------------
# Lifespan
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup / shutdown of the application."""
    # ── Startup ───────────────────────────────────────────────────────
    logger.info("=" * 60)
    logger.info("Retail POS Server Starting")
    logger.info("=" * 60)
    logger.info(f"Environment:          {config.env.environment}")
    logger.info(f"Port:                 {config.env.port}")
    logger.info(f"Signature validation: {config.auth.validate_signature}")
    logger.info(f"Low-stock scan:       every {config.scheduler.low_stock_scan_minutes} min")
    logger.info("=" * 60)

    engine = get_engine()
    wait_for_database(engine)
    init_db(engine)
    logger.info("Database ready")

    scheduler = create_background_scheduler()
    scheduler.start()
    logger.info("Low-stock scheduler started")

    yield

    # ── Shutdown ──────────────────────────────────────────────────────
    logger.info("Shutting down low-stock scheduler...")
    scheduler.shutdown(wait=True)
    engine.dispose()
    logger.info("Server shut down.")


# ------------------------------------------------------------------
# FastAPI app
# ------------------------------------------------------------------

app = FastAPI(
    title="Retail POS",
    description="Inventory, point-of-sale orders, purchase orders and reports",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(orders.router)
app.include_router(inventory.router)
app.include_router(purchase_orders.router)
app.include_router(reports.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Retail POS",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": config.env.environment
    }


# ------------------------------------------------------------------
# Exception handlers
# ------------------------------------------------------------------

@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    """Application errors carry their own message and details."""
    status_code = status_code_for(exc)

    if status_code >= 500:
        error_logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({status_code}): {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "status_code": status_code,
            "details": exc.details
        }
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed payloads are validation errors like any other."""
    logger.warning(f"{request.method} {request.url.path} rejected (400): invalid payload")
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "status_code": 400,
            "details": {"errors": jsonable_encoder(exc.errors())}
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Custom HTTP exception handler."""
    logger.warning(f"HTTP {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code,
            "details": {}
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """General exception handler for unexpected errors."""
    error_logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error" if config.is_production else str(exc),
            "status_code": 500,
            "details": {}
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "retail_pos.server:app",
        host="0.0.0.0",
        port=config.env.port,
        reload=not config.is_production
    )
