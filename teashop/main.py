"""
Deniyaya Tea Shop
Main FastAPI application
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager

from teashop.config import get_settings
from teashop.utils.logger import log
from teashop import __version__

# Import routers
from teashop.api import health, auth, products, inventory, orders, customers, reports, dashboard, storefront
from teashop.middleware.auth_middleware import AuthMiddleware
from teashop.services.errors import NotFound, ValidationFailed

settings = get_settings()


def _bootstrap_database():
    from teashop.models.base import init_db, SessionLocal
    from teashop.services import auth_service, seed_service

    init_db()
    log.info("Database initialized")

    db = SessionLocal()
    try:
        if settings.seed_demo_data and seed_service.is_empty(db):
            counts = seed_service.seed_demo_data(db)
            log.info(f"Loaded demo data: {counts}")
        auth_service.seed_initial_user(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    try:
        _bootstrap_database()
    except Exception as e:
        log.error(f"Database initialization error: {str(e)}")

    if settings.enable_scheduler:
        try:
            from teashop.scheduler import start_scheduler
            start_scheduler()
        except Exception as e:
            log.error(f"Scheduler startup error: {str(e)}")

    yield

    # Shutdown
    if settings.enable_scheduler:
        from teashop.scheduler import stop_scheduler
        stop_scheduler()
    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Tea shop back office and storefront

    - Product catalogue and stock levels, with restock urgency ranking
    - Stock adjustments with an audit trail
    - Order entry, pending queue and status tracking
    - Customer records, segments and churn risk
    - Sales, inventory and customer reports
    - Storefront product listing and customer reviews
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Session-based authentication middleware
app.add_middleware(AuthMiddleware)

# Gzip compression
app.add_middleware(GZipMiddleware, minimum_size=500)


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    log.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc), "field": exc.field})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


# Include routers
app.include_router(auth.router)
app.include_router(health.router, tags=["health"])
app.include_router(products.router)
app.include_router(inventory.router)
app.include_router(orders.router)
app.include_router(customers.router)
app.include_router(reports.router)
app.include_router(dashboard.router)
app.include_router(storefront.router)


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt():
    """Block all crawlers"""
    return "User-agent: *\nDisallow: /\n"


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "app": settings.app_name,
        "version": __version__,
        "description": "Tea shop back office and storefront",
        "docs": "/docs",
        "health": "/health",
        "status": "/status",
        "endpoints": {
            "staff_login": "POST /auth/login",
            "customer_login": "POST /auth/customer/login",
            "products": "GET /products",
            "low_stock_products": "GET /products/low-stock",
            "inventory_overview": "GET /inventory/overview",
            "low_stock_alerts": "GET /inventory/low-stock",
            "restock_queue": "GET /inventory/restock-queue",
            "stock_adjustments": "GET /inventory/adjustments",
            "adjust_stock": "POST /inventory/adjustments",
            "orders": "GET /orders",
            "create_order": "POST /orders",
            "pending_orders": "GET /orders/pending",
            "update_order_status": "PATCH /orders/{id}/status",
            "customers": "GET /customers",
            "sales_report": "GET /reports/sales?range=30d",
            "inventory_report": "GET /reports/inventory?category=&sort=value",
            "customer_report": "GET /reports/customers?range=30d&sort=value",
            "dashboard": "GET /dashboard",
            "storefront_products": "GET /storefront/products",
            "my_reviews": "GET /storefront/me/reviews",
        }
    }


def run():
    """Console entry point"""
    import uvicorn
    uvicorn.run(
        "teashop.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        workers=settings.api_workers if not settings.debug else 1
    )


if __name__ == "__main__":
    run()
