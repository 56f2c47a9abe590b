"""
eShop - FastAPI backend.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import settings
from .logger import get_logger
from .routes import (
    auth_router,
    users_router,
    account_router,
    categories_router,
    products_router,
    cart_router,
    checkout_router,
    payments_router,
    orders_router,
    banners_router,
    admin_banners_router,
    settings_router,
    admin_router,
    upload_router,
    contact_router,
    bargain_router,
)
from .services import database
from .services.database import DatabaseService
from .services.error_reporting import capture_exception, init_sentry

logger = get_logger(__name__)

init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle."""
    # Startup
    database._db_service = DatabaseService(db_path=settings.DATABASE_PATH)
    await database._db_service.connect()
    await database._db_service.init_schema()
    logger.info("[DB] Database connected: %s", settings.DATABASE_PATH)

    yield

    # Shutdown
    if database._db_service:
        await database._db_service.disconnect()
        database._db_service = None
        logger.info("[DB] Database disconnected")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Storefront and admin API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Storefront
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(account_router, prefix="/api/account", tags=["Account"])
app.include_router(categories_router, prefix="/api/categories", tags=["Categories"])
app.include_router(products_router, prefix="/api/products", tags=["Products"])
app.include_router(cart_router, prefix="/api/cart", tags=["Cart"])
app.include_router(checkout_router, prefix="/api/checkout", tags=["Checkout"])
app.include_router(payments_router, prefix="/api/payments", tags=["Payments"])
app.include_router(orders_router, prefix="/api/orders", tags=["Orders"])
app.include_router(banners_router, prefix="/api/banners", tags=["Banners"])
app.include_router(settings_router, prefix="/api/settings", tags=["Settings"])
app.include_router(contact_router, prefix="/api/contact", tags=["Contact"])
app.include_router(bargain_router, prefix="/api/bargain", tags=["Bargain"])

# Admin
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])
app.include_router(admin_banners_router, prefix="/api/admin/banners", tags=["Admin"])
app.include_router(upload_router, prefix="/api/upload", tags=["Admin"])

# Uploaded media
settings.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/media", StaticFiles(directory=str(settings.UPLOADS_DIR)), name="media")


@app.get("/health")
@app.get("/api/health")
async def health_check():
    """Service health check."""
    return {"status": "healthy"}


@app.get("/api/sentry-test")
async def sentry_test():
    """Raises and reports a test error."""
    try:
        raise RuntimeError("Sentry test error from the eShop API")
    except RuntimeError as e:
        capture_exception(e)
        logger.error("[SENTRY] Test error captured: %s", e)
        return JSONResponse(
            status_code=500,
            content={"message": "Test error sent to Sentry", "error": str(e)},
        )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "eshop.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
