# marketplace/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.core.config import get_settings
from marketplace.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from marketplace.models import user as _user_models  # noqa: F401
from marketplace.models import product as _product_models  # noqa: F401
from marketplace.models import cart as _cart_models  # noqa: F401
from marketplace.models import order as _order_models  # noqa: F401
from marketplace.models import voucher as _voucher_models  # noqa: F401
from marketplace.models import complaint as _complaint_models  # noqa: F401
from marketplace.models import category as _category_models  # noqa: F401
from marketplace.models import address as _address_models  # noqa: F401
from marketplace.models import review as _review_models  # noqa: F401
from marketplace.models import promotion as _promotion_models  # noqa: F401


# Routers
from marketplace.routers.users import router as users_router
from marketplace.routers.products import router as products_router
from marketplace.routers.cart import router as cart_router
from marketplace.routers.orders import router as orders_router
from marketplace.routers.vouchers import router as vouchers_router
from marketplace.routers.complaints import router as complaints_router
from marketplace.routers.categories import router as categories_router
from marketplace.routers.addresses import router as addresses_router
from marketplace.routers.reviews import router as reviews_router
from marketplace.routers.promotions import router as promotions_router

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "Marketplace API",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Last-resort handler for anything a service did not turn into an
    HTTPException. The raw message is only echoed back in DEBUG mode.
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    detail = str(exc) if settings.DEBUG else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": detail},
    )


# Versioned API prefix, e.g. /api/v1
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(products_router, prefix=settings.API_V1_STR)
app.include_router(cart_router, prefix=settings.API_V1_STR)
app.include_router(orders_router, prefix=settings.API_V1_STR)
app.include_router(vouchers_router, prefix=settings.API_V1_STR)
app.include_router(complaints_router, prefix=settings.API_V1_STR)
app.include_router(categories_router, prefix=settings.API_V1_STR)
app.include_router(addresses_router, prefix=settings.API_V1_STR)
app.include_router(reviews_router, prefix=settings.API_V1_STR)
app.include_router(promotions_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "marketplace-backend"}
